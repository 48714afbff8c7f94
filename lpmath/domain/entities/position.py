from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import NewType

from lpmath.domain.entities.brands import coerce_decimal
from lpmath.domain.entities.pool import PoolState
from lpmath.domain.entities.tick import SqrtRatio, Tick
from lpmath.domain.entities.validated import Validated
from lpmath.domain.exceptions import RefinementError


Amount0 = NewType("Amount0", Decimal)
Amount1 = NewType("Amount1", Decimal)
Liquidity = NewType("Liquidity", Decimal)

MAX_UINT256 = 2**256 - 1
_UINT256_LIMIT = Decimal(MAX_UINT256 + 1)

AMOUNT0_ZERO = Amount0(Decimal(0))
AMOUNT1_ZERO = Amount1(Decimal(0))
MAX_AMOUNT_0 = Amount0(Decimal(MAX_UINT256))
MAX_AMOUNT_1 = Amount1(Decimal(MAX_UINT256))


def _check_uint256(raw: object) -> Decimal | RefinementError:
    value = coerce_decimal(raw)
    if value is None:
        return RefinementError(raw, "finite decimal")
    if value < 0:
        return RefinementError(raw, "amount >= 0")
    # integer part <= MAX_UINT256
    if value >= _UINT256_LIMIT:
        return RefinementError(raw, "amount <= MAX_UINT256")
    return value


def make_amount0(raw: object) -> Validated[Amount0]:
    checked = _check_uint256(raw)
    if isinstance(checked, RefinementError):
        return Validated.fail(checked)
    return Validated.ok(Amount0(checked))


def make_amount1(raw: object) -> Validated[Amount1]:
    checked = _check_uint256(raw)
    if isinstance(checked, RefinementError):
        return Validated.fail(checked)
    return Validated.ok(Amount1(checked))


def make_liquidity(raw: object) -> Validated[Liquidity]:
    value = coerce_decimal(raw)
    if value is None:
        return Validated.fail(RefinementError(raw, "finite decimal"))
    if value < 0:
        return Validated.fail(RefinementError(raw, "liquidity >= 0"))
    return Validated.ok(Liquidity(value))


@dataclass(frozen=True)
class PositionDraft:
    pool: PoolState
    tick_lower: Tick
    tick_upper: Tick
    tick_current: Tick
    sqrt_ratio: SqrtRatio
    liquidity: Liquidity
    desired_amount0: Amount0
    desired_amount1: Amount1
