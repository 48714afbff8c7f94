from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import NewType

from lpmath.domain.entities.validated import Validated
from lpmath.domain.exceptions import RefinementError


Ratio = NewType("Ratio", Decimal)
NonNegativeDecimal = NewType("NonNegativeDecimal", Decimal)
Q64x96 = NewType("Q64x96", int)

Q96 = 2**96
MAX_Q64X96 = 2**160


def coerce_decimal(raw: object) -> Decimal | None:
    """Exact Decimal for Decimal, int or numeric str input; None for anything else.

    Floats are rejected because their binary expansion is not the value the caller wrote.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, int):
        value = Decimal(raw)
    elif isinstance(raw, str):
        try:
            value = Decimal(raw.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not value.is_finite():
        return None
    return value


def make_ratio(raw: object) -> Validated[Ratio]:
    value = coerce_decimal(raw)
    if value is None:
        return Validated.fail(RefinementError(raw, "finite decimal"))
    if value <= 0:
        return Validated.fail(RefinementError(raw, "ratio > 0"))
    return Validated.ok(Ratio(value))


def make_non_negative_decimal(raw: object) -> Validated[NonNegativeDecimal]:
    value = coerce_decimal(raw)
    if value is None:
        return Validated.fail(RefinementError(raw, "finite decimal"))
    if value < 0:
        return Validated.fail(RefinementError(raw, "value >= 0"))
    return Validated.ok(NonNegativeDecimal(value))


def make_q64x96(raw: object) -> Validated[Q64x96]:
    if isinstance(raw, bool) or not isinstance(raw, int):
        return Validated.fail(RefinementError(raw, "integer"))
    if raw < 0 or raw > MAX_Q64X96:
        return Validated.fail(RefinementError(raw, "0 <= q64x96 <= 2^160"))
    return Validated.ok(Q64x96(raw))


def unsafe_ratio(value: Decimal) -> Ratio:
    return Ratio(value)


def unsafe_non_negative_decimal(value: Decimal) -> NonNegativeDecimal:
    return NonNegativeDecimal(value)


def unsafe_q64x96(value: int) -> Q64x96:
    return Q64x96(value)
