from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class DraftPositionInput:
    pool_address: str
    liquidity: Decimal | int | str | None = None
    amount0: Decimal | int | str | None = None
    amount1: Decimal | int | str | None = None
    lower_offset: int | None = None
    upper_offset: int | None = None
    tick_lower: int | None = None
    tick_upper: int | None = None


@dataclass(frozen=True)
class DraftPositionOutput:
    pool_address: str
    tick_lower: int
    tick_upper: int
    tick_current: int
    liquidity: Decimal
    amount0: Decimal
    amount1: Decimal
