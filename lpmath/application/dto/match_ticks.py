from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class MatchTicksInput:
    pool_address: str
    min_price: Decimal
    max_price: Decimal
    swapped_pair: bool = False


@dataclass(frozen=True)
class MatchTicksOutput:
    min_price_matched: Decimal
    max_price_matched: Decimal
    current_price_matched: Decimal
    tick_lower: int
    tick_upper: int
    tick_current: int
