from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class GetPoolPriceInput:
    pool_address: str
    swapped_pair: bool = False


@dataclass(frozen=True)
class GetPoolPriceOutput:
    pool_address: str
    price: Decimal
    sqrt_price_x96: int
    tick: int
    tick_from_price: int
