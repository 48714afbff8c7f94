from __future__ import annotations

from dataclasses import dataclass

from lpmath.domain.entities.price import TokenPair, TokenPrice
from lpmath.domain.entities.tick import FeeAmount, Tick


@dataclass(frozen=True)
class PoolState:
    address: str
    fee: FeeAmount
    pair: TokenPair


@dataclass(frozen=True)
class Slot0:
    price: TokenPrice
    tick: Tick


@dataclass(frozen=True)
class RawSlot0:
    sqrt_price_x96: int
    tick: int
