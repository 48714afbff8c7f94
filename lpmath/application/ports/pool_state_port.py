from __future__ import annotations

from typing import Protocol

from lpmath.domain.entities.pool import PoolState, RawSlot0


class PoolStatePort(Protocol):
    def get_pool(self, *, pool_address: str) -> PoolState | None:
        ...

    def get_slot0_raw(self, *, pool_address: str) -> RawSlot0 | None:
        ...
