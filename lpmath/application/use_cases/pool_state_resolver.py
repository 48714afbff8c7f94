from __future__ import annotations

import logging

from lpmath.application.ports.pool_state_port import PoolStatePort
from lpmath.domain.entities.brands import make_q64x96
from lpmath.domain.entities.pool import PoolState, Slot0
from lpmath.domain.entities.tick import make_tick
from lpmath.domain.exceptions import DomainError, PoolNotFoundError, PoolStateNotFoundError
from lpmath.domain.services.price import make_price_from_sqrt_q64x96


logger = logging.getLogger(__name__)


def normalize_pool_address(pool_address: str, *, error_cls: type[DomainError]) -> str:
    value = pool_address.strip().lower()
    if not value.startswith("0x") or len(value) != 42:
        raise error_cls("pool_address must be a 0x-prefixed 20-byte hex address.")
    try:
        int(value[2:], 16)
    except ValueError as exc:
        raise error_cls("pool_address must be a 0x-prefixed 20-byte hex address.") from exc
    return value


def resolve_pool_state(
    *,
    pool_state_port: PoolStatePort,
    pool_address: str,
    error_cls: type[DomainError],
) -> tuple[PoolState, Slot0]:
    pool = pool_state_port.get_pool(pool_address=pool_address)
    if pool is None:
        raise PoolNotFoundError("Pool not found.")

    raw = pool_state_port.get_slot0_raw(pool_address=pool_address)
    if raw is None:
        raise PoolStateNotFoundError("Pool slot0 not found.")

    price = make_q64x96(raw.sqrt_price_x96).flat_map(
        lambda sqrt_price_x96: make_price_from_sqrt_q64x96(pool.pair, sqrt_price_x96)
    )
    tick = make_tick(raw.tick)
    if not price.is_valid or not tick.is_valid:
        errors = price.errors + tick.errors
        logger.warning(
            "pool_state_resolver: invalid slot0 pool=%s sqrt_price_x96=%s tick=%s errors=%s",
            pool_address,
            raw.sqrt_price_x96,
            raw.tick,
            len(errors),
        )
        raise error_cls(f"Invalid pool slot0: {errors[0]}") from errors[0]

    return pool, Slot0(price=price.unwrap(), tick=tick.unwrap())
