from __future__ import annotations

import logging

from lpmath.application.dto.pool_price import GetPoolPriceInput, GetPoolPriceOutput
from lpmath.application.ports.pool_state_port import PoolStatePort
from lpmath.application.use_cases.pool_state_resolver import normalize_pool_address, resolve_pool_state
from lpmath.domain.exceptions import PoolPriceInputError
from lpmath.domain.services.price import as_sqrt_q64x96, as_units, flip, tick_at_price
from lpmath.shared.config import Settings, get_settings


logger = logging.getLogger(__name__)


class GetPoolPriceUseCase:
    def __init__(self, *, pool_state_port: PoolStatePort, settings: Settings | None = None):
        self._pool_state_port = pool_state_port
        self._settings = settings or get_settings()

    def execute(self, command: GetPoolPriceInput) -> GetPoolPriceOutput:
        pool_address = normalize_pool_address(command.pool_address, error_cls=PoolPriceInputError)
        pool, slot0 = resolve_pool_state(
            pool_state_port=self._pool_state_port,
            pool_address=pool_address,
            error_cls=PoolPriceInputError,
        )

        price = slot0.price
        sqrt_price_x96 = as_sqrt_q64x96(price)
        if sqrt_price_x96 is None:
            raise PoolPriceInputError("Pool price does not fit Q64.96.")
        tick_from_price = tick_at_price(price, self._settings.tick_math_context())
        if not tick_from_price.is_valid:
            raise PoolPriceInputError(str(tick_from_price.errors[0]))

        if command.swapped_pair:
            price = flip(price)

        output = GetPoolPriceOutput(
            pool_address=pool_address,
            price=as_units(price),
            sqrt_price_x96=sqrt_price_x96,
            tick=slot0.tick,
            tick_from_price=tick_from_price.unwrap(),
        )
        logger.info(
            "get_pool_price: pool=%s fee=%s tick=%s tick_from_price=%s swapped=%s",
            pool_address,
            int(pool.fee),
            output.tick,
            output.tick_from_price,
            command.swapped_pair,
        )
        return output
