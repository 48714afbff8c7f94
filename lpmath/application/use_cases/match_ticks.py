from __future__ import annotations

import logging

from lpmath.application.dto.match_ticks import MatchTicksInput, MatchTicksOutput
from lpmath.application.ports.pool_state_port import PoolStatePort
from lpmath.application.use_cases.pool_state_resolver import normalize_pool_address, resolve_pool_state
from lpmath.domain.exceptions import DomainError, MatchTicksInputError
from lpmath.domain.services.match_ticks import match_ratios
from lpmath.domain.services.pair_orientation import (
    canonical_ticks_to_ui,
    invert_decimal_price,
    ui_price_range_to_canonical,
)
from lpmath.domain.services.price import as_ratio, ratio_to_units, units_to_ratio
from lpmath.shared.config import Settings, get_settings


logger = logging.getLogger(__name__)


class MatchTicksUseCase:
    def __init__(self, *, pool_state_port: PoolStatePort, settings: Settings | None = None):
        self._pool_state_port = pool_state_port
        self._settings = settings or get_settings()

    def execute(self, command: MatchTicksInput) -> MatchTicksOutput:
        if command.min_price <= 0 or command.max_price <= 0:
            raise MatchTicksInputError("min_price and max_price must be positive.")

        min_price = command.min_price
        max_price = command.max_price
        if command.swapped_pair:
            try:
                min_price, max_price = ui_price_range_to_canonical(
                    min(min_price, max_price),
                    max(min_price, max_price),
                    min_field_name="min_price",
                    max_field_name="max_price",
                )
            except ValueError as exc:
                raise MatchTicksInputError(str(exc)) from exc
        elif min_price >= max_price:
            raise MatchTicksInputError("min_price must be lower than max_price.")

        pool_address = normalize_pool_address(command.pool_address, error_cls=MatchTicksInputError)
        pool, slot0 = resolve_pool_state(
            pool_state_port=self._pool_state_port,
            pool_address=pool_address,
            error_cls=MatchTicksInputError,
        )

        try:
            matched = match_ratios(
                min_ratio=units_to_ratio(min_price, pool.pair),
                max_ratio=units_to_ratio(max_price, pool.pair),
                current_ratio=as_ratio(slot0.price),
                fee_tier=pool.fee,
                mc=self._settings.tick_math_context(),
            )
        except (ValueError, DomainError) as exc:
            raise MatchTicksInputError(str(exc)) from exc

        min_matched = ratio_to_units(matched.ratio_lower, pool.pair)
        max_matched = ratio_to_units(matched.ratio_upper, pool.pair)
        current_matched = ratio_to_units(matched.ratio_current, pool.pair)
        tick_lower, tick_upper, tick_current = matched.tick_lower, matched.tick_upper, matched.tick_current

        if command.swapped_pair:
            min_matched, max_matched = (
                invert_decimal_price(max_matched, field_name="max_price_matched"),
                invert_decimal_price(min_matched, field_name="min_price_matched"),
            )
            current_matched = invert_decimal_price(current_matched, field_name="current_price_matched")
            tick_lower, tick_upper = canonical_ticks_to_ui(tick_lower, tick_upper)
            tick_current = -tick_current

        logger.info(
            "match_ticks: pool=%s fee=%s tick_lower=%s tick_upper=%s tick_current=%s swapped=%s",
            pool_address,
            int(pool.fee),
            tick_lower,
            tick_upper,
            tick_current,
            command.swapped_pair,
        )
        return MatchTicksOutput(
            min_price_matched=min_matched,
            max_price_matched=max_matched,
            current_price_matched=current_matched,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            tick_current=tick_current,
        )
