from __future__ import annotations

import logging

from lpmath.application.dto.position_draft import DraftPositionInput, DraftPositionOutput
from lpmath.application.ports.pool_state_port import PoolStatePort
from lpmath.application.use_cases.pool_state_resolver import normalize_pool_address, resolve_pool_state
from lpmath.domain.entities.position import make_amount0, make_amount1, make_liquidity
from lpmath.domain.entities.tick import UsableTick
from lpmath.domain.entities.validated import combine
from lpmath.domain.exceptions import PositionDraftInputError, UnsupportedFeeTierError
from lpmath.domain.services.position import DraftBuilder, draft_builder
from lpmath.domain.services.tick_math import add_n_ticks, to_tick_spacing
from lpmath.shared.config import Settings, get_settings


logger = logging.getLogger(__name__)


class DraftPositionUseCase:
    def __init__(self, *, pool_state_port: PoolStatePort, settings: Settings | None = None):
        self._pool_state_port = pool_state_port
        self._settings = settings or get_settings()

    def execute(self, command: DraftPositionInput) -> DraftPositionOutput:
        has_liquidity = command.liquidity is not None
        has_amounts = command.amount0 is not None or command.amount1 is not None
        if has_liquidity == has_amounts:
            raise PositionDraftInputError("Provide either liquidity or amount0/amount1.")
        if has_amounts and (command.amount0 is None or command.amount1 is None):
            raise PositionDraftInputError("amount0 and amount1 must be provided together.")

        has_offsets = command.lower_offset is not None or command.upper_offset is not None
        has_ticks = command.tick_lower is not None or command.tick_upper is not None
        if has_offsets == has_ticks:
            raise PositionDraftInputError("Use either lower_offset/upper_offset or tick_lower/tick_upper.")
        if has_offsets and (command.lower_offset is None or command.upper_offset is None):
            raise PositionDraftInputError("lower_offset and upper_offset must be provided together.")
        if has_ticks and (command.tick_lower is None or command.tick_upper is None):
            raise PositionDraftInputError("tick_lower and tick_upper must be provided together.")

        pool_address = normalize_pool_address(command.pool_address, error_cls=PositionDraftInputError)
        pool, slot0 = resolve_pool_state(
            pool_state_port=self._pool_state_port,
            pool_address=pool_address,
            error_cls=PositionDraftInputError,
        )
        try:
            spacing = to_tick_spacing(pool.fee)
        except UnsupportedFeeTierError as exc:
            raise PositionDraftInputError(str(exc)) from exc

        builder = self._with_range(draft_builder(pool, slot0), command, spacing)
        builder = self._with_size(builder, command)

        draft = builder.finalize(self._settings.amount_math_context())
        if not draft.is_valid:
            detail = "; ".join(str(error) for error in draft.errors)
            logger.warning("draft_position: rejected pool=%s errors=%s", pool_address, len(draft.errors))
            raise PositionDraftInputError(detail) from draft.errors[0]

        position = draft.unwrap()
        logger.info(
            "draft_position: pool=%s tick_lower=%s tick_upper=%s tick_current=%s",
            pool_address,
            position.tick_lower,
            position.tick_upper,
            position.tick_current,
        )
        return DraftPositionOutput(
            pool_address=pool_address,
            tick_lower=position.tick_lower,
            tick_upper=position.tick_upper,
            tick_current=position.tick_current,
            liquidity=position.liquidity,
            amount0=position.desired_amount0,
            amount1=position.desired_amount1,
        )

    @staticmethod
    def _with_range(builder: DraftBuilder, command: DraftPositionInput, spacing: int) -> DraftBuilder:
        if command.lower_offset is not None:
            lower_offset = command.lower_offset
            upper_offset = command.upper_offset
            return builder.set_lower_tick_bound(
                lambda current: add_n_ticks(current, lower_offset)
            ).set_upper_tick_bound(lambda current: add_n_ticks(current, upper_offset))

        tick_lower = UsableTick(tick=command.tick_lower, spacing=spacing)
        tick_upper = UsableTick(tick=command.tick_upper, spacing=spacing)
        return builder.set_lower_tick_bound(lambda _: tick_lower).set_upper_tick_bound(lambda _: tick_upper)

    @staticmethod
    def _with_size(builder: DraftBuilder, command: DraftPositionInput) -> DraftBuilder:
        if command.liquidity is not None:
            liquidity = make_liquidity(command.liquidity)
            if not liquidity.is_valid:
                raise PositionDraftInputError(f"Invalid liquidity: {liquidity.errors[0]}")
            return builder.set_size_from_liquidity(liquidity.unwrap())

        amounts = combine(make_amount0(command.amount0), make_amount1(command.amount1))
        if not amounts.is_valid:
            detail = "; ".join(str(error) for error in amounts.errors)
            raise PositionDraftInputError(f"Invalid amounts: {detail}")
        amount0, amount1 = amounts.unwrap()
        return builder.set_size_from_amounts(amount0, amount1)
