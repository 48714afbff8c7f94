from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Callable

from lpmath.domain.entities.math_context import MATH_CONTEXT_HIGH_PRECISION, MathContext
from lpmath.domain.entities.pool import PoolState, Slot0
from lpmath.domain.entities.position import (
    AMOUNT0_ZERO,
    AMOUNT1_ZERO,
    Amount0,
    Amount1,
    Liquidity,
    PositionDraft,
    make_amount0,
    make_amount1,
    make_liquidity,
)
from lpmath.domain.entities.tick import SqrtRatio, UsableTick, make_tick
from lpmath.domain.entities.validated import Validated
from lpmath.domain.exceptions import DomainError, DomainMathError, PositionDraftError
from lpmath.domain.services.big_math import min_decimal
from lpmath.domain.services.price import as_sqrt
from lpmath.domain.services.tick_math import nearest_usable_tick, sqrt_ratio_at_tick, to_tick_spacing


logger = logging.getLogger(__name__)


def _sorted_bounds(sqrt_a: Decimal, sqrt_b: Decimal) -> tuple[Decimal, Decimal]:
    if sqrt_a == sqrt_b:
        raise DomainMathError("sqrt ratio bounds must differ.")
    return (sqrt_a, sqrt_b) if sqrt_a < sqrt_b else (sqrt_b, sqrt_a)


def max_liquidity_for_amount0(
    sqrt_a: Decimal,
    sqrt_b: Decimal,
    amount0: Decimal,
    mc: MathContext = MATH_CONTEXT_HIGH_PRECISION,
) -> Liquidity:
    lower, upper = _sorted_bounds(sqrt_a, sqrt_b)
    ctx = mc.to_context()
    numerator = ctx.multiply(ctx.multiply(amount0, lower), upper)
    return Liquidity(ctx.divide(numerator, ctx.subtract(upper, lower)))


def max_liquidity_for_amount1(
    sqrt_a: Decimal,
    sqrt_b: Decimal,
    amount1: Decimal,
    mc: MathContext = MATH_CONTEXT_HIGH_PRECISION,
) -> Liquidity:
    lower, upper = _sorted_bounds(sqrt_a, sqrt_b)
    ctx = mc.to_context()
    return Liquidity(ctx.divide(amount1, ctx.subtract(upper, lower)))


def max_liquidity_for_amounts(
    sqrt_current: Decimal,
    sqrt_a: Decimal,
    sqrt_b: Decimal,
    amount0: Decimal,
    amount1: Decimal,
    mc: MathContext = MATH_CONTEXT_HIGH_PRECISION,
) -> Liquidity:
    """Largest liquidity the amounts can fund for the range, bounds in any order."""
    lower, upper = _sorted_bounds(sqrt_a, sqrt_b)
    if sqrt_current <= lower:
        logger.debug("position: max_liquidity zone=below")
        return max_liquidity_for_amount0(lower, upper, amount0, mc)
    if sqrt_current < upper:
        logger.debug("position: max_liquidity zone=inside")
        liquidity0 = max_liquidity_for_amount0(sqrt_current, upper, amount0, mc)
        liquidity1 = max_liquidity_for_amount1(lower, sqrt_current, amount1, mc)
        return Liquidity(min_decimal(liquidity0, liquidity1))
    logger.debug("position: max_liquidity zone=above")
    return max_liquidity_for_amount1(lower, upper, amount1, mc)


def get_amount0_delta(
    sqrt_a: Decimal,
    sqrt_b: Decimal,
    liquidity: Decimal,
    mc: MathContext = MATH_CONTEXT_HIGH_PRECISION,
) -> Decimal:
    lower, upper = _sorted_bounds(sqrt_a, sqrt_b)
    ctx = mc.to_context()
    delta = ctx.multiply(ctx.subtract(upper, lower), liquidity)
    return ctx.divide(ctx.divide(delta, upper), lower)


def get_amount1_delta(
    sqrt_a: Decimal,
    sqrt_b: Decimal,
    liquidity: Decimal,
    mc: MathContext = MATH_CONTEXT_HIGH_PRECISION,
) -> Decimal:
    lower, upper = _sorted_bounds(sqrt_a, sqrt_b)
    ctx = mc.to_context()
    return ctx.multiply(liquidity, ctx.subtract(upper, lower))


def mint_amounts(
    sqrt_current: Decimal,
    sqrt_lower: Decimal,
    sqrt_upper: Decimal,
    liquidity: Decimal,
    mc: MathContext = MATH_CONTEXT_HIGH_PRECISION,
) -> tuple[Decimal, Decimal]:
    lower, upper = _sorted_bounds(sqrt_lower, sqrt_upper)
    if sqrt_current <= lower:
        return get_amount0_delta(lower, upper, liquidity, mc), Decimal(0)
    if sqrt_current < upper:
        return (
            get_amount0_delta(sqrt_current, upper, liquidity, mc),
            get_amount1_delta(lower, sqrt_current, liquidity, mc),
        )
    return Decimal(0), get_amount1_delta(lower, upper, liquidity, mc)


def _validate_range(pool: PoolState, tick_lower: UsableTick, tick_upper: UsableTick) -> list[DomainError]:
    errors: list[DomainError] = []
    for field, usable in (("tick_lower", tick_lower), ("tick_upper", tick_upper)):
        refined = make_tick(usable.tick)
        if usable.spacing <= 0:
            errors.append(PositionDraftError(field, f"Spacing[{usable.spacing}] must be positive."))
        elif not refined.is_valid:
            errors.append(PositionDraftError(field, f"Tick[{usable.tick}] is outside tick bounds."))
        elif usable.tick % usable.spacing != 0:
            errors.append(
                PositionDraftError(field, f"Tick[{usable.tick}] is not a multiple of spacing[{usable.spacing}].")
            )
    if tick_lower.tick >= tick_upper.tick:
        errors.append(
            PositionDraftError(
                "validation",
                f"TickLower[{tick_lower.tick}] must be less than TickUpper[{tick_upper.tick}].",
            )
        )
    pool_spacing = to_tick_spacing(pool.fee)
    if tick_lower.spacing != pool_spacing or tick_upper.spacing != pool_spacing:
        errors.append(
            PositionDraftError(
                "validation",
                f"TickLower.spacing[{tick_lower.spacing}] and TickUpper.spacing[{tick_upper.spacing}] "
                f"must be the same as pool spacing[{pool_spacing}].",
            )
        )
    return errors


def calculate_position_draft_from_liquidity(
    pool: PoolState,
    sqrt_ratio_current: Decimal,
    liquidity: Decimal,
    tick_lower: UsableTick,
    tick_upper: UsableTick,
    tick_current: int,
    mc: MathContext = MATH_CONTEXT_HIGH_PRECISION,
) -> Validated[PositionDraft]:
    errors = _validate_range(pool, tick_lower, tick_upper)
    refined_liquidity = make_liquidity(liquidity)
    if not refined_liquidity.is_valid:
        errors.append(PositionDraftError("liquidity", str(refined_liquidity.errors[0])))
    refined_current = make_tick(tick_current)
    if not refined_current.is_valid:
        errors.append(PositionDraftError("validation", f"TickCurrent[{tick_current}] is outside tick bounds."))
    if sqrt_ratio_current <= 0:
        errors.append(PositionDraftError("validation", "sqrt ratio must be positive."))
    if errors:
        return Validated.fail(*errors)

    amount0_raw, amount1_raw = mint_amounts(
        sqrt_ratio_current,
        sqrt_ratio_at_tick(tick_lower.tick),
        sqrt_ratio_at_tick(tick_upper.tick),
        refined_liquidity.unwrap(),
        mc,
    )
    amount0 = make_amount0(amount0_raw)
    amount1 = make_amount1(amount1_raw)
    for name, refined in (("amount0", amount0), ("amount1", amount1)):
        if not refined.is_valid:
            errors.append(PositionDraftError("calculation", f"{name} out of range: {refined.errors[0]}"))
    if errors:
        return Validated.fail(*errors)

    logger.debug(
        "position: draft tick_lower=%s tick_upper=%s tick_current=%s",
        tick_lower.tick,
        tick_upper.tick,
        tick_current,
    )
    return Validated.ok(
        PositionDraft(
            pool=pool,
            tick_lower=tick_lower.tick,
            tick_upper=tick_upper.tick,
            tick_current=refined_current.unwrap(),
            sqrt_ratio=SqrtRatio(sqrt_ratio_current),
            liquidity=refined_liquidity.unwrap(),
            desired_amount0=amount0.unwrap(),
            desired_amount1=amount1.unwrap(),
        )
    )


def calculate_position_draft_from_amounts(
    pool: PoolState,
    slot0: Slot0,
    max_amount0: Amount0,
    max_amount1: Amount1,
    tick_lower: UsableTick,
    tick_upper: UsableTick,
    mc: MathContext = MATH_CONTEXT_HIGH_PRECISION,
) -> Validated[PositionDraft]:
    errors = _validate_range(pool, tick_lower, tick_upper)
    if errors:
        return Validated.fail(*errors)
    sqrt_current = as_sqrt(slot0.price)
    liquidity = max_liquidity_for_amounts(
        sqrt_current,
        sqrt_ratio_at_tick(tick_lower.tick),
        sqrt_ratio_at_tick(tick_upper.tick),
        max_amount0,
        max_amount1,
        mc,
    )
    return calculate_position_draft_from_liquidity(
        pool,
        sqrt_current,
        liquidity,
        tick_lower,
        tick_upper,
        slot0.tick,
        mc,
    )


TickFn = Callable[[UsableTick], UsableTick | None]


@dataclass(frozen=True)
class DraftBuilder:
    """Immutable step-by-step position draft; every setter returns a new builder."""

    pool: PoolState
    slot0: Slot0
    lower_bound: Validated[UsableTick] | None = None
    upper_bound: Validated[UsableTick] | None = None
    liquidity: Liquidity | None = None
    max_amount0: Amount0 | None = None
    max_amount1: Amount1 | None = None

    def _current_usable_tick(self) -> UsableTick:
        spacing = to_tick_spacing(self.pool.fee)
        return UsableTick(tick=nearest_usable_tick(self.slot0.tick, spacing), spacing=spacing)

    def set_lower_tick_bound(self, tick_fn: TickFn) -> DraftBuilder:
        return replace(self, lower_bound=self._resolve_bound("tick_lower", tick_fn))

    def set_upper_tick_bound(self, tick_fn: TickFn) -> DraftBuilder:
        return replace(self, upper_bound=self._resolve_bound("tick_upper", tick_fn))

    def set_size_from_liquidity(self, liquidity: Liquidity) -> DraftBuilder:
        return replace(self, liquidity=liquidity, max_amount0=None, max_amount1=None)

    def set_size_from_amounts(
        self,
        max_amount0: Amount0 = AMOUNT0_ZERO,
        max_amount1: Amount1 = AMOUNT1_ZERO,
    ) -> DraftBuilder:
        return replace(self, liquidity=None, max_amount0=max_amount0, max_amount1=max_amount1)

    def _resolve_bound(self, field: str, tick_fn: TickFn) -> Validated[UsableTick]:
        usable = tick_fn(self._current_usable_tick())
        if usable is None:
            return Validated.fail(
                PositionDraftError(field, "The tick function did not return a usable tick.")
            )
        return Validated.ok(usable)

    def finalize(self, mc: MathContext = MATH_CONTEXT_HIGH_PRECISION) -> Validated[PositionDraft]:
        errors: list[DomainError] = []
        for field, bound in (("tick_lower", self.lower_bound), ("tick_upper", self.upper_bound)):
            if bound is None:
                errors.append(PositionDraftError(field, "Tick bound is not set."))
            else:
                errors.extend(bound.errors)
        if self.liquidity is None and (self.max_amount0 is None or self.max_amount1 is None):
            errors.append(
                PositionDraftError(
                    "validation",
                    "Position size is not set. Use set_size_from_liquidity or set_size_from_amounts.",
                )
            )
        if errors:
            return Validated.fail(*errors)

        tick_lower = self.lower_bound.unwrap()
        tick_upper = self.upper_bound.unwrap()
        if self.liquidity is not None:
            return calculate_position_draft_from_liquidity(
                self.pool,
                as_sqrt(self.slot0.price),
                self.liquidity,
                tick_lower,
                tick_upper,
                self.slot0.tick,
                mc,
            )
        return calculate_position_draft_from_amounts(
            self.pool,
            self.slot0,
            self.max_amount0,
            self.max_amount1,
            tick_lower,
            tick_upper,
            mc,
        )


def draft_builder(pool: PoolState, slot0: Slot0) -> DraftBuilder:
    return DraftBuilder(pool=pool, slot0=slot0)
