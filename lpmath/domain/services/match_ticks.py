from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal

from lpmath.domain.entities.math_context import MATH_CONTEXT_TICK, MathContext
from lpmath.domain.entities.tick import MAX_TICK, MIN_TICK, TICK_BASE, FeeAmount, Tick
from lpmath.domain.services.big_math import log
from lpmath.domain.services.tick_math import (
    align_tick_ceil,
    align_tick_floor,
    get_ratio,
    nearest_usable_tick,
    to_tick_spacing,
)


@dataclass(frozen=True)
class MatchedRange:
    tick_lower: Tick
    tick_upper: Tick
    tick_current: Tick
    ratio_lower: Decimal
    ratio_upper: Decimal
    ratio_current: Decimal


def ratio_to_tick_value(ratio: Decimal, mc: MathContext = MATH_CONTEXT_TICK) -> Decimal:
    if ratio <= 0:
        raise ValueError("ratio must be positive.")
    return log(TICK_BASE, ratio, mc)


def _clamp(tick: int) -> int:
    return max(MIN_TICK, min(MAX_TICK, tick))


def match_tick(tick_value: Decimal, spacing: int, mode: str) -> Tick:
    if mode == "lower":
        return align_tick_floor(_clamp(int(tick_value.to_integral_value(rounding=ROUND_FLOOR))), spacing)
    if mode == "upper":
        return align_tick_ceil(_clamp(int(tick_value.to_integral_value(rounding=ROUND_CEILING))), spacing)
    if mode == "current":
        return nearest_usable_tick(_clamp(int(tick_value.to_integral_value(rounding=ROUND_FLOOR))), spacing)
    raise ValueError("Invalid match mode.")


def match_ratios(
    *,
    min_ratio: Decimal,
    max_ratio: Decimal,
    current_ratio: Decimal,
    fee_tier: FeeAmount | int,
    mc: MathContext = MATH_CONTEXT_TICK,
) -> MatchedRange:
    """Snap a price range and the current price to ticks usable by the fee tier's spacing."""
    if min_ratio >= max_ratio:
        raise ValueError("min_ratio must be lower than max_ratio.")
    spacing = to_tick_spacing(fee_tier)

    tick_lower = match_tick(ratio_to_tick_value(min_ratio, mc), spacing, "lower")
    tick_upper = match_tick(ratio_to_tick_value(max_ratio, mc), spacing, "upper")
    tick_current = match_tick(ratio_to_tick_value(current_ratio, mc), spacing, "current")
    if tick_lower == tick_upper:
        if tick_upper + spacing <= MAX_TICK:
            tick_upper = Tick(tick_upper + spacing)
        else:
            tick_lower = Tick(tick_lower - spacing)

    return MatchedRange(
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        tick_current=tick_current,
        ratio_lower=get_ratio(tick_lower, mc),
        ratio_upper=get_ratio(tick_upper, mc),
        ratio_current=get_ratio(tick_current, mc),
    )
