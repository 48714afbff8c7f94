from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

from lpmath.domain.entities.brands import Ratio, make_ratio
from lpmath.domain.entities.math_context import MATH_CONTEXT_TICK, MathContext
from lpmath.domain.entities.tick import (
    MAX_TICK,
    MIN_TICK,
    TICK_BASE,
    TICK_SPACINGS,
    FeeAmount,
    SqrtRatio,
    Tick,
    TickSpacing,
    UsableTick,
    make_tick,
)
from lpmath.domain.entities.validated import Validated
from lpmath.domain.exceptions import (
    DomainMathError,
    InsufficientPrecisionError,
    RefinementError,
    UnsupportedFeeTierError,
)
from lpmath.domain.services.big_math import log


MIN_TICK_MATH_PRECISION = 40


def _require_precision(mc: MathContext) -> None:
    if mc.precision < MIN_TICK_MATH_PRECISION:
        raise InsufficientPrecisionError(
            f"tick math needs at least {MIN_TICK_MATH_PRECISION} digits, got {mc.precision}."
        )


def get_ratio(tick: Tick, mc: MathContext = MATH_CONTEXT_TICK) -> Ratio:
    """``1.0001 ^ tick``; negative ticks give the reciprocal of the positive power."""
    _require_precision(mc)
    return Ratio(mc.to_context().power(TICK_BASE, int(tick)))


def sqrt_ratio_at_tick(tick: Tick, mc: MathContext = MATH_CONTEXT_TICK) -> SqrtRatio:
    return SqrtRatio(Ratio(mc.to_context().sqrt(get_ratio(tick, mc))))


def tick_at_ratio(ratio: Decimal, mc: MathContext = MATH_CONTEXT_TICK) -> Validated[Tick]:
    """Greatest tick whose ratio does not exceed ``ratio``.

    Takes a price ratio, never its square root; use ``tick_at_sqrt_ratio`` for those.
    """
    _require_precision(mc)
    refined = make_ratio(ratio)
    if not refined.is_valid:
        return Validated(value=None, errors=refined.errors)
    value = refined.unwrap()
    # ratios at ticks MIN_TICK and MAX_TICK are about 2.9e-39 and 3.4e+38
    if value.adjusted() >= 39:
        return Validated.fail(RefinementError(ratio, f"tick <= {MAX_TICK}"))
    if value.adjusted() <= -40:
        return Validated.fail(RefinementError(ratio, f"tick >= {MIN_TICK}"))
    raw_tick = log(TICK_BASE, value, mc).to_integral_value(rounding=ROUND_FLOOR)
    tick = int(raw_tick)
    # the log can land a hair off an exact power of the tick base
    if get_ratio(Tick(tick + 1), mc) <= value:
        tick += 1
    elif get_ratio(Tick(tick), mc) > value:
        tick -= 1
    return make_tick(tick)


def tick_at_sqrt_ratio(sqrt_ratio: Decimal, mc: MathContext = MATH_CONTEXT_TICK) -> Validated[Tick]:
    return tick_at_ratio(mc.to_context().multiply(sqrt_ratio, sqrt_ratio), mc)


def to_tick_spacing(fee: FeeAmount | int) -> TickSpacing:
    try:
        fee_amount = FeeAmount(fee)
    except ValueError as exc:
        raise UnsupportedFeeTierError(f"Unsupported fee tier: {fee}.") from exc
    return TICK_SPACINGS[fee_amount]


def nearest_usable_tick(tick: int, spacing: int) -> Tick:
    if spacing <= 0:
        raise DomainMathError("tick spacing must be positive.")
    # round(tick / spacing) with halves going up, in integers
    rounded = ((2 * tick + spacing) // (2 * spacing)) * spacing
    if rounded < MIN_TICK:
        return Tick(rounded + spacing)
    if rounded > MAX_TICK:
        return Tick(rounded - spacing)
    return Tick(rounded)


def align_tick_floor(tick: int, spacing: int) -> Tick:
    if spacing <= 0:
        raise DomainMathError("tick spacing must be positive.")
    aligned = (tick // spacing) * spacing
    return Tick(aligned + spacing if aligned < MIN_TICK else aligned)


def align_tick_ceil(tick: int, spacing: int) -> Tick:
    if spacing <= 0:
        raise DomainMathError("tick spacing must be positive.")
    aligned = -((-tick) // spacing) * spacing
    return Tick(aligned - spacing if aligned > MAX_TICK else aligned)


def make_usable_tick(tick: int, spacing: int) -> UsableTick:
    return UsableTick(tick=nearest_usable_tick(tick, spacing), spacing=TickSpacing(spacing))


def add_n_ticks(usable_tick: UsableTick, n: int) -> UsableTick | None:
    moved = make_tick(usable_tick.tick + n * usable_tick.spacing).option()
    if moved is None:
        return None
    return UsableTick(tick=moved, spacing=usable_tick.spacing)


def subtract_n_ticks(usable_tick: UsableTick, n: int) -> UsableTick | None:
    return add_n_ticks(usable_tick, -n)


def tick_distance(tick1: int, tick2: int, spacing: int) -> int:
    """Distance between the nearest usable ticks of ``tick1`` and ``tick2``, in spacing units."""
    return (nearest_usable_tick(tick1, spacing) - nearest_usable_tick(tick2, spacing)) // spacing


MIN_SQRT_RATIO = sqrt_ratio_at_tick(MIN_TICK)
MAX_SQRT_RATIO = sqrt_ratio_at_tick(MAX_TICK)
