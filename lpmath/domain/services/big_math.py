from __future__ import annotations

import logging
from decimal import ROUND_DOWN, Decimal
from functools import lru_cache

from lpmath.domain.entities.math_context import MathContext
from lpmath.domain.exceptions import DomainMathError


logger = logging.getLogger(__name__)

ONE = Decimal(1)
TWO = Decimal(2)
LN2 = Decimal("0.69314718055994530941723212145817656807550013436025525412068000949")

_LN2_DIGITS = len(LN2.as_tuple().digits)
_GUARD_DIGITS = 10


def ln(x: Decimal, mc: MathContext) -> Decimal:
    """Natural logarithm of ``x`` rounded to ``mc``.

    ``x`` is scaled by powers of two into ``[1, 2)`` so that
    ``ln(x) = n * ln(2) + ln(y)``, and ``ln(y)`` comes from the series
    ``2 * sum(z^(2k+1) / (2k+1))`` with ``z = (y - 1) / (y + 1)``. The series is
    summed with a few guard digits and stops once a term drops below
    ``10^-precision``.
    """
    if not isinstance(x, Decimal) or not x.is_finite():
        raise DomainMathError("ln argument must be a finite Decimal.")
    if x <= 0:
        raise DomainMathError(f"ln is undefined for non-positive argument {x}.")

    work = mc.with_precision(mc.precision + _GUARD_DIGITS)
    ctx = work.to_context()

    y = x
    n = 0
    while y >= TWO:
        y = ctx.divide(y, TWO)
        n += 1
    while y < ONE:
        y = ctx.multiply(y, TWO)
        n -= 1

    ln_y, iterations = _atanh_series(ctx.divide(ctx.subtract(y, ONE), ctx.add(y, ONE)), work)
    result = ctx.add(ctx.multiply(Decimal(n), _ln2(work.precision)), ln_y)
    logger.debug("big_math: ln n=%s iterations=%s precision=%s", n, iterations, mc.precision)
    return mc.to_context().plus(result)


def log(base: Decimal, x: Decimal, mc: MathContext) -> Decimal:
    if not isinstance(base, Decimal) or not base.is_finite() or base <= 0:
        raise DomainMathError(f"log base must be a positive Decimal, got {base}.")
    if base == ONE:
        raise DomainMathError("log base must be different from 1.")
    work = mc.with_precision(mc.precision + _GUARD_DIGITS)
    result = work.to_context().divide(ln(x, work), ln(base, work))
    return mc.to_context().plus(result)


def log2(x: Decimal, mc: MathContext) -> Decimal:
    return log(TWO, x, mc)


def _atanh_series(z: Decimal, mc: MathContext) -> tuple[Decimal, int]:
    ctx = mc.to_context()
    threshold = Decimal(1).scaleb(-mc.precision)
    z_squared = ctx.multiply(z, z)
    power = z
    total = Decimal(0)
    k = 0
    while True:
        term = ctx.divide(power, Decimal(2 * k + 1))
        total = ctx.add(total, term)
        if term.copy_abs() <= threshold:
            break
        power = ctx.multiply(power, z_squared)
        k += 1
    return ctx.multiply(TWO, total), k + 1


@lru_cache(maxsize=16)
def _ln2(precision: int) -> Decimal:
    if precision <= _LN2_DIGITS:
        return LN2
    # ln(2) = 2 * atanh(1/3)
    ctx = MathContext(precision=precision).to_context()
    value, _ = _atanh_series(ctx.divide(ONE, Decimal(3)), MathContext(precision=precision))
    return value


def to_plain_string(value: Decimal) -> str:
    return format(value, "f")


def min_decimal(a: Decimal, b: Decimal) -> Decimal:
    return a if a <= b else b


def max_decimal(a: Decimal, b: Decimal) -> Decimal:
    return a if a >= b else b


def _tolerance_bounds(expected: Decimal, percents: Decimal, mc: MathContext) -> tuple[Decimal, Decimal]:
    ctx = mc.to_context()
    first = ctx.multiply(expected, ctx.add(ONE, percents))
    second = ctx.multiply(expected, ctx.subtract(ONE, percents))
    return min_decimal(first, second), max_decimal(first, second)


def is_equal_with_percentage(
    actual: Decimal,
    expected: Decimal,
    percents: Decimal,
    mc: MathContext,
) -> bool:
    lower, upper = _tolerance_bounds(expected, percents, mc)
    if lower <= actual <= upper:
        return True
    return to_plain_string(actual) == to_plain_string(expected)


def is_equal_with_percentage_trimmed(
    actual: Decimal,
    expected: Decimal,
    percents: Decimal,
    mc: MathContext,
) -> bool:
    lower, upper = _tolerance_bounds(expected, percents, mc)
    if lower <= actual <= upper:
        return True
    return to_plain_string(trim_to_scale_of(actual, expected)) == to_plain_string(expected)


def trim_to_scale_of(value: Decimal, reference: Decimal) -> Decimal:
    exponent = reference.as_tuple().exponent
    quantum = Decimal((0, (1,), exponent))
    ctx = MathContext(precision=max(value.adjusted() - exponent + 2, 1)).to_context()
    return value.quantize(quantum, rounding=ROUND_DOWN, context=ctx)


def assert_equal_with_percentage(
    actual: Decimal,
    expected: Decimal,
    percents: Decimal,
    mc: MathContext,
    *,
    trim: bool = False,
    msg: str | None = None,
) -> None:
    predicate = is_equal_with_percentage_trimmed if trim else is_equal_with_percentage
    if not predicate(actual, expected, percents, mc):
        detail = f"{to_plain_string(actual)} != {to_plain_string(expected)} (tolerance {percents})"
        raise AssertionError(f"{msg}: {detail}" if msg else detail)


def is_equal_with_precision(actual: Decimal, expected: Decimal, scale: int = 14) -> bool:
    """``|actual - expected| <= 10^-scale``."""
    digits = max(actual.adjusted(), expected.adjusted()) + scale + 2
    ctx = MathContext(precision=max(digits, 1)).to_context()
    return ctx.subtract(actual, expected).copy_abs() <= Decimal(1).scaleb(-scale)
