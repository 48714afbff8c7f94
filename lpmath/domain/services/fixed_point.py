from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from lpmath.domain.entities.brands import MAX_Q64X96, Q96, NonNegativeDecimal, Q64x96
from lpmath.domain.entities.math_context import MATH_CONTEXT_HIGH_PRECISION, MathContext
from lpmath.domain.exceptions import DomainMathError


_Q64X96_DECIMAL_LIMIT = Decimal(MAX_Q64X96 // Q96 + 1)


def decimal_to_numerator_denominator(value: Decimal) -> tuple[int, int]:
    """Exact ``(numerator, denominator)`` with ``denominator = 10^scale``."""
    if not value.is_finite():
        raise DomainMathError(f"Cannot convert non-finite value {value}.")
    sign, digits, exponent = value.as_tuple()
    unscaled = int("".join(str(digit) for digit in digits) or "0")
    if sign:
        unscaled = -unscaled
    if exponent >= 0:
        return unscaled * 10**exponent, 1
    return unscaled, 10**-exponent


def decimal_to_q64x96(value: Decimal) -> Q64x96 | None:
    if not value.is_finite() or value < 0:
        return None
    # anything below 2^-97 rounds to zero; anything above 2^64 + 1 cannot fit
    if value.is_zero() or value.adjusted() < -30:
        return Q64x96(0)
    if value > _Q64X96_DECIMAL_LIMIT:
        return None
    numerator, denominator = decimal_to_numerator_denominator(value)
    # round-half-up of numerator * 2^96 / denominator, in integers
    scaled = numerator * Q96
    quotient, remainder = divmod(scaled, denominator)
    if 2 * remainder >= denominator:
        quotient += 1
    if quotient < 0 or quotient > MAX_Q64X96:
        return None
    return Q64x96(quotient)


def q64x96_to_decimal(value: Q64x96, mc: MathContext = MATH_CONTEXT_HIGH_PRECISION) -> Decimal:
    return mc.to_context().divide(Decimal(value), Decimal(Q96))


def units_from_unscaled(unscaled: int, decimals: int) -> NonNegativeDecimal:
    if decimals < 0:
        raise DomainMathError("decimals must be non-negative.")
    if unscaled < 0:
        raise DomainMathError("unscaled amount must be non-negative.")
    ctx = MathContext(precision=len(str(unscaled)) + 1).to_context()
    return NonNegativeDecimal(Decimal(unscaled).scaleb(-decimals, context=ctx))


def unscaled_from_units(units: Decimal, decimals: int) -> int:
    if decimals < 0:
        raise DomainMathError("decimals must be non-negative.")
    numerator, denominator = decimal_to_numerator_denominator(units)
    return (numerator * 10**decimals) // denominator


def round_to_decimals(value: Decimal, decimals: int, *, rounding: str = ROUND_HALF_UP) -> Decimal:
    quantum = Decimal((0, (1,), -decimals))
    ctx = MathContext(precision=max(value.adjusted() + decimals + 2, 1)).to_context()
    return value.quantize(quantum, rounding=rounding, context=ctx)
