from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

from lpmath.domain.entities.brands import Q96, Q64x96, Ratio, make_ratio
from lpmath.domain.entities.math_context import MATH_CONTEXT_HIGH_PRECISION, MATH_CONTEXT_TICK, MathContext
from lpmath.domain.entities.price import PriceValue, TokenPair, TokenPrice
from lpmath.domain.entities.tick import Tick
from lpmath.domain.entities.validated import Validated
from lpmath.domain.exceptions import RefinementError
from lpmath.domain.services.fixed_point import decimal_to_q64x96, q64x96_to_decimal, round_to_decimals
from lpmath.domain.services.tick_math import tick_at_ratio


# Bounds accepted by the pool contract for sqrtPriceX96.
MIN_SQRT_PRICE_X96 = 4295128739
MAX_SQRT_PRICE_X96 = 1461446703485210103287273052203988822378723970342

MIN_SQRT_RATIO_Q96 = MATH_CONTEXT_HIGH_PRECISION.to_context().divide(Decimal(MIN_SQRT_PRICE_X96), Decimal(Q96))
MAX_SQRT_RATIO_Q96 = MATH_CONTEXT_HIGH_PRECISION.to_context().divide(Decimal(MAX_SQRT_PRICE_X96), Decimal(Q96))


def make_price_from_ratio(pair: TokenPair, ratio: object) -> Validated[TokenPrice]:
    """Price from a raw ratio of token1 base units per token0 base unit."""
    refined = make_ratio(ratio)
    if not refined.is_valid:
        return Validated(value=None, errors=refined.errors)
    value = refined.unwrap()
    if round_to_decimals(ratio_to_units(value, pair), pair.token1_decimals, rounding=ROUND_FLOOR) <= 0:
        return Validated.fail(
            RefinementError(ratio, f"price must be representable with {pair.token1_decimals} token1 decimals")
        )
    return Validated.ok(TokenPrice(pair=pair, underlying=PriceValue(kind="units", value=value)))


def make_price_from_sqrt(pair: TokenPair, sqrt_ratio: object) -> Validated[TokenPrice]:
    refined = make_ratio(sqrt_ratio)
    if not refined.is_valid:
        return Validated(value=None, errors=refined.errors)
    value = refined.unwrap()
    if value < MIN_SQRT_RATIO_Q96 or value >= MAX_SQRT_RATIO_Q96:
        return Validated.fail(RefinementError(sqrt_ratio, "MIN_SQRT_RATIO <= sqrt price < MAX_SQRT_RATIO"))
    return Validated.ok(TokenPrice(pair=pair, underlying=PriceValue(kind="sqrt", value=value)))


def make_price_from_sqrt_q64x96(pair: TokenPair, sqrt_price_x96: Q64x96) -> Validated[TokenPrice]:
    return make_price_from_sqrt(pair, q64x96_to_decimal(sqrt_price_x96))


def as_ratio(price: TokenPrice) -> Ratio:
    value = price.underlying.value
    if price.underlying.kind == "units":
        return value
    return Ratio(MATH_CONTEXT_HIGH_PRECISION.to_context().multiply(value, value))


def as_sqrt(price: TokenPrice) -> Ratio:
    value = price.underlying.value
    if price.underlying.kind == "sqrt":
        return value
    return Ratio(MATH_CONTEXT_HIGH_PRECISION.to_context().sqrt(value))


def as_sqrt_q64x96(price: TokenPrice) -> Q64x96 | None:
    return decimal_to_q64x96(as_sqrt(price))


def as_units(price: TokenPrice) -> Decimal:
    units = ratio_to_units(as_ratio(price), price.pair)
    return round_to_decimals(units, price.pair.token1_decimals, rounding=ROUND_FLOOR)


def as_flipped_units(price: TokenPrice) -> Decimal:
    return as_units(flip(price))


def flip(price: TokenPrice) -> TokenPrice:
    ctx = MATH_CONTEXT_HIGH_PRECISION.to_context()
    inverted = Ratio(ctx.divide(Decimal(1), price.underlying.value))
    return TokenPrice(
        pair=price.pair.flipped(),
        underlying=PriceValue(kind=price.underlying.kind, value=inverted),
    )


def tick_at_price(price: TokenPrice, mc: MathContext = MATH_CONTEXT_TICK) -> Validated[Tick]:
    return tick_at_ratio(as_ratio(price), mc)


def project_amount(price: TokenPrice, amount: Decimal, *, is_token0: bool) -> Decimal:
    """Value of ``amount`` (base units) in base units of the other token of the pair."""
    ctx = MATH_CONTEXT_HIGH_PRECISION.to_context()
    ratio = as_ratio(price)
    if is_token0:
        return ctx.multiply(amount, ratio)
    return ctx.divide(amount, ratio)


def make_price_from_units(pair: TokenPair, units: object) -> Validated[TokenPrice]:
    """Price from a human-scale quote: token1 units per one token0 unit."""
    refined = make_ratio(units)
    if not refined.is_valid:
        return Validated(value=None, errors=refined.errors)
    return make_price_from_ratio(pair, units_to_ratio(refined.unwrap(), pair))


def _decimals_factor(exponent: int) -> Decimal:
    return Decimal(1).scaleb(exponent)


def ratio_to_units(ratio: Decimal, pair: TokenPair) -> Decimal:
    ctx = MATH_CONTEXT_HIGH_PRECISION.to_context()
    return ctx.multiply(ratio, _decimals_factor(pair.token0_decimals - pair.token1_decimals))


def units_to_ratio(units: Decimal, pair: TokenPair) -> Decimal:
    ctx = MATH_CONTEXT_HIGH_PRECISION.to_context()
    return ctx.multiply(units, _decimals_factor(pair.token1_decimals - pair.token0_decimals))
