from __future__ import annotations

from decimal import Decimal

from lpmath.domain.entities.math_context import MATH_CONTEXT_HIGH_PRECISION, MathContext


def invert_decimal_price(
    price: Decimal,
    *,
    field_name: str = "price",
    mc: MathContext = MATH_CONTEXT_HIGH_PRECISION,
) -> Decimal:
    if price <= 0:
        raise ValueError(f"{field_name} must be positive.")
    return mc.to_context().divide(Decimal(1), price)


def ui_price_range_to_canonical(
    min_price_ui: Decimal,
    max_price_ui: Decimal,
    *,
    min_field_name: str = "min_price",
    max_field_name: str = "max_price",
) -> tuple[Decimal, Decimal]:
    if min_price_ui <= 0 or max_price_ui <= 0:
        raise ValueError(f"{min_field_name} and {max_field_name} must be positive.")
    if min_price_ui >= max_price_ui:
        raise ValueError(f"{min_field_name} must be lower than {max_field_name}.")
    return (
        invert_decimal_price(max_price_ui, field_name=max_field_name),
        invert_decimal_price(min_price_ui, field_name=min_field_name),
    )


def canonical_ticks_to_ui(tick_lower_canonical: int, tick_upper_canonical: int) -> tuple[int, int]:
    tick_lower_ui = -tick_upper_canonical
    tick_upper_ui = -tick_lower_canonical
    if tick_lower_ui >= tick_upper_ui:
        raise ValueError("tick_lower must be lower than tick_upper.")
    return tick_lower_ui, tick_upper_ui
