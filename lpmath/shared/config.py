from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

from lpmath.domain.entities.math_context import ROUNDING_MODES, MathContext
from lpmath.domain.exceptions import ConfigurationError
from lpmath.domain.services.tick_math import MIN_TICK_MATH_PRECISION


load_dotenv()

MIN_AMOUNT_MATH_PRECISION = 80


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _int(name: str, default: str) -> int:
    value = _env(name, default)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}.") from exc


def _decimal(name: str, default: str) -> Decimal:
    value = _env(name, default)
    try:
        parsed = Decimal(value)
    except (TypeError, InvalidOperation) as exc:
        raise ConfigurationError(f"{name} must be a decimal, got {value!r}.") from exc
    if not parsed.is_finite() or parsed < 0:
        raise ConfigurationError(f"{name} must be a non-negative decimal, got {value!r}.")
    return parsed


@dataclass(frozen=True)
class Settings:
    tick_math_precision: int
    amount_math_precision: int
    rounding: str
    equality_tolerance: Decimal

    def tick_math_context(self) -> MathContext:
        return MathContext(precision=self.tick_math_precision, rounding=self.rounding)

    def amount_math_context(self) -> MathContext:
        return MathContext(precision=self.amount_math_precision, rounding=self.rounding)


def get_settings() -> Settings:
    tick_precision = _int("LPMATH_TICK_MATH_PRECISION", "128")
    amount_precision = _int("LPMATH_AMOUNT_MATH_PRECISION", "192")
    rounding = _env("LPMATH_ROUNDING", "ROUND_HALF_UP")
    if tick_precision < MIN_TICK_MATH_PRECISION:
        raise ConfigurationError(
            f"LPMATH_TICK_MATH_PRECISION must be at least {MIN_TICK_MATH_PRECISION}, got {tick_precision}."
        )
    if amount_precision < MIN_AMOUNT_MATH_PRECISION:
        raise ConfigurationError(
            f"LPMATH_AMOUNT_MATH_PRECISION must be at least {MIN_AMOUNT_MATH_PRECISION}, got {amount_precision}."
        )
    if rounding not in ROUNDING_MODES:
        raise ConfigurationError(f"LPMATH_ROUNDING must name a decimal rounding mode, got {rounding!r}.")
    return Settings(
        tick_math_precision=tick_precision,
        amount_math_precision=amount_precision,
        rounding=rounding,
        equality_tolerance=_decimal("LPMATH_EQUALITY_TOLERANCE", "0.000003"),
    )
