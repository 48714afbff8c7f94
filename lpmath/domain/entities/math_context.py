from __future__ import annotations

import decimal
from dataclasses import dataclass


ROUNDING_MODES = frozenset(
    {
        decimal.ROUND_UP,
        decimal.ROUND_DOWN,
        decimal.ROUND_CEILING,
        decimal.ROUND_FLOOR,
        decimal.ROUND_HALF_UP,
        decimal.ROUND_HALF_DOWN,
        decimal.ROUND_HALF_EVEN,
        decimal.ROUND_05UP,
    }
)


@dataclass(frozen=True)
class MathContext:
    """Precision and rounding pair passed explicitly to every decimal operation."""

    precision: int
    rounding: str = decimal.ROUND_HALF_UP

    def __post_init__(self) -> None:
        if isinstance(self.precision, bool) or not isinstance(self.precision, int):
            raise ValueError("precision must be an integer.")
        if self.precision < 1:
            raise ValueError("precision must be positive.")
        if self.rounding not in ROUNDING_MODES:
            raise ValueError(f"Unknown rounding mode: {self.rounding}.")

    def to_context(self) -> decimal.Context:
        # Fresh context per call; trapping stays on so invalid operations raise.
        return decimal.Context(
            prec=self.precision,
            rounding=self.rounding,
            Emin=decimal.MIN_EMIN,
            Emax=decimal.MAX_EMAX,
        )

    def with_precision(self, precision: int) -> MathContext:
        return MathContext(precision=precision, rounding=self.rounding)


MATH_CONTEXT_DECIMAL64 = MathContext(precision=16, rounding=decimal.ROUND_HALF_EVEN)
MATH_CONTEXT_TICK = MathContext(precision=128, rounding=decimal.ROUND_HALF_UP)
MATH_CONTEXT_HIGH_PRECISION = MathContext(precision=192, rounding=decimal.ROUND_HALF_UP)
