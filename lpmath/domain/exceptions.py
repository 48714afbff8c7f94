from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class RefinementError(DomainError):
    """Raw value does not satisfy the invariant of a refined type."""

    def __init__(self, raw: object, constraint: str):
        super().__init__(f"{raw!r} violates constraint: {constraint}")
        self.raw = raw
        self.constraint = constraint


class DomainMathError(DomainError):
    """Invalid argument for a math operation."""


class InsufficientPrecisionError(DomainMathError):
    """Math context precision too low for the requested operation."""


class UnsupportedFeeTierError(DomainError):
    """Fee tier has no known tick spacing."""


class PositionDraftError(DomainError):
    """Position draft could not be built."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class ConfigurationError(DomainError):
    """Invalid math configuration."""


class PoolNotFoundError(DomainError):
    """Requested pool does not exist."""


class PoolStateNotFoundError(DomainError):
    """Slot0 state of the pool is not available."""


class PoolPriceInputError(DomainError):
    """Invalid raw values for a pool price query."""


class PositionDraftInputError(DomainError):
    """Invalid parameters for a position draft."""


class MatchTicksInputError(DomainError):
    """Invalid parameters for tick matching."""
