from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

from lpmath.domain.exceptions import DomainError


T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Validated(Generic[T]):
    """Outcome of a refined construction: a value or the errors that prevented it."""

    value: T | None = None
    errors: tuple[DomainError, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls, value: T) -> Validated[T]:
        return cls(value=value, errors=())

    @classmethod
    def fail(cls, *errors: DomainError) -> Validated[T]:
        if not errors:
            raise ValueError("fail() requires at least one error.")
        return cls(value=None, errors=tuple(errors))

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def unwrap(self) -> T:
        if self.errors:
            raise self.errors[0]
        return self.value  # type: ignore[return-value]

    def option(self) -> T | None:
        return None if self.errors else self.value

    def map(self, fn: Callable[[T], U]) -> Validated[U]:
        if self.errors:
            return Validated(value=None, errors=self.errors)
        return Validated.ok(fn(self.value))  # type: ignore[arg-type]

    def flat_map(self, fn: Callable[[T], Validated[U]]) -> Validated[U]:
        if self.errors:
            return Validated(value=None, errors=self.errors)
        return fn(self.value)  # type: ignore[arg-type]


def combine(*results: Validated) -> Validated[tuple]:
    errors: list[DomainError] = []
    values = []
    for result in results:
        errors.extend(result.errors)
        values.append(result.value)
    if errors:
        return Validated(value=None, errors=tuple(errors))
    return Validated.ok(tuple(values))
