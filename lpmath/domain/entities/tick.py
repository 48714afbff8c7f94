from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum
from typing import NewType

from lpmath.domain.entities.brands import Ratio
from lpmath.domain.entities.validated import Validated
from lpmath.domain.exceptions import RefinementError


Tick = NewType("Tick", int)
TickSpacing = NewType("TickSpacing", int)
SqrtRatio = NewType("SqrtRatio", Ratio)

MIN_TICK = Tick(-887272)
MAX_TICK = Tick(887272)
TICK_BASE = Decimal("1.0001")


class FeeAmount(IntEnum):
    LOWEST = 100
    LOW = 500
    MEDIUM = 3000
    HIGH = 10000


TICK_SPACINGS: dict[FeeAmount, TickSpacing] = {
    FeeAmount.LOWEST: TickSpacing(1),
    FeeAmount.LOW: TickSpacing(10),
    FeeAmount.MEDIUM: TickSpacing(60),
    FeeAmount.HIGH: TickSpacing(200),
}


@dataclass(frozen=True)
class UsableTick:
    tick: Tick
    spacing: TickSpacing


def make_tick(raw: object) -> Validated[Tick]:
    if isinstance(raw, bool):
        return Validated.fail(RefinementError(raw, "integer"))
    if isinstance(raw, Decimal):
        if not raw.is_finite() or raw != raw.to_integral_value():
            return Validated.fail(RefinementError(raw, "integer"))
    elif not isinstance(raw, int):
        return Validated.fail(RefinementError(raw, "integer"))

    errors = []
    if raw < MIN_TICK:
        errors.append(RefinementError(raw, f"tick >= {MIN_TICK}"))
    if raw > MAX_TICK:
        errors.append(RefinementError(raw, f"tick <= {MAX_TICK}"))
    if errors:
        return Validated.fail(*errors)
    return Validated.ok(Tick(int(raw)))


def make_tick_spacing(raw: object) -> Validated[TickSpacing]:
    if isinstance(raw, bool) or not isinstance(raw, int):
        return Validated.fail(RefinementError(raw, "integer"))
    if raw <= 0:
        return Validated.fail(RefinementError(raw, "spacing > 0"))
    return Validated.ok(TickSpacing(raw))
