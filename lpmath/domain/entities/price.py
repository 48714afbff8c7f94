from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from lpmath.domain.entities.brands import Ratio
from lpmath.domain.entities.validated import Validated
from lpmath.domain.exceptions import RefinementError


PriceKind = Literal["units", "sqrt"]

MAX_TOKEN_DECIMALS = 255


@dataclass(frozen=True)
class TokenPair:
    token0_decimals: int
    token1_decimals: int

    def flipped(self) -> TokenPair:
        return TokenPair(token0_decimals=self.token1_decimals, token1_decimals=self.token0_decimals)


@dataclass(frozen=True)
class PriceValue:
    kind: PriceKind
    value: Ratio


@dataclass(frozen=True)
class TokenPrice:
    """Price of token0 quoted in token1."""

    pair: TokenPair
    underlying: PriceValue


def make_token_pair(token0_decimals: object, token1_decimals: object) -> Validated[TokenPair]:
    errors = []
    for raw in (token0_decimals, token1_decimals):
        if isinstance(raw, bool) or not isinstance(raw, int):
            errors.append(RefinementError(raw, "token decimals must be an integer"))
        elif raw < 0 or raw > MAX_TOKEN_DECIMALS:
            errors.append(RefinementError(raw, f"0 <= token decimals <= {MAX_TOKEN_DECIMALS}"))
    if errors:
        return Validated.fail(*errors)
    return Validated.ok(TokenPair(token0_decimals=token0_decimals, token1_decimals=token1_decimals))
