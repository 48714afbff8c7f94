from __future__ import annotations

from decimal import Decimal
import logging

import pytest

from lpmath.application.dto.match_ticks import MatchTicksInput
from lpmath.application.use_cases.match_ticks import MatchTicksUseCase
from lpmath.domain.entities.brands import Q96
from lpmath.domain.entities.pool import PoolState, RawSlot0
from lpmath.domain.entities.price import TokenPair
from lpmath.domain.entities.tick import FeeAmount
from lpmath.domain.exceptions import MatchTicksInputError
from lpmath.domain.services.match_ticks import match_ratios, match_tick


POOL_ADDRESS = "0x8ad599c3a0ff1de082011efddc58f1908eb6e6d8"


class FakePoolStatePort:
    def get_pool(self, *, pool_address: str) -> PoolState | None:
        return PoolState(
            address=pool_address,
            fee=FeeAmount.MEDIUM,
            pair=TokenPair(token0_decimals=0, token1_decimals=0),
        )

    def get_slot0_raw(self, *, pool_address: str) -> RawSlot0 | None:
        _ = pool_address
        return RawSlot0(sqrt_price_x96=Q96, tick=0)


def test_matches_range_to_fee_tier_spacing():
    use_case = MatchTicksUseCase(pool_state_port=FakePoolStatePort())

    result = use_case.execute(
        MatchTicksInput(pool_address=POOL_ADDRESS, min_price=Decimal("0.9"), max_price=Decimal("1.1"))
    )

    assert (result.tick_lower, result.tick_upper, result.tick_current) == (-1080, 960, 0)
    assert result.min_price_matched < Decimal("0.9")
    assert result.max_price_matched > Decimal("1.1")
    assert result.current_price_matched == Decimal(1)


def test_swapped_pair_matches_in_canonical_and_returns_ui_ticks():
    use_case = MatchTicksUseCase(pool_state_port=FakePoolStatePort())

    canonical = use_case.execute(
        MatchTicksInput(pool_address=POOL_ADDRESS, min_price=Decimal("0.9"), max_price=Decimal("1.1"))
    )
    swapped = use_case.execute(
        MatchTicksInput(
            pool_address=POOL_ADDRESS,
            min_price=Decimal("0.9"),
            max_price=Decimal("1.1"),
            swapped_pair=True,
        )
    )

    assert (swapped.tick_lower, swapped.tick_upper) == (-1080, 960)
    assert swapped.tick_current == 0
    assert swapped.min_price_matched == pytest.approx(canonical.min_price_matched)
    assert swapped.max_price_matched == pytest.approx(canonical.max_price_matched)


@pytest.mark.parametrize(
    ("min_price", "max_price", "swapped_pair"),
    [
        (Decimal("0"), Decimal("1"), False),
        (Decimal("1"), Decimal("-1"), True),
        (Decimal("1.1"), Decimal("0.9"), False),
        (Decimal("1"), Decimal("1"), True),
    ],
)
def test_rejects_invalid_ranges(min_price, max_price, swapped_pair):
    use_case = MatchTicksUseCase(pool_state_port=FakePoolStatePort())

    with pytest.raises(MatchTicksInputError):
        use_case.execute(
            MatchTicksInput(
                pool_address=POOL_ADDRESS,
                min_price=min_price,
                max_price=max_price,
                swapped_pair=swapped_pair,
            )
        )


def test_collapsed_range_is_widened_by_one_spacing():
    below = match_ratios(
        min_ratio=Decimal("1E-40"),
        max_ratio=Decimal("1E-39"),
        current_ratio=Decimal(1),
        fee_tier=FeeAmount.MEDIUM,
    )
    above = match_ratios(
        min_ratio=Decimal("1E+40"),
        max_ratio=Decimal("1E+41"),
        current_ratio=Decimal(1),
        fee_tier=FeeAmount.MEDIUM,
    )

    assert (below.tick_lower, below.tick_upper) == (-887220, -887160)
    assert (above.tick_lower, above.tick_upper) == (887160, 887220)


def test_match_tick_modes():
    assert match_tick(Decimal("-1053.66"), 60, "lower") == -1080
    assert match_tick(Decimal("953.1"), 60, "upper") == 960
    assert match_tick(Decimal("29.9"), 60, "current") == 0
    with pytest.raises(ValueError):
        match_tick(Decimal(0), 60, "middle")


def test_logs_matched_ticks(caplog):
    caplog.set_level(logging.INFO, logger="lpmath.application.use_cases.match_ticks")
    use_case = MatchTicksUseCase(pool_state_port=FakePoolStatePort())

    use_case.execute(
        MatchTicksInput(pool_address=POOL_ADDRESS, min_price=Decimal("0.9"), max_price=Decimal("1.1"))
    )

    messages = [record.getMessage() for record in caplog.records]
    assert any(
        message.startswith("match_ticks:") and "tick_lower=-1080" in message and "tick_upper=960" in message
        for message in messages
    )
