from __future__ import annotations

from decimal import Decimal

import pytest

from lpmath.domain.entities.math_context import MATH_CONTEXT_HIGH_PRECISION
from lpmath.domain.entities.pool import PoolState, Slot0
from lpmath.domain.entities.position import (
    MAX_AMOUNT_0,
    MAX_AMOUNT_1,
    MAX_UINT256,
    Amount0,
    Amount1,
    Liquidity,
    make_amount0,
    make_amount1,
    make_liquidity,
)
from lpmath.domain.entities.price import TokenPair
from lpmath.domain.entities.tick import FeeAmount, Tick, UsableTick
from lpmath.domain.exceptions import DomainMathError
from lpmath.domain.services.big_math import assert_equal_with_percentage
from lpmath.domain.services.position import (
    calculate_position_draft_from_amounts,
    calculate_position_draft_from_liquidity,
    draft_builder,
    get_amount0_delta,
    max_liquidity_for_amounts,
    mint_amounts,
)
from lpmath.domain.services.price import make_price_from_sqrt
from lpmath.domain.services.tick_math import add_n_ticks, nearest_usable_tick, subtract_n_ticks


TOLERANCE = Decimal("0.000003")
MC = MATH_CONTEXT_HIGH_PRECISION

USDC_DAI = TokenPair(token0_decimals=6, token1_decimals=18)
POOL = PoolState(address="0x" + "ab" * 20, fee=FeeAmount.LOW, pair=USDC_DAI)
SQRT_CURRENT = Decimal("1E-6")
TICK_CURRENT = Tick(-276325)
NEAREST = nearest_usable_tick(TICK_CURRENT, 10)
LIQUIDITY = Liquidity(Decimal("1E+20"))


def _sqrt_ratio(amount1: int, amount0: int) -> Decimal:
    ctx = MC.to_context()
    return ctx.sqrt(ctx.divide(Decimal(amount1), Decimal(amount0)))


def _usable(tick: int) -> UsableTick:
    return UsableTick(tick=Tick(tick), spacing=10)


def _slot0() -> Slot0:
    return Slot0(price=make_price_from_sqrt(USDC_DAI, SQRT_CURRENT).unwrap(), tick=TICK_CURRENT)


def _assert_close(actual: Decimal, expected: str) -> None:
    assert_equal_with_percentage(actual, Decimal(expected), TOLERANCE, MC, trim=True)


class TestMaxLiquidityForAmounts:
    def test_price_inside_range(self):
        liquidity = max_liquidity_for_amounts(
            _sqrt_ratio(1, 1), _sqrt_ratio(100, 110), _sqrt_ratio(110, 100), Decimal(100), Decimal(200)
        )
        _assert_close(liquidity, "2148")

    def test_price_inside_range_amount1_unbounded(self):
        liquidity = max_liquidity_for_amounts(
            _sqrt_ratio(1, 1), _sqrt_ratio(100, 110), _sqrt_ratio(110, 100), Decimal(100), MAX_AMOUNT_1
        )
        _assert_close(liquidity, "2148")

    def test_price_inside_range_amount0_unbounded(self):
        liquidity = max_liquidity_for_amounts(
            _sqrt_ratio(1, 1), _sqrt_ratio(100, 110), _sqrt_ratio(110, 100), MAX_AMOUNT_0, Decimal(200)
        )
        _assert_close(liquidity, "4297")

    def test_price_below_range(self):
        liquidity = max_liquidity_for_amounts(
            _sqrt_ratio(99, 110), _sqrt_ratio(100, 110), _sqrt_ratio(110, 100), Decimal(100), Decimal(200)
        )
        _assert_close(liquidity, "1048")

    def test_price_below_range_amount0_unbounded(self):
        liquidity = max_liquidity_for_amounts(
            _sqrt_ratio(99, 110), _sqrt_ratio(100, 110), _sqrt_ratio(110, 100), MAX_AMOUNT_0, Decimal(200)
        )
        _assert_close(
            liquidity,
            "1214437677402050006470401421082903520362793114274352355276488318240158678126184",
        )

    def test_price_above_range(self):
        liquidity = max_liquidity_for_amounts(
            _sqrt_ratio(111, 100), _sqrt_ratio(100, 110), _sqrt_ratio(110, 100), Decimal(100), Decimal(200)
        )
        _assert_close(liquidity, "2097")

    def test_price_above_range_amount1_unbounded(self):
        liquidity = max_liquidity_for_amounts(
            _sqrt_ratio(111, 100), _sqrt_ratio(100, 110), _sqrt_ratio(110, 100), Decimal(100), MAX_AMOUNT_1
        )
        _assert_close(
            liquidity,
            "1214437677402050006470401421098959354205873606971497132040612572422243086574654",
        )

    def test_bounds_order_does_not_matter(self):
        lower, upper = _sqrt_ratio(100, 110), _sqrt_ratio(110, 100)
        current = _sqrt_ratio(1, 1)
        assert max_liquidity_for_amounts(current, lower, upper, Decimal(100), Decimal(200)) == (
            max_liquidity_for_amounts(current, upper, lower, Decimal(100), Decimal(200))
        )

    def test_equal_bounds_are_rejected(self):
        with pytest.raises(DomainMathError):
            max_liquidity_for_amounts(Decimal(1), Decimal(2), Decimal(2), Decimal(1), Decimal(1))


class TestMintAmounts:
    def test_single_sided_below_range(self):
        amount0, amount1 = mint_amounts(Decimal("0.5"), Decimal(1), Decimal(2), Decimal(10))
        assert amount0 == Decimal(5)
        assert amount1 == 0

    def test_single_sided_above_range(self):
        amount0, amount1 = mint_amounts(Decimal(3), Decimal(1), Decimal(2), Decimal(10))
        assert amount0 == 0
        assert amount1 == Decimal(10)

    def test_amount0_delta(self):
        assert get_amount0_delta(Decimal(2), Decimal(1), Decimal(10)) == Decimal(5)


class TestPositionDraftFromLiquidity:
    def _draft(self, lower: int, upper: int):
        return calculate_position_draft_from_liquidity(
            POOL,
            SQRT_CURRENT,
            LIQUIDITY,
            _usable(lower),
            _usable(upper),
            TICK_CURRENT,
        )

    def test_current_below_range_needs_only_token0(self):
        draft = self._draft(NEAREST + 10, NEAREST + 20).unwrap()
        _assert_close(draft.desired_amount0, "49949961958869841754182")
        assert draft.desired_amount1 == 0

    def test_current_above_range_needs_only_token1(self):
        draft = self._draft(NEAREST - 20, NEAREST - 10).unwrap()
        assert draft.desired_amount0 == 0
        _assert_close(draft.desired_amount1, "49970077053")

    def test_current_inside_range_needs_both(self):
        draft = self._draft(NEAREST - 20, NEAREST + 20).unwrap()
        _assert_close(draft.desired_amount0, "120054069145287995769397")
        _assert_close(draft.desired_amount1, "79831926243")
        assert draft.tick_lower == -276340
        assert draft.tick_upper == -276300
        assert draft.tick_current == TICK_CURRENT
        assert draft.liquidity == LIQUIDITY

    def test_errors_are_accumulated(self):
        result = calculate_position_draft_from_liquidity(
            POOL,
            SQRT_CURRENT,
            Decimal(-1),
            _usable(-276325),
            _usable(-276400),
            TICK_CURRENT,
        )
        assert not result.is_valid
        assert [error.field for error in result.errors] == ["tick_lower", "validation", "liquidity"]

    def test_spacing_must_match_pool(self):
        result = calculate_position_draft_from_liquidity(
            POOL,
            SQRT_CURRENT,
            LIQUIDITY,
            UsableTick(tick=Tick(-276360), spacing=60),
            UsableTick(tick=Tick(-276300), spacing=60),
            TICK_CURRENT,
        )
        assert [error.field for error in result.errors] == ["validation"]
        assert "pool spacing[10]" in result.errors[0].message

    def test_amount_overflow_is_reported(self):
        result = calculate_position_draft_from_liquidity(
            POOL,
            SQRT_CURRENT,
            Decimal("1E+90"),
            _usable(NEAREST - 20),
            _usable(NEAREST - 10),
            TICK_CURRENT,
        )
        assert [error.field for error in result.errors] == ["calculation"]
        assert "amount1" in result.errors[0].message


class TestPositionDraftFromAmounts:
    def test_amounts_give_back_liquidity(self):
        draft = calculate_position_draft_from_amounts(
            POOL,
            _slot0(),
            Amount0(Decimal("120054069145287995769397")),
            Amount1(Decimal("79831926243")),
            _usable(NEAREST - 20),
            _usable(NEAREST + 20),
        ).unwrap()
        assert_equal_with_percentage(draft.liquidity, LIQUIDITY, TOLERANCE, MC)


class TestDraftBuilder:
    def test_builds_from_liquidity(self):
        draft = (
            draft_builder(POOL, _slot0())
            .set_lower_tick_bound(lambda tick: subtract_n_ticks(tick, 2))
            .set_upper_tick_bound(lambda tick: add_n_ticks(tick, 2))
            .set_size_from_liquidity(LIQUIDITY)
            .finalize()
            .unwrap()
        )
        assert (draft.tick_lower, draft.tick_upper) == (-276340, -276300)
        _assert_close(draft.desired_amount1, "79831926243")

    def test_builds_from_amounts(self):
        draft = (
            draft_builder(POOL, _slot0())
            .set_lower_tick_bound(lambda tick: subtract_n_ticks(tick, 2))
            .set_upper_tick_bound(lambda tick: add_n_ticks(tick, 2))
            .set_size_from_amounts(
                Amount0(Decimal("120054069145287995769397")),
                Amount1(Decimal("79831926243")),
            )
            .finalize()
            .unwrap()
        )
        assert_equal_with_percentage(draft.liquidity, LIQUIDITY, TOLERANCE, MC)

    def test_setters_do_not_mutate(self):
        builder = draft_builder(POOL, _slot0())
        builder.set_size_from_liquidity(LIQUIDITY)
        assert builder.liquidity is None

    def test_missing_size_fails(self):
        result = (
            draft_builder(POOL, _slot0())
            .set_lower_tick_bound(lambda tick: subtract_n_ticks(tick, 2))
            .set_upper_tick_bound(lambda tick: add_n_ticks(tick, 2))
            .finalize()
        )
        assert [error.field for error in result.errors] == ["validation"]

    def test_missing_tick_bound_fails(self):
        result = (
            draft_builder(POOL, _slot0())
            .set_lower_tick_bound(lambda tick: None)
            .set_size_from_liquidity(LIQUIDITY)
            .finalize()
        )
        assert [error.field for error in result.errors] == ["tick_lower", "tick_upper"]


class TestAmountRefinement:
    def test_uint256_range(self):
        assert make_amount0(MAX_UINT256).is_valid
        assert not make_amount0(MAX_UINT256 + 1).is_valid
        assert not make_amount1(-1).is_valid

    def test_fraction_above_max_integer_part_is_accepted(self):
        assert make_amount1(Decimal(f"{MAX_UINT256}.5")).is_valid
        assert not make_amount1(Decimal(MAX_UINT256 + 1)).is_valid

    @pytest.mark.parametrize("raw", ["1E+1000000", Decimal("1E+30000000")])
    def test_huge_exponent_is_rejected(self, raw):
        result = make_amount0(raw)
        assert not result.is_valid
        assert result.errors[0].constraint == "amount <= MAX_UINT256"

    def test_liquidity_must_be_non_negative(self):
        assert make_liquidity(0).is_valid
        assert not make_liquidity(Decimal("-0.1")).is_valid
