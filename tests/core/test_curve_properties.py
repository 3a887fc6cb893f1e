"""Property tests for curve arithmetic: invariant growth and pool-favoring rounding."""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from token_swap.core.calculator import TradeDirection
from token_swap.core.checked_math import RoundDirection
from token_swap.core.constant_product import deposit_single_token_type, swap
from token_swap.core.fees import Fees
from token_swap.core.swap_curve import SwapCurve

FEES = Fees(
    trade_fee_numerator=25,
    trade_fee_denominator=10_000,
    owner_trade_fee_numerator=5,
    owner_trade_fee_denominator=10_000,
)


@settings(max_examples=300, deadline=None)
@given(
    reserve_in=st.integers(min_value=1_000, max_value=10**12),
    reserve_out=st.integers(min_value=1_000, max_value=10**12),
    data=st.data(),
)
def test_swap_never_decreases_invariant(reserve_in: int, reserve_out: int, data) -> None:
    amount_in = data.draw(st.integers(min_value=1, max_value=reserve_in * 10))
    result = swap(amount_in, reserve_in, reserve_out)
    if result is None:
        return
    assert result.source_amount_swapped <= amount_in
    assert 0 < result.destination_amount_swapped < reserve_out
    new_in = reserve_in + result.source_amount_swapped
    new_out = reserve_out - result.destination_amount_swapped
    assert new_in * new_out >= reserve_in * reserve_out


@settings(max_examples=300, deadline=None)
@given(
    reserve_a=st.integers(min_value=1_000, max_value=10**12),
    reserve_b=st.integers(min_value=1_000, max_value=10**12),
    a_to_b=st.booleans(),
    data=st.data(),
)
def test_fee_aware_swap_keeps_fees_in_source_reserve(
    reserve_a: int, reserve_b: int, a_to_b: bool, data
) -> None:
    direction = TradeDirection.A_TO_B if a_to_b else TradeDirection.B_TO_A
    src, dst = (reserve_a, reserve_b) if a_to_b else (reserve_b, reserve_a)
    amount_in = data.draw(st.integers(min_value=1, max_value=src * 10))
    result = SwapCurve.constant_product().swap(amount_in, src, dst, direction, FEES)
    if result is None:
        return
    assert result.source_amount_swapped <= amount_in
    assert result.new_swap_source_amount == src + result.source_amount_swapped
    assert result.new_swap_destination_amount == dst - result.destination_amount_swapped
    assert result.new_swap_source_amount * result.new_swap_destination_amount >= src * dst


@settings(max_examples=200, deadline=None)
@given(
    reserve=st.integers(min_value=1, max_value=2**64 - 1),
    supply=st.integers(min_value=1, max_value=2**64 - 1),
    data=st.data(),
)
def test_single_sided_deposit_floor_never_exceeds_ceiling(reserve: int, supply: int, data) -> None:
    amount = data.draw(st.integers(min_value=0, max_value=2**64 - 1))
    floor = deposit_single_token_type(amount, reserve, supply, RoundDirection.FLOOR)
    ceil = deposit_single_token_type(amount, reserve, supply, RoundDirection.CEILING)
    assert floor is not None and ceil is not None
    assert 0 <= floor <= ceil <= floor + 1


@settings(max_examples=200, deadline=None)
@given(
    reserve_a=st.integers(min_value=1, max_value=10**15),
    reserve_b=st.integers(min_value=1, max_value=10**15),
    supply=st.integers(min_value=1, max_value=10**12),
    data=st.data(),
)
def test_proportional_round_trip_never_creates_value(
    reserve_a: int, reserve_b: int, supply: int, data
) -> None:
    calculator = SwapCurve.constant_product().calculator
    shares = data.draw(st.integers(min_value=1, max_value=supply))
    paid = calculator.pool_tokens_to_trading_tokens(
        shares, supply, reserve_a, reserve_b, RoundDirection.CEILING
    )
    new_a = reserve_a + paid.token_a_amount
    new_b = reserve_b + paid.token_b_amount
    returned = calculator.pool_tokens_to_trading_tokens(
        shares, supply + shares, new_a, new_b, RoundDirection.FLOOR
    )
    assert returned.token_a_amount <= paid.token_a_amount
    assert returned.token_b_amount <= paid.token_b_amount
