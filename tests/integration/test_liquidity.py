# [TESTER] v1

from __future__ import annotations

import pytest

from token_swap.core import errors
from token_swap.core.calculator import INITIAL_SWAP_POOL_AMOUNT
from token_swap.core.fees import Fees
from token_swap.core.swap_curve import SwapCurve

WITHDRAW_FEES = Fees(
    trade_fee_numerator=30,
    trade_fee_denominator=10_000,
    owner_withdraw_fee_numerator=1,
    owner_withdraw_fee_denominator=100,
)


@pytest.fixture
def skewed(make_world):
    """Constant-product pool at 1,000,000 A / 2,000,000 B."""
    world = make_world(reserve_b=2_000_000)
    assert world.initialize().ok
    return world


# -- all token types ----------------------------------------------------------


def test_deposit_all_charges_ceiling_share_of_each_reserve(skewed) -> None:
    shares = INITIAL_SWAP_POOL_AMOUNT // 10
    res = skewed.deposit_all(shares, 100_000, 200_000)
    assert res.ok, res.error
    assert res.effects == {"pool_token_amount": shares, "token_a_amount": 100_000, "token_b_amount": 200_000}
    assert skewed.balance(skewed.reserve_a) == 1_100_000
    assert skewed.balance(skewed.reserve_b) == 2_200_000
    assert skewed.balance(skewed.user_shares) == INITIAL_SWAP_POOL_AMOUNT + shares


def test_deposit_all_rounds_against_the_depositor(skewed) -> None:
    res = skewed.deposit_all(1_001, 10, 10)
    assert res.ok, res.error
    assert (res.effects["token_a_amount"], res.effects["token_b_amount"]) == (2, 3)


@pytest.mark.parametrize("maximum_a,maximum_b", [(99_999, 200_000), (100_000, 199_999)])
def test_deposit_all_above_maximum(skewed, maximum_a: int, maximum_b: int) -> None:
    res = skewed.deposit_all(INITIAL_SWAP_POOL_AMOUNT // 10, maximum_a, maximum_b)
    assert res.code == errors.ExceededSlippage.code
    assert skewed.balance(skewed.reserve_a) == 1_000_000


def test_deposit_all_dust(skewed) -> None:
    assert skewed.deposit_all(1, 10, 10).code == errors.ZeroTradingTokens.code


def test_deposit_all_rejects_reserve_as_source(skewed) -> None:
    res = skewed.deposit_all(1_000, 10, 10, source_a=skewed.reserve_a)
    assert res.code == errors.InvalidInput.code


def test_deposit_all_wrong_pool_mint(skewed) -> None:
    res = skewed.deposit_all(1_000, 10, 10, pool_share_mint=skewed.mint_a)
    assert res.code == errors.IncorrectPoolMint.code


def test_withdraw_all_floors_share_of_each_reserve(skewed) -> None:
    res = skewed.withdraw_all(INITIAL_SWAP_POOL_AMOUNT // 10, 100_000, 200_000)
    assert res.ok, res.error
    assert res.effects["token_a_amount"] == 100_000
    assert res.effects["token_b_amount"] == 200_000
    assert res.effects["withdraw_fee"] == 0
    assert skewed.supply() == INITIAL_SWAP_POOL_AMOUNT - INITIAL_SWAP_POOL_AMOUNT // 10

    res = skewed.withdraw_all(1_001)
    assert res.ok, res.error
    assert (res.effects["token_a_amount"], res.effects["token_b_amount"]) == (1, 2)


def test_withdraw_all_below_minimum(skewed) -> None:
    res = skewed.withdraw_all(INITIAL_SWAP_POOL_AMOUNT // 10, 100_001, 0)
    assert res.code == errors.ExceededSlippage.code
    assert skewed.supply() == INITIAL_SWAP_POOL_AMOUNT


def test_withdraw_all_dust(skewed) -> None:
    assert skewed.withdraw_all(1).code == errors.ZeroTradingTokens.code


def test_withdraw_all_pays_owner_fee_in_shares(make_world) -> None:
    world = make_world(reserve_b=2_000_000)
    assert world.initialize(fees=WITHDRAW_FEES).ok
    shares = INITIAL_SWAP_POOL_AMOUNT // 10
    res = world.withdraw_all(shares)
    assert res.ok, res.error
    assert res.effects["withdraw_fee"] == shares // 100
    assert res.effects["pool_token_amount"] == shares - shares // 100
    assert (res.effects["token_a_amount"], res.effects["token_b_amount"]) == (99_000, 198_000)
    assert world.balance(world.fee_collector) == shares // 100
    assert world.supply() == INITIAL_SWAP_POOL_AMOUNT - (shares - shares // 100)


def test_deposit_then_withdraw_creates_no_value(skewed) -> None:
    a0, b0 = skewed.balance(skewed.user_a), skewed.balance(skewed.user_b)
    for shares in (12_345_677, 999, 333_333_333):
        assert skewed.deposit_all(shares, 10**12, 10**12).ok
        assert skewed.withdraw_all(shares).ok
        assert skewed.balance(skewed.user_a) <= a0
        assert skewed.balance(skewed.user_b) <= b0
    assert skewed.supply() == INITIAL_SWAP_POOL_AMOUNT


# -- single token type -------------------------------------------------------


def test_deposit_single_mints_shares_for_one_side(pool) -> None:
    res = pool.deposit_single(10_000, 1)
    assert res.ok, res.error
    minted = res.effects["pool_token_amount"]
    assert 0 < minted < INITIAL_SWAP_POOL_AMOUNT * 10_000 // 2_000_000
    assert pool.balance(pool.reserve_a) == 1_010_000
    assert pool.balance(pool.reserve_b) == 1_000_000
    assert pool.balance(pool.user_shares) == INITIAL_SWAP_POOL_AMOUNT + minted


def test_deposit_single_below_minimum(pool) -> None:
    minted = pool.deposit_single(10_000).effects["pool_token_amount"]
    res = pool.deposit_single(10_000, minted * 2)
    assert res.code == errors.ExceededSlippage.code


def test_deposit_single_from_token_b(pool) -> None:
    res = pool.deposit_single(10_000, token_a=False)
    assert res.ok, res.error
    assert pool.balance(pool.reserve_b) == 1_010_000


def test_deposit_single_into_foreign_reserve(pool) -> None:
    res = pool.deposit_single(10_000, reserve_a=pool.user_b)
    assert res.code == errors.IncorrectSwapAccount.code


def test_withdraw_single_burns_shares_for_exact_out(pool) -> None:
    user_a = pool.balance(pool.user_a)
    res = pool.withdraw_single(10_000, 10**9)
    assert res.ok, res.error
    burned = res.effects["pool_token_amount"]
    assert burned > INITIAL_SWAP_POOL_AMOUNT * 10_000 // 2_000_000
    assert pool.balance(pool.user_a) == user_a + 10_000
    assert pool.balance(pool.reserve_a) == 990_000
    assert pool.balance(pool.user_shares) == INITIAL_SWAP_POOL_AMOUNT - burned


def test_withdraw_single_above_maximum(pool) -> None:
    res = pool.withdraw_single(10_000, 1_000)
    assert res.code == errors.ExceededSlippage.code
    assert pool.balance(pool.reserve_a) == 1_000_000


def test_withdraw_single_more_than_reserve(pool) -> None:
    res = pool.withdraw_single(2_000_000, 10**12)
    assert res.code == errors.ZeroTradingTokens.code


def test_single_sided_round_trip_loses_value(pool) -> None:
    minted = pool.deposit_single(10_000).effects["pool_token_amount"]
    res = pool.withdraw_single(10_000, 10**12)
    assert res.ok, res.error
    assert res.effects["pool_token_amount"] > minted


def test_withdraw_single_with_owner_fee(make_world) -> None:
    world = make_world()
    assert world.initialize(fees=WITHDRAW_FEES).ok
    res = world.withdraw_single(10_000, 10**12)
    assert res.ok, res.error
    fee = res.effects["withdraw_fee"]
    assert fee > 0
    assert world.balance(world.fee_collector) == fee
    assert world.balance(world.user_shares) == INITIAL_SWAP_POOL_AMOUNT - res.effects["pool_token_amount"]


# -- offset curve ------------------------------------------------------------


@pytest.fixture
def offset_pool(make_world):
    world = make_world(reserve_b=0)
    assert world.initialize(curve=SwapCurve.offset(1_000_000)).ok
    return world


def test_offset_curve_refuses_deposits(offset_pool) -> None:
    assert offset_pool.deposit_all(1_000, 10**9, 10**9).code == errors.UnsupportedCurveOperation.code
    assert offset_pool.deposit_single(1_000).code == errors.UnsupportedCurveOperation.code


def test_offset_curve_trades_against_virtual_b(offset_pool) -> None:
    res = offset_pool.swap(1_000, 0, a_to_b=False)
    assert res.ok, res.error
    assert offset_pool.balance(offset_pool.reserve_b) == 1_000
    assert offset_pool.balance(offset_pool.reserve_a) == 1_000_000 - res.effects["amount_out"]
