# [TESTER] v1

from __future__ import annotations

from token_swap.core import errors
from token_swap.core.calculator import INITIAL_SWAP_POOL_AMOUNT, CurveType
from token_swap.core.constraints import SwapConstraints
from token_swap.core.fees import Fees
from token_swap.core.swap_curve import SwapCurve
from token_swap.integration.config import ProcessorConfig

OWNER = "0x" + "a2" * 32
USER = "0x" + "a1" * 32
DEFAULT_FEES = Fees(trade_fee_numerator=30, trade_fee_denominator=10_000)


def _new_account(world, tag: int, *, mint: str, owner: str, amount: int = 0) -> str:
    address = "0x" + f"{tag:02x}" * 32
    world.ledger.create_account(address, mint=mint, owner=owner, amount=amount)
    return address

def test_initialize_mints_initial_supply_and_records_pool(world) -> None:
    res = world.initialize()
    assert res.ok, res.error
    assert res.effects == {"pool_token_amount": INITIAL_SWAP_POOL_AMOUNT}
    assert world.balance(world.user_shares) == INITIAL_SWAP_POOL_AMOUNT
    assert world.supply() == INITIAL_SWAP_POOL_AMOUNT

    state = world.runtime.pool_state(world.pool)
    assert state.bump_seed == world.bump_seed
    assert state.token_ledger_program == world.ledger_program
    assert (state.reserve_a, state.reserve_b) == (world.reserve_a, world.reserve_b)
    assert (state.mint_a, state.mint_b) == (world.mint_a, world.mint_b)
    assert state.pool_share_mint == world.share_mint
    assert state.fee_collector_account == world.fee_collector
    assert state.fees == DEFAULT_FEES
    assert state.curve == SwapCurve.constant_product()

def test_second_initialize_is_rejected(pool) -> None:
    before = pool.runtime.accounts[pool.pool].data
    res = pool.initialize(fees=Fees())
    assert not res.ok
    assert res.code == errors.AlreadyInUse.code
    assert pool.runtime.accounts[pool.pool].data == before
    assert pool.supply() == INITIAL_SWAP_POOL_AMOUNT

def test_wrong_authority(world) -> None:
    res = world.initialize(authority=USER)
    assert res.code == errors.InvalidAuthority.code

def test_pool_account_owned_by_another_program(make_world) -> None:
    world = make_world()
    world.runtime.accounts.clear()
    world.runtime.create_pool_account(world.pool, owner=OWNER)
    res = world.initialize()
    assert res.code == errors.IncorrectProgramId.code

def test_reserve_not_owned_by_authority(world) -> None:
    stray = _new_account(world, 0x40, mint=world.mint_a, owner=USER, amount=5)
    res = world.initialize(reserve_a=stray)
    assert res.code == errors.InvalidOwner.code

def test_outputs_cannot_be_owned_by_authority(world) -> None:
    captive = _new_account(world, 0x41, mint=world.share_mint, owner=world.authority)
    assert world.initialize(destination=captive).code == errors.InvalidOutputOwner.code
    assert world.initialize(fee_collector=captive).code == errors.InvalidOutputOwner.code

def test_repeated_mint(world) -> None:
    twin = _new_account(world, 0x42, mint=world.mint_a, owner=world.authority, amount=10)
    res = world.initialize(reserve_b=twin)
    assert res.code == errors.RepeatedMint.code

def test_share_mint_must_start_empty(world) -> None:
    _new_account(world, 0x43, mint=world.share_mint, owner=USER, amount=1)
    res = world.initialize()
    assert res.code == errors.InvalidSupply.code

def test_empty_reserve(make_world) -> None:
    world = make_world(reserve_b=0)
    assert world.initialize().code == errors.EmptySupply.code

def test_reserve_with_delegate(world) -> None:
    delegated = "0x" + "44" * 32
    world.ledger.create_account(
        delegated, mint=world.mint_a, owner=world.authority, amount=10, delegate=USER, delegated_amount=1
    )
    assert world.initialize(reserve_a=delegated).code == errors.InvalidDelegate.code

def _assert_untouched(world) -> None:
    assert not any(world.runtime.accounts[world.pool].data)
    assert world.supply() == 0
    assert world.balance(world.user_shares) == 0

def test_reserve_with_close_authority(world) -> None:
    closable = "0x" + "46" * 32
    world.ledger.create_account(
        closable, mint=world.mint_a, owner=world.authority, amount=10, close_authority=USER
    )
    res = world.initialize(reserve_a=closable)
    assert res.code == errors.InvalidCloseAuthority.code
    _assert_untouched(world)

def test_share_mint_with_close_authority(world) -> None:
    closable = "0x" + "47" * 32
    world.ledger.create_mint(
        closable, decimals=2, mint_authority=world.authority, close_authority=USER
    )
    res = world.initialize(pool_share_mint=closable)
    assert res.code == errors.InvalidCloseAuthority.code
    _assert_untouched(world)

def test_share_mint_with_freeze_authority(world) -> None:
    freezable = "0x" + "48" * 32
    world.ledger.create_mint(
        freezable, decimals=2, mint_authority=world.authority, freeze_authority=USER
    )
    res = world.initialize(pool_share_mint=freezable)
    assert res.code == errors.InvalidFreezeAuthority.code
    _assert_untouched(world)

def test_destination_in_wrong_mint(world) -> None:
    res = world.initialize(destination=world.user_a)
    assert res.code == errors.IncorrectPoolMint.code

def test_invalid_fee_fraction(world) -> None:
    res = world.initialize(fees=Fees(trade_fee_numerator=2, trade_fee_denominator=1))
    assert res.code == errors.InvalidFee.code
    assert world.balance(world.user_shares) == 0

def test_invalid_curve_parameters(world) -> None:
    res = world.initialize(curve=SwapCurve.constant_price(0))
    assert res.code == errors.InvalidCurve.code

def test_wrong_ledger_program(world) -> None:
    res = world.initialize(pool_ledger_program=OWNER)
    assert res.code == errors.IncorrectTokenLedgerProgram.code

def test_missing_pool_account(world) -> None:
    res = world.initialize(pool="0x" + "77" * 32)
    assert res.code == errors.InvalidState.code

def test_offset_curve_accepts_empty_b_reserve(make_world) -> None:
    world = make_world(reserve_b=0)
    res = world.initialize(curve=SwapCurve.offset(1_000_000))
    assert res.ok, res.error

def _constrained_world(make_world):
    constraints = SwapConstraints(
        owner_key=OWNER,
        valid_curve_types=(CurveType.CONSTANT_PRODUCT,),
        fees=Fees(
            trade_fee_numerator=25,
            trade_fee_denominator=10_000,
            owner_trade_fee_numerator=5,
            owner_trade_fee_denominator=10_000,
            host_fee_numerator=20,
            host_fee_denominator=100,
        ),
    )
    return make_world(config=ProcessorConfig(constraints=constraints))

CONSTRAINED_FEES = Fees(
    trade_fee_numerator=30,
    trade_fee_denominator=10_000,
    owner_trade_fee_numerator=5,
    owner_trade_fee_denominator=10_000,
    host_fee_numerator=20,
    host_fee_denominator=100,
)

def test_constraints_accept_matching_pool(make_world) -> None:
    world = _constrained_world(make_world)
    res = world.initialize(fees=CONSTRAINED_FEES)
    assert res.ok, res.error

def test_constraints_reject_curve_and_fees(make_world) -> None:
    world = _constrained_world(make_world)
    assert world.initialize(fees=CONSTRAINED_FEES, curve=SwapCurve.constant_price(1)).code == (
        errors.UnsupportedCurveType.code
    )
    assert world.initialize(fees=DEFAULT_FEES).code == errors.InvalidFee.code

def test_constraints_pin_fee_owner(make_world) -> None:
    world = _constrained_world(make_world)
    foreign = _new_account(world, 0x45, mint=world.share_mint, owner=USER)
    res = world.initialize(fees=CONSTRAINED_FEES, fee_collector=foreign)
    assert res.code == errors.InvalidOwner.code
