# [TESTER] v1

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

import pytest

from token_swap.core.fees import Fees
from token_swap.core.swap_curve import SwapCurve
from token_swap.integration.accounts import (
    DepositAllAccounts,
    DepositSingleAccounts,
    InitializeAccounts,
    SwapAccounts,
    WithdrawAllAccounts,
    WithdrawSingleAccounts,
    account_list,
)
from token_swap.integration.config import ProcessorConfig
from token_swap.integration.instruction import (
    DepositAllTokenTypes,
    DepositSingleTokenTypeExactAmountIn,
    Initialize,
    Swap,
    WithdrawAllTokenTypes,
    WithdrawSingleTokenTypeExactAmountOut,
)
from token_swap.integration.runtime import ProcessResult, SwapRuntime
from token_swap.state.authority import derive_authority
from token_swap.state.ledger import InMemoryLedger
from token_swap.state.transfer_fee import TransferFeeConfig


def _addr(tag: int) -> str:
    return "0x" + f"{tag:02x}" * 32


PROGRAM_ID = _addr(0x01)
LEDGER_ID = _addr(0x02)
POOL = _addr(0x03)

USER = _addr(0xA1)
OWNER = _addr(0xA2)
HOST = _addr(0xA3)
MINTER = _addr(0xA4)

MINT_A = _addr(0x10)
MINT_B = _addr(0x11)
SHARE_MINT = _addr(0x12)

RESERVE_A = _addr(0x20)
RESERVE_B = _addr(0x21)
FEE_COLLECTOR = _addr(0x22)
USER_SHARES = _addr(0x23)
USER_A = _addr(0x30)
USER_B = _addr(0x31)
HOST_SHARES = _addr(0x32)

USER_FUNDS = 10**12

# 0.30% trading fee, nothing for the owner.
DEFAULT_FEES = Fees(trade_fee_numerator=30, trade_fee_denominator=10_000)


@dataclass
class PoolWorld:
    """One pool's ledger, runtime and caller accounts, with an instruction helper per opcode."""

    ledger: InMemoryLedger
    runtime: SwapRuntime
    authority: str
    bump_seed: int

    pool: str = POOL
    mint_a: str = MINT_A
    mint_b: str = MINT_B
    share_mint: str = SHARE_MINT
    reserve_a: str = RESERVE_A
    reserve_b: str = RESERVE_B
    fee_collector: str = FEE_COLLECTOR
    user_shares: str = USER_SHARES
    user_a: str = USER_A
    user_b: str = USER_B
    host_shares: str = HOST_SHARES
    user: str = USER
    owner: str = OWNER
    host: str = HOST
    ledger_program: str = LEDGER_ID

    def balance(self, address: str) -> int:
        return self.ledger.balance(address)

    def supply(self) -> int:
        return self.ledger.read_mint(self.share_mint).supply

    def _run(self, instruction: Any, accounts: Any, overrides: dict) -> ProcessResult:
        bound = replace(accounts, **overrides) if overrides else accounts
        return self.runtime.execute(instruction, account_list(bound), signers={self.user})

    def initialize(
        self, fees: Fees = DEFAULT_FEES, curve: Optional[SwapCurve] = None, **overrides: str
    ) -> ProcessResult:
        accounts = InitializeAccounts(
            pool=self.pool,
            authority=self.authority,
            reserve_a=self.reserve_a,
            reserve_b=self.reserve_b,
            pool_share_mint=self.share_mint,
            fee_collector=self.fee_collector,
            destination=self.user_shares,
            pool_ledger_program=LEDGER_ID,
        )
        curve = curve if curve is not None else SwapCurve.constant_product()
        return self._run(Initialize(fees=fees, swap_curve=curve), accounts, overrides)

    def swap(
        self,
        amount_in: int,
        minimum_amount_out: int,
        *,
        a_to_b: bool = True,
        host: Optional[str] = None,
        **overrides: str,
    ) -> ProcessResult:
        if a_to_b:
            source, swap_source, swap_destination, destination = (
                self.user_a, self.reserve_a, self.reserve_b, self.user_b
            )
            source_mint, destination_mint = self.mint_a, self.mint_b
        else:
            source, swap_source, swap_destination, destination = (
                self.user_b, self.reserve_b, self.reserve_a, self.user_a
            )
            source_mint, destination_mint = self.mint_b, self.mint_a
        accounts = SwapAccounts(
            pool=self.pool,
            authority=self.authority,
            user_transfer_authority=self.user,
            source=source,
            swap_source=swap_source,
            swap_destination=swap_destination,
            destination=destination,
            pool_share_mint=self.share_mint,
            fee_collector=self.fee_collector,
            source_mint=source_mint,
            destination_mint=destination_mint,
            source_ledger_program=LEDGER_ID,
            destination_ledger_program=LEDGER_ID,
            pool_ledger_program=LEDGER_ID,
            host_fee_account=host,
        )
        return self._run(Swap(amount_in, minimum_amount_out), accounts, overrides)

    def deposit_all(
        self, pool_token_amount: int, maximum_a: int, maximum_b: int, **overrides: str
    ) -> ProcessResult:
        accounts = DepositAllAccounts(
            pool=self.pool,
            authority=self.authority,
            user_transfer_authority=self.user,
            source_a=self.user_a,
            source_b=self.user_b,
            reserve_a=self.reserve_a,
            reserve_b=self.reserve_b,
            pool_share_mint=self.share_mint,
            destination=self.user_shares,
            mint_a=self.mint_a,
            mint_b=self.mint_b,
            ledger_program_a=LEDGER_ID,
            ledger_program_b=LEDGER_ID,
            pool_ledger_program=LEDGER_ID,
        )
        ix = DepositAllTokenTypes(pool_token_amount, maximum_a, maximum_b)
        return self._run(ix, accounts, overrides)

    def withdraw_all(
        self, pool_token_amount: int, minimum_a: int = 0, minimum_b: int = 0, **overrides: str
    ) -> ProcessResult:
        accounts = WithdrawAllAccounts(
            pool=self.pool,
            authority=self.authority,
            user_transfer_authority=self.user,
            pool_share_mint=self.share_mint,
            source=self.user_shares,
            reserve_a=self.reserve_a,
            reserve_b=self.reserve_b,
            destination_a=self.user_a,
            destination_b=self.user_b,
            fee_collector=self.fee_collector,
            mint_a=self.mint_a,
            mint_b=self.mint_b,
            pool_ledger_program=LEDGER_ID,
            ledger_program_a=LEDGER_ID,
            ledger_program_b=LEDGER_ID,
        )
        ix = WithdrawAllTokenTypes(pool_token_amount, minimum_a, minimum_b)
        return self._run(ix, accounts, overrides)

    def deposit_single(
        self, source_amount: int, minimum_pool_tokens: int = 0, *, token_a: bool = True, **overrides: str
    ) -> ProcessResult:
        accounts = DepositSingleAccounts(
            pool=self.pool,
            authority=self.authority,
            user_transfer_authority=self.user,
            source=self.user_a if token_a else self.user_b,
            reserve_a=self.reserve_a,
            reserve_b=self.reserve_b,
            pool_share_mint=self.share_mint,
            destination=self.user_shares,
            source_mint=self.mint_a if token_a else self.mint_b,
            source_ledger_program=LEDGER_ID,
            pool_ledger_program=LEDGER_ID,
        )
        ix = DepositSingleTokenTypeExactAmountIn(source_amount, minimum_pool_tokens)
        return self._run(ix, accounts, overrides)

    def withdraw_single(
        self, destination_amount: int, maximum_pool_tokens: int, *, token_a: bool = True, **overrides: str
    ) -> ProcessResult:
        accounts = WithdrawSingleAccounts(
            pool=self.pool,
            authority=self.authority,
            user_transfer_authority=self.user,
            pool_share_mint=self.share_mint,
            source=self.user_shares,
            reserve_a=self.reserve_a,
            reserve_b=self.reserve_b,
            destination=self.user_a if token_a else self.user_b,
            fee_collector=self.fee_collector,
            destination_mint=self.mint_a if token_a else self.mint_b,
            pool_ledger_program=LEDGER_ID,
            destination_ledger_program=LEDGER_ID,
        )
        ix = WithdrawSingleTokenTypeExactAmountOut(destination_amount, maximum_pool_tokens)
        return self._run(ix, accounts, overrides)


def build_world(
    *,
    reserve_a: int = 1_000_000,
    reserve_b: int = 1_000_000,
    config: Optional[ProcessorConfig] = None,
    mint_a_transfer_fee: Optional[TransferFeeConfig] = None,
) -> PoolWorld:
    ledger = InMemoryLedger(LEDGER_ID)
    runtime = SwapRuntime(PROGRAM_ID, ledger, config=config)
    runtime.create_pool_account(POOL)
    authority, bump_seed = derive_authority(POOL, PROGRAM_ID)

    ledger.create_mint(MINT_A, decimals=6, mint_authority=MINTER, transfer_fee_config=mint_a_transfer_fee)
    ledger.create_mint(MINT_B, decimals=9, mint_authority=MINTER)
    ledger.create_mint(SHARE_MINT, decimals=2, mint_authority=authority)

    ledger.create_account(RESERVE_A, mint=MINT_A, owner=authority, amount=reserve_a)
    ledger.create_account(RESERVE_B, mint=MINT_B, owner=authority, amount=reserve_b)
    ledger.create_account(FEE_COLLECTOR, mint=SHARE_MINT, owner=OWNER)
    ledger.create_account(USER_SHARES, mint=SHARE_MINT, owner=USER)
    ledger.create_account(HOST_SHARES, mint=SHARE_MINT, owner=HOST)
    ledger.create_account(USER_A, mint=MINT_A, owner=USER, amount=USER_FUNDS)
    ledger.create_account(USER_B, mint=MINT_B, owner=USER, amount=USER_FUNDS)

    return PoolWorld(ledger=ledger, runtime=runtime, authority=authority, bump_seed=bump_seed)


@pytest.fixture
def make_world() -> Callable[..., PoolWorld]:
    return build_world


@pytest.fixture
def world() -> PoolWorld:
    return build_world()


@pytest.fixture
def pool(world: PoolWorld) -> PoolWorld:
    """A constant-product pool at 1,000,000 / 1,000,000 with the default fees."""
    res = world.initialize()
    assert res.ok, res.error
    return world
