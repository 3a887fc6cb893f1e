"""
Instruction dispatcher.

``Processor.process`` decodes the opcode-tagged payload, binds the ordered
account list, and runs the handler registered for the opcode in
``_COMMANDS``. Handlers validate everything before their first mutating
ledger call, raise a ``SwapError`` on any failure and return a small effects
mapping on success. Atomicity across the ledger calls of one instruction is
the host's job (see ``runtime.SwapRuntime``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, MutableMapping, Optional, Sequence

from ..core.calculator import TradeDirection
from ..core.checked_math import RoundDirection, checked_add, checked_sub, to_u64
from ..core.errors import (
    AlreadyInUse,
    ExceededSlippage,
    ExpectedAccount,
    ExpectedMint,
    FeeCalculationFailure,
    IncorrectFeeAccount,
    IncorrectPoolMint,
    IncorrectProgramId,
    IncorrectSwapAccount,
    IncorrectTokenLedgerProgram,
    InvalidAuthority,
    InvalidCloseAuthority,
    InvalidDelegate,
    InvalidFreezeAuthority,
    InvalidInput,
    InvalidOutputOwner,
    InvalidOwner,
    InvalidState,
    InvalidSupply,
    RepeatedMint,
    UnsupportedCurveOperation,
    ZeroTradingTokens,
)
from ..state.authority import Authority, derive_authority
from ..state.canonical import Address
from ..state.ledger import AccountNotFound, Mint, MintNotFound, TokenAccount, TokenLedger
from ..state.pool import POOL_STATE_LEN, PoolState, is_initialized
from .accounts import (
    ACCOUNT_LAYOUTS,
    DepositAllAccounts,
    DepositSingleAccounts,
    InitializeAccounts,
    SwapAccounts,
    WithdrawAllAccounts,
    WithdrawSingleAccounts,
    bind_accounts,
)
from .config import ProcessorConfig
from .instruction import (
    DepositAllTokenTypes,
    DepositSingleTokenTypeExactAmountIn,
    Initialize,
    Opcode,
    Swap,
    WithdrawAllTokenTypes,
    WithdrawSingleTokenTypeExactAmountOut,
    unpack_instruction,
)

log = logging.getLogger(__name__)

Effects = Dict[str, int]


@dataclass
class ProgramAccount:
    """Host-side account holding a pool record."""

    owner: Address
    data: bytes


@dataclass(frozen=True)
class InvocationContext:
    program_id: Address
    ledger: TokenLedger
    accounts: MutableMapping[Address, ProgramAccount]


# -- account helpers ----------------------------------------------------------


def _token_account(ctx: InvocationContext, address: Address) -> TokenAccount:
    try:
        return ctx.ledger.read_account(address)
    except AccountNotFound as exc:
        raise ExpectedAccount(str(exc)) from exc


def _mint(ctx: InvocationContext, address: Address) -> Mint:
    try:
        return ctx.ledger.read_mint(address)
    except MintNotFound as exc:
        raise ExpectedMint(str(exc)) from exc


def _fee_collector_live(ctx: InvocationContext, pool_state: PoolState) -> bool:
    """A closed or re-purposed fee collector just stops receiving fees."""
    try:
        account = ctx.ledger.read_account(pool_state.fee_collector_account)
    except AccountNotFound:
        return False
    return account.mint == pool_state.pool_share_mint


def _check_ledger_programs(ctx: InvocationContext, *programs: Address) -> None:
    for program in programs:
        if program != ctx.ledger.program_id:
            raise IncorrectTokenLedgerProgram(f"{program} is not the invoked token ledger")


def _load_pool(ctx: InvocationContext, pool: Address) -> PoolState:
    account = ctx.accounts.get(pool)
    if account is None:
        raise InvalidState(f"no pool account at {pool}")
    if account.owner != ctx.program_id:
        raise IncorrectProgramId(f"pool account {pool} is not owned by {ctx.program_id}")
    return PoolState.unpack(account.data)


def _check_accounts(
    ctx: InvocationContext,
    pool_state: PoolState,
    *,
    pool: Address,
    authority: Address,
    reserve_a: Address,
    reserve_b: Address,
    pool_share_mint: Address,
    pool_ledger_program: Address,
    user_token_a: Optional[Address] = None,
    user_token_b: Optional[Address] = None,
    fee_collector: Optional[Address] = None,
) -> Authority:
    """Shared account checks for every post-Initialize opcode; returns the pool signer."""
    pool_authority = Authority(pool=pool, program_id=ctx.program_id, bump_seed=pool_state.bump_seed)
    pool_authority.check(authority)
    if reserve_a != pool_state.reserve_a or reserve_b != pool_state.reserve_b:
        raise IncorrectSwapAccount("reserve accounts do not match the pool")
    if pool_share_mint != pool_state.pool_share_mint:
        raise IncorrectPoolMint("pool share mint does not match the pool")
    if pool_ledger_program != pool_state.token_ledger_program:
        raise IncorrectTokenLedgerProgram("pool ledger program does not match the pool")
    _check_ledger_programs(ctx, pool_ledger_program)
    if user_token_a is not None and user_token_a == pool_state.reserve_a:
        raise InvalidInput("caller account cannot be the token A reserve")
    if user_token_b is not None and user_token_b == pool_state.reserve_b:
        raise InvalidInput("caller account cannot be the token B reserve")
    if fee_collector is not None and fee_collector != pool_state.fee_collector_account:
        raise IncorrectFeeAccount("fee collector does not match the pool")
    return pool_authority


def _reserve_for(direction: TradeDirection, pool_state: PoolState) -> Address:
    if direction is TradeDirection.A_TO_B:
        return pool_state.reserve_a
    return pool_state.reserve_b


def _direction_for_mint(pool_state: PoolState, mint: Address) -> TradeDirection:
    if mint == pool_state.mint_a:
        return TradeDirection.A_TO_B
    if mint == pool_state.mint_b:
        return TradeDirection.B_TO_A
    raise IncorrectSwapAccount(f"mint {mint} is not traded by this pool")


# -- handlers -----------------------------------------------------------------


def _process_initialize(
    config: ProcessorConfig, ctx: InvocationContext, accts: InitializeAccounts, ix: Initialize
) -> Effects:
    pool_account = ctx.accounts.get(accts.pool)
    if pool_account is None:
        raise InvalidState(f"no pool account at {accts.pool}")
    if is_initialized(pool_account.data):
        raise AlreadyInUse()
    if pool_account.owner != ctx.program_id:
        raise IncorrectProgramId(f"pool account {accts.pool} is not owned by {ctx.program_id}")
    if len(pool_account.data) != POOL_STATE_LEN:
        raise InvalidState(f"pool account must hold {POOL_STATE_LEN} bytes")

    authority, bump_seed = derive_authority(accts.pool, ctx.program_id)
    if accts.authority != authority:
        raise InvalidAuthority(f"authority {accts.authority} is not derived from pool {accts.pool}")
    _check_ledger_programs(ctx, accts.pool_ledger_program)

    token_a = _token_account(ctx, accts.reserve_a)
    token_b = _token_account(ctx, accts.reserve_b)
    fee_account = _token_account(ctx, accts.fee_collector)
    destination = _token_account(ctx, accts.destination)
    pool_mint = _mint(ctx, accts.pool_share_mint)

    if pool_mint.close_authority is not None:
        raise InvalidCloseAuthority("pool share mint has a close authority")
    if token_a.owner != authority or token_b.owner != authority:
        raise InvalidOwner("reserves must be owned by the pool authority")
    if destination.owner == authority:
        raise InvalidOutputOwner("destination cannot be owned by the pool authority")
    if fee_account.owner == authority:
        raise InvalidOutputOwner("fee collector cannot be owned by the pool authority")
    if pool_mint.mint_authority != authority:
        raise InvalidOwner("pool share mint authority must be the pool authority")
    if token_a.mint == token_b.mint:
        raise RepeatedMint()

    calculator = ix.swap_curve.calculator
    calculator.validate_supply(token_a.amount, token_b.amount)

    if token_a.delegate is not None or token_b.delegate is not None:
        raise InvalidDelegate()
    if token_a.close_authority is not None or token_b.close_authority is not None:
        raise InvalidCloseAuthority()
    if pool_mint.supply != 0:
        raise InvalidSupply()
    if pool_mint.freeze_authority is not None:
        raise InvalidFreezeAuthority()
    if fee_account.mint != accts.pool_share_mint:
        raise IncorrectPoolMint("fee collector is not denominated in the pool share mint")
    if destination.mint != accts.pool_share_mint:
        raise IncorrectPoolMint("destination is not denominated in the pool share mint")

    if config.constraints is not None:
        config.constraints.validate_owner(fee_account.owner)
        config.constraints.validate_curve(ix.swap_curve)
        config.constraints.validate_fees(ix.fees)
    ix.fees.validate()
    calculator.validate()

    initial_amount = to_u64(calculator.new_pool_supply())
    pool_authority = Authority(pool=accts.pool, program_id=ctx.program_id, bump_seed=bump_seed)
    ctx.ledger.mint_to(accts.pool_share_mint, accts.destination, pool_authority, initial_amount)

    pool_state = PoolState(
        bump_seed=bump_seed,
        token_ledger_program=accts.pool_ledger_program,
        reserve_a=accts.reserve_a,
        reserve_b=accts.reserve_b,
        pool_share_mint=accts.pool_share_mint,
        mint_a=token_a.mint,
        mint_b=token_b.mint,
        fee_collector_account=accts.fee_collector,
        fees=ix.fees,
        curve=ix.swap_curve,
    )
    pool_account.data = pool_state.pack()
    return {"pool_token_amount": initial_amount}


def _process_swap(
    config: ProcessorConfig, ctx: InvocationContext, accts: SwapAccounts, ix: Swap
) -> Effects:
    pool_state = _load_pool(ctx, accts.pool)
    pool_authority = Authority(pool=accts.pool, program_id=ctx.program_id, bump_seed=pool_state.bump_seed)
    pool_authority.check(accts.authority)

    reserves = (pool_state.reserve_a, pool_state.reserve_b)
    if accts.swap_source not in reserves or accts.swap_destination not in reserves:
        raise IncorrectSwapAccount("swap accounts must be the pool reserves")
    if accts.swap_source == accts.swap_destination:
        raise InvalidInput("swap source and destination reserves are the same")
    if accts.source == accts.swap_source or accts.destination == accts.swap_destination:
        raise InvalidInput("caller accounts cannot be pool reserves")
    if accts.source == accts.destination:
        raise InvalidInput("source and destination accounts are the same")
    if accts.pool_share_mint != pool_state.pool_share_mint:
        raise IncorrectPoolMint()
    if accts.fee_collector != pool_state.fee_collector_account:
        raise IncorrectFeeAccount()
    if accts.pool_ledger_program != pool_state.token_ledger_program:
        raise IncorrectTokenLedgerProgram()
    _check_ledger_programs(
        ctx, accts.source_ledger_program, accts.destination_ledger_program, accts.pool_ledger_program
    )

    swap_source = _token_account(ctx, accts.swap_source)
    swap_destination = _token_account(ctx, accts.swap_destination)
    if accts.source_mint != swap_source.mint or accts.destination_mint != swap_destination.mint:
        raise InvalidInput("mint accounts do not match the reserves")
    source_mint = _mint(ctx, accts.source_mint)
    destination_mint = _mint(ctx, accts.destination_mint)
    pool_mint = _mint(ctx, accts.pool_share_mint)

    if accts.host_fee_account is not None:
        host = _token_account(ctx, accts.host_fee_account)
        if host.mint != pool_state.pool_share_mint:
            raise IncorrectPoolMint("host fee account is not denominated in the pool share mint")

    direction = (
        TradeDirection.A_TO_B if accts.swap_source == pool_state.reserve_a else TradeDirection.B_TO_A
    )
    epoch = ctx.ledger.epoch

    # The reserve only receives what survives the source mint's transfer fee.
    transfer_fee = min(source_mint.epoch_fee(epoch, ix.amount_in), ix.amount_in)
    actual_amount_in = ix.amount_in - transfer_fee

    result = pool_state.curve.swap(
        actual_amount_in, swap_source.amount, swap_destination.amount, direction, pool_state.fees
    )
    if result is None:
        raise ZeroTradingTokens()

    source_transfer_amount = to_u64(
        checked_add(
            result.source_amount_swapped,
            source_mint.inverse_epoch_fee(epoch, result.source_amount_swapped),
        )
    )
    amount_out = to_u64(result.destination_amount_swapped)
    amount_received = amount_out - destination_mint.epoch_fee(epoch, amount_out)
    if amount_received < ix.minimum_amount_out:
        raise ExceededSlippage(
            f"amount received {amount_received} below minimum {ix.minimum_amount_out}"
        )

    if direction is TradeDirection.A_TO_B:
        new_a, new_b = result.new_swap_source_amount, result.new_swap_destination_amount
    else:
        new_a, new_b = result.new_swap_destination_amount, result.new_swap_source_amount

    owner_fee_shares = pool_state.curve.withdraw_single_token_type_exact_out(
        result.owner_fee, new_a, new_b, pool_mint.supply, direction, pool_state.fees
    )
    if owner_fee_shares is None:
        raise FeeCalculationFailure("owner fee cannot be converted to pool shares")
    owner_fee_shares = to_u64(owner_fee_shares)
    collector_live = _fee_collector_live(ctx, pool_state)

    ctx.ledger.transfer(
        accts.source,
        accts.source_mint,
        accts.swap_source,
        accts.user_transfer_authority,
        source_transfer_amount,
        source_mint.decimals,
    )

    host_fee_shares = 0
    collector_shares = 0
    if owner_fee_shares > 0:
        remaining = owner_fee_shares
        if accts.host_fee_account is not None:
            host_fee_shares = pool_state.fees.host_fee(owner_fee_shares)
            if host_fee_shares > 0:
                remaining = checked_sub(remaining, host_fee_shares)
                ctx.ledger.mint_to(
                    accts.pool_share_mint, accts.host_fee_account, pool_authority, host_fee_shares
                )
        if collector_live and remaining > 0:
            collector_shares = remaining
            ctx.ledger.mint_to(
                accts.pool_share_mint, accts.fee_collector, pool_authority, collector_shares
            )

    ctx.ledger.transfer(
        accts.swap_destination,
        accts.destination_mint,
        accts.destination,
        pool_authority,
        amount_out,
        destination_mint.decimals,
    )
    return {
        "amount_in": source_transfer_amount,
        "amount_out": amount_out,
        "amount_received": amount_received,
        "trade_fee": result.trade_fee,
        "owner_fee": result.owner_fee,
        "collector_fee_shares": collector_shares,
        "host_fee_shares": host_fee_shares,
    }


def _process_deposit_all(
    config: ProcessorConfig,
    ctx: InvocationContext,
    accts: DepositAllAccounts,
    ix: DepositAllTokenTypes,
) -> Effects:
    pool_state = _load_pool(ctx, accts.pool)
    calculator = pool_state.curve.calculator
    if not calculator.allows_deposits():
        raise UnsupportedCurveOperation("curve does not accept deposits")
    pool_authority = _check_accounts(
        ctx,
        pool_state,
        pool=accts.pool,
        authority=accts.authority,
        reserve_a=accts.reserve_a,
        reserve_b=accts.reserve_b,
        pool_share_mint=accts.pool_share_mint,
        pool_ledger_program=accts.pool_ledger_program,
        user_token_a=accts.source_a,
        user_token_b=accts.source_b,
    )
    if accts.mint_a != pool_state.mint_a or accts.mint_b != pool_state.mint_b:
        raise InvalidInput("mint accounts do not match the pool")
    _check_ledger_programs(ctx, accts.ledger_program_a, accts.ledger_program_b)

    token_a = _token_account(ctx, accts.reserve_a)
    token_b = _token_account(ctx, accts.reserve_b)
    mint_a = _mint(ctx, accts.mint_a)
    mint_b = _mint(ctx, accts.mint_b)
    pool_mint = _mint(ctx, accts.pool_share_mint)

    if pool_mint.supply == 0:
        pool_token_amount = calculator.new_pool_supply()
        pool_mint_supply = pool_token_amount
    else:
        pool_token_amount = ix.pool_token_amount
        pool_mint_supply = pool_mint.supply

    results = calculator.pool_tokens_to_trading_tokens(
        pool_token_amount, pool_mint_supply, token_a.amount, token_b.amount, RoundDirection.CEILING
    )
    token_a_amount = to_u64(results.token_a_amount)
    if token_a_amount > ix.maximum_token_a_amount:
        raise ExceededSlippage(f"token A required {token_a_amount} above maximum")
    if token_a_amount == 0:
        raise ZeroTradingTokens()
    token_b_amount = to_u64(results.token_b_amount)
    if token_b_amount > ix.maximum_token_b_amount:
        raise ExceededSlippage(f"token B required {token_b_amount} above maximum")
    if token_b_amount == 0:
        raise ZeroTradingTokens()
    pool_token_amount = to_u64(pool_token_amount)

    ctx.ledger.transfer(
        accts.source_a, accts.mint_a, accts.reserve_a, accts.user_transfer_authority,
        token_a_amount, mint_a.decimals,
    )
    ctx.ledger.transfer(
        accts.source_b, accts.mint_b, accts.reserve_b, accts.user_transfer_authority,
        token_b_amount, mint_b.decimals,
    )
    ctx.ledger.mint_to(accts.pool_share_mint, accts.destination, pool_authority, pool_token_amount)
    return {
        "pool_token_amount": pool_token_amount,
        "token_a_amount": token_a_amount,
        "token_b_amount": token_b_amount,
    }


def _process_withdraw_all(
    config: ProcessorConfig,
    ctx: InvocationContext,
    accts: WithdrawAllAccounts,
    ix: WithdrawAllTokenTypes,
) -> Effects:
    pool_state = _load_pool(ctx, accts.pool)
    pool_authority = _check_accounts(
        ctx,
        pool_state,
        pool=accts.pool,
        authority=accts.authority,
        reserve_a=accts.reserve_a,
        reserve_b=accts.reserve_b,
        pool_share_mint=accts.pool_share_mint,
        pool_ledger_program=accts.pool_ledger_program,
        user_token_a=accts.destination_a,
        user_token_b=accts.destination_b,
        fee_collector=accts.fee_collector,
    )
    if accts.mint_a != pool_state.mint_a or accts.mint_b != pool_state.mint_b:
        raise InvalidInput("mint accounts do not match the pool")
    _check_ledger_programs(ctx, accts.ledger_program_a, accts.ledger_program_b)

    token_a = _token_account(ctx, accts.reserve_a)
    token_b = _token_account(ctx, accts.reserve_b)
    mint_a = _mint(ctx, accts.mint_a)
    mint_b = _mint(ctx, accts.mint_b)
    pool_mint = _mint(ctx, accts.pool_share_mint)

    if accts.source == accts.fee_collector or not _fee_collector_live(ctx, pool_state):
        withdraw_fee = 0
    else:
        withdraw_fee = pool_state.fees.owner_withdraw_fee(ix.pool_token_amount)
    pool_token_amount = checked_sub(ix.pool_token_amount, withdraw_fee)

    results = pool_state.curve.calculator.pool_tokens_to_trading_tokens(
        pool_token_amount, pool_mint.supply, token_a.amount, token_b.amount, RoundDirection.FLOOR
    )
    token_a_amount = min(token_a.amount, to_u64(results.token_a_amount))
    if token_a_amount < ix.minimum_token_a_amount:
        raise ExceededSlippage(f"token A out {token_a_amount} below minimum")
    if token_a_amount == 0 and token_a.amount != 0:
        raise ZeroTradingTokens()
    token_b_amount = min(token_b.amount, to_u64(results.token_b_amount))
    if token_b_amount < ix.minimum_token_b_amount:
        raise ExceededSlippage(f"token B out {token_b_amount} below minimum")
    if token_b_amount == 0 and token_b.amount != 0:
        raise ZeroTradingTokens()

    if withdraw_fee > 0:
        ctx.ledger.transfer(
            accts.source, accts.pool_share_mint, accts.fee_collector, accts.user_transfer_authority,
            withdraw_fee, pool_mint.decimals,
        )
    ctx.ledger.burn(accts.source, accts.pool_share_mint, accts.user_transfer_authority, pool_token_amount)
    if token_a_amount > 0:
        ctx.ledger.transfer(
            accts.reserve_a, accts.mint_a, accts.destination_a, pool_authority,
            token_a_amount, mint_a.decimals,
        )
    if token_b_amount > 0:
        ctx.ledger.transfer(
            accts.reserve_b, accts.mint_b, accts.destination_b, pool_authority,
            token_b_amount, mint_b.decimals,
        )
    return {
        "pool_token_amount": pool_token_amount,
        "withdraw_fee": withdraw_fee,
        "token_a_amount": token_a_amount,
        "token_b_amount": token_b_amount,
    }


def _process_deposit_single(
    config: ProcessorConfig,
    ctx: InvocationContext,
    accts: DepositSingleAccounts,
    ix: DepositSingleTokenTypeExactAmountIn,
) -> Effects:
    pool_state = _load_pool(ctx, accts.pool)
    calculator = pool_state.curve.calculator
    if not calculator.allows_deposits():
        raise UnsupportedCurveOperation("curve does not accept deposits")

    source = _token_account(ctx, accts.source)
    direction = _direction_for_mint(pool_state, source.mint)
    if accts.source_mint != source.mint:
        raise InvalidInput("source mint does not match the source account")
    is_a = direction is TradeDirection.A_TO_B
    pool_authority = _check_accounts(
        ctx,
        pool_state,
        pool=accts.pool,
        authority=accts.authority,
        reserve_a=accts.reserve_a,
        reserve_b=accts.reserve_b,
        pool_share_mint=accts.pool_share_mint,
        pool_ledger_program=accts.pool_ledger_program,
        user_token_a=accts.source if is_a else None,
        user_token_b=None if is_a else accts.source,
    )
    _check_ledger_programs(ctx, accts.source_ledger_program)

    token_a = _token_account(ctx, accts.reserve_a)
    token_b = _token_account(ctx, accts.reserve_b)
    source_mint = _mint(ctx, accts.source_mint)
    pool_mint = _mint(ctx, accts.pool_share_mint)

    if pool_mint.supply > 0:
        pool_token_amount = pool_state.curve.deposit_single_token_type(
            ix.source_token_amount,
            token_a.amount,
            token_b.amount,
            pool_mint.supply,
            direction,
            pool_state.fees,
        )
        if pool_token_amount is None:
            raise ZeroTradingTokens()
    else:
        pool_token_amount = calculator.new_pool_supply()

    pool_token_amount = to_u64(pool_token_amount)
    if pool_token_amount < ix.minimum_pool_token_amount:
        raise ExceededSlippage(f"pool tokens out {pool_token_amount} below minimum")
    if pool_token_amount == 0:
        raise ZeroTradingTokens()

    reserve = _reserve_for(direction, pool_state)
    ctx.ledger.transfer(
        accts.source, accts.source_mint, reserve, accts.user_transfer_authority,
        ix.source_token_amount, source_mint.decimals,
    )
    ctx.ledger.mint_to(accts.pool_share_mint, accts.destination, pool_authority, pool_token_amount)
    return {"pool_token_amount": pool_token_amount, "source_token_amount": ix.source_token_amount}


def _process_withdraw_single(
    config: ProcessorConfig,
    ctx: InvocationContext,
    accts: WithdrawSingleAccounts,
    ix: WithdrawSingleTokenTypeExactAmountOut,
) -> Effects:
    pool_state = _load_pool(ctx, accts.pool)

    destination = _token_account(ctx, accts.destination)
    direction = _direction_for_mint(pool_state, destination.mint)
    if accts.destination_mint != destination.mint:
        raise InvalidInput("destination mint does not match the destination account")
    is_a = direction is TradeDirection.A_TO_B
    pool_authority = _check_accounts(
        ctx,
        pool_state,
        pool=accts.pool,
        authority=accts.authority,
        reserve_a=accts.reserve_a,
        reserve_b=accts.reserve_b,
        pool_share_mint=accts.pool_share_mint,
        pool_ledger_program=accts.pool_ledger_program,
        user_token_a=accts.destination if is_a else None,
        user_token_b=None if is_a else accts.destination,
        fee_collector=accts.fee_collector,
    )
    _check_ledger_programs(ctx, accts.destination_ledger_program)

    token_a = _token_account(ctx, accts.reserve_a)
    token_b = _token_account(ctx, accts.reserve_b)
    destination_mint = _mint(ctx, accts.destination_mint)
    pool_mint = _mint(ctx, accts.pool_share_mint)

    burn_pool_token_amount = pool_state.curve.withdraw_single_token_type_exact_out(
        ix.destination_token_amount,
        token_a.amount,
        token_b.amount,
        pool_mint.supply,
        direction,
        pool_state.fees,
    )
    if burn_pool_token_amount is None:
        raise ZeroTradingTokens()

    if accts.source == accts.fee_collector or not _fee_collector_live(ctx, pool_state):
        withdraw_fee = 0
    else:
        withdraw_fee = pool_state.fees.owner_withdraw_fee(burn_pool_token_amount)
    pool_token_amount = to_u64(checked_add(burn_pool_token_amount, withdraw_fee))
    if pool_token_amount > ix.maximum_pool_token_amount:
        raise ExceededSlippage(f"pool tokens in {pool_token_amount} above maximum")
    if pool_token_amount == 0:
        raise ZeroTradingTokens()

    if withdraw_fee > 0:
        ctx.ledger.transfer(
            accts.source, accts.pool_share_mint, accts.fee_collector, accts.user_transfer_authority,
            withdraw_fee, pool_mint.decimals,
        )
    ctx.ledger.burn(
        accts.source, accts.pool_share_mint, accts.user_transfer_authority,
        to_u64(burn_pool_token_amount),
    )
    reserve = _reserve_for(direction, pool_state)
    ctx.ledger.transfer(
        reserve, accts.destination_mint, accts.destination, pool_authority,
        ix.destination_token_amount, destination_mint.decimals,
    )
    return {
        "pool_token_amount": pool_token_amount,
        "withdraw_fee": withdraw_fee,
        "destination_token_amount": ix.destination_token_amount,
    }


Handler = Callable[[ProcessorConfig, InvocationContext, Any, Any], Effects]

_COMMANDS: Dict[Opcode, Handler] = {
    Opcode.INITIALIZE: _process_initialize,
    Opcode.SWAP: _process_swap,
    Opcode.DEPOSIT_ALL_TOKEN_TYPES: _process_deposit_all,
    Opcode.WITHDRAW_ALL_TOKEN_TYPES: _process_withdraw_all,
    Opcode.DEPOSIT_SINGLE_TOKEN_TYPE_EXACT_AMOUNT_IN: _process_deposit_single,
    Opcode.WITHDRAW_SINGLE_TOKEN_TYPE_EXACT_AMOUNT_OUT: _process_withdraw_single,
}


class Processor:
    def __init__(self, config: Optional[ProcessorConfig] = None) -> None:
        self.config = config if config is not None else ProcessorConfig()

    def process(self, ctx: InvocationContext, accounts: Sequence[Address], data: bytes) -> Effects:
        """Run one instruction; raises ``SwapError`` (or a ledger error) on failure."""
        instruction = unpack_instruction(data)
        handler = _COMMANDS[instruction.OPCODE]
        bound = bind_accounts(ACCOUNT_LAYOUTS[instruction.OPCODE], accounts)
        log.debug("Instruction: %s", type(instruction).__name__)
        return handler(self.config, ctx, bound, instruction)
