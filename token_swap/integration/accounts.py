"""
Ordered account lists, one layout per opcode.

Field order is the wire order. Binding a raw address list checks the exact
count (only Swap takes an optional trailing host-fee account) and
canonicalizes every address before any computation runs.
"""

from __future__ import annotations

from dataclasses import astuple, dataclass, fields
from typing import Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from ..core.errors import IncorrectAccountCount, InvalidInput
from ..state.canonical import Address, canonical_address
from .instruction import Opcode

T = TypeVar("T")


@dataclass(frozen=True)
class InitializeAccounts:
    pool: Address
    authority: Address
    reserve_a: Address
    reserve_b: Address
    pool_share_mint: Address
    fee_collector: Address
    destination: Address
    pool_ledger_program: Address


@dataclass(frozen=True)
class SwapAccounts:
    pool: Address
    authority: Address
    user_transfer_authority: Address
    source: Address
    swap_source: Address
    swap_destination: Address
    destination: Address
    pool_share_mint: Address
    fee_collector: Address
    source_mint: Address
    destination_mint: Address
    source_ledger_program: Address
    destination_ledger_program: Address
    pool_ledger_program: Address
    host_fee_account: Optional[Address] = None


@dataclass(frozen=True)
class DepositAllAccounts:
    pool: Address
    authority: Address
    user_transfer_authority: Address
    source_a: Address
    source_b: Address
    reserve_a: Address
    reserve_b: Address
    pool_share_mint: Address
    destination: Address
    mint_a: Address
    mint_b: Address
    ledger_program_a: Address
    ledger_program_b: Address
    pool_ledger_program: Address


@dataclass(frozen=True)
class WithdrawAllAccounts:
    pool: Address
    authority: Address
    user_transfer_authority: Address
    pool_share_mint: Address
    source: Address
    reserve_a: Address
    reserve_b: Address
    destination_a: Address
    destination_b: Address
    fee_collector: Address
    mint_a: Address
    mint_b: Address
    pool_ledger_program: Address
    ledger_program_a: Address
    ledger_program_b: Address


@dataclass(frozen=True)
class DepositSingleAccounts:
    pool: Address
    authority: Address
    user_transfer_authority: Address
    source: Address
    reserve_a: Address
    reserve_b: Address
    pool_share_mint: Address
    destination: Address
    source_mint: Address
    source_ledger_program: Address
    pool_ledger_program: Address


@dataclass(frozen=True)
class WithdrawSingleAccounts:
    pool: Address
    authority: Address
    user_transfer_authority: Address
    pool_share_mint: Address
    source: Address
    reserve_a: Address
    reserve_b: Address
    destination: Address
    fee_collector: Address
    destination_mint: Address
    pool_ledger_program: Address
    destination_ledger_program: Address


ACCOUNT_LAYOUTS: Dict[Opcode, Type] = {
    Opcode.INITIALIZE: InitializeAccounts,
    Opcode.SWAP: SwapAccounts,
    Opcode.DEPOSIT_ALL_TOKEN_TYPES: DepositAllAccounts,
    Opcode.WITHDRAW_ALL_TOKEN_TYPES: WithdrawAllAccounts,
    Opcode.DEPOSIT_SINGLE_TOKEN_TYPE_EXACT_AMOUNT_IN: DepositSingleAccounts,
    Opcode.WITHDRAW_SINGLE_TOKEN_TYPE_EXACT_AMOUNT_OUT: WithdrawSingleAccounts,
}


def account_count_range(layout: Type) -> Tuple[int, int]:
    """``(required, maximum)`` account counts for a layout."""
    layout_fields = fields(layout)
    required = sum(1 for f in layout_fields if f.default is not None)
    return required, len(layout_fields)


def bind_accounts(layout: Type[T], accounts: Sequence[Address]) -> T:
    if isinstance(accounts, (str, bytes)):
        raise TypeError("accounts must be a sequence of addresses")
    required, maximum = account_count_range(layout)
    if not (required <= len(accounts) <= maximum):
        expected = str(required) if required == maximum else f"{required}-{maximum}"
        raise IncorrectAccountCount(
            f"{layout.__name__} expects {expected} accounts, got {len(accounts)}"
        )
    names = [f.name for f in fields(layout)]
    values = {}
    for name, value in zip(names, accounts):
        try:
            values[name] = canonical_address(value, name=name)
        except (TypeError, ValueError) as exc:
            raise InvalidInput(str(exc)) from exc
    return layout(**values)


def account_list(bound) -> List[Address]:
    """Inverse of ``bind_accounts``: the wire-ordered address list, optional tail dropped."""
    return [a for a in astuple(bound) if a is not None]
