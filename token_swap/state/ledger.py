"""
Token ledger capability and an in-memory reference ledger.

The swap engine never touches balances directly; it reads accounts and mints
and asks the ledger to transfer, mint and burn. ``TokenLedger`` is that
contract. ``InMemoryLedger`` implements it for tests and local simulation:

- balances are u64 and never negative,
- a call is authorized either by a signer address present in the current
  invocation, or by a pool ``Authority`` belonging to the program running the
  invocation (compared by derived address),
- delegates may spend up to their delegated amount,
- mints with a ``TransferFeeConfig`` withhold the epoch fee on the destination,
- ``invocation()`` restores every balance if the body raises.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import AbstractSet, Dict, Iterator, Optional, Protocol, Union

from .authority import Authority
from .canonical import Address, canonical_address
from .transfer_fee import TransferFeeConfig

log = logging.getLogger(__name__)

U64_MAX = (1 << 64) - 1

Signer = Union[Authority, Address]


class LedgerError(Exception):
    """Base class for token ledger failures."""


class AccountNotFound(LedgerError):
    pass


class MintNotFound(LedgerError):
    pass


class InsufficientFunds(LedgerError):
    pass


class OwnerMismatch(LedgerError):
    pass


class MissingSignature(LedgerError):
    pass


class MintMismatch(LedgerError):
    pass


class MintDecimalsMismatch(LedgerError):
    pass


class LedgerOverflow(LedgerError):
    pass


@dataclass
class TokenAccount:
    address: Address
    mint: Address
    owner: Address
    amount: int = 0
    delegate: Optional[Address] = None
    delegated_amount: int = 0
    close_authority: Optional[Address] = None
    withheld_amount: int = 0


@dataclass
class Mint:
    address: Address
    decimals: int
    mint_authority: Optional[Address]
    supply: int = 0
    freeze_authority: Optional[Address] = None
    close_authority: Optional[Address] = None
    transfer_fee_config: Optional[TransferFeeConfig] = None

    def epoch_fee(self, epoch: int, amount: int) -> int:
        if self.transfer_fee_config is None:
            return 0
        return self.transfer_fee_config.calculate_epoch_fee(epoch, amount)

    def inverse_epoch_fee(self, epoch: int, post_fee_amount: int) -> int:
        if self.transfer_fee_config is None:
            return 0
        return self.transfer_fee_config.calculate_inverse_epoch_fee(epoch, post_fee_amount)


class TokenLedger(Protocol):
    program_id: Address
    epoch: int

    def read_account(self, address: Address) -> TokenAccount: ...

    def read_mint(self, address: Address) -> Mint: ...

    def transfer(
        self,
        source: Address,
        mint: Address,
        destination: Address,
        authority: Signer,
        amount: int,
        decimals: int,
    ) -> None: ...

    def mint_to(self, mint: Address, destination: Address, authority: Signer, amount: int) -> None: ...

    def burn(self, source: Address, mint: Address, authority: Signer, amount: int) -> None: ...


def _opt(value: Optional[Address], name: str) -> Optional[Address]:
    return None if value is None else canonical_address(value, name=name)


def _require_amount(amount: int) -> int:
    if not isinstance(amount, int) or isinstance(amount, bool) or not (0 <= amount <= U64_MAX):
        raise ValueError(f"amount must be a u64: {amount!r}")
    return amount


class InMemoryLedger:
    def __init__(self, program_id: Address, *, epoch: int = 0) -> None:
        self.program_id = canonical_address(program_id, name="program_id")
        self.epoch = epoch
        self._accounts: Dict[Address, TokenAccount] = {}
        self._mints: Dict[Address, Mint] = {}
        self._active_program: Optional[Address] = None
        self._signers: AbstractSet[Address] = frozenset()

    # -- setup ---------------------------------------------------------------

    def create_mint(
        self,
        address: Address,
        *,
        decimals: int = 0,
        mint_authority: Optional[Address],
        freeze_authority: Optional[Address] = None,
        close_authority: Optional[Address] = None,
        transfer_fee_config: Optional[TransferFeeConfig] = None,
    ) -> Mint:
        key = canonical_address(address, name="mint")
        if key in self._mints or key in self._accounts:
            raise LedgerError(f"address already in use: {key}")
        mint = Mint(
            address=key,
            decimals=decimals,
            mint_authority=_opt(mint_authority, "mint_authority"),
            freeze_authority=_opt(freeze_authority, "freeze_authority"),
            close_authority=_opt(close_authority, "close_authority"),
            transfer_fee_config=transfer_fee_config,
        )
        self._mints[key] = mint
        return replace(mint)

    def create_account(
        self,
        address: Address,
        *,
        mint: Address,
        owner: Address,
        amount: int = 0,
        delegate: Optional[Address] = None,
        delegated_amount: int = 0,
        close_authority: Optional[Address] = None,
    ) -> TokenAccount:
        """Open an account; a non-zero ``amount`` is issued out of thin air and counted in supply."""
        key = canonical_address(address, name="account")
        if key in self._mints or key in self._accounts:
            raise LedgerError(f"address already in use: {key}")
        mint_state = self._mint(mint)
        _require_amount(amount)
        if mint_state.supply + amount > U64_MAX:
            raise LedgerOverflow("mint supply overflow")
        account = TokenAccount(
            address=key,
            mint=mint_state.address,
            owner=canonical_address(owner, name="owner"),
            amount=amount,
            delegate=_opt(delegate, "delegate"),
            delegated_amount=_require_amount(delegated_amount),
            close_authority=_opt(close_authority, "close_authority"),
        )
        mint_state.supply += amount
        self._accounts[key] = account
        return replace(account)

    def close_account(self, address: Address) -> None:
        """Remove an empty account (simulates a closed fee collector)."""
        account = self._account(address)
        if account.amount != 0:
            raise LedgerError("cannot close an account holding tokens")
        del self._accounts[account.address]

    # -- reads ---------------------------------------------------------------

    def _account(self, address: Address) -> TokenAccount:
        key = canonical_address(address, name="account")
        try:
            return self._accounts[key]
        except KeyError as exc:
            raise AccountNotFound(f"no token account at {key}") from exc

    def _mint(self, address: Address) -> Mint:
        key = canonical_address(address, name="mint")
        try:
            return self._mints[key]
        except KeyError as exc:
            raise MintNotFound(f"no mint at {key}") from exc

    def read_account(self, address: Address) -> TokenAccount:
        return replace(self._account(address))

    def read_mint(self, address: Address) -> Mint:
        return replace(self._mint(address))

    def has_account(self, address: Address) -> bool:
        return canonical_address(address, name="account") in self._accounts

    def balance(self, address: Address) -> int:
        return self._account(address).amount

    # -- invocation scope ----------------------------------------------------

    @contextmanager
    def invocation(self, program_id: Address, signers: AbstractSet[Address] = frozenset()) -> Iterator[None]:
        if self._active_program is not None:
            raise LedgerError("nested ledger invocation")
        snapshot = copy.deepcopy((self._accounts, self._mints))
        self._active_program = canonical_address(program_id, name="program_id")
        self._signers = frozenset(canonical_address(s, name="signer") for s in signers)
        try:
            yield
        except BaseException:
            self._accounts, self._mints = snapshot
            log.debug("ledger invocation rolled back")
            raise
        finally:
            self._active_program = None
            self._signers = frozenset()

    def _signer(self, authority: Signer) -> Address:
        if isinstance(authority, Authority):
            if self._active_program is None or authority.program_id != self._active_program:
                raise MissingSignature(f"program {authority.program_id} cannot sign in this invocation")
            return authority.address
        signer = canonical_address(authority, name="authority")
        if signer not in self._signers:
            raise MissingSignature(f"{signer} did not sign this invocation")
        return signer

    def _spend(self, account: TokenAccount, authority: Signer, amount: int) -> None:
        signer = self._signer(authority)
        if account.amount < amount:
            raise InsufficientFunds(f"{account.address} holds {account.amount}, needs {amount}")
        if signer == account.owner:
            return
        if account.delegate is not None and signer == account.delegate:
            if account.delegated_amount < amount:
                raise InsufficientFunds(
                    f"delegate allowance {account.delegated_amount} below {amount}"
                )
            account.delegated_amount -= amount
            if account.delegated_amount == 0:
                account.delegate = None
            return
        raise OwnerMismatch(f"{signer} cannot spend from {account.address}")

    # -- mutations -----------------------------------------------------------

    def transfer(
        self,
        source: Address,
        mint: Address,
        destination: Address,
        authority: Signer,
        amount: int,
        decimals: int,
    ) -> None:
        _require_amount(amount)
        src = self._account(source)
        dst = self._account(destination)
        mint_state = self._mint(mint)
        if src.mint != mint_state.address or dst.mint != mint_state.address:
            raise MintMismatch("account mint does not match the transfer mint")
        if decimals != mint_state.decimals:
            raise MintDecimalsMismatch(f"expected {mint_state.decimals} decimals, got {decimals}")
        fee = mint_state.epoch_fee(self.epoch, amount)
        if dst.amount + amount - fee > U64_MAX:
            raise LedgerOverflow("destination balance overflow")
        self._spend(src, authority, amount)
        src.amount -= amount
        dst.amount += amount - fee
        dst.withheld_amount += fee
        log.debug("transfer %d (fee %d) %s -> %s", amount, fee, src.address, dst.address)

    def mint_to(self, mint: Address, destination: Address, authority: Signer, amount: int) -> None:
        _require_amount(amount)
        mint_state = self._mint(mint)
        dst = self._account(destination)
        if dst.mint != mint_state.address:
            raise MintMismatch("destination is not denominated in this mint")
        signer = self._signer(authority)
        if mint_state.mint_authority is None or signer != mint_state.mint_authority:
            raise OwnerMismatch(f"{signer} is not the mint authority of {mint_state.address}")
        if mint_state.supply + amount > U64_MAX or dst.amount + amount > U64_MAX:
            raise LedgerOverflow("mint overflow")
        mint_state.supply += amount
        dst.amount += amount
        log.debug("mint_to %d %s -> %s", amount, mint_state.address, dst.address)

    def burn(self, source: Address, mint: Address, authority: Signer, amount: int) -> None:
        _require_amount(amount)
        src = self._account(source)
        mint_state = self._mint(mint)
        if src.mint != mint_state.address:
            raise MintMismatch("source is not denominated in this mint")
        self._spend(src, authority, amount)
        src.amount -= amount
        mint_state.supply -= amount
        log.debug("burn %d %s from %s", amount, mint_state.address, src.address)
