"""
In-process host for the swap program.

``SwapRuntime`` plays the role of the chain: it owns the pool accounts (by
address, with an owning program and raw data), runs one instruction at a time
through the ``Processor`` and guarantees all-or-nothing semantics. Pool
accounts are snapshotted and the ledger invocation is rolled back whenever the
processor raises.

``invoke`` returns a ``ProcessResult``; ``invoke_or_raise`` re-raises the
original error for callers that prefer exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import AbstractSet, Dict, Mapping, Optional, Sequence

from ..core.errors import SwapError
from ..state.canonical import Address, canonical_address
from ..state.ledger import InMemoryLedger, LedgerError
from ..state.pool import POOL_STATE_LEN, PoolState
from .config import ProcessorConfig
from .instruction import Instruction
from .processor import InvocationContext, Processor, ProgramAccount

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    ok: bool
    effects: Optional[Mapping[str, int]] = None
    error: Optional[str] = None
    code: Optional[int] = None


class SwapRuntime:
    def __init__(
        self,
        program_id: Address,
        ledger: InMemoryLedger,
        *,
        config: Optional[ProcessorConfig] = None,
    ) -> None:
        self.program_id = canonical_address(program_id, name="program_id")
        self.ledger = ledger
        self.processor = Processor(config)
        self.accounts: Dict[Address, ProgramAccount] = {}

    def create_pool_account(self, address: Address, *, owner: Optional[Address] = None) -> Address:
        """Allocate a zeroed pool record, owned by this program unless ``owner`` says otherwise."""
        key = canonical_address(address, name="pool")
        if key in self.accounts:
            raise ValueError(f"account already exists: {key}")
        owner_key = self.program_id if owner is None else canonical_address(owner, name="owner")
        self.accounts[key] = ProgramAccount(owner=owner_key, data=bytes(POOL_STATE_LEN))
        return key

    def pool_state(self, address: Address) -> PoolState:
        return PoolState.unpack(self.accounts[canonical_address(address, name="pool")].data)

    def invoke(
        self,
        accounts: Sequence[Address],
        data: bytes,
        *,
        signers: AbstractSet[Address] = frozenset(),
    ) -> ProcessResult:
        try:
            effects = self.invoke_or_raise(accounts, data, signers=signers)
        except SwapError as exc:
            log.info("instruction rejected (code %d): %s", exc.code, exc)
            return ProcessResult(ok=False, error=f"{type(exc).__name__}: {exc}", code=exc.code)
        except LedgerError as exc:
            log.info("instruction rejected by ledger: %s", exc)
            return ProcessResult(ok=False, error=f"{type(exc).__name__}: {exc}")
        return ProcessResult(ok=True, effects=effects)

    def invoke_or_raise(
        self,
        accounts: Sequence[Address],
        data: bytes,
        *,
        signers: AbstractSet[Address] = frozenset(),
    ) -> Mapping[str, int]:
        snapshot = {k: replace(v) for k, v in self.accounts.items()}
        ctx = InvocationContext(program_id=self.program_id, ledger=self.ledger, accounts=self.accounts)
        try:
            with self.ledger.invocation(self.program_id, signers):
                return self.processor.process(ctx, accounts, data)
        except BaseException:
            self.accounts.clear()
            self.accounts.update(snapshot)
            raise

    def execute(
        self,
        instruction: Instruction,
        accounts: Sequence[Address],
        *,
        signers: AbstractSet[Address] = frozenset(),
    ) -> ProcessResult:
        return self.invoke(accounts, instruction.pack(), signers=signers)
