"""
Pool authority derivation.

Each pool's custodial accounts are owned by a key-less program address
derived from the pool address and the program id. Derivation follows the
Solana program-derived-address rules (via ``solders``): seeds are hashed with
the program id and the first bump seed (searching 255 downwards) that lands
off the ed25519 curve wins.

The derived identity is never stored as a key; it is re-derived from the
persisted bump seed on every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from solders.pubkey import Pubkey

from ..core.errors import InvalidAuthority, InvalidProgramAddress
from .canonical import Address, address_to_bytes, canonical_address


def _pubkey(address: Address, name: str) -> Pubkey:
    return Pubkey(address_to_bytes(address, name=name))


def derive_authority(pool_address: Address, program_id: Address) -> Tuple[Address, int]:
    """Return ``(authority, bump_seed)`` for a pool."""
    authority, bump_seed = Pubkey.find_program_address(
        [address_to_bytes(pool_address, name="pool_address")],
        _pubkey(program_id, "program_id"),
    )
    return canonical_address(bytes(authority)), bump_seed


def authority_id(program_id: Address, pool_address: Address, bump_seed: int) -> Address:
    """Re-derive the authority from a stored bump seed."""
    if not isinstance(bump_seed, int) or isinstance(bump_seed, bool) or not (0 <= bump_seed <= 0xFF):
        raise InvalidProgramAddress(f"bump seed out of range: {bump_seed!r}")
    seeds = [address_to_bytes(pool_address, name="pool_address"), bytes([bump_seed])]
    try:
        authority = Pubkey.create_program_address(seeds, _pubkey(program_id, "program_id"))
    except Exception as exc:  # solders does not export the PubkeyError it raises here
        raise InvalidProgramAddress(str(exc)) from exc
    return canonical_address(bytes(authority))


def verify_authority(
    expected: Address, pool_address: Address, program_id: Address, bump_seed: int
) -> bool:
    try:
        derived = authority_id(program_id, pool_address, bump_seed)
    except InvalidProgramAddress:
        return False
    return derived == canonical_address(expected)


@dataclass(frozen=True)
class Authority:
    """
    Signing capability for one pool.

    Passed to the token ledger in place of a signer key; the ledger accepts it
    only for the program currently running and compares ``address`` against
    the account owner or mint authority.
    """

    pool: Address
    program_id: Address
    bump_seed: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "pool", canonical_address(self.pool, name="pool"))
        object.__setattr__(self, "program_id", canonical_address(self.program_id, name="program_id"))

    @property
    def address(self) -> Address:
        return authority_id(self.program_id, self.pool, self.bump_seed)

    def check(self, supplied: Address) -> None:
        """Raise ``InvalidAuthority`` unless ``supplied`` is this pool's authority."""
        if canonical_address(supplied) != self.address:
            raise InvalidAuthority(f"authority {supplied} does not match derived authority")
