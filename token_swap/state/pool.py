"""
Persisted pool record.

Layout (324 bytes, little-endian), version 1:

    version u8 | is_initialized u8 | bump_seed u8 | token_ledger_program [32]
    | reserve_a [32] | reserve_b [32] | pool_share_mint [32] | mint_a [32]
    | mint_b [32] | fee_collector_account [32] | fees [64] | curve [33]

A zero-filled buffer is an uninitialized pool. The record is written once, by
Initialize, and only read afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..core.errors import InvalidState, SwapError
from ..core.fees import FEES_LEN, Fees
from ..core.swap_curve import SWAP_CURVE_LEN, SwapCurve
from .canonical import ADDRESS_LEN, Address, ByteReader, address_to_bytes, canonical_address, encode_u8

POOL_STATE_VERSION = 1

POOL_STATE_LEN = 1 + 1 + 1 + 7 * ADDRESS_LEN + FEES_LEN + SWAP_CURVE_LEN

_ADDRESS_FIELDS = (
    "token_ledger_program",
    "reserve_a",
    "reserve_b",
    "pool_share_mint",
    "mint_a",
    "mint_b",
    "fee_collector_account",
)


def is_initialized(data: bytes) -> bool:
    """Cheap check used before Initialize; does not decode the full record."""
    return len(data) >= 2 and data[0] == POOL_STATE_VERSION and data[1] == 1


@dataclass(frozen=True)
class PoolState:
    bump_seed: int
    token_ledger_program: Address
    reserve_a: Address
    reserve_b: Address
    pool_share_mint: Address
    mint_a: Address
    mint_b: Address
    fee_collector_account: Address
    fees: Fees
    curve: SwapCurve
    is_initialized: bool = True
    version: int = POOL_STATE_VERSION

    def __post_init__(self) -> None:
        if not isinstance(self.bump_seed, int) or isinstance(self.bump_seed, bool):
            raise TypeError("bump_seed must be an int")
        if not (0 <= self.bump_seed <= 0xFF):
            raise ValueError(f"bump_seed must be a u8: {self.bump_seed}")
        for name in _ADDRESS_FIELDS:
            object.__setattr__(self, name, canonical_address(getattr(self, name), name=name))
        if self.version != POOL_STATE_VERSION:
            raise ValueError(f"unsupported pool state version: {self.version}")

    def pack(self) -> bytes:
        out = bytearray()
        out += encode_u8(self.version)
        out += encode_u8(1 if self.is_initialized else 0)
        out += encode_u8(self.bump_seed)
        for name in _ADDRESS_FIELDS:
            out += address_to_bytes(getattr(self, name), name=name)
        out += self.fees.pack()
        out += self.curve.pack()
        assert len(out) == POOL_STATE_LEN
        return bytes(out)

    @classmethod
    def unpack(cls, data: bytes) -> "PoolState":
        if len(data) != POOL_STATE_LEN:
            raise InvalidState(f"pool record must be {POOL_STATE_LEN} bytes, got {len(data)}")
        reader = ByteReader(data, error=InvalidState)
        version = reader.u8()
        if version != POOL_STATE_VERSION:
            raise InvalidState(f"unknown pool record version: {version}")
        initialized = reader.u8()
        if initialized != 1:
            raise InvalidState("pool is not initialized")
        bump_seed = reader.u8()
        addresses = {name: reader.address() for name in _ADDRESS_FIELDS}
        try:
            fees = Fees.read(reader)
            curve = SwapCurve.read(reader)
        except SwapError as exc:
            raise InvalidState(f"corrupt pool record: {exc}") from exc
        reader.finish()
        return cls(bump_seed=bump_seed, fees=fees, curve=curve, **addresses)
