"""
Deterministic canonical encoding primitives.

Addresses are 32-byte identities rendered as lowercase, 0x-prefixed hex.
Integer fields are fixed-width little-endian, matching the persisted pool
record and the instruction wire format.
"""

from __future__ import annotations

import re
import struct
from typing import Any, Type

Address = str  # 32-byte identity as 0x-prefixed hex

ADDRESS_LEN = 32

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]+$")
_U64 = struct.Struct("<Q")


def hex_to_bytes_fixed(hex_str: str, *, nbytes: int, name: str) -> bytes:
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    if not isinstance(nbytes, int) or isinstance(nbytes, bool) or nbytes <= 0:
        raise ValueError("nbytes must be a positive int")
    expected_len = 2 + 2 * nbytes
    if not hex_str.startswith("0x") or len(hex_str) != expected_len:
        raise ValueError(f"{name} must be a 0x-prefixed {nbytes}-byte hex string")
    body = hex_str[2:]
    if not _HEX_CHARS_RE.fullmatch(body):
        raise ValueError(f"{name} must be valid hex")
    return bytes.fromhex(body)


def canonical_hex_fixed_allow_0x(hex_str: str, *, nbytes: int, name: str) -> str:
    """
    Canonicalize a fixed-size hex string (lowercase, 0x-prefixed).

    Accepts either 0x-prefixed or raw hex input.
    """
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    if not isinstance(nbytes, int) or isinstance(nbytes, bool) or nbytes <= 0:
        raise ValueError("nbytes must be a positive int")

    s = hex_str.strip()
    if s.lower().startswith("0x"):
        s = s[2:]
    expected_len = 2 * nbytes
    if len(s) != expected_len:
        raise ValueError(f"{name} must be {nbytes} bytes (hex length {expected_len})")
    if not _HEX_CHARS_RE.fullmatch(s):
        raise ValueError(f"{name} must be valid hex")
    return "0x" + s.lower()


def canonical_address(value: Any, *, name: str = "address") -> Address:
    """
    Canonicalize an address given as hex, raw bytes, or any object exposing
    ``__bytes__`` (e.g. ``solders.pubkey.Pubkey``).
    """
    if isinstance(value, str):
        return canonical_hex_fixed_allow_0x(value, nbytes=ADDRESS_LEN, name=name)
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif hasattr(value, "__bytes__"):
        raw = bytes(value)
    else:
        raise TypeError(f"{name} must be a hex str or 32 bytes")
    if len(raw) != ADDRESS_LEN:
        raise ValueError(f"{name} must be exactly {ADDRESS_LEN} bytes")
    return "0x" + raw.hex()


def address_to_bytes(address: Address, *, name: str = "address") -> bytes:
    return hex_to_bytes_fixed(canonical_address(address, name=name), nbytes=ADDRESS_LEN, name=name)


def address_from_bytes(raw: bytes) -> Address:
    return canonical_address(bytes(raw))


def encode_u8(value: int) -> bytes:
    if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= 0xFF):
        raise ValueError(f"u8 out of range: {value!r}")
    return bytes([value])


def encode_u64(value: int) -> bytes:
    if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value < (1 << 64)):
        raise ValueError(f"u64 out of range: {value!r}")
    return _U64.pack(value)


class ByteReader:
    """
    Sequential little-endian decoder over a fixed buffer.

    ``error`` is the exception type raised on truncated or over-long input, so
    each caller reports decoding failures in its own vocabulary.
    """

    def __init__(self, data: bytes, *, error: Type[Exception] = ValueError) -> None:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError("data must be bytes")
        self._data = bytes(data)
        self._offset = 0
        self._error = error

    def take(self, n: int) -> bytes:
        end = self._offset + n
        if end > len(self._data):
            raise self._error(f"unexpected end of data at offset {self._offset}")
        out = self._data[self._offset:end]
        self._offset = end
        return out

    def u8(self) -> int:
        return self.take(1)[0]

    def u64(self) -> int:
        return _U64.unpack(self.take(8))[0]

    def address(self) -> Address:
        return address_from_bytes(self.take(ADDRESS_LEN))

    def finish(self) -> None:
        if self._offset != len(self._data):
            raise self._error(f"{len(self._data) - self._offset} trailing bytes")
