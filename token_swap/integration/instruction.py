"""
Instruction wire format.

Every instruction is one opcode byte followed by its fields, little-endian,
with no padding. Payload length must match the opcode exactly.

    0 Initialize                              fees[64] curve[33]
    1 Swap                                    amount_in u64, minimum_amount_out u64
    2 DepositAllTokenTypes                    pool_token_amount u64, maximum_token_a_amount u64, maximum_token_b_amount u64
    3 WithdrawAllTokenTypes                   pool_token_amount u64, minimum_token_a_amount u64, minimum_token_b_amount u64
    4 DepositSingleTokenTypeExactAmountIn     source_token_amount u64, minimum_pool_token_amount u64
    5 WithdrawSingleTokenTypeExactAmountOut   destination_token_amount u64, maximum_pool_token_amount u64
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import IntEnum, unique
from typing import ClassVar, Dict, Type, Union

from ..core.errors import InvalidInstruction
from ..core.fees import Fees
from ..core.swap_curve import SwapCurve
from ..state.canonical import ByteReader, encode_u8, encode_u64


@unique
class Opcode(IntEnum):
    INITIALIZE = 0
    SWAP = 1
    DEPOSIT_ALL_TOKEN_TYPES = 2
    WITHDRAW_ALL_TOKEN_TYPES = 3
    DEPOSIT_SINGLE_TOKEN_TYPE_EXACT_AMOUNT_IN = 4
    WITHDRAW_SINGLE_TOKEN_TYPE_EXACT_AMOUNT_OUT = 5


class _AmountInstruction:
    """Instructions whose payload is a flat run of u64 fields."""

    OPCODE: ClassVar[Opcode]

    def __post_init__(self) -> None:
        for f in fields(self):
            v = getattr(self, f.name)
            if not isinstance(v, int) or isinstance(v, bool) or not (0 <= v < (1 << 64)):
                raise ValueError(f"{f.name} must be a u64: {v!r}")

    def pack(self) -> bytes:
        return encode_u8(int(self.OPCODE)) + b"".join(
            encode_u64(getattr(self, f.name)) for f in fields(self)
        )

    @classmethod
    def read(cls, reader: ByteReader):
        return cls(*(reader.u64() for _ in fields(cls)))


@dataclass(frozen=True)
class Initialize:
    fees: Fees
    swap_curve: SwapCurve

    OPCODE: ClassVar[Opcode] = Opcode.INITIALIZE

    def pack(self) -> bytes:
        return encode_u8(int(self.OPCODE)) + self.fees.pack() + self.swap_curve.pack()

    @classmethod
    def read(cls, reader: ByteReader) -> "Initialize":
        return cls(fees=Fees.read(reader), swap_curve=SwapCurve.read(reader))


@dataclass(frozen=True)
class Swap(_AmountInstruction):
    amount_in: int
    minimum_amount_out: int

    OPCODE: ClassVar[Opcode] = Opcode.SWAP


@dataclass(frozen=True)
class DepositAllTokenTypes(_AmountInstruction):
    pool_token_amount: int
    maximum_token_a_amount: int
    maximum_token_b_amount: int

    OPCODE: ClassVar[Opcode] = Opcode.DEPOSIT_ALL_TOKEN_TYPES


@dataclass(frozen=True)
class WithdrawAllTokenTypes(_AmountInstruction):
    pool_token_amount: int
    minimum_token_a_amount: int
    minimum_token_b_amount: int

    OPCODE: ClassVar[Opcode] = Opcode.WITHDRAW_ALL_TOKEN_TYPES


@dataclass(frozen=True)
class DepositSingleTokenTypeExactAmountIn(_AmountInstruction):
    source_token_amount: int
    minimum_pool_token_amount: int

    OPCODE: ClassVar[Opcode] = Opcode.DEPOSIT_SINGLE_TOKEN_TYPE_EXACT_AMOUNT_IN


@dataclass(frozen=True)
class WithdrawSingleTokenTypeExactAmountOut(_AmountInstruction):
    destination_token_amount: int
    maximum_pool_token_amount: int

    OPCODE: ClassVar[Opcode] = Opcode.WITHDRAW_SINGLE_TOKEN_TYPE_EXACT_AMOUNT_OUT


Instruction = Union[
    Initialize,
    Swap,
    DepositAllTokenTypes,
    WithdrawAllTokenTypes,
    DepositSingleTokenTypeExactAmountIn,
    WithdrawSingleTokenTypeExactAmountOut,
]

INSTRUCTION_TYPES: Dict[Opcode, Type] = {
    cls.OPCODE: cls
    for cls in (
        Initialize,
        Swap,
        DepositAllTokenTypes,
        WithdrawAllTokenTypes,
        DepositSingleTokenTypeExactAmountIn,
        WithdrawSingleTokenTypeExactAmountOut,
    )
}


def pack_instruction(instruction: Instruction) -> bytes:
    return instruction.pack()


def unpack_instruction(data: bytes) -> Instruction:
    """Decode an instruction; any malformed input raises ``InvalidInstruction``."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidInstruction("instruction data must be bytes")
    reader = ByteReader(data, error=InvalidInstruction)
    tag = reader.u8()
    try:
        opcode = Opcode(tag)
    except ValueError as exc:
        raise InvalidInstruction(f"unknown opcode: {tag}") from exc
    try:
        instruction = INSTRUCTION_TYPES[opcode].read(reader)
    except InvalidInstruction:
        raise
    except (ValueError, TypeError) as exc:
        raise InvalidInstruction(str(exc)) from exc
    reader.finish()
    return instruction
