"""
Fee-aware curve wrapper.

``SwapCurve`` pairs a curve tag with its calculator and layers the pool fee
schedule on top of the pure curve math:

- swaps deduct trade + owner fees from the input before pricing and add them
  back into the amount the source reserve receives,
- single-sided deposits and withdrawals are treated as half a swap, so the
  trading fees are charged on half the amount.

Persisted form: one tag byte followed by a 32-byte parameter block.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Type

from ..state.canonical import ByteReader
from .calculator import (
    CURVE_PARAMS_LEN,
    CurveCalculator,
    CurveType,
    TradeDirection,
)
from .checked_math import RoundDirection, checked_add
from .constant_price import ConstantPriceCurve
from .constant_product import ConstantProductCurve
from .errors import InvalidInstruction, UnsupportedCurveType
from .fees import Fees
from .offset import OffsetCurve

SWAP_CURVE_LEN = 1 + CURVE_PARAMS_LEN

_CALCULATORS: Dict[CurveType, Type[CurveCalculator]] = {
    CurveType.CONSTANT_PRODUCT: ConstantProductCurve,
    CurveType.CONSTANT_PRICE: ConstantPriceCurve,
    CurveType.OFFSET: OffsetCurve,
}


@dataclass(frozen=True)
class SwapResult:
    """Outcome of a fee-aware swap, in source/destination orientation."""

    new_swap_source_amount: int
    new_swap_destination_amount: int
    source_amount_swapped: int
    destination_amount_swapped: int
    trade_fee: int
    owner_fee: int


@dataclass(frozen=True)
class SwapCurve:
    curve_type: CurveType
    calculator: CurveCalculator

    def __post_init__(self) -> None:
        if not isinstance(self.curve_type, CurveType):
            raise TypeError("curve_type must be a CurveType")
        if self.calculator.curve_type is not self.curve_type:
            raise ValueError(
                f"calculator {type(self.calculator).__name__} does not implement {self.curve_type.name}"
            )

    @classmethod
    def constant_product(cls) -> "SwapCurve":
        return cls(CurveType.CONSTANT_PRODUCT, ConstantProductCurve())

    @classmethod
    def constant_price(cls, token_b_price: int) -> "SwapCurve":
        return cls(CurveType.CONSTANT_PRICE, ConstantPriceCurve(token_b_price=token_b_price))

    @classmethod
    def offset(cls, token_b_offset: int) -> "SwapCurve":
        return cls(CurveType.OFFSET, OffsetCurve(token_b_offset=token_b_offset))

    def swap(
        self,
        source_amount: int,
        swap_source_amount: int,
        swap_destination_amount: int,
        trade_direction: TradeDirection,
        fees: Fees,
    ) -> Optional[SwapResult]:
        """Price a swap after fees; ``None`` when nothing would be received."""
        trade_fee = fees.trading_fee(source_amount)
        owner_fee = fees.owner_trading_fee(source_amount)
        total_fees = checked_add(trade_fee, owner_fee)
        if total_fees > source_amount:
            return None
        source_amount_less_fees = source_amount - total_fees

        result = self.calculator.swap_without_fees(
            source_amount_less_fees, swap_source_amount, swap_destination_amount, trade_direction
        )
        if result is None:
            return None
        if result.destination_amount_swapped > swap_destination_amount:
            return None

        source_amount_swapped = checked_add(result.source_amount_swapped, total_fees)
        return SwapResult(
            new_swap_source_amount=checked_add(swap_source_amount, source_amount_swapped),
            new_swap_destination_amount=swap_destination_amount - result.destination_amount_swapped,
            source_amount_swapped=source_amount_swapped,
            destination_amount_swapped=result.destination_amount_swapped,
            trade_fee=trade_fee,
            owner_fee=owner_fee,
        )

    def deposit_single_token_type(
        self,
        source_amount: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        pool_supply: int,
        trade_direction: TradeDirection,
        fees: Fees,
    ) -> Optional[int]:
        """Pool shares minted for a one-sided deposit; half the input pays trading fees."""
        if source_amount == 0:
            return 0
        half_source_amount = max(1, source_amount // 2)
        trade_fee = fees.trading_fee(half_source_amount)
        owner_fee = fees.owner_trading_fee(half_source_amount)
        total_fees = checked_add(trade_fee, owner_fee)
        if total_fees > source_amount:
            return None
        return self.calculator.deposit_single_token_type(
            source_amount - total_fees,
            swap_token_a_amount,
            swap_token_b_amount,
            pool_supply,
            trade_direction,
            RoundDirection.FLOOR,
        )

    def withdraw_single_token_type_exact_out(
        self,
        source_amount: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        pool_supply: int,
        trade_direction: TradeDirection,
        fees: Fees,
    ) -> Optional[int]:
        """Pool shares burned to take ``source_amount`` out; half the output is grossed up for fees."""
        if source_amount == 0:
            return 0
        half_source_amount = (source_amount + 1) // 2
        pre_fee_source_amount = fees.pre_trading_fee_amount(half_source_amount)
        source_amount = checked_add(source_amount - half_source_amount, pre_fee_source_amount)
        return self.calculator.withdraw_single_token_type_exact_out(
            source_amount,
            swap_token_a_amount,
            swap_token_b_amount,
            pool_supply,
            trade_direction,
            RoundDirection.CEILING,
        )

    def pack(self) -> bytes:
        params = self.calculator.pack_params()
        if len(params) != CURVE_PARAMS_LEN:
            raise ValueError("curve parameter block must be 32 bytes")
        return bytes([int(self.curve_type)]) + params

    @classmethod
    def read(cls, reader: ByteReader) -> "SwapCurve":
        tag = reader.u8()
        params = reader.take(CURVE_PARAMS_LEN)
        try:
            curve_type = CurveType(tag)
        except ValueError as exc:
            raise UnsupportedCurveType(f"unknown curve tag: {tag}") from exc
        calculator_cls = _CALCULATORS.get(curve_type)
        if calculator_cls is None:
            raise UnsupportedCurveType(f"curve type {curve_type.name} is not supported")
        return cls(curve_type, calculator_cls.unpack_params(params))

    @classmethod
    def unpack(cls, data: bytes) -> "SwapCurve":
        reader = ByteReader(data, error=InvalidInstruction)
        curve = cls.read(reader)
        reader.finish()
        return curve
