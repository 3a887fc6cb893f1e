"""
Offset curve: constant product with a virtual ``token_b_offset`` added to the
B reserve.

The offset lets a pool launch with only token A funded. Because the virtual B
balance cannot be matched by depositors, deposits are not supported;
withdrawals and swaps are.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..state.canonical import ByteReader, encode_u64
from . import constant_product
from .calculator import (
    CURVE_PARAMS_LEN,
    CurveCalculator,
    CurveType,
    SwapWithoutFeesResult,
    TradeDirection,
    TradingTokenResult,
    source_reserve,
)
from .checked_math import RoundDirection, checked_add
from .errors import EmptySupply, InvalidCurve


@dataclass(frozen=True)
class OffsetCurve(CurveCalculator):
    token_b_offset: int

    curve_type = CurveType.OFFSET

    def __post_init__(self) -> None:
        if not isinstance(self.token_b_offset, int) or isinstance(self.token_b_offset, bool):
            raise TypeError("token_b_offset must be an int")
        if not (0 <= self.token_b_offset < (1 << 64)):
            raise ValueError(f"token_b_offset must fit in u64: {self.token_b_offset}")

    def _offset_b(self, swap_token_b_amount: int) -> int:
        return checked_add(swap_token_b_amount, self.token_b_offset)

    def swap_without_fees(
        self,
        source_amount: int,
        swap_source_amount: int,
        swap_destination_amount: int,
        trade_direction: TradeDirection,
    ) -> Optional[SwapWithoutFeesResult]:
        if trade_direction is TradeDirection.A_TO_B:
            swap_destination_amount = self._offset_b(swap_destination_amount)
        else:
            swap_source_amount = self._offset_b(swap_source_amount)
        return constant_product.swap(source_amount, swap_source_amount, swap_destination_amount)

    def pool_tokens_to_trading_tokens(
        self,
        pool_tokens: int,
        pool_token_supply: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        round_direction: RoundDirection,
    ) -> TradingTokenResult:
        return constant_product.pool_tokens_to_trading_tokens(
            pool_tokens,
            pool_token_supply,
            swap_token_a_amount,
            self._offset_b(swap_token_b_amount),
            round_direction,
        )

    def trading_tokens_to_pool_tokens(
        self,
        token_a_amount: int,
        token_b_amount: int,
        pool_token_supply: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        round_direction: RoundDirection,
    ) -> int:
        return constant_product.trading_tokens_to_pool_tokens(
            token_a_amount,
            token_b_amount,
            pool_token_supply,
            swap_token_a_amount,
            self._offset_b(swap_token_b_amount),
            round_direction,
        )

    def deposit_single_token_type(
        self,
        source_amount: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        pool_supply: int,
        trade_direction: TradeDirection,
        round_direction: RoundDirection,
    ) -> Optional[int]:
        swap_source_amount = source_reserve(
            trade_direction, swap_token_a_amount, self._offset_b(swap_token_b_amount)
        )
        return constant_product.deposit_single_token_type(
            source_amount, swap_source_amount, pool_supply, round_direction
        )

    def withdraw_single_token_type_exact_out(
        self,
        source_amount: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        pool_supply: int,
        trade_direction: TradeDirection,
        round_direction: RoundDirection,
    ) -> Optional[int]:
        swap_source_amount = source_reserve(
            trade_direction, swap_token_a_amount, self._offset_b(swap_token_b_amount)
        )
        return constant_product.withdraw_single_token_type_exact_out(
            source_amount, swap_source_amount, pool_supply, round_direction
        )

    def validate(self) -> None:
        if self.token_b_offset == 0:
            raise InvalidCurve("token_b_offset must be non-zero")

    def validate_supply(self, token_a_amount: int, token_b_amount: int) -> None:
        if token_a_amount == 0:
            raise EmptySupply("token A reserve is empty")

    def allows_deposits(self) -> bool:
        return False

    def pack_params(self) -> bytes:
        return encode_u64(self.token_b_offset) + bytes(CURVE_PARAMS_LEN - 8)

    @classmethod
    def unpack_params(cls, params: bytes) -> "OffsetCurve":
        if any(params[8:]):
            raise InvalidCurve("offset curve parameters carry non-zero padding")
        reader = ByteReader(params[:8], error=InvalidCurve)
        return cls(token_b_offset=reader.u64())
