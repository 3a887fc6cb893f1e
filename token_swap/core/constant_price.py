"""
Constant price curve: one token B is always worth ``token_b_price`` token A.

Reserves do not move the price. The proportional share value of a pool is
its normalized value ``(A + B * price) / 2`` so a full-supply withdrawal
returns half the value in each token.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..state.canonical import ByteReader, encode_u64
from .calculator import (
    CURVE_PARAMS_LEN,
    CurveCalculator,
    CurveType,
    SwapWithoutFeesResult,
    TradeDirection,
    TradingTokenResult,
)
from .checked_math import (
    RoundDirection,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    div_round,
)
from .errors import InvalidCurve

_WIDE = 256


@dataclass(frozen=True)
class ConstantPriceCurve(CurveCalculator):
    token_b_price: int

    curve_type = CurveType.CONSTANT_PRICE

    def __post_init__(self) -> None:
        if not isinstance(self.token_b_price, int) or isinstance(self.token_b_price, bool):
            raise TypeError("token_b_price must be an int")
        if not (0 <= self.token_b_price < (1 << 64)):
            raise ValueError(f"token_b_price must fit in u64: {self.token_b_price}")

    def _total_value(self, swap_token_a_amount: int, swap_token_b_amount: int) -> int:
        return checked_add(
            checked_mul(swap_token_b_amount, self.token_b_price), swap_token_a_amount
        )

    def swap_without_fees(
        self,
        source_amount: int,
        swap_source_amount: int,
        swap_destination_amount: int,
        trade_direction: TradeDirection,
    ) -> Optional[SwapWithoutFeesResult]:
        if trade_direction is TradeDirection.B_TO_A:
            source_amount_swapped = source_amount
            destination_amount_swapped = checked_mul(source_amount, self.token_b_price)
        else:
            destination_amount_swapped = checked_div(source_amount, self.token_b_price)
            # Only whole units of B are bought; the A remainder is not taken.
            source_amount_swapped = checked_sub(source_amount, source_amount % self.token_b_price)
        if source_amount_swapped == 0 or destination_amount_swapped == 0:
            return None
        return SwapWithoutFeesResult(
            source_amount_swapped=source_amount_swapped,
            destination_amount_swapped=destination_amount_swapped,
        )

    def pool_tokens_to_trading_tokens(
        self,
        pool_tokens: int,
        pool_token_supply: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        round_direction: RoundDirection,
    ) -> TradingTokenResult:
        total_value = self._total_value(swap_token_a_amount, swap_token_b_amount)
        numerator = checked_mul(pool_tokens, total_value)
        # normalized value is total_value / 2, folded into the denominators
        a_denominator = checked_mul(pool_token_supply, 2)
        b_denominator = checked_mul(a_denominator, self.token_b_price)
        return TradingTokenResult(
            token_a_amount=div_round(numerator, a_denominator, round_direction),
            token_b_amount=div_round(numerator, b_denominator, round_direction),
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
        total_value = self._total_value(swap_token_a_amount, swap_token_b_amount)
        scaled_supply = checked_mul(pool_token_supply, 2)
        from_a = div_round(checked_mul(token_a_amount, scaled_supply), total_value, round_direction)
        from_b = div_round(
            checked_mul(checked_mul(token_b_amount, self.token_b_price), scaled_supply),
            total_value,
            round_direction,
        )
        return min(from_a, from_b)

    def _value_to_pool_tokens(
        self,
        source_amount: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        pool_supply: int,
        trade_direction: TradeDirection,
        round_direction: RoundDirection,
    ) -> int:
        if trade_direction is TradeDirection.A_TO_B:
            given_value = source_amount
        else:
            given_value = checked_mul(source_amount, self.token_b_price, bits=_WIDE)
        total_value = self._total_value(swap_token_a_amount, swap_token_b_amount)
        return div_round(
            checked_mul(pool_supply, given_value, bits=_WIDE), total_value, round_direction, bits=_WIDE
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
        return self._value_to_pool_tokens(
            source_amount,
            swap_token_a_amount,
            swap_token_b_amount,
            pool_supply,
            trade_direction,
            round_direction,
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
        return self._value_to_pool_tokens(
            source_amount,
            swap_token_a_amount,
            swap_token_b_amount,
            pool_supply,
            trade_direction,
            round_direction,
        )

    def validate(self) -> None:
        if self.token_b_price == 0:
            raise InvalidCurve("token_b_price must be non-zero")

    def pack_params(self) -> bytes:
        return encode_u64(self.token_b_price) + bytes(CURVE_PARAMS_LEN - 8)

    @classmethod
    def unpack_params(cls, params: bytes) -> "ConstantPriceCurve":
        if any(params[8:]):
            raise InvalidCurve("constant price curve parameters carry non-zero padding")
        reader = ByteReader(params[:8], error=InvalidCurve)
        return cls(token_b_price=reader.u64())
