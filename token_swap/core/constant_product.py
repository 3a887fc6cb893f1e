"""
Constant product curve: ``x * y = k``.

Swaps round through ``checked_ceil_div`` so the destination reserve is rounded
up and the source amount actually taken is tightened to match; the product of
the reserves therefore never decreases.

Single-sided conversions are exact integer forms of

    deposit:  shares = supply * (sqrt((R + s) / R) - 1)
    withdraw: shares = supply * (1 - sqrt((R - s) / R))

evaluated as ``isqrt`` of ``supply**2 * (R +/- s) / R`` in 256-bit width.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .calculator import (
    CurveCalculator,
    CurveType,
    SwapWithoutFeesResult,
    TradeDirection,
    TradingTokenResult,
    source_reserve,
)
from .checked_math import (
    RoundDirection,
    ceil_div,
    checked_add,
    checked_ceil_div,
    checked_div,
    checked_mul,
    checked_sub,
    div_round,
    isqrt_ceil,
    isqrt_floor,
)
from .errors import CalculationFailure, InvalidCurve

_WIDE = 256


def swap(
    source_amount: int,
    swap_source_amount: int,
    swap_destination_amount: int,
) -> Optional[SwapWithoutFeesResult]:
    """
    Constant product swap of ``source_amount`` into the pool.

    Returns ``None`` when the trade yields no destination tokens.
    """
    invariant = checked_mul(swap_source_amount, swap_destination_amount)
    new_swap_source_amount = checked_add(swap_source_amount, source_amount)
    new_swap_destination_amount, new_swap_source_amount = checked_ceil_div(
        invariant, new_swap_source_amount
    )
    if new_swap_source_amount < swap_source_amount:
        # Degenerate ceil-div: invariant smaller than the new source reserve.
        return None
    source_amount_swapped = checked_sub(new_swap_source_amount, swap_source_amount)
    destination_amount_swapped = checked_sub(swap_destination_amount, new_swap_destination_amount)
    if source_amount_swapped == 0 or destination_amount_swapped == 0:
        return None
    return SwapWithoutFeesResult(
        source_amount_swapped=source_amount_swapped,
        destination_amount_swapped=destination_amount_swapped,
    )


def pool_tokens_to_trading_tokens(
    pool_tokens: int,
    pool_token_supply: int,
    swap_token_a_amount: int,
    swap_token_b_amount: int,
    round_direction: RoundDirection,
) -> TradingTokenResult:
    """
    Proportional share of both reserves for ``pool_tokens``.

    Ceiling rounding never lifts a zero leg to 1: a dust share amount worth
    less than one token stays zero and is rejected downstream.
    """
    a_numerator = checked_mul(pool_tokens, swap_token_a_amount)
    b_numerator = checked_mul(pool_tokens, swap_token_b_amount)
    token_a_amount = checked_div(a_numerator, pool_token_supply)
    token_b_amount = checked_div(b_numerator, pool_token_supply)
    if round_direction is RoundDirection.CEILING:
        if a_numerator % pool_token_supply > 0 and token_a_amount > 0:
            token_a_amount += 1
        if b_numerator % pool_token_supply > 0 and token_b_amount > 0:
            token_b_amount += 1
    return TradingTokenResult(token_a_amount=token_a_amount, token_b_amount=token_b_amount)


def trading_tokens_to_pool_tokens(
    token_a_amount: int,
    token_b_amount: int,
    pool_token_supply: int,
    swap_token_a_amount: int,
    swap_token_b_amount: int,
    round_direction: RoundDirection,
) -> int:
    """Shares backed by a token pair: the smaller of the two per-leg share counts."""
    legs = []
    for amount, reserve in (
        (token_a_amount, swap_token_a_amount),
        (token_b_amount, swap_token_b_amount),
    ):
        if reserve == 0:
            continue
        legs.append(div_round(checked_mul(amount, pool_token_supply), reserve, round_direction))
    if not legs:
        raise CalculationFailure("both reserves are empty")
    return min(legs)


def deposit_single_token_type(
    source_amount: int,
    swap_source_amount: int,
    pool_supply: int,
    round_direction: RoundDirection,
) -> Optional[int]:
    if source_amount == 0:
        return 0
    if swap_source_amount == 0:
        return None
    supply_sq = checked_mul(pool_supply, pool_supply, bits=_WIDE)
    numerator = checked_mul(
        supply_sq, checked_add(swap_source_amount, source_amount, bits=_WIDE), bits=_WIDE
    )
    if round_direction is RoundDirection.FLOOR:
        root = isqrt_floor(numerator // swap_source_amount)
    else:
        root = isqrt_ceil(ceil_div(numerator, swap_source_amount, bits=_WIDE))
    return checked_sub(root, pool_supply)


def withdraw_single_token_type_exact_out(
    source_amount: int,
    swap_source_amount: int,
    pool_supply: int,
    round_direction: RoundDirection,
) -> Optional[int]:
    if source_amount == 0:
        return 0
    if swap_source_amount == 0 or source_amount > swap_source_amount:
        return None
    supply_sq = checked_mul(pool_supply, pool_supply, bits=_WIDE)
    numerator = checked_mul(
        supply_sq, checked_sub(swap_source_amount, source_amount, bits=_WIDE), bits=_WIDE
    )
    # Shares burned round opposite to the remaining-root rounding.
    if round_direction is RoundDirection.CEILING:
        root = isqrt_floor(numerator // swap_source_amount)
    else:
        root = isqrt_ceil(ceil_div(numerator, swap_source_amount, bits=_WIDE))
    return checked_sub(pool_supply, root)


@dataclass(frozen=True)
class ConstantProductCurve(CurveCalculator):
    curve_type = CurveType.CONSTANT_PRODUCT

    def swap_without_fees(
        self,
        source_amount: int,
        swap_source_amount: int,
        swap_destination_amount: int,
        trade_direction: TradeDirection,
    ) -> Optional[SwapWithoutFeesResult]:
        return swap(source_amount, swap_source_amount, swap_destination_amount)

    def pool_tokens_to_trading_tokens(
        self,
        pool_tokens: int,
        pool_token_supply: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        round_direction: RoundDirection,
    ) -> TradingTokenResult:
        return pool_tokens_to_trading_tokens(
            pool_tokens, pool_token_supply, swap_token_a_amount, swap_token_b_amount, round_direction
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
        return trading_tokens_to_pool_tokens(
            token_a_amount,
            token_b_amount,
            pool_token_supply,
            swap_token_a_amount,
            swap_token_b_amount,
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
        swap_source_amount = source_reserve(trade_direction, swap_token_a_amount, swap_token_b_amount)
        return deposit_single_token_type(source_amount, swap_source_amount, pool_supply, round_direction)

    def withdraw_single_token_type_exact_out(
        self,
        source_amount: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        pool_supply: int,
        trade_direction: TradeDirection,
        round_direction: RoundDirection,
    ) -> Optional[int]:
        swap_source_amount = source_reserve(trade_direction, swap_token_a_amount, swap_token_b_amount)
        return withdraw_single_token_type_exact_out(
            source_amount, swap_source_amount, pool_supply, round_direction
        )

    @classmethod
    def unpack_params(cls, params: bytes) -> "ConstantProductCurve":
        if any(params):
            raise InvalidCurve("constant product curve takes no parameters")
        return cls()
