"""
Shared contract for pool price curves.

A curve maps reserve balances to trade outputs and converts between pool
shares and trading tokens. Curves are pure: they never see fees (those are
layered on by ``swap_curve.SwapCurve``) and never touch the ledger.

All curve arithmetic runs on unbounded Python ints but is width-checked via
``checked_math``; a computed zero trade is reported as ``None`` so callers can
surface ``ZeroTradingTokens``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, unique
from typing import Optional

from .checked_math import RoundDirection
from .errors import EmptySupply

# Pool shares minted to the initial depositor at pool creation.
INITIAL_SWAP_POOL_AMOUNT = 1_000_000_000

CURVE_PARAMS_LEN = 32


@unique
class CurveType(IntEnum):
    """Tag byte of the persisted curve block."""
    CONSTANT_PRODUCT = 0
    CONSTANT_PRICE = 1
    STABLE = 2
    OFFSET = 3


@unique
class TradeDirection(Enum):
    A_TO_B = "a_to_b"
    B_TO_A = "b_to_a"


@dataclass(frozen=True)
class SwapWithoutFeesResult:
    source_amount_swapped: int
    destination_amount_swapped: int


@dataclass(frozen=True)
class TradingTokenResult:
    token_a_amount: int
    token_b_amount: int


def source_reserve(
    trade_direction: TradeDirection, swap_token_a_amount: int, swap_token_b_amount: int
) -> int:
    if trade_direction is TradeDirection.A_TO_B:
        return swap_token_a_amount
    return swap_token_b_amount


class CurveCalculator:
    """
    Base class for curve variants.

    Subclasses provide the swap and share-conversion math; validation hooks
    default to the constant-product behaviour (both reserves funded, any
    parameters accepted, deposits allowed).
    """

    curve_type: CurveType

    def swap_without_fees(
        self,
        source_amount: int,
        swap_source_amount: int,
        swap_destination_amount: int,
        trade_direction: TradeDirection,
    ) -> Optional[SwapWithoutFeesResult]:
        raise NotImplementedError

    def pool_tokens_to_trading_tokens(
        self,
        pool_tokens: int,
        pool_token_supply: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        round_direction: RoundDirection,
    ) -> TradingTokenResult:
        raise NotImplementedError

    def trading_tokens_to_pool_tokens(
        self,
        token_a_amount: int,
        token_b_amount: int,
        pool_token_supply: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        round_direction: RoundDirection,
    ) -> int:
        """Pool shares backed by a proportional ``(token_a_amount, token_b_amount)`` pair."""
        raise NotImplementedError

    def deposit_single_token_type(
        self,
        source_amount: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        pool_supply: int,
        trade_direction: TradeDirection,
        round_direction: RoundDirection,
    ) -> Optional[int]:
        raise NotImplementedError

    def withdraw_single_token_type_exact_out(
        self,
        source_amount: int,
        swap_token_a_amount: int,
        swap_token_b_amount: int,
        pool_supply: int,
        trade_direction: TradeDirection,
        round_direction: RoundDirection,
    ) -> Optional[int]:
        raise NotImplementedError

    def validate(self) -> None:
        return None

    def validate_supply(self, token_a_amount: int, token_b_amount: int) -> None:
        if token_a_amount == 0:
            raise EmptySupply("token A reserve is empty")
        if token_b_amount == 0:
            raise EmptySupply("token B reserve is empty")

    def allows_deposits(self) -> bool:
        return True

    def new_pool_supply(self) -> int:
        return INITIAL_SWAP_POOL_AMOUNT

    def pack_params(self) -> bytes:
        return bytes(CURVE_PARAMS_LEN)

    @classmethod
    def unpack_params(cls, params: bytes) -> "CurveCalculator":
        raise NotImplementedError
