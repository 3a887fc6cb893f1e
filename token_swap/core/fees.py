"""
Pool fee schedule (deterministic, integer-only).

Four fee fractions apply to a pool:
- trade fee: taken from the input of every swap and left in the reserves
  for liquidity providers,
- owner trade fee: taken from the input of every swap and minted to the fee
  collector as pool shares,
- owner withdraw fee: pool shares skimmed on every withdrawal,
- host fee: the slice of the owner trade fee routed to a front-end host.

A fraction is either ``0/0`` (disabled) or ``num/den`` with ``den > 0`` and
``num <= den``. Every non-zero fee on a non-zero amount is at least 1.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..state.canonical import ByteReader, encode_u64
from .checked_math import ceil_div, checked_add, checked_div, checked_mul, checked_sub
from .errors import CalculationFailure, FeeCalculationFailure, InvalidFee, InvalidInstruction

FEES_LEN = 64

_FIELDS = (
    "trade_fee_numerator",
    "trade_fee_denominator",
    "owner_trade_fee_numerator",
    "owner_trade_fee_denominator",
    "owner_withdraw_fee_numerator",
    "owner_withdraw_fee_denominator",
    "host_fee_numerator",
    "host_fee_denominator",
)


def calculate_fee(token_amount: int, fee_numerator: int, fee_denominator: int) -> int:
    """``floor(amount * num / den)``, bumped to 1 when it would round to zero."""
    if fee_numerator == 0 or token_amount == 0:
        return 0
    try:
        fee = checked_div(checked_mul(token_amount, fee_numerator), fee_denominator)
    except CalculationFailure as exc:
        raise FeeCalculationFailure(str(exc)) from exc
    return 1 if fee == 0 else fee


def pre_fee_amount(post_fee_amount: int, fee_numerator: int, fee_denominator: int) -> int:
    """Smallest gross amount that still nets ``post_fee_amount`` after the fee."""
    if fee_numerator == 0 or fee_denominator == 0:
        return post_fee_amount
    if fee_numerator == fee_denominator or post_fee_amount == 0:
        return 0
    try:
        numerator = checked_mul(post_fee_amount, fee_denominator)
        denominator = checked_sub(fee_denominator, fee_numerator)
        return ceil_div(numerator, denominator)
    except CalculationFailure as exc:
        raise FeeCalculationFailure(str(exc)) from exc


def _validate_fraction(name: str, numerator: int, denominator: int) -> None:
    if denominator == 0 and numerator == 0:
        return
    if denominator == 0:
        raise InvalidFee(f"{name}: zero denominator with non-zero numerator")
    if numerator > denominator:
        raise InvalidFee(f"{name}: numerator {numerator} exceeds denominator {denominator}")


@dataclass(frozen=True)
class Fees:
    trade_fee_numerator: int = 0
    trade_fee_denominator: int = 0
    owner_trade_fee_numerator: int = 0
    owner_trade_fee_denominator: int = 0
    owner_withdraw_fee_numerator: int = 0
    owner_withdraw_fee_denominator: int = 0
    host_fee_numerator: int = 0
    host_fee_denominator: int = 0

    def __post_init__(self) -> None:
        for name in _FIELDS:
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v < (1 << 64)):
                raise ValueError(f"{name} must fit in u64: {v}")

    def validate(self) -> None:
        _validate_fraction("trade fee", self.trade_fee_numerator, self.trade_fee_denominator)
        _validate_fraction(
            "owner trade fee", self.owner_trade_fee_numerator, self.owner_trade_fee_denominator
        )
        _validate_fraction(
            "owner withdraw fee",
            self.owner_withdraw_fee_numerator,
            self.owner_withdraw_fee_denominator,
        )
        _validate_fraction("host fee", self.host_fee_numerator, self.host_fee_denominator)

    def trading_fee(self, trading_tokens: int) -> int:
        return calculate_fee(trading_tokens, self.trade_fee_numerator, self.trade_fee_denominator)

    def owner_trading_fee(self, trading_tokens: int) -> int:
        return calculate_fee(
            trading_tokens, self.owner_trade_fee_numerator, self.owner_trade_fee_denominator
        )

    def owner_withdraw_fee(self, pool_tokens: int) -> int:
        return calculate_fee(
            pool_tokens, self.owner_withdraw_fee_numerator, self.owner_withdraw_fee_denominator
        )

    def host_fee(self, owner_fee: int) -> int:
        return calculate_fee(owner_fee, self.host_fee_numerator, self.host_fee_denominator)

    def pre_trading_fee_amount(self, post_fee_amount: int) -> int:
        """
        Gross amount needed so that, after trade and owner fees, ``post_fee_amount``
        remains. When both fees are active the two fractions are combined over a
        common denominator.
        """
        if self.trade_fee_numerator == 0 or self.trade_fee_denominator == 0:
            return pre_fee_amount(
                post_fee_amount, self.owner_trade_fee_numerator, self.owner_trade_fee_denominator
            )
        if self.owner_trade_fee_numerator == 0 or self.owner_trade_fee_denominator == 0:
            return pre_fee_amount(
                post_fee_amount, self.trade_fee_numerator, self.trade_fee_denominator
            )
        try:
            numerator = checked_add(
                checked_mul(self.trade_fee_numerator, self.owner_trade_fee_denominator),
                checked_mul(self.owner_trade_fee_numerator, self.trade_fee_denominator),
            )
            denominator = checked_mul(self.trade_fee_denominator, self.owner_trade_fee_denominator)
        except CalculationFailure as exc:
            raise FeeCalculationFailure(str(exc)) from exc
        return pre_fee_amount(post_fee_amount, numerator, denominator)

    def pack(self) -> bytes:
        return b"".join(encode_u64(getattr(self, name)) for name in _FIELDS)

    @classmethod
    def read(cls, reader: ByteReader) -> "Fees":
        return cls(*(reader.u64() for _ in _FIELDS))

    @classmethod
    def unpack(cls, data: bytes) -> "Fees":
        reader = ByteReader(data, error=InvalidInstruction)
        fees = cls.read(reader)
        reader.finish()
        return fees
