"""
Operator constraints on pool creation.

A deployment may pin who collects owner fees, which curves may be used and
the minimum fee schedule. Constraints are checked once, at Initialize.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..state.canonical import Address, canonical_address
from .calculator import CurveType
from .errors import InvalidFee, InvalidOwner, UnsupportedCurveType
from .fees import Fees
from .swap_curve import SwapCurve


@dataclass(frozen=True)
class SwapConstraints:
    owner_key: Address
    valid_curve_types: Tuple[CurveType, ...]
    fees: Fees

    def __post_init__(self) -> None:
        object.__setattr__(self, "owner_key", canonical_address(self.owner_key, name="owner_key"))
        curve_types = tuple(CurveType(int(c)) for c in self.valid_curve_types)
        if not curve_types:
            raise ValueError("valid_curve_types must not be empty")
        object.__setattr__(self, "valid_curve_types", curve_types)
        if not isinstance(self.fees, Fees):
            raise TypeError("fees must be a Fees")

    def validate_owner(self, fee_account_owner: Address) -> None:
        if canonical_address(fee_account_owner) != self.owner_key:
            raise InvalidOwner("fee account is not owned by the constrained owner key")

    def validate_curve(self, swap_curve: SwapCurve) -> None:
        if swap_curve.curve_type not in self.valid_curve_types:
            raise UnsupportedCurveType(f"curve type {swap_curve.curve_type.name} is not allowed")

    def validate_fees(self, fees: Fees) -> None:
        """Each owner-side fee must be at least the floor; the host split must match exactly."""
        floor = self.fees
        ok = (
            fees.trade_fee_numerator >= floor.trade_fee_numerator
            and fees.trade_fee_denominator == floor.trade_fee_denominator
            and fees.owner_trade_fee_numerator >= floor.owner_trade_fee_numerator
            and fees.owner_trade_fee_denominator == floor.owner_trade_fee_denominator
            and fees.owner_withdraw_fee_numerator >= floor.owner_withdraw_fee_numerator
            and fees.owner_withdraw_fee_denominator == floor.owner_withdraw_fee_denominator
            and fees.host_fee_numerator == floor.host_fee_numerator
            and fees.host_fee_denominator == floor.host_fee_denominator
        )
        if not ok:
            raise InvalidFee("fees do not satisfy the configured constraints")
