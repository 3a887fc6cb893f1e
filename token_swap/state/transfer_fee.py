"""
Ledger-level transfer fees.

Some mints withhold a fee on every transfer: ``min(ceil(amount * bps / 10_000),
maximum_fee)``, with a scheduled change taking effect at a given epoch. The
fee is withheld from what the destination receives; the sender is debited the
full amount.
"""

from __future__ import annotations

from dataclasses import dataclass

ONE_IN_BASIS_POINTS = 10_000


@dataclass(frozen=True)
class TransferFee:
    epoch: int
    maximum_fee: int
    transfer_fee_basis_points: int

    def __post_init__(self) -> None:
        for name in ("epoch", "maximum_fee", "transfer_fee_basis_points"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or v < 0:
                raise ValueError(f"{name} must be a non-negative int")
        if self.transfer_fee_basis_points > ONE_IN_BASIS_POINTS:
            raise ValueError("transfer_fee_basis_points must be <= 10000")

    def calculate_fee(self, pre_fee_amount: int) -> int:
        bps = self.transfer_fee_basis_points
        if bps == 0 or pre_fee_amount == 0:
            return 0
        raw_fee = -(-(pre_fee_amount * bps) // ONE_IN_BASIS_POINTS)
        return min(raw_fee, self.maximum_fee)

    def calculate_pre_fee_amount(self, post_fee_amount: int) -> int:
        """Smallest amount that still delivers ``post_fee_amount`` after the fee."""
        bps = self.transfer_fee_basis_points
        if bps == 0:
            return post_fee_amount
        if post_fee_amount == 0:
            return 0
        if bps == ONE_IN_BASIS_POINTS:
            return post_fee_amount + self.maximum_fee
        numerator = post_fee_amount * ONE_IN_BASIS_POINTS
        denominator = ONE_IN_BASIS_POINTS - bps
        raw_pre_fee_amount = -(-numerator // denominator)
        if raw_pre_fee_amount - post_fee_amount >= self.maximum_fee:
            return post_fee_amount + self.maximum_fee
        return raw_pre_fee_amount

    def calculate_inverse_fee(self, post_fee_amount: int) -> int:
        return self.calculate_fee(self.calculate_pre_fee_amount(post_fee_amount))


@dataclass(frozen=True)
class TransferFeeConfig:
    older_transfer_fee: TransferFee
    newer_transfer_fee: TransferFee

    @classmethod
    def flat(cls, transfer_fee_basis_points: int, maximum_fee: int) -> "TransferFeeConfig":
        fee = TransferFee(epoch=0, maximum_fee=maximum_fee, transfer_fee_basis_points=transfer_fee_basis_points)
        return cls(older_transfer_fee=fee, newer_transfer_fee=fee)

    def get_epoch_fee(self, epoch: int) -> TransferFee:
        if epoch >= self.newer_transfer_fee.epoch:
            return self.newer_transfer_fee
        return self.older_transfer_fee

    def calculate_epoch_fee(self, epoch: int, pre_fee_amount: int) -> int:
        return self.get_epoch_fee(epoch).calculate_fee(pre_fee_amount)

    def calculate_inverse_epoch_fee(self, epoch: int, post_fee_amount: int) -> int:
        return self.get_epoch_fee(epoch).calculate_inverse_fee(post_fee_amount)
