"""
Core swap algorithms
"""

from .calculator import (
    INITIAL_SWAP_POOL_AMOUNT,
    CurveType,
    TradeDirection,
    TradingTokenResult,
    SwapWithoutFeesResult,
)
from .checked_math import RoundDirection
from .constant_price import ConstantPriceCurve
from .constant_product import ConstantProductCurve
from .constraints import SwapConstraints
from .fees import Fees
from .offset import OffsetCurve
from .swap_curve import SwapCurve, SwapResult

__all__ = [
    "INITIAL_SWAP_POOL_AMOUNT",
    "CurveType",
    "TradeDirection",
    "TradingTokenResult",
    "SwapWithoutFeesResult",
    "RoundDirection",
    "ConstantPriceCurve",
    "ConstantProductCurve",
    "SwapConstraints",
    "Fees",
    "OffsetCurve",
    "SwapCurve",
    "SwapResult",
]
