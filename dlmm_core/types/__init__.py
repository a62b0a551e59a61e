"""
Type definitions for DLMM Core
"""

from .pool import LbPair, StaticParameters, VariableParameters, RewardInfo
from .bin_array import Bin, BinArray, BinArrayBitmapExtension
from .position import (
    PositionVersion,
    PositionFeeInfo,
    PositionRewardInfo,
    PositionState,
    PositionBinData,
    PositionData,
)
from .price import PriceRange, RangeMode
from .result import (
    BinSwapResult,
    SwapQuote,
    SwapFee,
    LMRewards,
    FeeInfo,
    EmissionRate,
    BinLiquidity,
    BinAndAmount,
    BinLiquidityDistributionByWeight,
    BinAllocation,
)

__all__ = [
    # Ledger records
    "LbPair",
    "StaticParameters",
    "VariableParameters",
    "RewardInfo",
    "Bin",
    "BinArray",
    "BinArrayBitmapExtension",
    "PositionVersion",
    "PositionFeeInfo",
    "PositionRewardInfo",
    "PositionState",
    # Ranges
    "PriceRange",
    "RangeMode",
    # Results
    "BinSwapResult",
    "SwapQuote",
    "SwapFee",
    "LMRewards",
    "FeeInfo",
    "EmissionRate",
    "BinLiquidity",
    "BinAndAmount",
    "BinLiquidityDistributionByWeight",
    "BinAllocation",
    "PositionBinData",
    "PositionData",
]
