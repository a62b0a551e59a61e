"""
Error definitions for DLMM Core
"""

from .exceptions import (
    ErrorCode,
    DlmmError,
    InsufficientLiquidity,
    InvalidStartBin,
    MissingBinArray,
    NoLiquidityToAdd,
    DiscontinuousRange,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "DlmmError",
    "InsufficientLiquidity",
    "InvalidStartBin",
    "MissingBinArray",
    "NoLiquidityToAdd",
    "DiscontinuousRange",
    "ConfigurationError",
]
