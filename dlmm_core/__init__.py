"""
DLMM Core

Pricing and accounting for discretized liquidity market maker pools:
exact swap quotes with the dynamic fee, and position reserves, fees and
rewards reconstructed from decoded ledger records.

Usage:
    from dlmm_core import SwapModule, LiquidityModule

    quote = SwapModule().quote(lb_pair, bin_arrays, 1_000_000, swap_for_y=True)
    fees = LiquidityModule().claimable_fees(position, lower_bin_array, upper_bin_array)
"""

from .config import Config, config, get_config, reload_config, setup_logging, enable_file_logging
from .errors import (
    ErrorCode,
    DlmmError,
    InsufficientLiquidity,
    InvalidStartBin,
    MissingBinArray,
    NoLiquidityToAdd,
    DiscontinuousRange,
    ConfigurationError,
)
from .modules import MarketModule, SwapModule, LiquidityModule
from .types import *  # noqa: F401,F403
from .types import __all__ as _types_all

__version__ = "0.1.0"

__all__ = [
    "Config",
    "config",
    "get_config",
    "reload_config",
    "setup_logging",
    "enable_file_logging",
    "ErrorCode",
    "DlmmError",
    "InsufficientLiquidity",
    "InvalidStartBin",
    "MissingBinArray",
    "NoLiquidityToAdd",
    "DiscontinuousRange",
    "ConfigurationError",
    "MarketModule",
    "SwapModule",
    "LiquidityModule",
] + list(_types_all)
