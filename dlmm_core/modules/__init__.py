"""
Functional modules for DLMM Core

Provides high-level operations over decoded pool state:
- MarketModule: Bin prices, fee read-outs, emission rates
- SwapModule: Swap quotes and bin array lookup
- LiquidityModule: Position accruals and deposit planning
"""

from .market import MarketModule
from .swap import SwapModule
from .liquidity import LiquidityModule

__all__ = [
    "MarketModule",
    "SwapModule",
    "LiquidityModule",
]
