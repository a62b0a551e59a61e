"""
Swap Module

Exact-input swap quotes against decoded bin arrays.
"""

import logging
from typing import Iterable, List, Optional

from ..config import Config, config as default_config
from ..protocols.meteora.bitmap import (
    find_next_bin_array_index_with_liquidity,
    get_bin_array_indexes_for_swap,
)
from ..protocols.meteora.swap import swap_quote
from ..types import BinArray, BinArrayBitmapExtension, LbPair, SwapQuote

logger = logging.getLogger(__name__)


class SwapModule:
    """
    Swap quote module for DLMM pools

    Usage:
        swap = SwapModule()

        # Which bin arrays the caller should fetch
        indexes = swap.bin_array_indexes(lb_pair, swap_for_y=True)

        # Quote 1_000_000 of token X for token Y with 0.5% slippage
        quote = swap.quote(lb_pair, bin_arrays, 1_000_000, swap_for_y=True, slippage_bps=50)
        print(quote.out_amount, quote.min_out_amount, quote.price_impact)
    """

    def __init__(self, config: Optional[Config] = None):
        self._config = config or default_config

    def quote(
        self,
        lb_pair: LbPair,
        bin_arrays: Iterable[BinArray],
        in_amount: int,
        swap_for_y: bool,
        slippage_bps: Optional[int] = None,
        extension: Optional[BinArrayBitmapExtension] = None,
        current_timestamp: Optional[int] = None,
    ) -> SwapQuote:
        """
        Quote an exact-input swap

        Args:
            lb_pair: Pool snapshot
            bin_arrays: Bin arrays available to the walk
            in_amount: Input amount (raw)
            swap_for_y: True for X -> Y
            slippage_bps: Slippage tolerance (uses config default if None)
            extension: Bitmap extension, if the pool has one
            current_timestamp: Unix seconds (defaults to the local clock)

        Returns:
            SwapQuote
        """
        if slippage_bps is None:
            slippage_bps = self._config.quote.default_slippage_bps

        quote = swap_quote(
            lb_pair,
            bin_arrays,
            in_amount,
            swap_for_y,
            slippage_bps,
            extension=extension,
            current_timestamp=current_timestamp,
        )
        logger.info(f"Quote {lb_pair!r} swap_for_y={swap_for_y}: {quote}")
        return quote

    def next_bin_array_index(
        self,
        lb_pair: LbPair,
        swap_for_y: bool,
        active_id: Optional[int] = None,
        extension: Optional[BinArrayBitmapExtension] = None,
    ) -> Optional[int]:
        """Nearest bin array with liquidity from ``active_id`` (defaults to the pool's)"""
        if active_id is None:
            active_id = lb_pair.active_id
        return find_next_bin_array_index_with_liquidity(swap_for_y, active_id, lb_pair, extension)

    def bin_array_indexes(
        self,
        lb_pair: LbPair,
        swap_for_y: bool,
        extension: Optional[BinArrayBitmapExtension] = None,
        count: Optional[int] = None,
    ) -> List[int]:
        """Bin array indexes a swap would walk through, nearest first"""
        if count is None:
            count = self._config.quote.swap_bin_array_count
        return get_bin_array_indexes_for_swap(lb_pair, extension, swap_for_y, count)
