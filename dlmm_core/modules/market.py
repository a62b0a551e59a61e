"""
Market Module

Price and fee queries for a DLMM pool snapshot.
"""

import logging
from decimal import Decimal
from typing import Optional, Tuple

from ..config import Config, config as default_config
from ..protocols.meteora.fee import get_dynamic_fee, get_emission_rate, get_fee_info
from ..protocols.meteora.math import (
    from_price_per_lamport,
    get_bin_id_from_price,
    get_price_of_bin_by_bin_id,
    to_price_per_lamport,
)
from ..types import EmissionRate, FeeInfo, LbPair, PriceRange

logger = logging.getLogger(__name__)


class MarketModule:
    """
    Market data module for DLMM pools

    Usage:
        market = MarketModule()

        price = market.price_of_bin(bin_step=10, bin_id=100)
        bin_id = market.bin_id_from_price(bin_step=10, price=price, round_down=True)
        fee = market.dynamic_fee(lb_pair)
        lower, upper = market.bin_range(lb_pair, PriceRange.percent(0.01))
    """

    def __init__(self, config: Optional[Config] = None):
        self._config = config or default_config

    def _decimals(self, decimals_x: Optional[int], decimals_y: Optional[int]) -> Tuple[int, int]:
        liquidity = self._config.liquidity
        if decimals_x is None:
            decimals_x = liquidity.default_token_x_decimals
        if decimals_y is None:
            decimals_y = liquidity.default_token_y_decimals
        return decimals_x, decimals_y

    def price_of_bin(self, bin_step: int, bin_id: int) -> Decimal:
        """Price per lamport of a bin"""
        return get_price_of_bin_by_bin_id(bin_step, bin_id)

    def bin_id_from_price(self, bin_step: int, price, round_down: bool = True) -> int:
        """Bin id for a price per lamport"""
        return get_bin_id_from_price(bin_step, price, round_down)

    def price_per_token(
        self,
        bin_step: int,
        bin_id: int,
        decimals_x: Optional[int] = None,
        decimals_y: Optional[int] = None,
    ) -> Decimal:
        """Price of a bin adjusted for token decimals"""
        decimals_x, decimals_y = self._decimals(decimals_x, decimals_y)
        return from_price_per_lamport(get_price_of_bin_by_bin_id(bin_step, bin_id), decimals_x, decimals_y)

    def bin_id_from_price_per_token(
        self,
        bin_step: int,
        price,
        round_down: bool = True,
        decimals_x: Optional[int] = None,
        decimals_y: Optional[int] = None,
    ) -> int:
        """Bin id for a per-token price"""
        decimals_x, decimals_y = self._decimals(decimals_x, decimals_y)
        return get_bin_id_from_price(bin_step, to_price_per_lamport(price, decimals_x, decimals_y), round_down)

    def active_price(self, lb_pair: LbPair) -> Decimal:
        """Price per lamport of the pool's active bin"""
        return get_price_of_bin_by_bin_id(lb_pair.bin_step, lb_pair.active_id)

    def bin_range(self, lb_pair: LbPair, price_range: PriceRange) -> Tuple[int, int]:
        """Resolve a price range around the active bin to bin ids"""
        lower_bin_id, upper_bin_id = price_range.to_bin_range(lb_pair.active_id, lb_pair.bin_step)
        logger.debug(f"{price_range} -> bins [{lower_bin_id}, {upper_bin_id}]")
        return lower_bin_id, upper_bin_id

    def fee_info(self, lb_pair: LbPair) -> FeeInfo:
        return get_fee_info(lb_pair)

    def dynamic_fee(self, lb_pair: LbPair, current_timestamp: Optional[int] = None) -> Decimal:
        return get_dynamic_fee(lb_pair, current_timestamp)

    def emission_rate(self, lb_pair: LbPair, current_timestamp: Optional[int] = None) -> EmissionRate:
        return get_emission_rate(lb_pair, current_timestamp)
