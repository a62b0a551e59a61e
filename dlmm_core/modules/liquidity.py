"""
Liquidity Module

Position accruals and deposit planning for DLMM pools.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import Config, config as default_config
from ..protocols.meteora.distribution import (
    calculate_distribution,
    plan_distribution,
    to_weight_distribution,
)
from ..protocols.meteora.position import (
    get_bins_between_lower_and_upper_bound,
    get_claimable_lm_reward,
    get_claimable_swap_fee,
    process_position,
)
from ..protocols.meteora.constants import StrategyType
from ..types import (
    BinAllocation,
    BinAndAmount,
    BinArray,
    BinLiquidity,
    BinLiquidityDistributionByWeight,
    LbPair,
    LMRewards,
    PositionData,
    PositionState,
    PriceRange,
    SwapFee,
)

logger = logging.getLogger(__name__)


class LiquidityModule:
    """
    Liquidity module for DLMM positions

    Usage:
        liquidity = LiquidityModule()

        fees = liquidity.claimable_fees(position, lower_bin_array, upper_bin_array)
        rewards = liquidity.claimable_rewards(lb_pair, position, lower_bin_array, upper_bin_array)
        data = liquidity.position(lb_pair, position, lower_bin_array, upper_bin_array)

        # Plan a spot deposit over +/- 1% around the active bin
        shape = liquidity.strategy_distribution(lb_pair, PriceRange.percent(0.01), StrategyType.SPOT)
        allocations = liquidity.plan_distribution(1_000_000, 2_000_000, shape, lb_pair.bin_step)
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

    def claimable_fees(
        self,
        position: PositionState,
        lower_bin_array: Optional[BinArray],
        upper_bin_array: Optional[BinArray] = None,
    ) -> SwapFee:
        return get_claimable_swap_fee(position, lower_bin_array, upper_bin_array)

    def claimable_rewards(
        self,
        lb_pair: LbPair,
        position: PositionState,
        lower_bin_array: Optional[BinArray],
        upper_bin_array: Optional[BinArray] = None,
        current_timestamp: Optional[int] = None,
    ) -> LMRewards:
        return get_claimable_lm_reward(lb_pair, position, current_timestamp, lower_bin_array, upper_bin_array)

    def position(
        self,
        lb_pair: LbPair,
        position: PositionState,
        lower_bin_array: Optional[BinArray],
        upper_bin_array: Optional[BinArray] = None,
        current_timestamp: Optional[int] = None,
        decimals_x: Optional[int] = None,
        decimals_y: Optional[int] = None,
    ) -> PositionData:
        """
        Full breakdown of a position: per-bin holdings, fees and rewards

        Args:
            lb_pair: Pool snapshot
            position: Position record
            lower_bin_array: Bin array covering the position's lower bin
            upper_bin_array: Next bin array, when the position crosses into it
            current_timestamp: Ledger unix seconds for reward extrapolation
            decimals_x: Token X decimals (uses config default if None)
            decimals_y: Token Y decimals (uses config default if None)
        """
        decimals_x, decimals_y = self._decimals(decimals_x, decimals_y)
        data = process_position(
            lb_pair,
            position,
            lower_bin_array,
            upper_bin_array,
            current_timestamp=current_timestamp,
            decimals_x=decimals_x,
            decimals_y=decimals_y,
        )
        logger.info(
            f"Position [{data.lower_bin_id}, {data.upper_bin_id}]: "
            f"x={data.total_x_amount} y={data.total_y_amount} fee_x={data.fee_x} fee_y={data.fee_y}"
        )
        return data

    def bins(
        self,
        lb_pair: LbPair,
        lower_bin_id: int,
        upper_bin_id: int,
        bin_arrays: Iterable[BinArray],
        decimals_x: Optional[int] = None,
        decimals_y: Optional[int] = None,
    ) -> List[BinLiquidity]:
        decimals_x, decimals_y = self._decimals(decimals_x, decimals_y)
        return get_bins_between_lower_and_upper_bound(
            lb_pair, lower_bin_id, upper_bin_id, bin_arrays, decimals_x, decimals_y
        )

    def strategy_distribution(
        self,
        lb_pair: LbPair,
        price_range: PriceRange,
        strategy: int = StrategyType.SPOT,
    ) -> List[BinAndAmount]:
        """Deposit shape for a strategy over a price range around the active bin"""
        lower_bin_id, upper_bin_id = price_range.to_bin_range(lb_pair.active_id, lb_pair.bin_step)
        bin_ids = list(range(lower_bin_id, upper_bin_id + 1))
        return calculate_distribution(strategy, lb_pair.active_id, bin_ids)

    def plan_distribution(
        self,
        total_x: int,
        total_y: int,
        distributions: Sequence[BinAndAmount],
        bin_step: int,
    ) -> List[BinAllocation]:
        allocations = plan_distribution(total_x, total_y, distributions, bin_step)
        logger.info(f"Planned deposit over {len(allocations)} bins (x={total_x}, y={total_y})")
        return allocations

    def weight_distribution(
        self,
        total_x: int,
        total_y: int,
        distributions: Sequence[BinAndAmount],
        bin_step: int,
    ) -> List[BinLiquidityDistributionByWeight]:
        return to_weight_distribution(total_x, total_y, distributions, bin_step)
