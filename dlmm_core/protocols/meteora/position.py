"""
Meteora DLMM Position Accrual

Reconstructs what a position holds and has earned from raw bin and
position records: token reserves, claimable swap fees and claimable
liquidity mining rewards.
"""

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ...errors import ConfigurationError, MissingBinArray
from ...types import (
    Bin,
    BinArray,
    BinLiquidity,
    LbPair,
    LMRewards,
    PositionBinData,
    PositionData,
    PositionState,
    SwapFee,
)
from .constants import NUM_REWARDS, REWARD_RATE_DIVISOR, SCALE_OFFSET
from .math import (
    Rounding,
    from_price_per_lamport,
    get_bin_array_index,
    get_bin_from_bin_array,
    get_price_of_bin_by_bin_id,
    mul_shr,
)

logger = logging.getLogger(__name__)

BinLookup = Callable[[int], Tuple[Bin, BinArray]]


def _covering_bin_arrays(
    position: PositionState,
    lower_bin_array: Optional[BinArray],
    upper_bin_array: Optional[BinArray],
) -> BinLookup:
    """
    Validate the arrays covering a position and return a bin lookup

    The upper array is only required when the position crosses into it.

    Raises:
        MissingBinArray: Required array absent or with the wrong index
    """
    lower_index = get_bin_array_index(position.lower_bin_id)
    upper_index = get_bin_array_index(position.upper_bin_id)

    if lower_bin_array is None:
        raise MissingBinArray.not_found(lower_index)
    if lower_bin_array.index != lower_index:
        raise MissingBinArray.mismatch(lower_index, lower_bin_array.index)

    arrays = {lower_index: lower_bin_array}
    if upper_index != lower_index:
        if upper_bin_array is None:
            raise MissingBinArray.not_found(upper_index)
        if upper_bin_array.index != upper_index:
            raise MissingBinArray.mismatch(upper_index, upper_bin_array.index)
        arrays[upper_index] = upper_bin_array

    def lookup(bin_id: int) -> Tuple[Bin, BinArray]:
        bin_array = arrays[get_bin_array_index(bin_id)]
        return get_bin_from_bin_array(bin_id, bin_array), bin_array

    return lookup


def get_claimable_swap_fee(
    position: PositionState,
    lower_bin_array: Optional[BinArray],
    upper_bin_array: Optional[BinArray] = None,
) -> SwapFee:
    """
    Swap fees the position can claim

    Per bin: (share * (fee_per_token_stored - fee_per_token_complete)) >> 64
    plus the pending fee already checkpointed for the bin.

    Args:
        position: Position record
        lower_bin_array: Bin array covering ``position.lower_bin_id``
        upper_bin_array: Next bin array, when the position crosses into it

    Returns:
        SwapFee(fee_x, fee_y)
    """
    lookup = _covering_bin_arrays(position, lower_bin_array, upper_bin_array)

    fee_x = 0
    fee_y = 0
    for bin_id in range(position.lower_bin_id, position.upper_bin_id + 1):
        bin, _ = lookup(bin_id)
        fee_info = position.fee_info(bin_id)
        share = position.version.accrual_share(position.liquidity_share(bin_id))

        new_fee_x = mul_shr(
            share,
            bin.fee_amount_x_per_token_stored - fee_info.fee_x_per_token_complete,
            SCALE_OFFSET,
            Rounding.DOWN,
        )
        new_fee_y = mul_shr(
            share,
            bin.fee_amount_y_per_token_stored - fee_info.fee_y_per_token_complete,
            SCALE_OFFSET,
            Rounding.DOWN,
        )
        fee_x += new_fee_x + fee_info.fee_x_pending
        fee_y += new_fee_y + fee_info.fee_y_pending

    return SwapFee(fee_x=fee_x, fee_y=fee_y)


def _reward_per_token_stored(
    lb_pair: LbPair,
    bin_id: int,
    bin: Bin,
    bin_array: BinArray,
    reward_index: int,
    current_timestamp: int,
) -> int:
    """
    Reward accumulator of a bin, brought forward to ``current_timestamp``

    Only the active bin keeps earning between ledger updates, so only its
    accumulator is extrapolated.
    """
    stored = bin.reward_per_token_stored[reward_index]
    if bin_id != lb_pair.active_id or bin.liquidity_supply == 0:
        return stored

    reward_info = lb_pair.reward_infos[reward_index]
    supply = bin.liquidity_supply if bin_array.version == 0 else bin.liquidity_supply >> SCALE_OFFSET
    if supply == 0:
        return stored

    current_time = min(current_timestamp, reward_info.reward_duration_end)
    elapsed = max(0, current_time - reward_info.last_update_time)
    delta = reward_info.reward_rate * elapsed // REWARD_RATE_DIVISOR // supply
    return stored + delta


def get_claimable_lm_reward(
    lb_pair: LbPair,
    position: PositionState,
    current_timestamp: Optional[int],
    lower_bin_array: Optional[BinArray],
    upper_bin_array: Optional[BinArray] = None,
) -> LMRewards:
    """
    Liquidity mining rewards the position can claim

    Per bin and reward slot: ((stored - complete) * share) >> 64 plus the
    pending reward. Slots without a mint are skipped.

    Args:
        lb_pair: Pool snapshot (active bin, reward slots)
        position: Position record
        current_timestamp: Ledger unix seconds (defaults to the local clock)
        lower_bin_array: Bin array covering ``position.lower_bin_id``
        upper_bin_array: Next bin array, when the position crosses into it

    Returns:
        LMRewards(reward_one, reward_two)
    """
    if current_timestamp is None:
        current_timestamp = int(time.time())
    lookup = _covering_bin_arrays(position, lower_bin_array, upper_bin_array)

    rewards = [0] * NUM_REWARDS
    for bin_id in range(position.lower_bin_id, position.upper_bin_id + 1):
        bin, bin_array = lookup(bin_id)
        reward_info = position.reward_info(bin_id)
        share = position.version.accrual_share(position.liquidity_share(bin_id))

        for j in range(NUM_REWARDS):
            if not lb_pair.reward_infos[j].is_initialized:
                continue
            stored = _reward_per_token_stored(lb_pair, bin_id, bin, bin_array, j, current_timestamp)
            delta = stored - reward_info.reward_per_token_completes[j]
            new_reward = mul_shr(delta, share, SCALE_OFFSET, Rounding.DOWN)
            rewards[j] += new_reward + reward_info.reward_pendings[j]

    return LMRewards(reward_one=rewards[0], reward_two=rewards[1])


def _share_of_reserve(share: int, reserve: int, supply: int) -> int:
    if supply == 0:
        return 0
    return share * reserve // supply


def process_position(
    lb_pair: LbPair,
    position: PositionState,
    lower_bin_array: Optional[BinArray],
    upper_bin_array: Optional[BinArray] = None,
    current_timestamp: Optional[int] = None,
    decimals_x: int = 0,
    decimals_y: int = 0,
) -> PositionData:
    """
    Full breakdown of a position

    Args:
        lb_pair: Pool snapshot
        position: Position record
        lower_bin_array: Bin array covering ``position.lower_bin_id``
        upper_bin_array: Next bin array, when the position crosses into it
        current_timestamp: Ledger unix seconds for reward extrapolation
        decimals_x: Token X decimals (for per-token prices)
        decimals_y: Token Y decimals (for per-token prices)

    Returns:
        PositionData
    """
    lookup = _covering_bin_arrays(position, lower_bin_array, upper_bin_array)

    bin_data: List[PositionBinData] = []
    total_x = 0
    total_y = 0
    for bin_id in range(position.lower_bin_id, position.upper_bin_id + 1):
        bin, bin_array = lookup(bin_id)
        share = position.version.reserve_share(position.liquidity_share(bin_id), bin_array.version)
        amount_x = _share_of_reserve(share, bin.amount_x, bin.liquidity_supply)
        amount_y = _share_of_reserve(share, bin.amount_y, bin.liquidity_supply)
        price = get_price_of_bin_by_bin_id(lb_pair.bin_step, bin_id)

        bin_data.append(PositionBinData(
            bin_id=bin_id,
            price=price,
            price_per_token=from_price_per_lamport(price, decimals_x, decimals_y),
            bin_x_amount=bin.amount_x,
            bin_y_amount=bin.amount_y,
            bin_liquidity=bin.liquidity_supply,
            position_liquidity=share,
            position_x_amount=amount_x,
            position_y_amount=amount_y,
        ))
        total_x += amount_x
        total_y += amount_y

    fees = get_claimable_swap_fee(position, lower_bin_array, upper_bin_array)
    rewards = get_claimable_lm_reward(lb_pair, position, current_timestamp, lower_bin_array, upper_bin_array)

    logger.debug(
        f"Position [{position.lower_bin_id}, {position.upper_bin_id}]: "
        f"x={total_x} y={total_y} fees={fees} rewards={rewards}"
    )

    return PositionData(
        lower_bin_id=position.lower_bin_id,
        upper_bin_id=position.upper_bin_id,
        total_x_amount=total_x,
        total_y_amount=total_y,
        position_bin_data=bin_data,
        fee_x=fees.fee_x,
        fee_y=fees.fee_y,
        reward_one=rewards.reward_one,
        reward_two=rewards.reward_two,
        last_updated_at=position.last_updated_at,
    )


def get_bins_between_lower_and_upper_bound(
    lb_pair: LbPair,
    lower_bin_id: int,
    upper_bin_id: int,
    bin_arrays: Iterable[BinArray],
    decimals_x: int = 0,
    decimals_y: int = 0,
) -> List[BinLiquidity]:
    """
    Reserves and prices of every bin in [lower_bin_id, upper_bin_id]

    Raises:
        ConfigurationError: If lower_bin_id > upper_bin_id
        MissingBinArray: A covering bin array was not supplied
    """
    if lower_bin_id > upper_bin_id:
        raise ConfigurationError.invalid("bin_range", f"lower {lower_bin_id} above upper {upper_bin_id}")

    arrays_by_index: Dict[int, BinArray] = {bin_array.index: bin_array for bin_array in bin_arrays}

    bins: List[BinLiquidity] = []
    for bin_id in range(lower_bin_id, upper_bin_id + 1):
        index = get_bin_array_index(bin_id)
        bin_array = arrays_by_index.get(index)
        if bin_array is None:
            raise MissingBinArray.not_found(index)
        bin = get_bin_from_bin_array(bin_id, bin_array)
        price = get_price_of_bin_by_bin_id(lb_pair.bin_step, bin_id)
        bins.append(BinLiquidity(
            bin_id=bin_id,
            x_amount=bin.amount_x,
            y_amount=bin.amount_y,
            supply=bin.liquidity_supply,
            version=bin_array.version,
            price=price,
            price_per_token=from_price_per_lamport(price, decimals_x, decimals_y),
        ))
    return bins
