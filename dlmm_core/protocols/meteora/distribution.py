"""
Meteora DLMM Liquidity Distribution

Turns a deposit shape (basis points of each token per bin) into exact
per-bin amounts and weights, and generates the common shapes: spot,
curve (normal) and bid-ask.
"""

import logging
import math
from decimal import localcontext
from typing import Dict, List, Sequence, Tuple

from ...errors import ConfigurationError, DiscontinuousRange, NoLiquidityToAdd
from ...types import BinAllocation, BinAndAmount, BinLiquidityDistributionByWeight
from .constants import (
    BASIS_POINT_MAX,
    MAX_BIN_PER_POSITION,
    MAX_WEIGHT,
    StrategyType,
    WEIGHT_PRICE_PRECISION,
)
from .math import PRICE_PRECISION, get_price_of_bin_by_bin_id

logger = logging.getLogger(__name__)

# Gaussian weights are scaled to integers with this factor
_CURVE_WEIGHT_SCALE = 1_000_000_000
# Curve standard deviation is the range width divided by this
_CURVE_WIDTH_DIVISOR = 4


def _spread_bps(weights: Dict[int, int], remainder_bin_id: int) -> Dict[int, int]:
    """Split 10000 bps proportionally to ``weights``; rounding dust goes to ``remainder_bin_id``"""
    total = sum(weights.values())
    if total == 0:
        return {bin_id: 0 for bin_id in weights}
    bps = {bin_id: BASIS_POINT_MAX * weight // total for bin_id, weight in weights.items()}
    bps[remainder_bin_id] += BASIS_POINT_MAX - sum(bps.values())
    return bps


def _distribution_from_weights(active_id: int, weights: Dict[int, int]) -> List[BinAndAmount]:
    """
    Build a two-sided distribution from per-bin weights

    Bins below the active bin take token Y, bins above take token X and the
    active bin counts as half a bin on each side. Each side sums to 10000.
    """
    bin_ids = sorted(weights)
    if not bin_ids:
        raise NoLiquidityToAdd("No bins to distribute over")

    active_in_range = bin_ids[0] <= active_id <= bin_ids[-1]

    # Doubled so the active bin's half share stays an integer
    y_weights = {bin_id: 2 * weights[bin_id] for bin_id in bin_ids if bin_id < active_id}
    x_weights = {bin_id: 2 * weights[bin_id] for bin_id in bin_ids if bin_id > active_id}
    if active_in_range:
        y_weights[active_id] = weights[active_id]
        x_weights[active_id] = weights[active_id]

    y_bps: Dict[int, int] = {}
    x_bps: Dict[int, int] = {}
    if y_weights:
        y_bps = _spread_bps(y_weights, active_id if active_in_range else min(y_weights))
    if x_weights:
        x_bps = _spread_bps(x_weights, active_id if active_in_range else max(x_weights))

    return [
        BinAndAmount(
            bin_id=bin_id,
            x_amount_bps_of_total=x_bps.get(bin_id, 0),
            y_amount_bps_of_total=y_bps.get(bin_id, 0),
        )
        for bin_id in bin_ids
    ]


def calculate_spot_distribution(active_id: int, bin_ids: Sequence[int]) -> List[BinAndAmount]:
    """Uniform shape: every bin weighs the same"""
    return _distribution_from_weights(active_id, {bin_id: 1 for bin_id in bin_ids})


def calculate_bid_ask_distribution(active_id: int, bin_ids: Sequence[int]) -> List[BinAndAmount]:
    """Bid-ask shape: weight grows with the distance from the active bin"""
    return _distribution_from_weights(
        active_id, {bin_id: abs(bin_id - active_id) + 1 for bin_id in bin_ids}
    )


def calculate_normal_distribution(active_id: int, bin_ids: Sequence[int]) -> List[BinAndAmount]:
    """Curve shape: Gaussian weight centred on the active bin (or the nearest range edge)"""
    if not bin_ids:
        raise NoLiquidityToAdd("No bins to distribute over")
    lower, upper = min(bin_ids), max(bin_ids)
    center = min(max(active_id, lower), upper)
    sigma = max(1.0, (upper - lower + 1) / _CURVE_WIDTH_DIVISOR)

    weights = {}
    for bin_id in bin_ids:
        z = (bin_id - center) / sigma
        weights[bin_id] = int(math.exp(-0.5 * z * z) * _CURVE_WEIGHT_SCALE)
    return _distribution_from_weights(active_id, weights)


def calculate_distribution(strategy: int, active_id: int, bin_ids: Sequence[int]) -> List[BinAndAmount]:
    """
    Generate a distribution for a strategy

    Args:
        strategy: StrategyType.SPOT, CURVE or BID_ASK
        active_id: Active bin ID
        bin_ids: Bins to distribute over

    Returns:
        BinAndAmount per bin, lowest bin first
    """
    if strategy == StrategyType.SPOT:
        return calculate_spot_distribution(active_id, bin_ids)
    if strategy == StrategyType.CURVE:
        return calculate_normal_distribution(active_id, bin_ids)
    if strategy == StrategyType.BID_ASK:
        return calculate_bid_ask_distribution(active_id, bin_ids)
    raise ConfigurationError.invalid("strategy", f"unknown strategy type {strategy}")


def process_xy_amount_distribution(
    distributions: Sequence[BinAndAmount],
) -> Tuple[int, int, List[int], List[int], List[int]]:
    """
    Split a distribution into its range and per-token columns

    Returns:
        (lower_bin_id, upper_bin_id, x_bps, y_bps, bin_ids)

    Raises:
        NoLiquidityToAdd: Empty distribution
        DiscontinuousRange: Bin ids are not consecutive
    """
    if not distributions:
        raise NoLiquidityToAdd("No liquidity to add: empty distribution")

    x_bps: List[int] = []
    y_bps: List[int] = []
    bin_ids: List[int] = []
    previous_bin_id = None
    for item in distributions:
        if previous_bin_id is not None and item.bin_id != previous_bin_id + 1:
            raise DiscontinuousRange.gap(previous_bin_id, item.bin_id)
        previous_bin_id = item.bin_id
        x_bps.append(item.x_amount_bps_of_total)
        y_bps.append(item.y_amount_bps_of_total)
        bin_ids.append(item.bin_id)

    return bin_ids[0], bin_ids[-1], x_bps, y_bps, bin_ids


def _floored_price(bin_id: int, bin_step: int) -> int:
    """Bin price scaled by 1e12 and floored"""
    price = get_price_of_bin_by_bin_id(bin_step, bin_id)
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return int(price * WEIGHT_PRICE_PRECISION)


def to_weight_distribution(
    amount_x: int,
    amount_y: int,
    distributions: Sequence[BinAndAmount],
    bin_step: int,
) -> List[BinLiquidityDistributionByWeight]:
    """
    Convert a bps distribution into add-by-weight weights

    Each bin's weight is its token Y quote value relative to the total,
    scaled to 0..65535. Bins with zero weight are dropped.
    """
    quotes = []
    total_quote = 0
    for item in distributions:
        price = _floored_price(item.bin_id, bin_step)
        quote_value = (
            amount_x * item.x_amount_bps_of_total * price // BASIS_POINT_MAX // WEIGHT_PRICE_PRECISION
        )
        quote_amount = quote_value + amount_y * item.y_amount_bps_of_total // BASIS_POINT_MAX
        quotes.append((item.bin_id, quote_amount))
        total_quote += quote_amount

    if total_quote == 0:
        return []

    weights = [
        BinLiquidityDistributionByWeight(bin_id=bin_id, weight=quote * MAX_WEIGHT // total_quote)
        for bin_id, quote in quotes
    ]
    return [item for item in weights if item.weight > 0]


def _split_amount(total: int, shares: List[int], remainder_index: int) -> List[int]:
    share_sum = sum(shares)
    amounts = [total * share // share_sum for share in shares]
    amounts[remainder_index] += total - sum(amounts)
    return amounts


def plan_distribution(
    total_x: int,
    total_y: int,
    distributions: Sequence[BinAndAmount],
    bin_step: int,
) -> List[BinAllocation]:
    """
    Exact per-bin deposit amounts for a distribution

    Amounts are floored per bin; the token X remainder goes to the right-most
    bin taking X and the token Y remainder to the left-most bin taking Y, so
    the allocations add up to the totals exactly.
    Weights are informational and may all be 0 for small deposits into
    low-priced bins.

    Args:
        total_x: Token X to deposit (raw)
        total_y: Token Y to deposit (raw)
        distributions: Contiguous BinAndAmount list, lowest bin first
        bin_step: Pool bin step (for weights)

    Returns:
        BinAllocation per bin receiving tokens

    Raises:
        NoLiquidityToAdd: Nothing would be deposited
        DiscontinuousRange: Bin ids are not consecutive
        ConfigurationError: Negative amounts/shares or more than 70 bins
    """
    lower_bin_id, upper_bin_id, x_bps, y_bps, bin_ids = process_xy_amount_distribution(distributions)

    if upper_bin_id - lower_bin_id + 1 > MAX_BIN_PER_POSITION:
        raise ConfigurationError.invalid(
            "distributions",
            f"position must be within a range of 1 to {MAX_BIN_PER_POSITION} bins",
        )
    if total_x < 0 or total_y < 0:
        raise ConfigurationError.invalid("amount", f"totals must be non-negative, got x={total_x} y={total_y}")
    if any(bps < 0 for bps in x_bps + y_bps):
        raise ConfigurationError.invalid("distributions", "bps shares must be non-negative")

    width = len(bin_ids)
    amounts_x = [0] * width
    amounts_y = [0] * width

    if total_x > 0:
        x_bins = [i for i, bps in enumerate(x_bps) if bps > 0]
        if not x_bins:
            raise NoLiquidityToAdd.token_without_bins("X", total_x)
        amounts_x = _split_amount(total_x, x_bps, x_bins[-1])

    if total_y > 0:
        y_bins = [i for i, bps in enumerate(y_bps) if bps > 0]
        if not y_bins:
            raise NoLiquidityToAdd.token_without_bins("Y", total_y)
        amounts_y = _split_amount(total_y, y_bps, y_bins[0])

    quotes = [
        amounts_x[i] * _floored_price(bin_ids[i], bin_step) // WEIGHT_PRICE_PRECISION + amounts_y[i]
        for i in range(width)
    ]
    total_quote = sum(quotes)

    allocations = []
    for i, bin_id in enumerate(bin_ids):
        if amounts_x[i] == 0 and amounts_y[i] == 0:
            continue
        weight = quotes[i] * MAX_WEIGHT // total_quote if total_quote > 0 else 0
        allocations.append(BinAllocation(
            bin_id=bin_id,
            amount_x=amounts_x[i],
            amount_y=amounts_y[i],
            weight=weight,
        ))

    if not allocations:
        raise NoLiquidityToAdd()

    logger.debug(
        f"Planned {len(allocations)} bins in [{lower_bin_id}, {upper_bin_id}] "
        f"for x={total_x} y={total_y}"
    )
    return allocations
