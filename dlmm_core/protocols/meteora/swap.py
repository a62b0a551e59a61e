"""
Meteora DLMM Swap Quote

Walks bins from the active id in the swap direction, filling each bin at
its own price and charging the dynamic fee as the walk moves away from the
reference bin.
"""

import logging
import time
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from ...errors import ConfigurationError, InsufficientLiquidity, InvalidStartBin
from ...types import Bin, BinArray, BinArrayBitmapExtension, BinSwapResult, LbPair, SwapQuote
from .bitmap import build_liquidity_tiers, find_next_bin_array_index_with_liquidity
from .constants import BASIS_POINT_MAX
from .fee import DynamicFee
from .math import (
    Rounding,
    get_bin_array_lower_upper_bin_id,
    get_bin_from_bin_array,
    is_bin_id_within_bin_array,
    mul_shr,
    shl_div,
)

logger = logging.getLogger(__name__)


def get_out_amount(bin: Bin, in_amount: int, swap_for_y: bool) -> int:
    """
    Output for a net input at the bin price (rounded down)

    X -> Y: out = in * price >> 64
    Y -> X: out = (in << 64) / price
    """
    if swap_for_y:
        return mul_shr(in_amount, bin.price, rounding=Rounding.DOWN)
    return shl_div(in_amount, bin.price, rounding=Rounding.DOWN)


def swap_quote_at_bin(bin: Bin, fee: DynamicFee, in_amount: int, swap_for_y: bool) -> BinSwapResult:
    """
    Fill as much of ``in_amount`` as one bin allows

    Args:
        bin: Bin to fill against
        fee: Working fee state (volatility accumulator already updated)
        in_amount: Remaining gross input
        swap_for_y: True when token X goes in

    Returns:
        BinSwapResult (all zero if the bin holds none of the output token)
    """
    if swap_for_y and bin.amount_y == 0:
        return BinSwapResult()
    if not swap_for_y and bin.amount_x == 0:
        return BinSwapResult()

    if swap_for_y:
        max_amount_out = bin.amount_y
        max_amount_in = shl_div(bin.amount_y, bin.price, rounding=Rounding.UP)
    else:
        max_amount_out = bin.amount_x
        max_amount_in = mul_shr(bin.amount_x, bin.price, rounding=Rounding.UP)

    max_fee = fee.compute_fee(max_amount_in)
    max_amount_in = max_amount_in + max_fee

    if in_amount > max_amount_in:
        amount_in_with_fees = max_amount_in
        amount_out = max_amount_out
        fee_amount = max_fee
    else:
        fee_amount = fee.compute_fee_from_amount(in_amount)
        amount_in_after_fee = in_amount - fee_amount
        amount_out = min(get_out_amount(bin, amount_in_after_fee, swap_for_y), max_amount_out)
        amount_in_with_fees = in_amount

    return BinSwapResult(
        amount_in=amount_in_with_fees,
        amount_out=amount_out,
        fee=fee_amount,
        protocol_fee=fee.compute_protocol_fee(fee_amount),
    )


def _index_bin_arrays(bin_arrays: Iterable[BinArray]) -> Dict[int, BinArray]:
    return {bin_array.index: bin_array for bin_array in bin_arrays}


def swap_quote(
    lb_pair: LbPair,
    bin_arrays: Iterable[BinArray],
    in_amount: int,
    swap_for_y: bool,
    allowed_slippage_bps: int,
    extension: Optional[BinArrayBitmapExtension] = None,
    current_timestamp: Optional[int] = None,
) -> SwapQuote:
    """
    Quote an exact-input swap

    Args:
        lb_pair: Pool snapshot
        bin_arrays: Bin arrays available to the walk
        in_amount: Gross input amount (raw)
        swap_for_y: True for X -> Y (walks toward lower bins)
        allowed_slippage_bps: Slippage tolerance for ``min_out_amount``
        extension: Bitmap extension, if the pool has one
        current_timestamp: Unix seconds (defaults to the local clock)

    Returns:
        SwapQuote

    Raises:
        ConfigurationError: Negative amount or slippage outside 0..10000
        InsufficientLiquidity: The walk ran out of (supplied) bin arrays
        InvalidStartBin: No bin produced a fill
    """
    if in_amount < 0:
        raise ConfigurationError.invalid("in_amount", f"must be non-negative, got {in_amount}")
    if allowed_slippage_bps < 0 or allowed_slippage_bps > BASIS_POINT_MAX:
        raise ConfigurationError.invalid(
            "allowed_slippage_bps", f"must be within 0..{BASIS_POINT_MAX}, got {allowed_slippage_bps}"
        )
    if current_timestamp is None:
        current_timestamp = int(time.time())

    arrays_by_index = _index_bin_arrays(bin_arrays)
    tiers = build_liquidity_tiers(lb_pair, extension)

    fee = DynamicFee.from_lb_pair(lb_pair)
    active_id = lb_pair.active_id
    fee.update_reference(active_id, current_timestamp)

    in_amount_left = in_amount
    out_amount = 0
    fee_amount = 0
    protocol_fee_amount = 0
    start_bin: Optional[Bin] = None
    touched: List[BinArray] = []
    touched_indexes = set()

    while in_amount_left > 0:
        bin_array_index = find_next_bin_array_index_with_liquidity(
            swap_for_y, active_id, lb_pair, extension, tiers=tiers
        )
        if bin_array_index is None:
            raise InsufficientLiquidity.exhausted(in_amount_left, active_id)

        bin_array = arrays_by_index.get(bin_array_index)
        if bin_array is None:
            raise InsufficientLiquidity.bin_array_not_supplied(bin_array_index, in_amount_left, active_id)

        if bin_array_index not in touched_indexes:
            touched_indexes.add(bin_array_index)
            touched.append(bin_array)

        fee.update_volatility_accumulator(active_id)

        if not is_bin_id_within_bin_array(active_id, bin_array_index):
            # Bins between here and the array hold nothing; jump to its edge
            lower_bin_id, upper_bin_id = get_bin_array_lower_upper_bin_id(bin_array_index)
            active_id = upper_bin_id if swap_for_y else lower_bin_id
            logger.debug(f"Jumped to bin {active_id} of bin array {bin_array_index}")
            continue

        current_bin = get_bin_from_bin_array(active_id, bin_array)
        result = swap_quote_at_bin(current_bin, fee, in_amount_left, swap_for_y)

        if not result.is_empty:
            in_amount_left -= result.amount_in
            out_amount += result.amount_out
            fee_amount += result.fee
            protocol_fee_amount += result.protocol_fee
            if start_bin is None:
                start_bin = current_bin
            logger.debug(
                f"Bin {active_id}: in={result.amount_in} out={result.amount_out} "
                f"fee={result.fee} left={in_amount_left}"
            )

        if in_amount_left > 0:
            active_id = active_id - 1 if swap_for_y else active_id + 1

    if start_bin is None:
        raise InvalidStartBin()

    fee_from_in = fee.compute_fee_from_amount(in_amount)
    ideal_out_amount = get_out_amount(start_bin, in_amount - fee_from_in, swap_for_y)
    if ideal_out_amount == 0:
        price_impact = Decimal(0)
    else:
        price_impact = (
            (Decimal(out_amount) - Decimal(ideal_out_amount)) / Decimal(ideal_out_amount) * Decimal(100)
        )

    min_out_amount = out_amount * (BASIS_POINT_MAX - allowed_slippage_bps) // BASIS_POINT_MAX

    return SwapQuote(
        in_amount=in_amount,
        out_amount=out_amount,
        fee=fee_amount,
        protocol_fee=protocol_fee_amount,
        min_out_amount=min_out_amount,
        price_impact=price_impact,
        bin_array_indexes=[bin_array.index for bin_array in touched],
        bin_arrays_pubkey=[bin_array.public_key for bin_array in touched if bin_array.public_key is not None],
        end_bin_id=active_id,
        slippage_bps=allowed_slippage_bps,
    )
