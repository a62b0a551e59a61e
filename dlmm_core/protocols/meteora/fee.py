"""
Meteora DLMM Dynamic Fee

The swap fee is a base fee plus a variable fee driven by how far the
active bin has moved away from a reference bin. ``DynamicFee`` is a
per-call working copy of the pool's volatile fee state; the pool snapshot
itself is never modified.
"""

import logging
import time
from decimal import Decimal
from typing import Optional

from ...types import EmissionRate, FeeInfo, LbPair
from .constants import (
    BASIS_POINT_MAX,
    FEE_PRECISION,
    MAX_FEE_RATE,
    PRECISION,
    VARIABLE_FEE_PRECISION,
)

logger = logging.getLogger(__name__)


class DynamicFee:
    """
    Mutable fee state for one quote or read-out

    Usage:
        fee = DynamicFee.from_lb_pair(lb_pair)
        fee.update_reference(lb_pair.active_id, now)
        fee.update_volatility_accumulator(lb_pair.active_id)
        rate = fee.total_fee()
    """

    def __init__(
        self,
        bin_step: int,
        base_factor: int,
        filter_period: int,
        decay_period: int,
        reduction_factor: int,
        variable_fee_control: int,
        max_volatility_accumulator: int,
        protocol_share: int,
        volatility_accumulator: int = 0,
        volatility_reference: int = 0,
        index_reference: int = 0,
        last_update_timestamp: int = 0,
    ):
        self.bin_step = bin_step
        self.base_factor = base_factor
        self.filter_period = filter_period
        self.decay_period = decay_period
        self.reduction_factor = reduction_factor
        self.variable_fee_control = variable_fee_control
        self.max_volatility_accumulator = max_volatility_accumulator
        self.protocol_share = protocol_share
        self.volatility_accumulator = volatility_accumulator
        self.volatility_reference = volatility_reference
        self.index_reference = index_reference
        self.last_update_timestamp = last_update_timestamp

    @classmethod
    def from_lb_pair(cls, lb_pair: LbPair) -> "DynamicFee":
        """Copy the fee state out of a pool snapshot"""
        params = lb_pair.parameters
        v_params = lb_pair.v_parameters
        return cls(
            bin_step=lb_pair.bin_step,
            base_factor=params.base_factor,
            filter_period=params.filter_period,
            decay_period=params.decay_period,
            reduction_factor=params.reduction_factor,
            variable_fee_control=params.variable_fee_control,
            max_volatility_accumulator=params.max_volatility_accumulator,
            protocol_share=params.protocol_share,
            volatility_accumulator=v_params.volatility_accumulator,
            volatility_reference=v_params.volatility_reference,
            index_reference=v_params.index_reference,
            last_update_timestamp=v_params.last_update_timestamp,
        )

    def update_reference(self, active_id: int, current_timestamp: int) -> None:
        """
        Refresh the index and volatility references

        Nothing changes inside the filter period. Past it, the reference bin
        moves to ``active_id`` and the volatility reference decays, or resets
        to zero once the decay period has also elapsed.
        """
        elapsed = current_timestamp - self.last_update_timestamp
        if elapsed >= self.filter_period:
            self.index_reference = active_id
            if elapsed < self.decay_period:
                self.volatility_reference = (
                    self.volatility_accumulator * self.reduction_factor // BASIS_POINT_MAX
                )
            else:
                self.volatility_reference = 0

    def update_volatility_accumulator(self, active_id: int) -> None:
        delta_id = abs(self.index_reference - active_id)
        volatility_accumulator = self.volatility_reference + delta_id * BASIS_POINT_MAX
        self.volatility_accumulator = min(volatility_accumulator, self.max_volatility_accumulator)

    def base_fee(self) -> int:
        return self.base_factor * self.bin_step * 10

    def variable_fee(self) -> int:
        """Variable fee rate for the current volatility accumulator"""
        if self.variable_fee_control <= 0:
            return 0
        square_vfa_bin = (self.volatility_accumulator * self.bin_step) ** 2
        v_fee = self.variable_fee_control * square_vfa_bin
        return (v_fee + VARIABLE_FEE_PRECISION - 1) // VARIABLE_FEE_PRECISION

    def total_fee(self) -> int:
        """Total fee rate in units of 1e-9, capped at MAX_FEE_RATE"""
        return min(self.base_fee() + self.variable_fee(), MAX_FEE_RATE)

    def compute_fee(self, amount: int) -> int:
        """Fee to charge on top of a net ``amount`` (rounded up)"""
        total_fee_rate = self.total_fee()
        denominator = FEE_PRECISION - total_fee_rate
        return (amount * total_fee_rate + denominator - 1) // denominator

    def compute_fee_from_amount(self, amount_with_fees: int) -> int:
        """Fee contained in a gross ``amount_with_fees`` (rounded up)"""
        total_fee_rate = self.total_fee()
        return (amount_with_fees * total_fee_rate + FEE_PRECISION - 1) // FEE_PRECISION

    def compute_protocol_fee(self, fee_amount: int) -> int:
        return fee_amount * self.protocol_share // BASIS_POINT_MAX

    def __repr__(self) -> str:
        return (
            f"DynamicFee(va={self.volatility_accumulator}, vr={self.volatility_reference}, "
            f"index_reference={self.index_reference})"
        )


def _rate_to_percentage(rate: int) -> Decimal:
    return Decimal(rate) * Decimal(100) / Decimal(FEE_PRECISION)


def get_fee_info(lb_pair: LbPair) -> FeeInfo:
    """
    Static fee overview of a pool

    Returns:
        FeeInfo with base fee, fee cap and protocol cut, all in percent
    """
    fee = DynamicFee.from_lb_pair(lb_pair)
    return FeeInfo(
        base_fee_rate_percentage=_rate_to_percentage(fee.base_fee()),
        max_fee_rate_percentage=_rate_to_percentage(MAX_FEE_RATE),
        protocol_fee_percentage=Decimal(fee.protocol_share) * Decimal(100) / Decimal(BASIS_POINT_MAX),
    )


def get_dynamic_fee(lb_pair: LbPair, current_timestamp: Optional[int] = None) -> Decimal:
    """
    Fee rate (percent) a swap at the active bin would pay right now

    Args:
        lb_pair: Pool snapshot
        current_timestamp: Unix seconds (defaults to the local clock)
    """
    if current_timestamp is None:
        current_timestamp = int(time.time())
    fee = DynamicFee.from_lb_pair(lb_pair)
    fee.update_reference(lb_pair.active_id, current_timestamp)
    fee.update_volatility_accumulator(lb_pair.active_id)
    logger.debug(f"Dynamic fee state at {current_timestamp}: {fee}")
    return _rate_to_percentage(fee.total_fee())


def get_emission_rate(lb_pair: LbPair, current_timestamp: Optional[int] = None) -> EmissionRate:
    """
    Reward emission per second of both reward slots

    Slots without a mint, or whose reward duration ended before
    ``current_timestamp``, emit nothing.
    """
    if current_timestamp is None:
        current_timestamp = int(time.time())
    rates = []
    for reward_info in lb_pair.reward_infos:
        if not reward_info.is_initialized or current_timestamp > reward_info.reward_duration_end:
            rates.append(Decimal(0))
        else:
            rates.append(Decimal(reward_info.reward_rate) / Decimal(PRECISION))
    return EmissionRate(reward_one=rates[0], reward_two=rates[1])
