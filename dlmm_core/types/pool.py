"""
Pool (LbPair) type definitions
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from solders.pubkey import Pubkey

from ..errors import ConfigurationError
from ..protocols.meteora.constants import BIN_ARRAY_BITMAP_WORDS, NUM_REWARDS


@dataclass(frozen=True)
class StaticParameters:
    """
    Fee parameters fixed at pool creation

    Attributes:
        base_factor: Base fee multiplier (base fee = base_factor * bin_step * 10)
        filter_period: Seconds during which the index reference is frozen
        decay_period: Seconds after which the volatility reference resets
        reduction_factor: Volatility decay in basis points
        variable_fee_control: Scales the variable (volatility) fee
        max_volatility_accumulator: Cap on the volatility accumulator
        protocol_share: Protocol cut of the total fee in basis points
    """
    base_factor: int
    filter_period: int = 30
    decay_period: int = 600
    reduction_factor: int = 5000
    variable_fee_control: int = 0
    max_volatility_accumulator: int = 350_000
    protocol_share: int = 0


@dataclass(frozen=True)
class VariableParameters:
    """
    Volatile fee state as last materialized by the ledger

    Attributes:
        volatility_accumulator: Volatility including movement since the reference
        volatility_reference: Decayed volatility carried over from earlier swaps
        index_reference: Bin id the volatility distance is measured from
        last_update_timestamp: Unix seconds of the last fee state update
    """
    volatility_accumulator: int = 0
    volatility_reference: int = 0
    index_reference: int = 0
    last_update_timestamp: int = 0


@dataclass(frozen=True)
class RewardInfo:
    """
    Liquidity mining reward slot

    Attributes:
        mint: Reward token mint (default key when the slot is unused)
        vault: Reward vault address
        reward_rate: Emission per second, scaled by 2^64
        reward_duration_end: Unix seconds when emission stops
        last_update_time: Unix seconds the pool reward state was last updated
    """
    mint: Pubkey = field(default_factory=Pubkey.default)
    vault: Pubkey = field(default_factory=Pubkey.default)
    reward_rate: int = 0
    reward_duration_end: int = 0
    last_update_time: int = 0

    @property
    def is_initialized(self) -> bool:
        return self.mint != Pubkey.default()


def _empty_rewards() -> Tuple[RewardInfo, ...]:
    return tuple(RewardInfo() for _ in range(NUM_REWARDS))


def _empty_bitmap() -> Tuple[int, ...]:
    return (0,) * BIN_ARRAY_BITMAP_WORDS


@dataclass(frozen=True)
class LbPair:
    """
    Decoded DLMM pool state

    Immutable snapshot: quotes and accruals derive values from it and
    never write back.

    Attributes:
        bin_step: Price increment between adjacent bins in basis points
        active_id: Bin the pool currently trades at
        parameters: Static fee parameters
        v_parameters: Volatile fee state
        reward_infos: Two liquidity mining reward slots
        token_x_mint: Mint of token X
        token_y_mint: Mint of token Y
        reserve_x: Token X reserve account
        reserve_y: Token Y reserve account
        bin_array_bitmap: 16 u64 words, bit (index + 512) set when bin array
            ``index`` holds liquidity
        public_key: Pool address, when known
    """
    bin_step: int
    active_id: int
    parameters: StaticParameters
    v_parameters: VariableParameters = field(default_factory=VariableParameters)
    reward_infos: Tuple[RewardInfo, ...] = field(default_factory=_empty_rewards)
    token_x_mint: Pubkey = field(default_factory=Pubkey.default)
    token_y_mint: Pubkey = field(default_factory=Pubkey.default)
    reserve_x: Pubkey = field(default_factory=Pubkey.default)
    reserve_y: Pubkey = field(default_factory=Pubkey.default)
    bin_array_bitmap: Tuple[int, ...] = field(default_factory=_empty_bitmap)
    public_key: Optional[Pubkey] = None

    def __post_init__(self):
        if self.bin_step <= 0:
            raise ConfigurationError.invalid("bin_step", f"must be positive, got {self.bin_step}")
        if len(self.bin_array_bitmap) != BIN_ARRAY_BITMAP_WORDS:
            raise ConfigurationError.invalid(
                "bin_array_bitmap",
                f"expected {BIN_ARRAY_BITMAP_WORDS} words, got {len(self.bin_array_bitmap)}",
            )
        if len(self.reward_infos) != NUM_REWARDS:
            raise ConfigurationError.invalid(
                "reward_infos", f"expected {NUM_REWARDS} slots, got {len(self.reward_infos)}"
            )

    def __repr__(self) -> str:
        address = str(self.public_key)[:8] + "..." if self.public_key else "unknown"
        return f"LbPair({address}, bin_step={self.bin_step}, active_id={self.active_id})"
