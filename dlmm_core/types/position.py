"""
Position type definitions
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from solders.pubkey import Pubkey

from ..errors import ConfigurationError
from ..protocols.meteora.constants import MAX_BIN_PER_POSITION, NUM_REWARDS, SCALE_OFFSET


class PositionVersion(Enum):
    """
    Position account layout version

    V1 stores liquidity shares at the small scale. V2 stores them shifted
    left by SCALE_OFFSET bits. Each version owns its share conversions so
    accrual code never branches on the version itself.
    """
    V1 = "V1"
    V2 = "V2"

    def accrual_share(self, raw_share: int) -> int:
        """Share used against fee/reward per-token accumulators"""
        if self is PositionVersion.V2:
            return raw_share >> SCALE_OFFSET
        return raw_share

    def reserve_share(self, raw_share: int, bin_array_version: int) -> int:
        """Share on the same scale as the bin's liquidity supply"""
        if self is PositionVersion.V1 and bin_array_version == 1:
            return raw_share << SCALE_OFFSET
        return raw_share


@dataclass(frozen=True)
class PositionFeeInfo:
    """Per-bin fee checkpoint of a position"""
    fee_x_per_token_complete: int = 0
    fee_y_per_token_complete: int = 0
    fee_x_pending: int = 0
    fee_y_pending: int = 0


@dataclass(frozen=True)
class PositionRewardInfo:
    """Per-bin reward checkpoint of a position"""
    reward_per_token_completes: Tuple[int, ...] = (0,) * NUM_REWARDS
    reward_pendings: Tuple[int, ...] = (0,) * NUM_REWARDS


@dataclass(frozen=True)
class PositionState:
    """
    Decoded position account

    Per-bin sequences are indexed by ``bin_id - lower_bin_id``.

    Attributes:
        version: Account layout version (controls share scale)
        lower_bin_id: Lowest covered bin (inclusive)
        upper_bin_id: Highest covered bin (inclusive)
        liquidity_shares: Raw liquidity shares per covered bin
        fee_infos: Fee checkpoints per covered bin
        reward_infos: Reward checkpoints per covered bin
        lb_pair: Pool address
        owner: Owner address
        last_updated_at: Unix seconds of the last ledger update
        public_key: Position address, when known
    """
    version: PositionVersion
    lower_bin_id: int
    upper_bin_id: int
    liquidity_shares: Tuple[int, ...]
    fee_infos: Tuple[PositionFeeInfo, ...] = ()
    reward_infos: Tuple[PositionRewardInfo, ...] = ()
    lb_pair: Pubkey = field(default_factory=Pubkey.default)
    owner: Pubkey = field(default_factory=Pubkey.default)
    last_updated_at: int = 0
    public_key: Optional[Pubkey] = None

    def __post_init__(self):
        width = self.width
        if width < 1 or width > MAX_BIN_PER_POSITION:
            raise ConfigurationError.invalid(
                "position",
                f"width must be within 1..{MAX_BIN_PER_POSITION} bins, got {width}",
            )
        # Accounts are fixed size; only the first ``width`` entries matter.
        # Empty checkpoint sequences mean "never touched".
        if len(self.liquidity_shares) < width:
            raise ConfigurationError.invalid(
                "liquidity_shares", f"expected at least {width} entries, got {len(self.liquidity_shares)}"
            )
        for name in ("fee_infos", "reward_infos"):
            values = getattr(self, name)
            if values and len(values) < width:
                raise ConfigurationError.invalid(name, f"expected at least {width} entries, got {len(values)}")

    @property
    def width(self) -> int:
        return self.upper_bin_id - self.lower_bin_id + 1

    def fee_info(self, bin_id: int) -> PositionFeeInfo:
        if not self.fee_infos:
            return PositionFeeInfo()
        return self.fee_infos[bin_id - self.lower_bin_id]

    def reward_info(self, bin_id: int) -> PositionRewardInfo:
        if not self.reward_infos:
            return PositionRewardInfo()
        return self.reward_infos[bin_id - self.lower_bin_id]

    def liquidity_share(self, bin_id: int) -> int:
        return self.liquidity_shares[bin_id - self.lower_bin_id]


@dataclass
class PositionBinData:
    """
    Position holdings in one bin

    Attributes:
        bin_id: Bin id
        price: Price per lamport
        price_per_token: Price adjusted for token decimals
        bin_x_amount: Bin token X reserve
        bin_y_amount: Bin token Y reserve
        bin_liquidity: Bin liquidity supply
        position_liquidity: Position share on the bin's scale
        position_x_amount: Position's token X claim
        position_y_amount: Position's token Y claim
    """
    bin_id: int
    price: Decimal
    price_per_token: Decimal
    bin_x_amount: int
    bin_y_amount: int
    bin_liquidity: int
    position_liquidity: int
    position_x_amount: int
    position_y_amount: int

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary"""
        return {
            "bin_id": self.bin_id,
            "price": str(self.price),
            "price_per_token": str(self.price_per_token),
            "bin_x_amount": str(self.bin_x_amount),
            "bin_y_amount": str(self.bin_y_amount),
            "bin_liquidity": str(self.bin_liquidity),
            "position_liquidity": str(self.position_liquidity),
            "position_x_amount": str(self.position_x_amount),
            "position_y_amount": str(self.position_y_amount),
        }


@dataclass
class PositionData:
    """
    Everything a position is entitled to at one instant

    Attributes:
        lower_bin_id: Lowest covered bin
        upper_bin_id: Highest covered bin
        total_x_amount: Sum of token X claims across bins
        total_y_amount: Sum of token Y claims across bins
        position_bin_data: Per-bin holdings
        fee_x: Claimable token X swap fee
        fee_y: Claimable token Y swap fee
        reward_one: Claimable reward from slot 0
        reward_two: Claimable reward from slot 1
        last_updated_at: Unix seconds of the last ledger update
    """
    lower_bin_id: int
    upper_bin_id: int
    total_x_amount: int
    total_y_amount: int
    position_bin_data: List[PositionBinData] = field(default_factory=list)
    fee_x: int = 0
    fee_y: int = 0
    reward_one: int = 0
    reward_two: int = 0
    last_updated_at: int = 0

    @property
    def bin_ids(self) -> List[int]:
        """Bin ids holding any position liquidity"""
        return [data.bin_id for data in self.position_bin_data if data.position_liquidity > 0]

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary"""
        return {
            "lower_bin_id": self.lower_bin_id,
            "upper_bin_id": self.upper_bin_id,
            "total_x_amount": str(self.total_x_amount),
            "total_y_amount": str(self.total_y_amount),
            "position_bin_data": [data.to_dict() for data in self.position_bin_data],
            "fee_x": str(self.fee_x),
            "fee_y": str(self.fee_y),
            "reward_one": str(self.reward_one),
            "reward_two": str(self.reward_two),
            "last_updated_at": self.last_updated_at,
        }
