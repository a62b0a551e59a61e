"""
Bin array type definitions
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from solders.pubkey import Pubkey

from ..errors import ConfigurationError
from ..protocols.meteora.constants import (
    EXTENSION_BINARRAY_BITMAP_SIZE,
    EXTENSION_BITMAP_ROW_WORDS,
    MAX_BIN_PER_ARRAY,
    NUM_REWARDS,
)


@dataclass(frozen=True)
class Bin:
    """
    Single bin inside a bin array

    Attributes:
        amount_x: Token X reserve
        amount_y: Token Y reserve
        price: Bin price as a Q64.64 integer
        liquidity_supply: Total liquidity shares
        reward_per_token_stored: Reward-per-share accumulator per reward slot
        fee_amount_x_per_token_stored: Token X fee-per-share accumulator
        fee_amount_y_per_token_stored: Token Y fee-per-share accumulator
    """
    amount_x: int = 0
    amount_y: int = 0
    price: int = 0
    liquidity_supply: int = 0
    reward_per_token_stored: Tuple[int, ...] = (0,) * NUM_REWARDS
    fee_amount_x_per_token_stored: int = 0
    fee_amount_y_per_token_stored: int = 0

    @property
    def is_empty(self) -> bool:
        return self.amount_x == 0 and self.amount_y == 0


@dataclass(frozen=True)
class BinArray:
    """
    Fixed-width window of 70 bins

    Attributes:
        index: Bin array index (covers bins [index * 70, index * 70 + 69])
        bins: Exactly 70 bins, lowest bin id first
        version: 0 when liquidity shares use the small scale, 1 when they
            are stored shifted left by 64 bits
        lb_pair: Owning pool address
        public_key: Bin array address, when known
    """
    index: int
    bins: Tuple[Bin, ...]
    version: int = 1
    lb_pair: Pubkey = field(default_factory=Pubkey.default)
    public_key: Optional[Pubkey] = None

    def __post_init__(self):
        if len(self.bins) != MAX_BIN_PER_ARRAY:
            raise ConfigurationError.invalid(
                "bins", f"bin array {self.index} must hold {MAX_BIN_PER_ARRAY} bins, got {len(self.bins)}"
            )
        if self.version not in (0, 1):
            raise ConfigurationError.invalid("version", f"unknown bin array version {self.version}")

    def __repr__(self) -> str:
        return f"BinArray(index={self.index}, version={self.version})"


def _empty_extension_side() -> Tuple[Tuple[int, ...], ...]:
    return tuple((0,) * EXTENSION_BITMAP_ROW_WORDS for _ in range(EXTENSION_BINARRAY_BITMAP_SIZE))


@dataclass(frozen=True)
class BinArrayBitmapExtension:
    """
    Bitmap for bin array indexes outside the pool's inline bitmap

    Each side holds 12 rows of 8 u64 words (512 bits per row).
    Positive side row r, bit b marks index 512 * (r + 1) + b.
    Negative side row r, bit b marks index -(512 * (r + 1) + b) - 1.

    Attributes:
        positive_bin_array_bitmap: Rows for indexes 512..6655
        negative_bin_array_bitmap: Rows for indexes -513..-6656
        lb_pair: Owning pool address
    """
    positive_bin_array_bitmap: Tuple[Tuple[int, ...], ...] = field(default_factory=_empty_extension_side)
    negative_bin_array_bitmap: Tuple[Tuple[int, ...], ...] = field(default_factory=_empty_extension_side)
    lb_pair: Pubkey = field(default_factory=Pubkey.default)

    def __post_init__(self):
        for name in ("positive_bin_array_bitmap", "negative_bin_array_bitmap"):
            rows = getattr(self, name)
            if len(rows) != EXTENSION_BINARRAY_BITMAP_SIZE or any(
                len(row) != EXTENSION_BITMAP_ROW_WORDS for row in rows
            ):
                raise ConfigurationError.invalid(
                    name,
                    f"expected {EXTENSION_BINARRAY_BITMAP_SIZE} rows of {EXTENSION_BITMAP_ROW_WORDS} words",
                )
