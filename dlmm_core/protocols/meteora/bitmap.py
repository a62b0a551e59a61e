"""
Meteora DLMM Bin Array Bitmaps

Locates bin arrays holding liquidity. The pool carries an inline bitmap
for array indexes [-512, 511]; an optional extension account covers
[512, 6655] and [-6656, -513]. Each covered range is one ``LiquidityIndex``
tier and the locator walks from tier to tier.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from ...types import BinArrayBitmapExtension, LbPair
from .constants import (
    BIN_ARRAY_BITMAP_SIZE,
    EXTENSION_BINARRAY_BITMAP_SIZE,
)
from .math import get_bin_array_index, get_bin_array_lower_upper_bin_id

logger = logging.getLogger(__name__)

WORD_BITS = 64

# Highest and lowest bin array index reachable through the extension
MAX_EXTENSION_INDEX = BIN_ARRAY_BITMAP_SIZE * (EXTENSION_BINARRAY_BITMAP_SIZE + 1) - 1
MIN_EXTENSION_INDEX = -BIN_ARRAY_BITMAP_SIZE * (EXTENSION_BINARRAY_BITMAP_SIZE + 1)


def words_to_int(words: Sequence[int]) -> int:
    """Pack little-endian u64 words into one integer"""
    value = 0
    for i, word in enumerate(words):
        value |= word << (WORD_BITS * i)
    return value


def rows_to_int(rows: Sequence[Sequence[int]]) -> int:
    """Pack extension rows (512 bits each, row 0 lowest) into one integer"""
    value = 0
    for i, row in enumerate(rows):
        value |= words_to_int(row) << (BIN_ARRAY_BITMAP_SIZE * i)
    return value


def _lowest_set_bit(value: int) -> int:
    return (value & -value).bit_length() - 1


class LiquidityIndex(ABC):
    """
    One contiguous range of bin array indexes backed by a bitmap
    """

    @abstractmethod
    def contains(self, bin_array_index: int) -> bool:
        """Whether this tier covers ``bin_array_index``"""

    @abstractmethod
    def segment_bounds(self) -> Tuple[int, int]:
        """Inclusive (min_index, max_index) covered by this tier"""

    @abstractmethod
    def next_with_liquidity(self, start_index: int, swap_for_y: bool) -> Optional[int]:
        """
        Nearest index with liquidity at or past ``start_index``

        ``swap_for_y`` walks toward lower indexes. Returns None when the
        tier has no such index in that direction.
        """


class _BitmapSegment(LiquidityIndex):
    """
    Tier where index ``i`` maps to a single bit

    With ``descending`` False bit ``i - min_index`` marks index ``i``;
    with ``descending`` True bit ``max_index - i`` does.
    """

    def __init__(self, bits: int, min_index: int, max_index: int, descending: bool = False):
        self.bits = bits
        self.min_index = min_index
        self.max_index = max_index
        self.descending = descending

    def contains(self, bin_array_index: int) -> bool:
        return self.min_index <= bin_array_index <= self.max_index

    def segment_bounds(self) -> Tuple[int, int]:
        return self.min_index, self.max_index

    def _bit(self, bin_array_index: int) -> int:
        if self.descending:
            return self.max_index - bin_array_index
        return bin_array_index - self.min_index

    def _index(self, bit: int) -> int:
        if self.descending:
            return self.max_index - bit
        return self.min_index + bit

    def has_liquidity(self, bin_array_index: int) -> bool:
        return bool(self.bits >> self._bit(bin_array_index) & 1)

    def next_with_liquidity(self, start_index: int, swap_for_y: bool) -> Optional[int]:
        if not self.contains(start_index):
            return None

        start_bit = self._bit(start_index)
        # Direction in bit space: toward higher bits or toward lower bits
        toward_higher_bits = swap_for_y == self.descending

        if toward_higher_bits:
            candidates = self.bits >> start_bit
            if candidates == 0:
                return None
            return self._index(start_bit + _lowest_set_bit(candidates))

        candidates = self.bits & ((1 << (start_bit + 1)) - 1)
        if candidates == 0:
            return None
        return self._index(candidates.bit_length() - 1)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}([{self.min_index}, {self.max_index}], set={bin(self.bits).count('1')})"


class InternalBitmap(_BitmapSegment):
    """
    Pool inline bitmap: 16 u64 words, bit (index + 512) marks array ``index``
    """

    def __init__(self, words: Sequence[int]):
        super().__init__(
            words_to_int(words),
            -BIN_ARRAY_BITMAP_SIZE,
            BIN_ARRAY_BITMAP_SIZE - 1,
        )

    @classmethod
    def from_lb_pair(cls, lb_pair: LbPair) -> "InternalBitmap":
        return cls(lb_pair.bin_array_bitmap)


class ExtensionBitmap(_BitmapSegment):
    """
    One half of the bitmap extension

    Positive half: offset ``index - 512`` marks indexes 512..6655.
    Negative half: offset ``-index - 513`` marks indexes -513..-6656, so bit
    order runs opposite to index order.
    """

    @classmethod
    def positive(cls, extension: BinArrayBitmapExtension) -> "ExtensionBitmap":
        return cls(
            rows_to_int(extension.positive_bin_array_bitmap),
            BIN_ARRAY_BITMAP_SIZE,
            MAX_EXTENSION_INDEX,
        )

    @classmethod
    def negative(cls, extension: BinArrayBitmapExtension) -> "ExtensionBitmap":
        return cls(
            rows_to_int(extension.negative_bin_array_bitmap),
            MIN_EXTENSION_INDEX,
            -BIN_ARRAY_BITMAP_SIZE - 1,
            descending=True,
        )


def is_overflow_default_bin_array_bitmap(bin_array_index: int) -> bool:
    """Whether an index lies outside the pool's inline bitmap"""
    return bin_array_index > BIN_ARRAY_BITMAP_SIZE - 1 or bin_array_index < -BIN_ARRAY_BITMAP_SIZE


def build_liquidity_tiers(
    lb_pair: LbPair,
    extension: Optional[BinArrayBitmapExtension] = None,
) -> List[LiquidityIndex]:
    """Tiers ordered from lowest to highest index range"""
    tiers: List[LiquidityIndex] = [InternalBitmap.from_lb_pair(lb_pair)]
    if extension is not None:
        tiers.insert(0, ExtensionBitmap.negative(extension))
        tiers.append(ExtensionBitmap.positive(extension))
    return tiers


def find_next_bin_array_index_with_liquidity(
    swap_for_y: bool,
    active_id: int,
    lb_pair: LbPair,
    extension: Optional[BinArrayBitmapExtension] = None,
    tiers: Optional[List[LiquidityIndex]] = None,
) -> Optional[int]:
    """
    Find the nearest bin array with liquidity in the swap direction

    The search starts at the array covering ``active_id`` (inclusive).

    Args:
        swap_for_y: True walks toward lower bin ids
        active_id: Bin id to start from
        lb_pair: Pool snapshot (inline bitmap)
        extension: Bitmap extension, if the pool has one
        tiers: Pre-built tiers, reused across calls of one walk

    Returns:
        Bin array index, or None when no further array holds liquidity
    """
    if tiers is None:
        tiers = build_liquidity_tiers(lb_pair, extension)

    index = get_bin_array_index(active_id)

    while True:
        tier = next((t for t in tiers if t.contains(index)), None)
        if tier is None:
            logger.debug(f"Bin array index {index} outside every bitmap tier")
            return None

        found = tier.next_with_liquidity(index, swap_for_y)
        if found is not None:
            return found

        min_index, max_index = tier.segment_bounds()
        index = min_index - 1 if swap_for_y else max_index + 1
        logger.debug(f"{tier!r} exhausted, crossing to bin array index {index}")


def get_bin_array_indexes_for_swap(
    lb_pair: LbPair,
    extension: Optional[BinArrayBitmapExtension] = None,
    swap_for_y: bool = True,
    count: int = 4,
) -> List[int]:
    """
    Indexes of the next ``count`` bin arrays a swap would walk through

    Args:
        lb_pair: Pool snapshot
        extension: Bitmap extension, if the pool has one
        swap_for_y: True walks toward lower bin ids
        count: Maximum number of indexes to return

    Returns:
        Bin array indexes in walk order (may be shorter than ``count``)
    """
    tiers = build_liquidity_tiers(lb_pair, extension)
    indexes: List[int] = []
    active_id = lb_pair.active_id

    for _ in range(count):
        index = find_next_bin_array_index_with_liquidity(
            swap_for_y, active_id, lb_pair, extension, tiers=tiers
        )
        if index is None:
            break
        indexes.append(index)
        lower_bin_id, upper_bin_id = get_bin_array_lower_upper_bin_id(index)
        active_id = lower_bin_id - 1 if swap_for_y else upper_bin_id + 1

    return indexes
