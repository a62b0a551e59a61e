"""
Price and bin range type definitions
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Tuple

from ..errors import ConfigurationError


class RangeMode(Enum):
    """
    Price range specification mode

    PERCENT: Relative percentage around the active bin price (e.g., -0.01, 0.01 = +/-1%)
    BPS: Basis points around the active bin price (e.g., -100, 100 = +/-1%)
    ABSOLUTE: Absolute prices per lamport (e.g., 0.95, 1.05)
    ONE_BIN: The active bin only
    BIN_RANGE: Bin offsets from the active bin
    """
    PERCENT = "percent"
    BPS = "bps"
    ABSOLUTE = "absolute"
    ONE_BIN = "one_bin"
    BIN_RANGE = "bin_range"


@dataclass
class PriceRange:
    """
    Price range specification for DLMM positions

    Usage:
        # Active bin only
        PriceRange.one_bin()

        # Symmetric percentage range (+/- 1%)
        PriceRange.percent(0.01)

        # Symmetric basis points range (+/- 100 bps = 1%)
        PriceRange.bps(100)

        # Absolute price range (prices per lamport)
        PriceRange.absolute(0.95, 1.05)

        # Explicit bin offsets around the active bin
        PriceRange.bins(-10, 10)

        # Resolve to an inclusive bin range
        lower_bin_id, upper_bin_id = PriceRange.percent(0.01).to_bin_range(active_id, bin_step)
    """
    lower: Decimal
    upper: Decimal
    mode: RangeMode = RangeMode.PERCENT

    def __post_init__(self):
        # Convert to Decimal if needed (direct assignment - class is not frozen)
        if not isinstance(self.lower, Decimal):
            self.lower = Decimal(str(self.lower))
        if not isinstance(self.upper, Decimal):
            self.upper = Decimal(str(self.upper))
        if self.lower > self.upper:
            raise ConfigurationError.invalid("price_range", f"lower {self.lower} above upper {self.upper}")

    @classmethod
    def one_bin(cls) -> "PriceRange":
        """Create single bin range"""
        return cls(Decimal(0), Decimal(0), RangeMode.ONE_BIN)

    @classmethod
    def percent(cls, pct: float) -> "PriceRange":
        """
        Create symmetric percentage range

        Args:
            pct: Percentage as decimal (0.01 = 1%)
        """
        return cls(Decimal(str(-pct)), Decimal(str(pct)), RangeMode.PERCENT)

    @classmethod
    def bps(cls, basis_points: int) -> "PriceRange":
        """
        Create symmetric basis points range

        Args:
            basis_points: Number of basis points (100 = 1%)
        """
        pct = Decimal(basis_points) / Decimal(10000)
        return cls(-pct, pct, RangeMode.BPS)

    @classmethod
    def absolute(cls, lower: float, upper: float) -> "PriceRange":
        """
        Create absolute price range

        Args:
            lower: Lower price per lamport
            upper: Upper price per lamport
        """
        return cls(Decimal(str(lower)), Decimal(str(upper)), RangeMode.ABSOLUTE)

    @classmethod
    def bins(cls, lower_offset: int, upper_offset: int) -> "PriceRange":
        """
        Create bin offset range

        Args:
            lower_offset: Offset from active bin for lower bound
            upper_offset: Offset from active bin for upper bound
        """
        return cls(Decimal(lower_offset), Decimal(upper_offset), RangeMode.BIN_RANGE)

    @property
    def is_relative(self) -> bool:
        """Check if range is relative to the active bin"""
        return self.mode != RangeMode.ABSOLUTE

    def to_absolute(self, current_price: Decimal) -> Tuple[Decimal, Decimal]:
        """
        Convert a price-based range to absolute prices

        Raises:
            ConfigurationError: For bin based modes or a non-positive current price
        """
        if self.mode == RangeMode.ABSOLUTE:
            return (self.lower, self.upper)

        if self.mode in (RangeMode.PERCENT, RangeMode.BPS):
            if current_price <= Decimal(0):
                raise ConfigurationError.invalid(
                    "current_price", f"must be positive to resolve a relative range, got {current_price}"
                )
            return (current_price * (Decimal(1) + self.lower), current_price * (Decimal(1) + self.upper))

        raise ConfigurationError.invalid("price_range", f"{self.mode.value} has no absolute price form")

    def to_bin_range(self, active_id: int, bin_step: int) -> Tuple[int, int]:
        """
        Resolve to an inclusive (lower_bin_id, upper_bin_id) range

        Price bounds map to bins with floor for the lower bound and ceil for
        the upper bound, so the range never excludes a requested price.
        """
        from ..protocols.meteora.math import get_bin_id_from_price, get_price_of_bin_by_bin_id

        if self.mode == RangeMode.ONE_BIN:
            return active_id, active_id

        if self.mode == RangeMode.BIN_RANGE:
            return active_id + int(self.lower), active_id + int(self.upper)

        current_price = get_price_of_bin_by_bin_id(bin_step, active_id)
        lower_price, upper_price = self.to_absolute(current_price)
        return (
            get_bin_id_from_price(bin_step, lower_price, round_down=True),
            get_bin_id_from_price(bin_step, upper_price, round_down=False),
        )

    def __str__(self) -> str:
        if self.mode == RangeMode.ONE_BIN:
            return "OneBin"
        if self.mode == RangeMode.PERCENT:
            return f"Percent({float(self.lower)*100:.2f}%, {float(self.upper)*100:.2f}%)"
        if self.mode == RangeMode.BPS:
            return f"BPS({int(self.lower*10000)}, {int(self.upper*10000)})"
        if self.mode == RangeMode.ABSOLUTE:
            return f"Absolute({self.lower}, {self.upper})"
        return f"{self.mode.value}({self.lower}, {self.upper})"
