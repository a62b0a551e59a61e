"""
Meteora DLMM Math Utilities

Provides bin/price conversion, Q64.64 fixed point helpers and bin array
geometry.
"""

from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, localcontext
from enum import Enum
from typing import TYPE_CHECKING, Tuple

from ...errors import ConfigurationError, MissingBinArray
from .constants import (
    BASIS_POINT_MAX,
    MAX_BIN_PER_ARRAY,
    MAX_EXPONENTIAL,
    ONE,
    SCALE_OFFSET,
    U128_MAX,
)

if TYPE_CHECKING:
    from ...types import Bin, BinArray


# Digits used for Decimal price math
PRICE_PRECISION = 50

# Bin ids recovered from ln(price) / ln(base) are rounded here before
# floor/ceil, which absorbs the last-digit noise of the logarithms
_BIN_ID_QUANTUM = Decimal("1e-20")


class Rounding(Enum):
    """Rounding direction for fixed point operations"""
    UP = "up"
    DOWN = "down"


def mul_shr(x: int, y: int, offset: int = SCALE_OFFSET, rounding: Rounding = Rounding.DOWN) -> int:
    """
    Compute (x * y) >> offset

    Args:
        x: First factor
        y: Second factor
        offset: Bits to shift right
        rounding: UP rounds toward +inf when any shifted-out bit is set

    Returns:
        Shifted product
    """
    product = x * y
    result = product >> offset
    if rounding == Rounding.UP and product & ((1 << offset) - 1):
        result += 1
    return result


def shl_div(x: int, y: int, offset: int = SCALE_OFFSET, rounding: Rounding = Rounding.DOWN) -> int:
    """
    Compute (x << offset) / y

    Raises:
        ConfigurationError: If y is zero
    """
    if y == 0:
        raise ConfigurationError.invalid("divisor", "shl_div by zero")
    numerator = x << offset
    if rounding == Rounding.UP:
        return (numerator + y - 1) // y
    return numerator // y


def _pow_q64(base: int, exp: int) -> int:
    """
    Raise a Q64.64 base to an integer power exactly as the ledger does

    Binary exponentiation over the bits of |exp| with the base kept below
    one: a base >= 1 is replaced by U128_MAX / base and the result inverted
    back at the end.
    """
    if exp == 0:
        return ONE

    invert = exp < 0
    exp = abs(exp)
    if exp >= MAX_EXPONENTIAL:
        raise ConfigurationError.invalid("bin_id", f"exponent {exp} out of range")

    squared_base = base
    result = ONE

    if squared_base >= result:
        squared_base = U128_MAX // squared_base
        invert = not invert

    bit = 1
    while bit < MAX_EXPONENTIAL:
        if exp & bit:
            result = (result * squared_base) >> SCALE_OFFSET
        squared_base = (squared_base * squared_base) >> SCALE_OFFSET
        bit <<= 1

    if result == 0:
        raise ConfigurationError.invalid("bin_id", "price underflows to zero")

    if invert:
        result = U128_MAX // result

    if result > U128_MAX:
        raise ConfigurationError.invalid("bin_id", "price overflows u128")

    return result


def get_price_from_id(bin_id: int, bin_step: int) -> int:
    """
    Q64.64 price of a bin, bit-exact with the ledger

    Args:
        bin_id: Bin ID
        bin_step: Bin step in basis points

    Returns:
        Price as a Q64.64 integer
    """
    if bin_step <= 0:
        raise ConfigurationError.invalid("bin_step", f"must be positive, got {bin_step}")
    bps = (bin_step << SCALE_OFFSET) // BASIS_POINT_MAX
    return _pow_q64(ONE + bps, bin_id)


def q64_to_decimal(value: int) -> Decimal:
    """Convert a Q64.64 integer to Decimal"""
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return Decimal(value) / Decimal(ONE)


def get_price_of_bin_by_bin_id(bin_step: int, bin_id: int) -> Decimal:
    """
    Price per lamport of a bin

    Formula: price = (1 + bin_step/10000)^bin_id

    Args:
        bin_step: Bin step in basis points
        bin_id: Bin ID

    Returns:
        Token Y lamports per token X lamport
    """
    if bin_step <= 0:
        raise ConfigurationError.invalid("bin_step", f"must be positive, got {bin_step}")
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        base = Decimal(1) + Decimal(bin_step) / Decimal(BASIS_POINT_MAX)
        return base ** bin_id


def get_bin_id_from_price(bin_step: int, price, round_down: bool) -> int:
    """
    Bin id for a price per lamport

    Formula: bin_id = ln(price) / ln(1 + bin_step/10000)

    Args:
        bin_step: Bin step in basis points
        price: Price per lamport (Decimal, int, float or str)
        round_down: Floor when True, ceil otherwise

    Returns:
        Bin ID
    """
    if bin_step <= 0:
        raise ConfigurationError.invalid("bin_step", f"must be positive, got {bin_step}")
    if not isinstance(price, Decimal):
        price = Decimal(str(price))
    if price <= 0:
        raise ConfigurationError.invalid("price", f"must be positive, got {price}")

    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        base = Decimal(1) + Decimal(bin_step) / Decimal(BASIS_POINT_MAX)
        bin_id = (price.ln() / base.ln()).quantize(_BIN_ID_QUANTUM)
        rounding = ROUND_FLOOR if round_down else ROUND_CEILING
        return int(bin_id.to_integral_value(rounding=rounding))


def to_price_per_lamport(price_per_token, decimals_x: int, decimals_y: int) -> Decimal:
    """
    Convert a per-token price to a per-lamport price

    Formula: price_per_lamport = price_per_token / 10^(decimals_x - decimals_y)
    """
    if not isinstance(price_per_token, Decimal):
        price_per_token = Decimal(str(price_per_token))
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return price_per_token / (Decimal(10) ** (decimals_x - decimals_y))


def from_price_per_lamport(price_per_lamport, decimals_x: int, decimals_y: int) -> Decimal:
    """
    Convert a per-lamport price to a per-token price

    Formula: price_per_token = price_per_lamport * 10^(decimals_x - decimals_y)
    """
    if not isinstance(price_per_lamport, Decimal):
        price_per_lamport = Decimal(str(price_per_lamport))
    with localcontext() as ctx:
        ctx.prec = PRICE_PRECISION
        return price_per_lamport * (Decimal(10) ** (decimals_x - decimals_y))


def bin_id_to_price(
    bin_id: int,
    bin_step: int,
    decimals_x: int,
    decimals_y: int,
) -> Decimal:
    """
    Convert bin ID to price

    Formula: price = (1 + bin_step/10000)^bin_id * 10^(decimals_x - decimals_y)

    Args:
        bin_id: Bin ID
        bin_step: Bin step in basis points
        decimals_x: Token X decimals
        decimals_y: Token Y decimals

    Returns:
        Price of token X in terms of token Y
    """
    return from_price_per_lamport(get_price_of_bin_by_bin_id(bin_step, bin_id), decimals_x, decimals_y)


def price_to_bin_id(
    price,
    bin_step: int,
    decimals_x: int,
    decimals_y: int,
    round_down: bool = True,
) -> int:
    """
    Convert price to bin ID

    Args:
        price: Price of token X in terms of token Y
        bin_step: Bin step in basis points
        decimals_x: Token X decimals
        decimals_y: Token Y decimals
        round_down: Floor when True, ceil otherwise

    Returns:
        Bin ID
    """
    return get_bin_id_from_price(bin_step, to_price_per_lamport(price, decimals_x, decimals_y), round_down)


def get_bin_array_index(bin_id: int) -> int:
    """
    Calculate bin array index for a given bin ID

    Bin arrays contain 70 consecutive bins:
    - Array 0: bins [0, 69]
    - Array 1: bins [70, 139]
    - Array -1: bins [-70, -1]
    - Array -2: bins [-140, -71]
    """
    # Floor division: -1 // 70 = -1, -71 // 70 = -2
    return bin_id // MAX_BIN_PER_ARRAY


def get_bin_array_lower_upper_bin_id(bin_array_index: int) -> Tuple[int, int]:
    """
    Get lower and upper bin IDs for a bin array

    Returns:
        (lower_bin_id, upper_bin_id)
    """
    lower_bin_id = bin_array_index * MAX_BIN_PER_ARRAY
    upper_bin_id = lower_bin_id + MAX_BIN_PER_ARRAY - 1
    return lower_bin_id, upper_bin_id


def is_bin_id_within_bin_array(bin_id: int, bin_array_index: int) -> bool:
    lower_bin_id, upper_bin_id = get_bin_array_lower_upper_bin_id(bin_array_index)
    return lower_bin_id <= bin_id <= upper_bin_id


def get_bin_from_bin_array(bin_id: int, bin_array: "BinArray") -> "Bin":
    """
    Look up a bin inside a bin array

    Raises:
        MissingBinArray: If the array does not cover ``bin_id``
    """
    if not is_bin_id_within_bin_array(bin_id, bin_array.index):
        raise MissingBinArray.bin_not_covered(bin_id, bin_array.index)
    lower_bin_id, _ = get_bin_array_lower_upper_bin_id(bin_array.index)
    return bin_array.bins[bin_id - lower_bin_id]
