"""
Meteora DLMM Constants

Fixed-point scales, fee precision and array geometry shared by the
pricing and accounting code.
"""

# Basis points
BASIS_POINT_MAX = 10_000

# Q64.64 fixed point
SCALE_OFFSET = 64
ONE = 1 << SCALE_OFFSET
U128_MAX = (1 << 128) - 1

# Emission rates are stored scaled by 2^64
PRECISION = 1 << 64

# Fee rates are expressed in units of 1e-9
FEE_PRECISION = 1_000_000_000
MAX_FEE_RATE = 100_000_000

# Variable fee = ceil(variable_fee_control * (volatility_accumulator * bin_step)^2 / 1e11)
VARIABLE_FEE_PRECISION = 100_000_000_000

# Pow is undefined past this exponent on the ledger
MAX_EXPONENTIAL = 0x80000

# Bin array constants
MAX_BIN_PER_ARRAY = 70
MAX_BIN_PER_POSITION = 70
BIN_ARRAY_BITMAP_SIZE = 512
EXTENSION_BINARRAY_BITMAP_SIZE = 12

# Inline bitmap: 16 words of u64 covering array indexes [-512, 511]
BIN_ARRAY_BITMAP_WORDS = 16
# Extension bitmap: 12 rows of 8 u64 words per side
EXTENSION_BITMAP_ROW_WORDS = 8

# Bin ID bounds
MIN_BIN_ID = -443636
MAX_BIN_ID = 443636

# Liquidity mining
NUM_REWARDS = 2
# Reward-per-token extrapolation divides the emitted amount by this factor
# before spreading it over the active bin's supply
REWARD_RATE_DIVISOR = 15

# Weight distribution for add-liquidity-by-weight
MAX_WEIGHT = 65_535
WEIGHT_PRICE_PRECISION = 1_000_000_000_000


# Strategy types for add liquidity
class StrategyType:
    SPOT = 0
    CURVE = 1
    BID_ASK = 2
