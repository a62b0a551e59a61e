"""
Exception definitions for DLMM Core
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for DLMM computations

    3xxx - Swap/Liquidity errors
    4xxx - Bin array errors
    5xxx - Position/Distribution errors
    9xxx - Configuration errors
    """
    # Swap errors
    LIQUIDITY_INSUFFICIENT = "3003"
    INVALID_START_BIN = "3004"

    # Bin array errors
    BIN_ARRAY_MISSING = "4004"

    # Position/Distribution errors
    NO_LIQUIDITY_TO_ADD = "5004"
    DISCONTINUOUS_BIN_RANGE = "5005"

    # Configuration errors
    CONFIG_INVALID = "9001"


class DlmmError(Exception):
    """
    Base exception for all DLMM core errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the computation might succeed after re-fetching state
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_refetch(self) -> bool:
        """Indicate if re-fetching ledger state could change the outcome"""
        return self.recoverable


class InsufficientLiquidity(DlmmError):
    """
    Swap walk ran out of bin arrays - recoverable after re-fetching bin arrays

    Raised when:
    - No further bin array holds liquidity in the swap direction
    - The next bin array with liquidity was not supplied by the caller
    """

    def __init__(
        self,
        message: str,
        in_amount_left: Optional[int] = None,
        active_id: Optional[int] = None,
    ):
        super().__init__(
            message,
            ErrorCode.LIQUIDITY_INSUFFICIENT,
            recoverable=True,
            details={"in_amount_left": in_amount_left, "active_id": active_id},
        )
        self.in_amount_left = in_amount_left
        self.active_id = active_id

    @classmethod
    def exhausted(cls, in_amount_left: int, active_id: int) -> "InsufficientLiquidity":
        return cls(
            f"Insufficient liquidity: {in_amount_left} input left unfilled at bin {active_id}",
            in_amount_left=in_amount_left,
            active_id=active_id,
        )

    @classmethod
    def bin_array_not_supplied(cls, bin_array_index: int, in_amount_left: int, active_id: int) -> "InsufficientLiquidity":
        return cls(
            f"Insufficient liquidity: bin array {bin_array_index} has liquidity but was not supplied",
            in_amount_left=in_amount_left,
            active_id=active_id,
        )


class InvalidStartBin(DlmmError):
    """
    No bin produced a fill - not recoverable

    Raised when:
    - The input amount is zero
    - Every visited bin returned an empty fill
    """

    def __init__(self, message: str = "Invalid start bin: no bin was filled"):
        super().__init__(message, ErrorCode.INVALID_START_BIN, recoverable=False)


class MissingBinArray(DlmmError):
    """
    Covering bin array absent or mismatched - recoverable after fetching it

    Raised when:
    - A position's lower/upper bin array was not supplied
    - A supplied bin array has the wrong index
    - A bin id is looked up in a bin array that does not cover it
    """

    def __init__(
        self,
        message: str,
        bin_array_index: Optional[int] = None,
    ):
        super().__init__(
            message,
            ErrorCode.BIN_ARRAY_MISSING,
            recoverable=True,
            details={"bin_array_index": bin_array_index},
        )
        self.bin_array_index = bin_array_index

    @classmethod
    def not_found(cls, bin_array_index: int) -> "MissingBinArray":
        return cls(
            f"Bin array {bin_array_index} not found",
            bin_array_index=bin_array_index,
        )

    @classmethod
    def mismatch(cls, expected_index: int, actual_index: int) -> "MissingBinArray":
        return cls(
            f"Bin array index mismatch: expected {expected_index}, got {actual_index}",
            bin_array_index=expected_index,
        )

    @classmethod
    def bin_not_covered(cls, bin_id: int, bin_array_index: int) -> "MissingBinArray":
        return cls(
            f"Bin {bin_id} is not covered by bin array {bin_array_index}",
            bin_array_index=bin_array_index,
        )


class NoLiquidityToAdd(DlmmError):
    """
    Deposit plan is empty - not recoverable

    Raised when:
    - The distribution has no bins
    - All weights round to zero
    - A token amount is given but no bin accepts that token
    """

    def __init__(self, message: str = "No liquidity to add"):
        super().__init__(message, ErrorCode.NO_LIQUIDITY_TO_ADD, recoverable=False)

    @classmethod
    def token_without_bins(cls, token: str, amount: int) -> "NoLiquidityToAdd":
        return cls(f"No liquidity to add: {amount} of token {token} but no bin accepts it")


class DiscontinuousRange(DlmmError):
    """
    Bin ids are not contiguous - not recoverable
    """

    def __init__(self, message: str, previous_bin_id: Optional[int] = None, bin_id: Optional[int] = None):
        super().__init__(
            message,
            ErrorCode.DISCONTINUOUS_BIN_RANGE,
            recoverable=False,
            details={"previous_bin_id": previous_bin_id, "bin_id": bin_id},
        )
        self.previous_bin_id = previous_bin_id
        self.bin_id = bin_id

    @classmethod
    def gap(cls, previous_bin_id: int, bin_id: int) -> "DiscontinuousRange":
        return cls(
            f"Discontinuous bin id: {bin_id} follows {previous_bin_id}",
            previous_bin_id=previous_bin_id,
            bin_id=bin_id,
        )


class ConfigurationError(DlmmError):
    """
    Configuration or input errors

    Raised when configuration or argument values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)
