"""
Result type definitions for quotes, accruals and deposit plans
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from solders.pubkey import Pubkey


@dataclass(frozen=True)
class BinSwapResult:
    """
    Fill against a single bin

    Attributes:
        amount_in: Input consumed, fee included
        amount_out: Output released by the bin
        fee: Total fee charged on the input
        protocol_fee: Protocol part of ``fee``
    """
    amount_in: int = 0
    amount_out: int = 0
    fee: int = 0
    protocol_fee: int = 0

    @property
    def is_empty(self) -> bool:
        return self.amount_in == 0


@dataclass
class SwapQuote:
    """
    Swap quote result

    Attributes:
        in_amount: Requested input amount (raw)
        out_amount: Output amount (raw)
        fee: Total fee in input token
        protocol_fee: Protocol share of the fee
        min_out_amount: Minimum output after slippage
        price_impact: Price impact in percent versus filling everything at the
            start bin price
        bin_array_indexes: Bin arrays the walk touched, in first-touch order
        bin_arrays_pubkey: Addresses of the touched bin arrays that carry one
        end_bin_id: Bin the walk stopped at
        slippage_bps: Applied slippage in basis points
    """
    in_amount: int
    out_amount: int
    fee: int
    protocol_fee: int
    min_out_amount: int
    price_impact: Decimal = Decimal(0)
    bin_array_indexes: List[int] = field(default_factory=list)
    bin_arrays_pubkey: List[Pubkey] = field(default_factory=list)
    end_bin_id: Optional[int] = None
    slippage_bps: int = 0

    @property
    def exchange_rate(self) -> Decimal:
        """Output per input"""
        if self.in_amount == 0:
            return Decimal(0)
        return Decimal(self.out_amount) / Decimal(self.in_amount)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary"""
        return {
            "in_amount": str(self.in_amount),
            "out_amount": str(self.out_amount),
            "fee": str(self.fee),
            "protocol_fee": str(self.protocol_fee),
            "min_out_amount": str(self.min_out_amount),
            "price_impact": str(self.price_impact),
            "bin_array_indexes": list(self.bin_array_indexes),
            "bin_arrays_pubkey": [str(key) for key in self.bin_arrays_pubkey],
            "end_bin_id": self.end_bin_id,
            "slippage_bps": self.slippage_bps,
        }

    def __str__(self) -> str:
        return f"SwapQuote({self.in_amount} -> {self.out_amount}, fee={self.fee}, impact={self.price_impact:.4f}%)"


@dataclass(frozen=True)
class SwapFee:
    """Claimable swap fees of a position"""
    fee_x: int = 0
    fee_y: int = 0


@dataclass(frozen=True)
class LMRewards:
    """Claimable liquidity mining rewards of a position"""
    reward_one: int = 0
    reward_two: int = 0


@dataclass(frozen=True)
class FeeInfo:
    """
    Static fee overview of a pool, all in percent

    Attributes:
        base_fee_rate_percentage: Fee charged at zero volatility
        max_fee_rate_percentage: Fee cap
        protocol_fee_percentage: Protocol cut of each fee
    """
    base_fee_rate_percentage: Decimal
    max_fee_rate_percentage: Decimal
    protocol_fee_percentage: Decimal


@dataclass(frozen=True)
class EmissionRate:
    """Reward emission per second for both slots (unscaled)"""
    reward_one: Decimal
    reward_two: Decimal


@dataclass(frozen=True)
class BinLiquidity:
    """
    Reserves of one bin with its prices

    Attributes:
        bin_id: Bin id
        x_amount: Token X reserve
        y_amount: Token Y reserve
        supply: Liquidity supply
        version: Version of the bin array holding the bin
        price: Price per lamport
        price_per_token: Price adjusted for token decimals
    """
    bin_id: int
    x_amount: int
    y_amount: int
    supply: int
    version: int
    price: Decimal
    price_per_token: Decimal


@dataclass(frozen=True)
class BinAndAmount:
    """Share of the deposit totals (in basis points) assigned to one bin"""
    bin_id: int
    x_amount_bps_of_total: int = 0
    y_amount_bps_of_total: int = 0


@dataclass(frozen=True)
class BinLiquidityDistributionByWeight:
    """Relative weight (0..65535) of one bin in a deposit by weight"""
    bin_id: int
    weight: int


@dataclass(frozen=True)
class BinAllocation:
    """
    Exact per-bin deposit

    Attributes:
        bin_id: Bin id
        amount_x: Token X deposited into the bin
        amount_y: Token Y deposited into the bin
        weight: Relative weight (0..65535) of the bin's value in the deposit
    """
    bin_id: int
    amount_x: int
    amount_y: int
    weight: int = 0
