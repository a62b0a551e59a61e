"""
Test Types Module

Tests for dlmm_core.types package.
"""

import sys
from decimal import Decimal
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_price_range_creation():
    """Test PriceRange factory methods"""
    from dlmm_core.types import PriceRange, RangeMode

    print("Testing PriceRange creation...")

    r1 = PriceRange.one_bin()
    assert r1.mode == RangeMode.ONE_BIN
    assert str(r1) == "OneBin"

    r2 = PriceRange.percent(0.01)
    assert r2.lower == Decimal("-0.01")
    assert r2.upper == Decimal("0.01")
    assert str(r2) == "Percent(-1.00%, 1.00%)"

    r3 = PriceRange.bps(100)
    assert r3.lower == Decimal("-0.01")
    assert r3.mode == RangeMode.BPS

    r4 = PriceRange.absolute(0.95, 1.05)
    assert r4.lower == Decimal("0.95")
    assert not r4.is_relative

    r5 = PriceRange.bins(-10, 10)
    assert r5.mode == RangeMode.BIN_RANGE
    assert r5.is_relative

    print("  PriceRange creation: PASSED")


def test_price_range_to_bin_range():
    """Test price ranges resolve with floor below and ceil above"""
    from dlmm_core.types import PriceRange

    print("Testing PriceRange.to_bin_range...")

    # 0.99 sits between bins -11 and -10; 1.01 between 9 and 10
    assert PriceRange.percent(0.01).to_bin_range(0, 10) == (-11, 10)
    assert PriceRange.bps(100).to_bin_range(0, 10) == (-11, 10)
    assert PriceRange.absolute(0.95, 1.05).to_bin_range(0, 10) == (-52, 49)

    assert PriceRange.one_bin().to_bin_range(5, 10) == (5, 5)
    assert PriceRange.bins(-10, 10).to_bin_range(5, 10) == (-5, 15)

    print("  PriceRange.to_bin_range: PASSED")


def test_price_range_errors():
    """Test invalid price ranges"""
    from dlmm_core.types import PriceRange
    from dlmm_core.errors import ConfigurationError

    print("Testing PriceRange errors...")

    for call in (
        lambda: PriceRange.absolute(1.05, 0.95),
        lambda: PriceRange.percent(0.01).to_absolute(Decimal(0)),
        lambda: PriceRange.bins(-1, 1).to_absolute(Decimal(1)),
    ):
        try:
            call()
            assert False, "Should raise ConfigurationError"
        except ConfigurationError:
            pass

    lower, upper = PriceRange.percent(0.1).to_absolute(Decimal(2))
    assert lower == Decimal("1.8")
    assert upper == Decimal("2.2")

    print("  PriceRange errors: PASSED")


def test_lb_pair_validation():
    """Test LbPair record checks"""
    from dataclasses import fields
    from dlmm_core.types import LbPair, RewardInfo, StaticParameters
    from dlmm_core.errors import ConfigurationError

    print("Testing LbPair validation...")

    pair = LbPair(bin_step=25, active_id=-3, parameters=StaticParameters(base_factor=8_000))
    assert len(pair.bin_array_bitmap) == 16
    assert len(pair.reward_infos) == 2
    assert not pair.reward_infos[0].is_initialized
    assert "unknown" in repr(pair)

    # Fee parameters only; the walk is bounded by the bitmap
    assert [f.name for f in fields(StaticParameters)] == [
        "base_factor", "filter_period", "decay_period", "reduction_factor",
        "variable_fee_control", "max_volatility_accumulator", "protocol_share",
    ]

    for kwargs in (
        dict(bin_step=0),
        dict(bin_array_bitmap=(0,) * 15),
        dict(reward_infos=(RewardInfo(),)),
    ):
        params = dict(bin_step=25, active_id=0, parameters=StaticParameters(base_factor=8_000))
        params.update(kwargs)
        try:
            LbPair(**params)
            assert False, f"Should raise for {kwargs}"
        except ConfigurationError:
            pass

    print("  LbPair validation: PASSED")


def test_bin_array_validation():
    """Test BinArray record checks"""
    from dlmm_core.types import Bin, BinArray
    from dlmm_core.errors import ConfigurationError

    print("Testing BinArray validation...")

    bins = tuple(Bin() for _ in range(70))
    assert BinArray(index=0, bins=bins).version == 1
    assert Bin().is_empty
    assert not Bin(amount_x=1).is_empty

    for kwargs in (dict(bins=bins[:69]), dict(bins=bins, version=2)):
        params = dict(index=0)
        params.update(kwargs)
        try:
            BinArray(**params)
            assert False, f"Should raise for {kwargs}"
        except ConfigurationError:
            pass

    print("  BinArray validation: PASSED")


def test_position_version_shares():
    """Test share scale conversions per position version"""
    from dlmm_core.types import PositionVersion

    print("Testing PositionVersion...")

    assert PositionVersion.V1.accrual_share(1_000) == 1_000
    assert PositionVersion.V2.accrual_share(1_000 << 64) == 1_000

    # Reserve share matches the bin array's supply scale
    assert PositionVersion.V1.reserve_share(1_000, 0) == 1_000
    assert PositionVersion.V1.reserve_share(1_000, 1) == 1_000 << 64
    assert PositionVersion.V2.reserve_share(1_000 << 64, 1) == 1_000 << 64

    print("  PositionVersion: PASSED")


def test_position_state():
    """Test PositionState accessors and validation"""
    from dlmm_core.types import PositionFeeInfo, PositionState, PositionVersion
    from dlmm_core.errors import ConfigurationError

    print("Testing PositionState...")

    position = PositionState(
        version=PositionVersion.V1,
        lower_bin_id=10,
        upper_bin_id=12,
        liquidity_shares=(1, 2, 3) + (0,) * 67,
        fee_infos=tuple(PositionFeeInfo(fee_x_pending=i) for i in range(70)),
    )
    assert position.width == 3
    assert position.liquidity_share(12) == 3
    assert position.fee_info(11).fee_x_pending == 1
    # No reward checkpoints recorded yet
    assert position.reward_info(10).reward_pendings == (0, 0)

    for kwargs in (
        dict(upper_bin_id=9),
        dict(liquidity_shares=(1, 2)),
        dict(fee_infos=(PositionFeeInfo(),)),
    ):
        params = dict(version=PositionVersion.V2, lower_bin_id=10, upper_bin_id=12, liquidity_shares=(0, 0, 0))
        params.update(kwargs)
        try:
            PositionState(**params)
            assert False, f"Should raise for {kwargs}"
        except ConfigurationError:
            pass

    print("  PositionState: PASSED")


def test_swap_quote():
    """Test SwapQuote dataclass"""
    from dlmm_core.types import SwapQuote
    from solders.pubkey import Pubkey

    print("Testing SwapQuote...")

    key = Pubkey.new_unique()
    quote = SwapQuote(
        in_amount=1_000,
        out_amount=950,
        fee=3,
        protocol_fee=0,
        min_out_amount=945,
        price_impact=Decimal("-0.5"),
        bin_array_indexes=[0, -1],
        bin_arrays_pubkey=[key],
        end_bin_id=-5,
        slippage_bps=50,
    )

    assert quote.exchange_rate == Decimal("0.95")
    data = quote.to_dict()
    assert data["out_amount"] == "950"
    assert data["bin_arrays_pubkey"] == [str(key)]
    assert data["end_bin_id"] == -5
    assert "impact=-0.5000%" in str(quote)

    empty = SwapQuote(in_amount=0, out_amount=0, fee=0, protocol_fee=0, min_out_amount=0)
    assert empty.exchange_rate == Decimal(0)

    print("  SwapQuote: PASSED")


def main():
    """Run all types tests"""
    print("=" * 60)
    print("Types Module Tests")
    print("=" * 60)

    tests = [
        test_price_range_creation,
        test_price_range_to_bin_range,
        test_price_range_errors,
        test_lb_pair_validation,
        test_bin_array_validation,
        test_position_version_shares,
        test_position_state,
        test_swap_quote,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
