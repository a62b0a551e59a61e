"""
Test Meteora Position Accrual

Tests for position reserves, claimable swap fees and liquidity mining rewards.
"""

import sys
from decimal import Decimal
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def _position(lower, upper, shares=None, version=None, fee_infos=None, reward_infos=None, last_updated_at=0):
    """
    Position with sparse per-bin data

    Args:
        shares: {bin_id: raw share}
        fee_infos: {bin_id: PositionFeeInfo}
        reward_infos: {bin_id: PositionRewardInfo}
    """
    from dlmm_core.types import PositionFeeInfo, PositionRewardInfo, PositionState, PositionVersion

    shares = shares or {}
    bin_ids = range(lower, upper + 1)
    kwargs = {}
    if fee_infos is not None:
        kwargs["fee_infos"] = tuple(fee_infos.get(b, PositionFeeInfo()) for b in bin_ids)
    if reward_infos is not None:
        kwargs["reward_infos"] = tuple(reward_infos.get(b, PositionRewardInfo()) for b in bin_ids)
    return PositionState(
        version=version or PositionVersion.V1,
        lower_bin_id=lower,
        upper_bin_id=upper,
        liquidity_shares=tuple(shares.get(b, 0) for b in bin_ids),
        last_updated_at=last_updated_at,
        **kwargs,
    )


def test_position_reserves():
    """Test share of bin reserves"""
    from dlmm_core.protocols.meteora.position import process_position
    from dlmm_core.protocols.meteora.constants import SCALE_OFFSET
    from dlmm_fixtures import make_bin_array, make_lb_pair

    print("Testing process_position reserves...")

    lb_pair = make_lb_pair(active_id=0)
    position = _position(95, 105, shares={100: 1_000}, last_updated_at=1_234)

    # Small-scale bin array: 1000 / 5000 of 2000
    bin_array = make_bin_array(1, bins={100: {"amount_x": 2_000, "liquidity_supply": 5_000}}, version=0)
    data = process_position(lb_pair, position, bin_array, current_timestamp=1_000)
    assert data.total_x_amount == 400, f"Expected 400, got {data.total_x_amount}"
    assert data.total_y_amount == 0
    assert len(data.position_bin_data) == 11
    assert data.bin_ids == [100]
    assert data.last_updated_at == 1_234

    # Same claim against a bin array that stores supply shifted by 64 bits
    bin_array = make_bin_array(
        1, bins={100: {"amount_x": 2_000, "liquidity_supply": 5_000 << SCALE_OFFSET}}, version=1
    )
    data = process_position(lb_pair, position, bin_array, current_timestamp=1_000)
    assert data.total_x_amount == 400

    bin_data = data.position_bin_data[5]
    assert bin_data.bin_id == 100
    assert bin_data.bin_x_amount == 2_000
    assert bin_data.position_liquidity == 1_000 << SCALE_OFFSET
    assert bin_data.price == bin_data.price_per_token

    # Empty supply contributes nothing
    data = process_position(lb_pair, position, make_bin_array(1), current_timestamp=1_000)
    assert data.total_x_amount == 0

    print("  process_position reserves: PASSED")


def test_claimable_swap_fee():
    """Test fee accrual for both position versions"""
    from dlmm_core.protocols.meteora.position import get_claimable_swap_fee
    from dlmm_core.protocols.meteora.constants import SCALE_OFFSET
    from dlmm_core.types import PositionFeeInfo, PositionVersion
    from dlmm_fixtures import make_bin_array

    print("Testing get_claimable_swap_fee...")

    bin_array = make_bin_array(1, bins={100: {
        "fee_amount_x_per_token_stored": 7 << SCALE_OFFSET,
        "fee_amount_y_per_token_stored": 2 << SCALE_OFFSET,
    }})
    fee_infos = {100: PositionFeeInfo(
        fee_x_per_token_complete=1 << SCALE_OFFSET,
        fee_x_pending=5,
        fee_y_pending=1,
    )}

    # V1 share is already on the small scale
    position = _position(100, 100, shares={100: 1_000}, fee_infos=fee_infos)
    fees = get_claimable_swap_fee(position, bin_array)
    assert fees.fee_x == 6_005, f"Expected 6005, got {fees.fee_x}"
    assert fees.fee_y == 2_001

    # V2 share is shifted by 64 bits and scaled back before accrual
    position = _position(
        100, 100, shares={100: 1_000 << SCALE_OFFSET}, version=PositionVersion.V2, fee_infos=fee_infos
    )
    fees = get_claimable_swap_fee(position, bin_array)
    assert fees.fee_x == 6_005
    assert fees.fee_y == 2_001

    print("  get_claimable_swap_fee: PASSED")


def test_pending_fee_counted_once():
    """Test pending fee is added once per bin"""
    from dlmm_core.protocols.meteora.position import get_claimable_swap_fee
    from dlmm_core.types import PositionFeeInfo
    from dlmm_fixtures import make_bin_array

    print("Testing pending fee accumulation...")

    pending = PositionFeeInfo(fee_x_pending=7)
    position = _position(100, 101, fee_infos={100: pending, 101: pending})

    fees = get_claimable_swap_fee(position, make_bin_array(1))
    assert fees.fee_x == 14, f"Expected 14, got {fees.fee_x}"
    assert fees.fee_y == 0

    print("  pending fee accumulation: PASSED")


def test_covering_bin_arrays():
    """Test positions spanning two bin arrays"""
    from dlmm_core.protocols.meteora.position import get_claimable_swap_fee
    from dlmm_core.types import PositionFeeInfo
    from dlmm_core.errors import MissingBinArray
    from dlmm_fixtures import make_bin_array

    print("Testing covering bin arrays...")

    pending = PositionFeeInfo(fee_y_pending=1)
    position = _position(60, 80, fee_infos={60: pending, 80: pending})
    lower = make_bin_array(0)
    upper = make_bin_array(1)

    assert get_claimable_swap_fee(position, lower, upper).fee_y == 2

    try:
        get_claimable_swap_fee(position, lower)
        assert False, "Should raise for missing upper bin array"
    except MissingBinArray as e:
        assert e.bin_array_index == 1
        assert e.should_refetch

    try:
        get_claimable_swap_fee(position, lower, make_bin_array(2))
        assert False, "Should raise for mismatched upper bin array"
    except MissingBinArray as e:
        assert e.bin_array_index == 1

    try:
        get_claimable_swap_fee(position, upper, upper)
        assert False, "Should raise for mismatched lower bin array"
    except MissingBinArray as e:
        assert e.bin_array_index == 0

    try:
        get_claimable_swap_fee(position, None)
        assert False, "Should raise for missing lower bin array"
    except MissingBinArray:
        pass

    print("  covering bin arrays: PASSED")


def test_position_width():
    """Test positions wider than 70 bins are rejected"""
    from dlmm_core.errors import ConfigurationError

    print("Testing position width...")

    assert _position(0, 69).width == 70

    try:
        _position(0, 70)
        assert False, "Should raise for 71 bins"
    except ConfigurationError:
        pass

    print("  position width: PASSED")


def _reward_pool(reward_rate, reward_duration_end, last_update_time, active_id=100):
    from dlmm_core.types import RewardInfo
    from dlmm_fixtures import make_lb_pair, reward_slot

    return make_lb_pair(
        active_id=active_id,
        reward_infos=[reward_slot(reward_rate, reward_duration_end, last_update_time), RewardInfo()],
    )


def test_claimable_lm_reward():
    """Test reward extrapolation in the active bin"""
    from dlmm_core.protocols.meteora.position import get_claimable_lm_reward
    from dlmm_core.protocols.meteora.constants import SCALE_OFFSET
    from dlmm_core.types import PositionRewardInfo
    from dlmm_fixtures import make_bin_array

    print("Testing get_claimable_lm_reward...")

    reward_infos = {100: PositionRewardInfo(reward_pendings=(3, 4))}
    position = _position(100, 100, shares={100: 1_000}, reward_infos=reward_infos)

    # 10s * 30000/s / 15 spread over 1000 shares = 20 per share
    lb_pair = _reward_pool(30_000 << 64, 2_000, 1_000)
    bin_array = make_bin_array(1, bins={100: {"liquidity_supply": 1_000}}, version=0)
    rewards = get_claimable_lm_reward(lb_pair, position, 1_010, bin_array)
    assert rewards.reward_one == 20_003, f"Expected 20003, got {rewards.reward_one}"
    # Second slot has no mint: pending is not reported either
    assert rewards.reward_two == 0

    # Bin arrays storing shifted supply give the same result
    bin_array = make_bin_array(1, bins={100: {"liquidity_supply": 1_000 << SCALE_OFFSET}}, version=1)
    assert get_claimable_lm_reward(lb_pair, position, 1_010, bin_array).reward_one == 20_003

    # Emission stops at reward_duration_end
    lb_pair = _reward_pool(30_000 << 64, 1_010, 1_000)
    assert get_claimable_lm_reward(lb_pair, position, 5_000, bin_array).reward_one == 20_003

    print("  get_claimable_lm_reward: PASSED")


def test_lm_reward_edge_cases():
    """Test slots and bins that are not extrapolated"""
    from dlmm_core.protocols.meteora.position import get_claimable_lm_reward
    from dlmm_core.types import PositionRewardInfo
    from dlmm_fixtures import make_bin_array, make_lb_pair

    print("Testing get_claimable_lm_reward edge cases...")

    reward_infos = {100: PositionRewardInfo(reward_pendings=(3, 0))}
    position = _position(100, 100, shares={100: 1_000}, reward_infos=reward_infos)
    bin_array = make_bin_array(1, bins={100: {"liquidity_supply": 1_000}}, version=0)

    # No initialized slot at all
    rewards = get_claimable_lm_reward(make_lb_pair(active_id=100), position, 1_010, bin_array)
    assert rewards.reward_one == 0 and rewards.reward_two == 0

    # Position bin is not the active bin: only the stored accumulator counts
    lb_pair = _reward_pool(30_000 << 64, 2_000, 1_000, active_id=101)
    assert get_claimable_lm_reward(lb_pair, position, 1_010, bin_array).reward_one == 3

    # Clock behind the pool's last update
    lb_pair = _reward_pool(30_000 << 64, 2_000, 1_020)
    assert get_claimable_lm_reward(lb_pair, position, 1_010, bin_array).reward_one == 3

    # Empty active bin
    empty = make_bin_array(1, version=0)
    lb_pair = _reward_pool(30_000 << 64, 2_000, 1_000)
    assert get_claimable_lm_reward(lb_pair, position, 1_010, empty).reward_one == 3

    print("  get_claimable_lm_reward edge cases: PASSED")


def test_process_position_totals():
    """Test the full breakdown combines reserves, fees and rewards"""
    from dlmm_core.protocols.meteora.position import process_position
    from dlmm_core.types import PositionFeeInfo, PositionRewardInfo
    from dlmm_fixtures import make_bin_array

    print("Testing process_position totals...")

    lb_pair = _reward_pool(30_000 << 64, 2_000, 1_000, active_id=69)
    lower = make_bin_array(0, bins={69: {"amount_y": 900, "liquidity_supply": 1_000}}, version=0)
    upper = make_bin_array(1, bins={70: {"amount_x": 500, "liquidity_supply": 1_000}}, version=0)
    position = _position(
        69, 70,
        shares={69: 1_000, 70: 500},
        fee_infos={70: PositionFeeInfo(fee_x_pending=11)},
        reward_infos={69: PositionRewardInfo(reward_pendings=(1, 0))},
    )

    data = process_position(lb_pair, position, lower, upper, current_timestamp=1_010)
    assert data.total_y_amount == 900
    assert data.total_x_amount == 250
    assert data.fee_x == 11
    assert data.reward_one == 20_001
    assert data.bin_ids == [69, 70]

    as_dict = data.to_dict()
    assert as_dict["total_x_amount"] == "250"
    assert len(as_dict["position_bin_data"]) == 2

    print("  process_position totals: PASSED")


def test_bins_between_bounds():
    """Test bin reserves over a range spanning two arrays"""
    from dlmm_core.protocols.meteora.position import get_bins_between_lower_and_upper_bound
    from dlmm_core.protocols.meteora.math import get_price_of_bin_by_bin_id
    from dlmm_core.errors import ConfigurationError, MissingBinArray
    from dlmm_fixtures import make_bin_array, make_lb_pair

    print("Testing get_bins_between_lower_and_upper_bound...")

    lb_pair = make_lb_pair()
    arrays = [
        make_bin_array(0, bins={69: {"amount_x": 5, "liquidity_supply": 10}}),
        make_bin_array(1, bins={70: {"amount_y": 6}}, version=0),
    ]

    bins = get_bins_between_lower_and_upper_bound(lb_pair, 68, 71, arrays, 9, 6)
    assert [b.bin_id for b in bins] == [68, 69, 70, 71]
    assert bins[1].x_amount == 5 and bins[1].supply == 10
    assert bins[2].y_amount == 6
    assert bins[1].version == 1 and bins[2].version == 0
    assert bins[0].price == get_price_of_bin_by_bin_id(10, 68)
    assert abs(bins[0].price_per_token / bins[0].price - 1000) < Decimal("1e-20")

    try:
        get_bins_between_lower_and_upper_bound(lb_pair, 68, 71, arrays[:1])
        assert False, "Should raise for missing bin array"
    except MissingBinArray as e:
        assert e.bin_array_index == 1

    try:
        get_bins_between_lower_and_upper_bound(lb_pair, 71, 68, arrays)
        assert False, "Should raise for inverted range"
    except ConfigurationError:
        pass

    print("  get_bins_between_lower_and_upper_bound: PASSED")


def main():
    """Run all position accrual tests"""
    print("=" * 60)
    print("Meteora Position Accrual Tests")
    print("=" * 60)

    tests = [
        test_position_reserves,
        test_claimable_swap_fee,
        test_pending_fee_counted_once,
        test_covering_bin_arrays,
        test_position_width,
        test_claimable_lm_reward,
        test_lm_reward_edge_cases,
        test_process_position_totals,
        test_bins_between_bounds,
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
