"""
Test Meteora Dynamic Fee

Tests for reference/volatility updates, fee rates and fee read-outs.
"""

import sys
from decimal import Decimal
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def _fee(**overrides):
    from dlmm_core.protocols.meteora.fee import DynamicFee

    params = dict(
        bin_step=10,
        base_factor=10_000,
        filter_period=30,
        decay_period=600,
        reduction_factor=5000,
        variable_fee_control=0,
        max_volatility_accumulator=350_000,
        protocol_share=0,
    )
    params.update(overrides)
    return DynamicFee(**params)


def test_volatility_accumulator():
    """Test accumulator grows 10000 per bin of distance"""
    print("Testing update_volatility_accumulator...")

    # Reference at 50, active moved to 47
    fee = _fee(volatility_reference=5000, index_reference=50)
    fee.update_volatility_accumulator(47)
    assert fee.volatility_accumulator == 5000 + 3 * 10000, f"Got {fee.volatility_accumulator}"

    # Direction does not matter
    fee.update_volatility_accumulator(53)
    assert fee.volatility_accumulator == 35_000

    # Capped at max_volatility_accumulator
    fee = _fee(volatility_reference=5000, index_reference=50, max_volatility_accumulator=20_000)
    fee.update_volatility_accumulator(47)
    assert fee.volatility_accumulator == 20_000

    print("  update_volatility_accumulator: PASSED")


def test_update_reference():
    """Test filter and decay periods"""
    print("Testing update_reference...")

    def fresh():
        return _fee(
            volatility_accumulator=40_000,
            volatility_reference=1_000,
            index_reference=7,
            last_update_timestamp=1_000,
        )

    # Inside the filter period nothing moves
    fee = fresh()
    fee.update_reference(100, 1_010)
    assert fee.index_reference == 7
    assert fee.volatility_reference == 1_000

    # Past filter, inside decay: reference decays by reduction_factor
    fee = fresh()
    fee.update_reference(100, 1_100)
    assert fee.index_reference == 100
    assert fee.volatility_reference == 40_000 * 5000 // 10000

    # Past decay: reference resets
    fee = fresh()
    fee.update_reference(100, 2_000)
    assert fee.index_reference == 100
    assert fee.volatility_reference == 0

    print("  update_reference: PASSED")


def test_fee_rates():
    """Test base, variable and capped total fee"""
    from dlmm_core.protocols.meteora.constants import MAX_FEE_RATE

    print("Testing fee rates...")

    fee = _fee()
    assert fee.base_fee() == 10_000 * 10 * 10
    assert fee.variable_fee() == 0
    assert fee.total_fee() == 1_000_000

    # (10000 * 10)^2 * 40000 / 1e11 = 4000
    fee = _fee(variable_fee_control=40_000, volatility_accumulator=10_000)
    assert fee.variable_fee() == 4_000
    assert fee.total_fee() == 1_004_000

    # Rounds up
    fee = _fee(bin_step=1, variable_fee_control=40_000, volatility_accumulator=1)
    assert fee.variable_fee() == 1

    fee = _fee(base_factor=1_000_000)
    assert fee.total_fee() == MAX_FEE_RATE

    print("  fee rates: PASSED")


def test_fee_amounts():
    """Test fee on net and gross amounts"""
    print("Testing fee amounts...")

    fee = _fee(protocol_share=2000)

    # 0.1% fee on top of a net amount, rounded up
    assert fee.compute_fee(1_000_000) == 1002
    assert fee.compute_fee(0) == 0

    # 0.1% contained in a gross amount, rounded up
    assert fee.compute_fee_from_amount(1_000_000) == 1000
    assert fee.compute_fee_from_amount(1) == 1
    assert fee.compute_fee_from_amount(0) == 0

    assert fee.compute_protocol_fee(1000) == 200
    assert fee.compute_protocol_fee(4) == 0

    print("  fee amounts: PASSED")


def test_from_lb_pair_is_a_copy():
    """Test the working copy leaves the pool snapshot untouched"""
    from dlmm_core.protocols.meteora.fee import DynamicFee
    from dlmm_core.types import VariableParameters
    from dlmm_fixtures import make_lb_pair

    print("Testing DynamicFee.from_lb_pair...")

    v_parameters = VariableParameters(
        volatility_accumulator=12_000,
        volatility_reference=3_000,
        index_reference=5,
        last_update_timestamp=100,
    )
    lb_pair = make_lb_pair(active_id=9, v_parameters=v_parameters)

    fee = DynamicFee.from_lb_pair(lb_pair)
    assert fee.volatility_accumulator == 12_000
    assert fee.index_reference == 5

    fee.update_reference(9, 10_000)
    fee.update_volatility_accumulator(20)
    assert lb_pair.v_parameters == v_parameters, "Pool snapshot must not change"

    print("  DynamicFee.from_lb_pair: PASSED")


def test_fee_info():
    """Test static fee overview"""
    from dlmm_core.protocols.meteora.fee import get_fee_info
    from dlmm_fixtures import make_lb_pair

    print("Testing get_fee_info...")

    lb_pair = make_lb_pair(protocol_share=500)
    info = get_fee_info(lb_pair)
    assert info.base_fee_rate_percentage == Decimal("0.1")
    assert info.max_fee_rate_percentage == Decimal(10)
    assert info.protocol_fee_percentage == Decimal(5)

    # The cap does not depend on the volatility settings
    lb_pair = make_lb_pair(variable_fee_control=40_000, max_volatility_accumulator=10_000)
    info = get_fee_info(lb_pair)
    assert info.max_fee_rate_percentage == Decimal(10)
    assert info.base_fee_rate_percentage == Decimal("0.1")

    print("  get_fee_info: PASSED")


def test_dynamic_fee():
    """Test current fee read-out"""
    from dlmm_core.protocols.meteora.fee import get_dynamic_fee
    from dlmm_core.types import VariableParameters
    from dlmm_fixtures import make_lb_pair

    print("Testing get_dynamic_fee...")

    assert get_dynamic_fee(make_lb_pair(), current_timestamp=1_000) == Decimal("0.1")

    # Reference frozen at bin 0 inside the filter period; active is 1 bin away
    lb_pair = make_lb_pair(
        active_id=1,
        variable_fee_control=40_000,
        v_parameters=VariableParameters(index_reference=0, last_update_timestamp=1_000),
    )
    assert get_dynamic_fee(lb_pair, current_timestamp=1_010) == Decimal("0.1004")

    # Past the filter period the reference catches up and the variable part vanishes
    assert get_dynamic_fee(lb_pair, current_timestamp=5_000) == Decimal("0.1")

    print("  get_dynamic_fee: PASSED")


def test_emission_rate():
    """Test reward emission read-out"""
    from dlmm_core.protocols.meteora.fee import get_emission_rate
    from dlmm_core.types import RewardInfo
    from dlmm_fixtures import make_lb_pair, reward_slot

    print("Testing get_emission_rate...")

    lb_pair = make_lb_pair(reward_infos=[reward_slot(5 << 64, 2_000, 1_000), RewardInfo()])

    rate = get_emission_rate(lb_pair, current_timestamp=1_500)
    assert rate.reward_one == Decimal(5)
    assert rate.reward_two == Decimal(0), "Uninitialized slot emits nothing"

    rate = get_emission_rate(lb_pair, current_timestamp=3_000)
    assert rate.reward_one == Decimal(0), "Ended reward emits nothing"

    print("  get_emission_rate: PASSED")


def main():
    """Run all dynamic fee tests"""
    print("=" * 60)
    print("Meteora Dynamic Fee Tests")
    print("=" * 60)

    tests = [
        test_volatility_accumulator,
        test_update_reference,
        test_fee_rates,
        test_fee_amounts,
        test_from_lb_pair_is_a_copy,
        test_fee_info,
        test_dynamic_fee,
        test_emission_rate,
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
