"""Unit tests for the staking ledger."""

from decimal import Decimal

import pytest

from diamondpad.core.errors import ErrorKind
from diamondpad.models.staking import Tier
from diamondpad.schemas.staking import HoldHistory


class TestStake:
    """Test opening and topping up positions."""

    def test_first_stake_creates_position(self, staking, clock):
        """New wallets get the default SHS and their tier weight."""
        result = staking.stake("alice", 100_000, 180)

        assert result.success
        position = result.value
        assert position.tier == Tier.DIAMOND
        assert position.strong_holder_score == Decimal("50")
        assert position.effective_weight == Decimal("12.5")
        assert position.staked_at == clock.now()
        assert (position.lock_end_date - clock.now()).days == 180

    def test_below_bronze_is_public(self, staking):
        result = staking.stake("bob", 4_000, 365)
        assert result.value.tier == Tier.PUBLIC

    @pytest.mark.parametrize("amount", [0, -5, "abc", "NaN"])
    def test_rejects_bad_amount(self, staking, store, amount):
        result = staking.stake("alice", amount, 30)

        assert not result.success
        assert result.error_kind == ErrorKind.VALIDATION_ERROR
        assert "alice" not in store.stakers

    @pytest.mark.parametrize("lock_days", [-1, 1.5, True])
    def test_rejects_bad_lock_days(self, staking, lock_days):
        result = staking.stake("alice", 1_000, lock_days)
        assert result.error_kind == ErrorKind.VALIDATION_ERROR

    def test_top_up_keeps_existing_lock(self, staking, clock):
        """A short top-up never shortens the lock or drops the tier."""
        staking.stake("alice", 100_000, 180)
        lock_end = staking.get_position("alice").lock_end_date

        result = staking.stake("alice", 1, 0)

        assert result.value.staked_amount == Decimal("100001")
        assert result.value.lock_end_date == lock_end
        assert result.value.tier == Tier.DIAMOND

    def test_top_up_extends_lock(self, staking, clock):
        staking.stake("alice", 60_000, 30)
        clock.advance(days=10)

        result = staking.stake("alice", 1, 90)

        assert result.value.tier == Tier.GOLD
        assert (result.value.lock_end_date - clock.now()).days == 90

    def test_top_up_legacy_lock_days(self, store, clock):
        """Legacy mode classifies a top-up on the request lock days alone."""
        from diamondpad.core.config import Settings
        from diamondpad.services.staking.tier_manager import StakingTierManager

        settings = Settings(_env_file=None, legacy_stake_merge_lock_days=True)
        staking = StakingTierManager(store, clock=clock, settings=settings)
        staking.stake("alice", 100_000, 180)

        result = staking.stake("alice", 1, 0)

        assert result.value.tier == Tier.PUBLIC
        assert result.value.staked_amount == Decimal("100001")

    def test_returned_position_is_a_copy(self, staking):
        position = staking.stake("alice", 10_000, 30).value
        position.staked_amount = Decimal("1")

        assert staking.get_position("alice").staked_amount == Decimal("10000")


class TestUnstake:
    """Test withdrawals and the early-unstake penalty."""

    def test_early_unstake_penalty(self, staking):
        staking.stake("alice", 100, 30)

        result = staking.unstake("alice", 50, early=True)

        assert result.success
        assert result.value.amount_returned == Decimal("45")
        assert result.value.penalty_applied == Decimal("5")
        assert result.value.new_position.staked_amount == Decimal("50")

    def test_no_penalty_after_lock_end(self, staking, clock):
        staking.stake("alice", 100, 30)
        clock.advance(days=31)

        result = staking.unstake("alice", 50, early=True)

        assert result.value.amount_returned == Decimal("50")
        assert result.value.penalty_applied == Decimal("0")

    def test_no_penalty_without_early_flag(self, staking):
        staking.stake("alice", 100, 30)
        result = staking.unstake("alice", 40)
        assert result.value.penalty_applied == Decimal("0")

    def test_full_unstake_removes_position(self, staking):
        staking.stake("alice", 100, 30)

        result = staking.unstake("alice", 100)

        assert result.value.new_position is None
        assert staking.get_position("alice") is None

    def test_unknown_wallet(self, staking):
        result = staking.unstake("nobody", 1)
        assert result.error_kind == ErrorKind.NOT_FOUND

    def test_insufficient_balance(self, staking):
        staking.stake("alice", 100, 30)

        result = staking.unstake("alice", 101)

        assert result.error_kind == ErrorKind.INSUFFICIENT_BALANCE
        assert staking.get_position("alice").staked_amount == Decimal("100")

    def test_tier_recomputed_on_remaining_lock(self, staking, clock):
        """After 100 of 180 days only 80 remain, too short for Gold."""
        staking.stake("alice", 100_000, 180)
        clock.advance(days=100)

        result = staking.unstake("alice", 1)

        assert result.value.new_position.tier == Tier.SILVER
        assert result.value.new_position.effective_weight == Decimal("2.5") * Decimal("1.25")


class TestUpdateSHS:
    """Test SHS feedback after a launch."""

    def test_update_reweights(self, staking):
        staking.stake("alice", 100_000, 180)

        result = staking.update_shs("alice", 100)

        assert result.value.strong_holder_score == Decimal("100")
        assert result.value.effective_weight == Decimal("20")

    @pytest.mark.parametrize("shs", [-1, 101, "x"])
    def test_out_of_range(self, staking, shs):
        staking.stake("alice", 100_000, 180)
        result = staking.update_shs("alice", shs)
        assert result.error_kind == ErrorKind.VALIDATION_ERROR

    def test_unknown_wallet(self, staking):
        assert staking.update_shs("nobody", 60).error_kind == ErrorKind.NOT_FOUND


class TestLaunchOutcome:
    """Test cumulative launch counters."""

    def test_counters_and_streak(self, staking):
        staking.stake("alice", 5_000, 30)

        staking.record_launch_outcome("alice", 1_000, "250.5", held_long=True)
        result = staking.record_launch_outcome("alice", 500, 100, held_long=True)

        assert result.value.total_allocations_received == 2
        assert result.value.total_allocations_value == Decimal("350.5")
        assert result.value.loyalty_streak == 2

    def test_flip_resets_streak(self, staking):
        staking.stake("alice", 5_000, 30)
        staking.record_launch_outcome("alice", 1_000, 10, held_long=True)

        result = staking.record_launch_outcome("alice", 1_000, 10, held_long=False)

        assert result.value.loyalty_streak == 0

    def test_zero_award_not_counted(self, staking):
        staking.stake("alice", 5_000, 30)
        result = staking.record_launch_outcome("alice", 0, 0, held_long=True)
        assert result.value.total_allocations_received == 0


class TestQueries:
    """Test read-side views."""

    def test_position_view(self, staking, clock):
        staking.stake("alice", 50_000, 90)
        clock.advance(days=10, hours=12)

        view = staking.position_view("alice")

        assert view.tier_name == "Gold"
        assert view.days_remaining == 80
        assert not view.can_unstake_without_penalty
        assert view.benefits.guaranteed_allocation

    def test_position_view_after_lock(self, staking, clock):
        staking.stake("alice", 5_000, 30)
        clock.advance(days=30)

        view = staking.position_view("alice")

        assert view.days_remaining == 0
        assert view.can_unstake_without_penalty

    def test_position_view_unknown(self, staking):
        assert staking.position_view("nobody") is None

    def test_overview(self, staking):
        staking.stake("a", 100_000, 180)
        staking.stake("b", 50_000, 90)
        staking.stake("c", 50_000, 90)

        overview = staking.staking_overview()

        assert overview.total_staked == Decimal("200000")
        assert overview.total_stakers == 3
        assert overview.by_tier[0].tier == Tier.DIAMOND
        gold = next(s for s in overview.by_tier if s.tier == Tier.GOLD)
        assert gold.count == 2
        assert gold.percent_of_total == Decimal("50")
        assert len(staking.stakers_by_tier(Tier.GOLD)) == 2

    def test_empty_overview(self, staking):
        overview = staking.staking_overview()
        assert overview.total_stakers == 0
        assert overview.avg_stake_size == Decimal("0")

    def test_lottery_boost(self, staking):
        staking.stake("alice", 100_000, 180)

        assert staking.lottery_boost("alice") == Decimal("5.0") * Decimal("1.25")
        assert staking.lottery_boost("nobody") == Decimal("1.0")

    def test_guaranteed_allocation(self, staking):
        staking.stake("gold", 50_000, 90)
        staking.stake("silver", 20_000, 60)

        assert staking.has_guaranteed_allocation("gold")
        assert not staking.has_guaranteed_allocation("silver")
        assert not staking.has_guaranteed_allocation("nobody")

    def test_simulate(self, staking):
        sim = staking.simulate(Decimal("20000"), 120, HoldHistory(lp_provided=True))

        assert sim.tier == Tier.SILVER
        assert sim.strong_holder_score == Decimal("60")
        assert sim.shs_multiplier == Decimal("1.4")
        assert sim.effective_weight == Decimal("3.5")
        assert sim.upgrade_hint == "Stake 30000 more tokens to reach Gold"

    def test_simulate_uses_default_shs(self, staking):
        sim = staking.simulate(100_000, 180)
        assert sim.strong_holder_score == Decimal("50")
        assert sim.upgrade_hint is None


class TestOperationMetrics:
    """Test that operations feed the metrics collector."""

    def test_failures_counted_by_kind(self, store, clock, settings):
        from diamondpad.core.metrics import MetricsCollector
        from diamondpad.services.staking.tier_manager import StakingTierManager

        metrics = MetricsCollector()
        staking = StakingTierManager(store, clock=clock, settings=settings, metrics=metrics)
        staking.stake("alice", 100, 30)
        staking.unstake("alice", 500)

        ops = metrics.get_operation_metrics()
        assert ops["stake"]["success_count"] == 1
        assert ops["unstake"]["errors_by_kind"] == {"insufficient_balance": 1}
        assert metrics.get_summary()["total_errors"] == 1
