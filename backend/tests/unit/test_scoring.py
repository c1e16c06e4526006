"""Unit tests for tier classification and Strong Holder Score math."""

import itertools
from decimal import Decimal

import pytest

from diamondpad.core.tables import TIER_ORDER, tier_rank
from diamondpad.models.staking import Tier
from diamondpad.schemas.staking import HoldHistory
from diamondpad.services.staking.scoring import (
    compute_shs,
    effective_weight,
    shs_multiplier,
    tier_for_stake,
    upgrade_hint,
)


class TestTierForStake:
    """Test tier thresholds on amount and lock duration."""

    @pytest.mark.parametrize(
        "amount,lock_days,expected",
        [
            (100_000, 180, Tier.DIAMOND),
            (100_000, 179, Tier.GOLD),
            (50_000, 90, Tier.GOLD),
            (49_999, 365, Tier.SILVER),
            (20_000, 60, Tier.SILVER),
            (5_000, 30, Tier.BRONZE),
            (4_999, 365, Tier.PUBLIC),
            (1_000_000, 29, Tier.PUBLIC),
            (0, 0, Tier.PUBLIC),
        ],
    )
    def test_thresholds(self, amount, lock_days, expected):
        """Both minimums must be met for a tier."""
        assert tier_for_stake(Decimal(amount), lock_days) == expected

    def test_monotone_in_both_arguments(self):
        """Raising amount or lock days never lowers the tier."""
        amounts = [Decimal(a) for a in (0, 4_999, 5_000, 19_999, 20_000, 50_000, 99_999, 100_000, 500_000)]
        locks = [0, 29, 30, 59, 60, 89, 90, 179, 180, 400]

        for amount, lock in itertools.product(amounts, locks):
            rank = tier_rank(tier_for_stake(amount, lock))
            for bigger in amounts:
                if bigger >= amount:
                    assert tier_rank(tier_for_stake(bigger, lock)) >= rank
            for longer in locks:
                if longer >= lock:
                    assert tier_rank(tier_for_stake(amount, longer)) >= rank

    def test_tier_order_lowest_first(self):
        """Tier order runs public to diamond."""
        assert TIER_ORDER[0] == Tier.PUBLIC
        assert TIER_ORDER[-1] == Tier.DIAMOND


class TestComputeSHS:
    """Test Strong Holder Score components."""

    def test_empty_history_is_base(self):
        """No history scores the base 50."""
        assert compute_shs(HoldHistory()) == Decimal("50")

    def test_mixed_history(self):
        """Each component contributes its share."""
        history = HoldHistory(
            hold_duration=Decimal("45"),
            launches_participated=4,
            launches_held_long=2,
            quick_flips=1,
            governance_votes=2,
        )
        # 50 + 20 (hold) + 10 (loyalty) - 7.5 (flips) + 2 (votes)
        assert compute_shs(history) == Decimal("74.5")

    def test_perfect_history_clamped_to_100(self):
        history = HoldHistory(
            hold_duration=Decimal("365"),
            launches_participated=10,
            launches_held_long=10,
            lp_provided=True,
            governance_votes=50,
        )
        assert compute_shs(history) == Decimal("100")

    def test_serial_flipper(self):
        """All-flip history loses the full 30 points."""
        history = HoldHistory(launches_participated=10, quick_flips=10)
        assert compute_shs(history) == Decimal("20")

    def test_governance_capped_at_five(self):
        assert compute_shs(HoldHistory(governance_votes=3)) == Decimal("53")
        assert compute_shs(HoldHistory(governance_votes=30)) == Decimal("55")

    def test_lp_bonus(self):
        assert compute_shs(HoldHistory(lp_provided=True)) == Decimal("60")

    def test_bounds_over_synthetic_histories(self):
        """SHS stays within [0, 100] for every combination."""
        for hold, part, held, flips, lp, votes in itertools.product(
            (0, 10, 90, 1000),
            (0, 1, 5, 20),
            (0, 1, 5, 40),
            (0, 1, 5, 40),
            (False, True),
            (0, 3, 100),
        ):
            score = compute_shs(
                HoldHistory(
                    hold_duration=Decimal(hold),
                    launches_participated=part,
                    launches_held_long=held,
                    quick_flips=flips,
                    lp_provided=lp,
                    governance_votes=votes,
                )
            )
            assert Decimal("0") <= score <= Decimal("100")

    def test_negative_inputs_rejected(self):
        """HoldHistory refuses negative counts."""
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            HoldHistory(quick_flips=-1)


class TestMultiplierAndWeight:
    """Test SHS multiplier and effective weight."""

    def test_multiplier_endpoints(self):
        assert shs_multiplier(Decimal("0")) == Decimal("0.5")
        assert shs_multiplier(Decimal("50")) == Decimal("1.25")
        assert shs_multiplier(Decimal("100")) == Decimal("2.0")

    def test_diamond_default_weight(self):
        """Diamond at SHS 50 weighs 10 x 1.25."""
        assert effective_weight(Tier.DIAMOND, Decimal("50")) == Decimal("12.5")

    def test_weight_monotone_in_shs(self):
        for tier in TIER_ORDER:
            weights = [effective_weight(tier, Decimal(s)) for s in range(0, 101, 5)]
            assert weights == sorted(weights)


class TestUpgradeHint:
    """Test next-tier hints."""

    def test_needs_both(self):
        hint = upgrade_hint(Tier.PUBLIC, Decimal("1000"), 10)
        assert hint == "Stake 4000 more tokens and lock for 20 more days to reach Bronze"

    def test_needs_only_lock(self):
        hint = upgrade_hint(Tier.GOLD, Decimal("150000"), 90)
        assert hint == "Lock for 90 more days to reach Diamond"

    def test_needs_only_stake(self):
        hint = upgrade_hint(Tier.SILVER, Decimal("20000"), 120)
        assert hint == "Stake 30000 more tokens to reach Gold"

    def test_top_tier_has_no_hint(self):
        assert upgrade_hint(Tier.DIAMOND, Decimal("100000"), 180) is None
