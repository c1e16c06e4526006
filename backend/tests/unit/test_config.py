"""Unit tests for settings and engine wiring."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from diamondpad.core.config import Settings


class TestSettings:
    """Test defaults and environment overrides."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.default_shs == Decimal("50")
        assert settings.early_unstake_penalty == Decimal("0.10")
        assert settings.vesting_release_count == 4
        assert settings.liquidity_lock_days == 365
        assert settings.lottery_seed is None
        assert not settings.allow_repeat_requests

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DIAMONDPAD_EARLY_UNSTAKE_PENALTY", "0.2")
        monkeypatch.setenv("DIAMONDPAD_LOTTERY_SEED", "1234")

        settings = Settings(_env_file=None)

        assert settings.early_unstake_penalty == Decimal("0.2")
        assert settings.lottery_seed == 1234

    @pytest.mark.parametrize(
        "field,value",
        [("default_shs", "150"), ("early_unstake_penalty", "1.5"), ("vesting_release_count", "0")],
    )
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})


class TestCreateLaunchpad:
    """Test the composition root."""

    def test_shared_ledger_and_metrics(self, clock, settings, gateway):
        from diamondpad.core.randomness import SeededRandomSource
        from diamondpad.models.allocation import PoolName
        from diamondpad.services.launchpad import create_launchpad

        pad = create_launchpad(
            settings=settings,
            clock=clock,
            random_source=SeededRandomSource(5),
            settlement=gateway,
        )

        pad.staking.stake("gold", 50_000, 90)
        pad.allocation.initialize_launch("L1", 1_000_000, "0.001")
        pad.allocation.open_pool("L1", PoolName.GUARANTEED)
        result = pad.allocation.submit_request("gold", "L1", PoolName.GUARANTEED, 1_000)

        assert result.success
        assert "gold" in pad.store.stakers
        ops = pad.metrics.get_operation_metrics()
        assert set(ops) == {"stake", "initialize_launch", "open_pool", "submit_request"}

    def test_custom_penalty_applied(self, clock):
        from diamondpad.services.launchpad import create_launchpad

        pad = create_launchpad(settings=Settings(_env_file=None, early_unstake_penalty="0.25"), clock=clock)
        pad.staking.stake("alice", 100, 30)

        result = pad.staking.unstake("alice", 100, early=True)

        assert result.value.penalty_applied == Decimal("25")
