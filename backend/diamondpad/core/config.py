"""Engine configuration loaded from environment variables."""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DIAMONDPAD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # Strong Holder Score
    default_shs: Decimal = Field(
        default=Decimal("50"),
        ge=0,
        le=100,
        description="SHS assigned to a wallet on its first stake"
    )
    shs_min_multiplier: Decimal = Field(
        default=Decimal("0.5"),
        description="Weight multiplier at SHS 0"
    )
    shs_max_multiplier: Decimal = Field(
        default=Decimal("2.0"),
        description="Weight multiplier at SHS 100"
    )

    # Staking
    early_unstake_penalty: Decimal = Field(
        default=Decimal("0.10"),
        ge=0,
        le=1,
        description="Fraction withheld when unstaking before lock end (10%)"
    )
    legacy_stake_merge_lock_days: bool = Field(
        default=False,
        description="Recompute tier on stake top-up from the request lock days only"
    )

    # Allocation
    allow_repeat_requests: bool = Field(
        default=False,
        description="Accept more than one active request per wallet and pool"
    )
    lottery_seed: Optional[int] = Field(
        default=None,
        description="Seed for the default lottery random source (None = OS entropy)"
    )

    # Auto pools
    liquidity_lock_days: int = Field(
        default=365,
        ge=0,
        description="Lock period for the liquidity reserve"
    )
    trader_rewards_emission_days: int = Field(
        default=30,
        ge=0,
        description="Post-launch emission window for trader rewards"
    )

    # Vesting
    vesting_release_count: int = Field(
        default=4,
        ge=1,
        description="Number of post-TGE vesting tranches"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
