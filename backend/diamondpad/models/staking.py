"""Staking ledger records."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict


class Tier(str, Enum):
    """Staking tier, highest first."""
    DIAMOND = "diamond"
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"
    PUBLIC = "public"


@dataclass
class StakerPosition:
    """One wallet's stake. Created on first stake, deleted at zero balance."""
    wallet: str
    staked_amount: Decimal
    staked_at: datetime
    lock_end_date: datetime
    tier: Tier
    strong_holder_score: Decimal
    effective_weight: Decimal

    # Feedback from concluded launches
    total_allocations_received: int = 0
    total_allocations_value: Decimal = Decimal("0")
    loyalty_streak: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wallet": self.wallet,
            "staked_amount": str(self.staked_amount),
            "staked_at": self.staked_at.isoformat(),
            "lock_end_date": self.lock_end_date.isoformat(),
            "tier": self.tier.value,
            "strong_holder_score": str(self.strong_holder_score),
            "effective_weight": str(self.effective_weight),
            "total_allocations_received": self.total_allocations_received,
            "total_allocations_value": str(self.total_allocations_value),
            "loyalty_streak": self.loyalty_streak,
        }
