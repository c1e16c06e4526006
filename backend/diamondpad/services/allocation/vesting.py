"""Size-dependent vesting schedules.

Awards are bucketed by USD value:
- <= $500:    no vesting, 100% at TGE
- <= $2,000:  30 day vest, 50% at TGE
- <= $10,000: 7 day cliff, 60 day vest, 25% at TGE
- above:      14 day cliff, 90 day vest, 20% at TGE

After the TGE tranche the rest is split into equal tranches spaced evenly
over the vesting window after the cliff. Integer remainders go to the last
tranche so releases always sum to the awarded tokens.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from diamondpad.core.tables import VESTING_RULES, VestingRule
from diamondpad.models.allocation import VestingRelease, VestingSchedule

DEFAULT_RELEASE_COUNT = 4


def select_vesting_rule(amount_usd: Decimal, rules: Optional[List[VestingRule]] = None) -> VestingRule:
    """Return the first (smallest) rule whose bound covers amount_usd."""
    rules = rules or VESTING_RULES
    for rule in rules:
        if rule.covers(amount_usd):
            return rule
    return rules[-1]


def create_vesting_schedule(
    amount_usd: Decimal,
    tokens: int,
    start: datetime,
    release_count: int = DEFAULT_RELEASE_COUNT,
    rules: Optional[List[VestingRule]] = None,
) -> VestingSchedule:
    """Build the release plan for an award of `tokens` worth `amount_usd`."""
    rule = select_vesting_rule(amount_usd, rules)

    if rule.vesting_days == 0:
        return VestingSchedule(
            total_tokens=tokens,
            released_tokens=tokens,
            cliff_days=0,
            vesting_days=0,
            start_date=start,
            releases=[VestingRelease(date=start, amount=tokens, released=True)],
        )

    tge_amount = tokens * rule.tge_percent // 100
    vesting_amount = tokens - tge_amount
    per_release = vesting_amount // release_count

    releases = [VestingRelease(date=start, amount=tge_amount, released=False)]

    cliff = timedelta(days=rule.cliff_days)
    window = timedelta(days=rule.vesting_days)
    for k in range(1, release_count + 1):
        amount = per_release
        if k == release_count:
            amount = vesting_amount - per_release * (release_count - 1)
        releases.append(
            VestingRelease(
                date=start + cliff + window * k / release_count,
                amount=amount,
                released=False,
            )
        )

    return VestingSchedule(
        total_tokens=tokens,
        released_tokens=0,
        cliff_days=rule.cliff_days,
        vesting_days=rule.vesting_days,
        start_date=start,
        releases=releases,
    )


def release_due(schedule: VestingSchedule, now: datetime) -> int:
    """Mark every tranche dated at or before `now` as released.

    Returns the number of tokens newly released.
    """
    claimed = 0
    for release in schedule.releases:
        if not release.released and release.date <= now:
            release.released = True
            claimed += release.amount
    schedule.released_tokens += claimed
    return claimed
