# commission_api/services/commission.py
from __future__ import annotations

from typing import NamedTuple

from commission_api.models.project import COMMISSION_PERCENTAGE


class CommissionRule(NamedTuple):
    type: str      # percentage | fixed
    amount: float


def calculate_commission(base: float, commission_type: str, commission_amount: float) -> float:
    """
    Payout for one commission rule.

    percentage -> base * amount / 100, fixed -> amount (base ignored).
    No rounding and no range check: a 150% rule pays 1.5x the base.
    """
    if commission_type == COMMISSION_PERCENTAGE:
        return (base * commission_amount) / 100
    return commission_amount


def apply_rule(base: float, rule: CommissionRule) -> float:
    return calculate_commission(base, rule.type, rule.amount)


def calculate_developer_bonus(bonus_pool: float, developer_count: int) -> float:
    # flat pool, independent of revenue
    if developer_count == 0:
        return 0.0
    return bonus_pool / developer_count
