# commission_api/services/revenue_ledger.py
"""
Collected revenue per (project, month).

A missing entry means nothing was collected, and nothing accrues for
that project that month.
"""
from __future__ import annotations

from typing import Dict, Optional

from commission_api.models.monthly_revenue import MonthlyProjectRevenue


def revenue_for(project_id: int, month: str) -> Optional[float]:
    row = MonthlyProjectRevenue.query.filter_by(project_id=project_id, month=month).first()
    return row.amount_collected if row else None


def revenue_map(month: str) -> Dict[int, float]:
    rows = MonthlyProjectRevenue.query.filter(MonthlyProjectRevenue.month == month).all()
    return {r.project_id: r.amount_collected for r in rows}


def has_qualifying_revenue(amount: Optional[float]) -> bool:
    return bool(amount)
