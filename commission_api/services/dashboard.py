# commission_api/services/dashboard.py
"""Read-only monthly aggregates over the salary store and the revenue ledger."""
from __future__ import annotations

from typing import Dict

from sqlalchemy import func

from commission_api.extensions import db
from commission_api.models.employee import Employee, STATUS_ACTIVE
from commission_api.models.monthly_revenue import MonthlyProjectRevenue
from commission_api.models.salary import Salary, SALARY_STATUSES


def active_employee_count() -> int:
    return Employee.query.filter(Employee.status == STATUS_ACTIVE).count()


def salary_totals(month: str) -> Dict[str, dict]:
    """{status: {"count", "total"}} for every salary status, zero-filled."""
    out = {s: {"count": 0, "total": 0.0} for s in SALARY_STATUSES}
    rows = (db.session.query(Salary.status, func.count(Salary.id), func.sum(Salary.total_amount))
            .filter(Salary.month == month)
            .group_by(Salary.status)
            .all())
    for status, count, total in rows:
        out[status] = {"count": count, "total": float(total or 0)}
    return out


def revenue_collected(month: str) -> float:
    total = (db.session.query(func.sum(MonthlyProjectRevenue.amount_collected))
             .filter(MonthlyProjectRevenue.month == month)
             .scalar())
    return float(total or 0)


def salaries_with_status(month: str, status: str, order_by, limit=None):
    q = Salary.query.filter(Salary.month == month, Salary.status == status).order_by(order_by)
    if limit:
        q = q.limit(limit)
    return q.all()
