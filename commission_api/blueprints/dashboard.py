# commission_api/blueprints/dashboard.py
from flask import Blueprint, request

from commission_api.blueprints.salaries import _row as salary_row
from commission_api.common.auth import requires_roles
from commission_api.common.http import ok
from commission_api.models.salary import Salary, SALARY_PAID, SALARY_PENDING
from commission_api.services.dashboard import (
    active_employee_count, revenue_collected, salary_totals, salaries_with_status,
)
from commission_api.services.months import current_month, require_month

bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")

RECENT_LIMIT = 10


def _month_arg():
    month = request.args.get("month")
    return require_month(month) if month else current_month()


def _paid(month, limit=None):
    return salaries_with_status(month, SALARY_PAID, Salary.paid_date.desc(), limit)


def _pending(month, limit=None):
    return salaries_with_status(month, SALARY_PENDING, Salary.created_at.desc(), limit)


@bp.get("/metrics")
@requires_roles("admin", "hr", "viewer")
def metrics():
    month = _month_arg()
    totals = salary_totals(month)
    return ok({
        "month": month,
        "total_active_employees": active_employee_count(),
        "total_paid_salary": totals[SALARY_PAID]["total"],
        "paid_count": totals[SALARY_PAID]["count"],
        "total_pending_salary": totals[SALARY_PENDING]["total"],
        "pending_count": totals[SALARY_PENDING]["count"],
        "total_project_payout": revenue_collected(month),
        "salary_overview": {
            "paid": [salary_row(s) for s in _paid(month, RECENT_LIMIT)],
            "pending": [salary_row(s) for s in _pending(month, RECENT_LIMIT)],
        },
    })


@bp.get("/salary-overview")
@requires_roles("admin", "hr", "viewer")
def salary_overview():
    month = _month_arg()
    totals = salary_totals(month)
    return ok({
        "month": month,
        "paid": dict(totals[SALARY_PAID], salaries=[salary_row(s) for s in _paid(month)]),
        "pending": dict(totals[SALARY_PENDING], salaries=[salary_row(s) for s in _pending(month)]),
    })
