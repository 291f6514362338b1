# commission_api/services/salary_batch.py
"""Month-wide salary generation and recalculation."""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from commission_api.common.errors import APIError, NotFoundError
from commission_api.extensions import db
from commission_api.models.employee import Employee, STATUS_ACTIVE
from commission_api.models.salary import Salary
from commission_api.services.months import current_month, next_month, require_month
from commission_api.services.recalc import recalculate_employees
from commission_api.services.salary_composer import PayrollContext, compose_for_employee
from commission_api.services.salary_store import insert_salary_if_absent

log = logging.getLogger(__name__)


def _existing_employee_ids(month: str) -> set:
    rows = db.session.query(Salary.employee_id).filter(Salary.month == month).all()
    return {eid for (eid,) in rows}


def generate_monthly_salaries(month: str) -> dict:
    """
    Create Pending rows for every Active employee without one for ``month``.

    Existing rows are never touched, so calling this twice is harmless.
    """
    require_month(month)
    existing = _existing_employee_ids(month)

    q = Employee.query.filter(Employee.status == STATUS_ACTIVE)
    if existing:
        q = q.filter(~Employee.id.in_(existing))
    employees = q.order_by(Employee.id.asc()).all()

    if not employees:
        if existing:
            return {
                "count": 0,
                "month": month,
                "salaries": [],
                "existing_count": len(existing),
                "total_count": len(existing),
                "message": f"All salaries for {month} already exist. No new salaries generated.",
            }
        raise NotFoundError("No active employees found")

    ctx = PayrollContext.load(month)
    created, raced = [], 0
    for emp in employees:
        row, was_created = insert_salary_if_absent(compose_for_employee(emp, ctx))
        if was_created:
            created.append(row)
        else:
            raced += 1

    existing_count = len(existing) + raced
    if existing_count:
        message = (f"Generated {len(created)} new salaries. "
                   f"{existing_count} salaries already existed for {month}.")
    else:
        message = f"Generated {len(created)} salaries for {month}"
    log.info("salary generation %s: created=%s existing=%s", month, len(created), existing_count)

    return {
        "count": len(created),
        "month": month,
        "salaries": created,
        "existing_count": existing_count,
        "total_count": len(created) + existing_count,
        "message": message,
    }


def generate_next_month(month: str) -> Optional[dict]:
    """Generate the month after ``month``; failures are logged, never raised."""
    nm = next_month(month)
    try:
        return generate_monthly_salaries(nm)
    except APIError as e:
        log.info("next-month generation for %s skipped: %s", nm, e.message)
        return None


def auto_generate_next_month(today: Optional[date] = None) -> Optional[dict]:
    """
    Read-path side effect: make sure next month's rows exist.
    Only runs when next month has no rows at all.
    """
    nm = next_month(current_month(today))
    if Salary.query.filter(Salary.month == nm).first() is not None:
        return None
    try:
        return generate_monthly_salaries(nm)
    except Exception:
        db.session.rollback()
        log.exception("auto generation for %s failed", nm)
        return None


def recalculate_month(month: str) -> dict:
    """Recompute every stored salary of ``month``; 404 when none were generated."""
    require_month(month)
    ids = _existing_employee_ids(month)
    if not ids:
        raise NotFoundError(f"No salaries found for {month}. Please generate salaries first.")
    return recalculate_employees(ids, month)
