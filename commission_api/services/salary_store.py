# commission_api/services/salary_store.py
"""
One salary row per (employee, month).

upsert_salary rewrites the bonus/commission lines and the total of an
existing row and leaves status / paid_date / payment_reference alone;
the base salary snapshot taken when the row was created is kept too.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError

from commission_api.extensions import db
from commission_api.models.salary import Salary, SalaryLine, SALARY_PENDING
from commission_api.services.salary_composer import ComposedSalary

log = logging.getLogger(__name__)


def find_salary(employee_id: int, month: str) -> Optional[Salary]:
    return Salary.query.filter_by(employee_id=employee_id, month=month).first()


def _new_row(composed: ComposedSalary) -> Salary:
    return Salary(
        employee_id=composed.employee_id,
        month=composed.month,
        base_salary=composed.base_salary,
        status=SALARY_PENDING,
    )


def _write_lines(row: Salary, composed: ComposedSalary):
    row.lines = [
        SalaryLine(
            kind=l.kind,
            project_id=l.project_id,
            amount=l.amount,
            commission_type=l.commission_type,
            commission_rate=l.commission_rate,
            position=i,
        )
        for i, l in enumerate(composed.lines)
    ]
    row.recompute_total()


def upsert_salary(composed: ComposedSalary) -> Salary:
    row = find_salary(composed.employee_id, composed.month)
    if row is None:
        row = _new_row(composed)
        db.session.add(row)
    _write_lines(row, composed)
    try:
        db.session.commit()
        return row
    except IntegrityError:
        # a concurrent writer inserted the same (employee, month) first
        db.session.rollback()
        row = find_salary(composed.employee_id, composed.month)
        if row is None:
            raise

    _write_lines(row, composed)
    db.session.commit()
    log.info("salary upsert for employee=%s month=%s lost insert race, updated in place",
             composed.employee_id, composed.month)
    return row


def insert_salary_if_absent(composed: ComposedSalary) -> Tuple[Optional[Salary], bool]:
    """Insert a fresh Pending row; a uniqueness violation is a no-op."""
    if find_salary(composed.employee_id, composed.month) is not None:
        return None, False
    row = _new_row(composed)
    _write_lines(row, composed)
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        log.info("salary for employee=%s month=%s already inserted elsewhere",
                 composed.employee_id, composed.month)
        return None, False
    return row, True
