# commission_api/services/recalc.py
"""
Bring stored salaries back in line after a project, team or revenue change.

Each employee is recalculated in its own transaction; one failure is
logged and recorded, the rest of the batch carries on.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from commission_api.common.errors import NotFoundError, TransientComputationError
from commission_api.extensions import db
from commission_api.models.employee import Employee
from commission_api.models.project import Project
from commission_api.models.salary import Salary
from commission_api.services.months import current_month, month_of, require_month
from commission_api.services.salary_composer import PayrollContext, compose_for_employee
from commission_api.services.salary_store import upsert_salary
from commission_api.services.team_roles import TeamRoles
from commission_api.tasks import get_queue

log = logging.getLogger(__name__)


def recalculate_employee_salary(employee_id: int, month: str,
                                ctx: Optional[PayrollContext] = None) -> Optional[Salary]:
    """
    Recompute and upsert one employee's salary for ``month``.

    Inactive employees are skipped (returns None). Status, paid date and
    payment reference of an existing row survive.
    """
    require_month(month)
    emp = db.session.get(Employee, employee_id)
    if emp is None:
        raise TransientComputationError(employee_id, month, "employee not found")
    if not emp.is_active:
        log.debug("skip recalculation for inactive employee %s", employee_id)
        return None
    if ctx is None:
        ctx = PayrollContext.load(month)
    return upsert_salary(compose_for_employee(emp, ctx))


def recalculate_employees(employee_ids: Iterable[int], month: str) -> dict:
    ids = sorted(set(employee_ids))
    ctx = PayrollContext.load(month)
    recalculated, failed = 0, []
    for eid in ids:
        try:
            recalculate_employee_salary(eid, month, ctx)
            recalculated += 1
        except Exception as e:
            db.session.rollback()
            err = e if isinstance(e, TransientComputationError) else TransientComputationError(eid, month, str(e))
            log.error("salary recalculation failed: %s", err)
            failed.append({"employee_id": eid, "error": err.reason})
    return {"month": month, "total": len(ids), "recalculated": recalculated, "failed": failed}


def target_month(start_date: Optional[date], today: Optional[date] = None) -> str:
    """max(current month, project start month)."""
    month = current_month(today)
    if start_date is not None:
        month = max(month, month_of(start_date))
    return month


def update_salaries_for_project(project_id: int, extra_employee_ids: Iterable[int] = (),
                                today: Optional[date] = None) -> dict:
    """
    Recalculate every team member (plus ``extra_employee_ids``, e.g. people
    just removed from the team) for max(current month, project start month).
    """
    p = db.session.get(Project, project_id)
    if p is None:
        raise NotFoundError("Project not found")
    target = target_month(p.start_date, today)
    ids = TeamRoles.of(p).member_ids() | set(extra_employee_ids)
    summary = recalculate_employees(ids, target)
    log.info("project %s recalculation for %s: %s/%s ok",
             project_id, target, summary["recalculated"], summary["total"])
    return summary


def update_salaries_for_revenue(project_id: int, month: str) -> dict:
    """Recalculate the project's team for the revenue month that changed."""
    require_month(month)
    p = db.session.get(Project, project_id)
    if p is None:
        raise NotFoundError("Project not found")
    summary = recalculate_employees(TeamRoles.of(p).member_ids(), month)
    log.info("revenue change project=%s month=%s: %s/%s ok",
             project_id, month, summary["recalculated"], summary["total"])
    return summary


# ---- scheduling (called by request handlers after their commit) ----
def schedule_project_recalc(project_id: int, extra_employee_ids: Iterable[int] = ()):
    get_queue().submit(f"project-recalc:{project_id}", update_salaries_for_project,
                       project_id, tuple(extra_employee_ids))


def schedule_revenue_recalc(project_id: int, month: str):
    get_queue().submit(f"revenue-recalc:{project_id}:{month}", update_salaries_for_revenue,
                       project_id, month)
