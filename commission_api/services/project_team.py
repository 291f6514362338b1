# commission_api/services/project_team.py
"""
Team assignment. Project team fields and the employee -> project
back-reference change together in one transaction.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy import delete, insert, select

from commission_api.common.errors import NotFoundError, ValidationError
from commission_api.extensions import db
from commission_api.models.employee import Employee, employee_projects
from commission_api.models.project import Project, TEAM_SLOTS
from commission_api.services.team_roles import TeamRoles

log = logging.getLogger(__name__)


def sync_project_memberships(p: Project):
    """Make employee_projects for ``p`` match its current team. Caller commits."""
    db.session.flush()
    want = TeamRoles.of(p).member_ids()
    have = set(db.session.execute(
        select(employee_projects.c.employee_id).where(employee_projects.c.project_id == p.id)
    ).scalars())

    stale = have - want
    if stale:
        db.session.execute(delete(employee_projects).where(
            employee_projects.c.project_id == p.id,
            employee_projects.c.employee_id.in_(stale),
        ))
    fresh = want - have
    if fresh:
        db.session.execute(insert(employee_projects),
                           [{"employee_id": eid, "project_id": p.id} for eid in sorted(fresh)])


def _get_project(project_id: int) -> Project:
    p = db.session.get(Project, project_id)
    if not p:
        raise NotFoundError("Project not found")
    return p


def assign_employees(project_id: int, developer_ids: Iterable[int],
                     project_manager_id: Optional[int] = None, team_lead_id: Optional[int] = None,
                     manager_id: Optional[int] = None, bidder_id: Optional[int] = None) -> Project:
    """
    Replace the developer list and set any role slot that is given.
    Slots passed as None keep their current holder.
    """
    slot_ids = {
        "project_manager": project_manager_id,
        "team_lead": team_lead_id,
        "manager": manager_id,
        "bidder": bidder_id,
    }
    try:
        slot_ids = {k: int(v) for k, v in slot_ids.items() if v not in (None, "")}
        developer_ids = list(dict.fromkeys(int(i) for i in developer_ids or []))
    except (TypeError, ValueError):
        raise ValidationError("employee ids must be integers")
    try:
        p = _get_project(project_id)
        wanted = set(developer_ids) | set(slot_ids.values())
        found = {e.id: e for e in Employee.query.filter(Employee.id.in_(wanted)).all()} if wanted else {}
        if len(found) != len(wanted):
            raise NotFoundError("One or more employees not found")

        p.developers = [found[i] for i in developer_ids]
        for slot, eid in slot_ids.items():
            setattr(p, TEAM_SLOTS[slot][0], eid)
        sync_project_memberships(p)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    log.info("project %s team assigned: developers=%s", project_id, developer_ids)
    return p


def remove_employee(project_id: int, employee_id: int) -> Project:
    """Drop the employee from the developer list and from every slot they hold."""
    try:
        p = _get_project(project_id)
        p.developers = [d for d in p.developers if d.id != employee_id]
        for fk, _, _ in TEAM_SLOTS.values():
            if getattr(p, fk) == employee_id:
                setattr(p, fk, None)
        sync_project_memberships(p)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    log.info("employee %s removed from project %s", employee_id, project_id)
    return p
