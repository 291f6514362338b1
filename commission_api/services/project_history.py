# commission_api/services/project_history.py
"""
Append-only audit trail for projects.

Tracking runs after the project change is committed. A failure here is
logged and swallowed; it never undoes or fails the primary change.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from commission_api.common.errors import AuditFailure
from commission_api.extensions import db
from commission_api.models.employee import Employee
from commission_api.models.project import Project, PROJECT_ACTIVE, PROJECT_COMPLETED
from commission_api.models.project_history import (
    ProjectHistory, CHANGE_CREATED, CHANGE_UPDATED, CHANGE_STATUS_CHANGED,
    CHANGE_TEAM_CHANGED, CHANGE_CLOSED, CHANGE_REOPENED,
)

log = logging.getLogger(__name__)

_SLOT_LABELS = (
    ("project_manager", "Project Manager"),
    ("team_lead",       "Team Lead"),
    ("manager",         "Manager"),
    ("bidder",          "Bidder"),
)


def snapshot_project(p: Project) -> dict:
    """Plain-data view of the audited fields, ids for team members."""
    return {
        "name": p.name,
        "client_name": p.client_name,
        "total_amount": p.total_amount,
        "status": p.status,
        "project_manager": p.project_manager_id,
        "team_lead": p.team_lead_id,
        "manager": p.manager_id,
        "bidder": p.bidder_id,
        "developers": sorted(d.id for d in p.developers),
    }


def employee_name(employee_id) -> str:
    if not employee_id:
        return ""
    e = db.session.get(Employee, employee_id)
    return e.name if e else "Unknown"


def employee_names(ids) -> List[str]:
    return [n for n in (employee_name(i) for i in ids or []) if n != "Unknown"]


def _stored_snapshot(snap: dict) -> dict:
    return {
        "name": snap.get("name") or "",
        "status": snap.get("status") or "",
        "total_amount": snap.get("total_amount") or 0,
        "team": {
            "project_manager": employee_name(snap.get("project_manager")),
            "team_lead": employee_name(snap.get("team_lead")),
            "manager": employee_name(snap.get("manager")),
            "bidder": employee_name(snap.get("bidder")),
            "developers": employee_names(snap.get("developers")),
        },
    }


def _change(field, old, new, description):
    return {"field": field, "old_value": old, "new_value": new, "description": description}


def diff_snapshots(old: dict, new: dict,
                   name_of: Callable[[Optional[int]], str] = employee_name) -> Tuple[str, List[dict]]:
    """
    Field-level changes between two snapshots and the resulting change type.

    Status changes decide the type (CLOSED / REOPENED / STATUS_CHANGED);
    otherwise any team change makes it TEAM_CHANGED, else UPDATED.
    """
    changes = []
    change_type = CHANGE_UPDATED

    if old.get("status") != new.get("status"):
        o, n = old.get("status"), new.get("status")
        changes.append(_change("status", o, n, f'Status changed from "{o}" to "{n}"'))
        if n == PROJECT_COMPLETED:
            change_type = CHANGE_CLOSED
        elif o == PROJECT_COMPLETED and n == PROJECT_ACTIVE:
            change_type = CHANGE_REOPENED
        else:
            change_type = CHANGE_STATUS_CHANGED

    if old.get("name") != new.get("name"):
        changes.append(_change("name", old.get("name"), new.get("name"),
                               f'Project name changed from "{old.get("name")}" to "{new.get("name")}"'))
    if old.get("client_name") != new.get("client_name"):
        changes.append(_change("client_name", old.get("client_name"), new.get("client_name"),
                               f'Client name changed from "{old.get("client_name")}" to "{new.get("client_name")}"'))
    if old.get("total_amount") != new.get("total_amount"):
        changes.append(_change("total_amount", old.get("total_amount"), new.get("total_amount"),
                               f'Total amount changed from ${old.get("total_amount")} to ${new.get("total_amount")}'))

    team_changed = False
    for slot, label in _SLOT_LABELS:
        if old.get(slot) != new.get(slot):
            o, n = name_of(old.get(slot)), name_of(new.get(slot))
            changes.append(_change(f"team.{slot}", o, n, f'{label} changed from "{o}" to "{n}"'))
            team_changed = True

    old_devs, new_devs = old.get("developers") or [], new.get("developers") or []
    for dev in [d for d in new_devs if d not in old_devs]:
        name = name_of(dev)
        changes.append(_change("team.developers", None, name, f'Developer "{name}" added to project'))
        team_changed = True
    for dev in [d for d in old_devs if d not in new_devs]:
        name = name_of(dev)
        changes.append(_change("team.developers", name, None, f'Developer "{name}" removed from project'))
        team_changed = True

    if team_changed and change_type == CHANGE_UPDATED:
        change_type = CHANGE_TEAM_CHANGED
    return change_type, changes


def _write(entry: ProjectHistory) -> Optional[ProjectHistory]:
    try:
        db.session.add(entry)
        db.session.commit()
        return entry
    except Exception as e:
        db.session.rollback()
        log.error("%s", AuditFailure(f"project {entry.project_id}: {e}"))
        return None


def track_project_creation(p: Project, actor_id: Optional[int]) -> Optional[ProjectHistory]:
    try:
        snap = snapshot_project(p)
        entry = ProjectHistory(
            project_id=p.id,
            change_type=CHANGE_CREATED,
            changed_by=actor_id,
            changes=[_change("project", None, snap["name"], "Project created")],
            snapshot=_stored_snapshot(snap),
        )
    except Exception as e:
        db.session.rollback()
        log.error("%s", AuditFailure(f"project creation audit: {e}"))
        return None
    return _write(entry)


def track_project_update(project_id: int, old: dict, new: dict,
                         actor_id: Optional[int]) -> Optional[ProjectHistory]:
    """Record the difference between two snapshots; no entry when nothing changed."""
    try:
        change_type, changes = diff_snapshots(old, new)
        if not changes:
            return None
        entry = ProjectHistory(
            project_id=project_id,
            change_type=change_type,
            changed_by=actor_id,
            changes=changes,
            snapshot=_stored_snapshot(new),
        )
    except Exception as e:
        db.session.rollback()
        log.error("%s", AuditFailure(f"project {project_id} update audit: {e}"))
        return None
    return _write(entry)


def get_project_history(project_id: int) -> List[ProjectHistory]:
    return (ProjectHistory.query
            .filter(ProjectHistory.project_id == project_id)
            .order_by(ProjectHistory.created_at.desc(), ProjectHistory.id.desc())
            .all())
