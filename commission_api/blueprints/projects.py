# commission_api/blueprints/projects.py
from __future__ import annotations

from datetime import date

from flask import Blueprint, current_app, request
from sqlalchemy import delete, or_

from commission_api.common.auth import requires_roles, current_actor_id
from commission_api.common.errors import NotFoundError, ValidationError
from commission_api.common.http import ok
from commission_api.common.paging import page_limit, text_q
from commission_api.extensions import db
from commission_api.models.employee import Employee, employee_projects
from commission_api.models.project import (
    Project, PROJECT_STATUSES, PROJECT_ACTIVE, TEAM_SLOTS, COMMISSION_PERCENTAGE,
)
from commission_api.services.commission_configs import apply_default_rules, validate_rule
from commission_api.services.project_history import (
    snapshot_project, track_project_creation, track_project_update, get_project_history,
)
from commission_api.services.project_team import assign_employees, remove_employee, sync_project_memberships
from commission_api.services.recalc import schedule_project_recalc, recalculate_employees, target_month
from commission_api.services.team_roles import TeamRoles
from commission_api.tasks import get_queue

bp = Blueprint("projects", __name__, url_prefix="/api/v1/projects")


# ---------- row shape ----------
def _emp(e):
    return {"id": e.id, "name": e.name, "email": e.email, "role": e.role} if e else None


def _row(p: Project):
    out = {
        "id": p.id,
        "name": p.name,
        "client_name": p.client_name,
        "total_amount": p.total_amount,
        "start_date": p.start_date.isoformat() if p.start_date else None,
        "end_date": p.end_date.isoformat() if p.end_date else None,
        "status": p.status,
        "bonus_pool": p.bonus_pool,
        "team": {
            "developers": [_emp(d) for d in p.developers],
            "project_manager": _emp(p.project_manager),
            "team_lead": _emp(p.team_lead),
            "manager": _emp(p.manager),
            "bidder": _emp(p.bidder),
        },
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "updated_at": p.updated_at.isoformat() if p.updated_at else None,
    }
    for slot in TEAM_SLOTS:
        rule = p.commission_rule(slot)
        out[f"{TEAM_SLOTS[slot][1]}_commission"] = {"type": rule.type, "amount": rule.amount}
    return out


def _history_row(h):
    return {
        "id": h.id,
        "project_id": h.project_id,
        "change_type": h.change_type,
        "changed_by": {"id": h.actor.id, "email": h.actor.email} if h.actor else None,
        "changes": h.changes,
        "snapshot": h.snapshot,
        "notes": h.notes,
        "created_at": h.created_at.isoformat() if h.created_at else None,
    }


# ---------- payload parsing ----------
def _date(j, key, required=False):
    v = j.get(key)
    if not v:
        if required:
            raise ValidationError(f"{key} is required (YYYY-MM-DD)", field=key)
        return None
    try:
        return date.fromisoformat(str(v))
    except ValueError:
        raise ValidationError(f"{key} must be YYYY-MM-DD", field=key)


def _money(j, key):
    try:
        v = float(j.get(key) or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number", field=key)
    if v < 0:
        raise ValidationError(f"{key} must be >= 0", field=key)
    return v


def _employee_id(j, key):
    v = j.get(key)
    if v in (None, ""):
        return None
    try:
        v = int(v)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be integer", field=key)
    if not db.session.get(Employee, v):
        raise NotFoundError(f"Employee {v} not found")
    return v


def _developers(j):
    ids = j.get("developer_ids") or []
    if not isinstance(ids, list):
        raise ValidationError("developer_ids must be a list", field="developer_ids")
    try:
        ids = list(dict.fromkeys(int(i) for i in ids))
    except (TypeError, ValueError):
        raise ValidationError("developer_ids must be integers", field="developer_ids")
    found = {e.id: e for e in Employee.query.filter(Employee.id.in_(ids)).all()} if ids else {}
    if len(found) != len(ids):
        raise NotFoundError("One or more employees not found")
    return [found[i] for i in ids]


def _apply_fields(p: Project, j: dict, creating: bool):
    """Copy payload onto ``p``; returns the team slots whose rule was given explicitly."""
    if creating or "name" in j:
        name = (j.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required", field="name")
        p.name = name
    if creating or "client_name" in j:
        client = (j.get("client_name") or "").strip()
        if not client:
            raise ValidationError("client_name is required", field="client_name")
        p.client_name = client
    if creating or "total_amount" in j:
        p.total_amount = _money(j, "total_amount")
    if creating or "bonus_pool" in j:
        p.bonus_pool = _money(j, "bonus_pool")
    if creating or "start_date" in j:
        p.start_date = _date(j, "start_date", required=True)
    if creating or "end_date" in j:
        p.end_date = _date(j, "end_date")
    if creating or "status" in j:
        status = j.get("status") or PROJECT_ACTIVE
        if status not in PROJECT_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(PROJECT_STATUSES)}", field="status")
        p.status = status
    if not p.dates_are_valid():
        raise ValidationError("End date must be after start date", field="end_date")

    for slot, (fk, _, _) in TEAM_SLOTS.items():
        if fk in j:
            setattr(p, fk, _employee_id(j, fk))
    if "developer_ids" in j:
        p.developers = _developers(j)

    explicit = set()
    for slot, (_, prefix, _) in TEAM_SLOTS.items():
        tkey, akey = f"{prefix}_commission_type", f"{prefix}_commission_amount"
        if tkey in j or akey in j:
            current = p.commission_rule(slot) if not creating else None
            rule = validate_rule(j.get(tkey, current.type if current else COMMISSION_PERCENTAGE),
                                 j.get(akey, current.amount if current else 0),
                                 field_prefix=f"{prefix}_commission")
            p.set_commission_rule(slot, rule.type, rule.amount)
            explicit.add(slot)
    return explicit


# ---------- routes ----------
@bp.get("")
@requires_roles("admin", "hr", "viewer")
def list_projects():
    q = Project.query
    status = request.args.get("status")
    if status:
        q = q.filter(Project.status == status)
    s = text_q()
    if s:
        like = f"%{s}%"
        q = q.filter(or_(Project.name.ilike(like), Project.client_name.ilike(like)))
    page, size = page_limit()
    total = q.count()
    rows = q.order_by(Project.created_at.desc(), Project.id.desc()).offset((page - 1) * size).limit(size).all()
    return ok([_row(p) for p in rows], page=page, size=size, total=total)


@bp.get("/<int:project_id>")
@requires_roles("admin", "hr", "viewer")
def get_project(project_id: int):
    p = db.session.get(Project, project_id)
    if not p:
        raise NotFoundError("Project not found")
    return ok(_row(p))


@bp.post("")
@requires_roles("hr")
def create_project():
    j = request.get_json(silent=True) or {}
    p = Project()
    explicit = _apply_fields(p, j, creating=True)
    apply_default_rules(p, explicit)
    db.session.add(p)
    sync_project_memberships(p)
    db.session.commit()
    current_app.logger.info("project %s created", p.id)

    track_project_creation(p, current_actor_id())
    schedule_project_recalc(p.id)
    return ok(_row(p), 201)


@bp.put("/<int:project_id>")
@requires_roles("hr")
def update_project(project_id: int):
    p = db.session.get(Project, project_id)
    if not p:
        raise NotFoundError("Project not found")
    j = request.get_json(silent=True) or {}

    old = snapshot_project(p)
    old_members = TeamRoles.of(p).member_ids()
    _apply_fields(p, j, creating=False)
    sync_project_memberships(p)
    db.session.commit()

    track_project_update(p.id, old, snapshot_project(p), current_actor_id())
    schedule_project_recalc(p.id, old_members)
    return ok(_row(p))


@bp.delete("/<int:project_id>")
@requires_roles("hr")
def delete_project(project_id: int):
    p = db.session.get(Project, project_id)
    if not p:
        raise NotFoundError("Project not found")
    members = TeamRoles.of(p).member_ids()
    month = target_month(p.start_date)
    db.session.execute(delete(employee_projects).where(employee_projects.c.project_id == p.id))
    db.session.delete(p)
    db.session.commit()
    current_app.logger.info("project %s deleted", project_id)

    if members:
        get_queue().submit(f"project-deleted:{project_id}", recalculate_employees,
                           members, month)
    return ok({"id": project_id, "deleted": True})


@bp.post("/<int:project_id>/assign")
@requires_roles("hr")
def assign(project_id: int):
    p = db.session.get(Project, project_id)
    if not p:
        raise NotFoundError("Project not found")
    j = request.get_json(silent=True) or {}
    developer_ids = j.get("developer_ids") or []
    if not isinstance(developer_ids, list):
        raise ValidationError("developer_ids must be a list", field="developer_ids")

    old = snapshot_project(p)
    old_members = TeamRoles.of(p).member_ids()
    p = assign_employees(
        project_id, developer_ids,
        project_manager_id=j.get("project_manager_id"),
        team_lead_id=j.get("team_lead_id"),
        manager_id=j.get("manager_id"),
        bidder_id=j.get("bidder_id"),
    )
    track_project_update(p.id, old, snapshot_project(p), current_actor_id())
    schedule_project_recalc(p.id, old_members)
    return ok(_row(p))


@bp.delete("/<int:project_id>/remove/<int:employee_id>")
@requires_roles("hr")
def remove(project_id: int, employee_id: int):
    p = db.session.get(Project, project_id)
    if not p:
        raise NotFoundError("Project not found")
    old = snapshot_project(p)
    p = remove_employee(project_id, employee_id)
    track_project_update(p.id, old, snapshot_project(p), current_actor_id())
    schedule_project_recalc(p.id, [employee_id])
    return ok(_row(p))


@bp.get("/<int:project_id>/history")
@requires_roles("admin", "hr", "viewer")
def history(project_id: int):
    if not db.session.get(Project, project_id):
        raise NotFoundError("Project not found")
    rows = get_project_history(project_id)
    return ok([_history_row(h) for h in rows], count=len(rows))
