# commission_api/blueprints/monthly_revenues.py
from __future__ import annotations

from flask import Blueprint, current_app, request
from sqlalchemy.exc import IntegrityError

from commission_api.common.auth import requires_roles, current_actor_id
from commission_api.common.errors import ConflictError, NotFoundError, ValidationError
from commission_api.common.http import ok
from commission_api.extensions import db
from commission_api.models.monthly_revenue import MonthlyProjectRevenue
from commission_api.models.project import Project, PROJECT_ACTIVE
from commission_api.services.months import require_month
from commission_api.services.recalc import schedule_revenue_recalc

bp = Blueprint("monthly_revenues", __name__, url_prefix="/api/v1/monthly-revenues")


def _project_brief(p):
    if not p:
        return None
    return {"id": p.id, "name": p.name, "client_name": p.client_name,
            "status": p.status, "total_amount": p.total_amount}


def _row(r: MonthlyProjectRevenue):
    return {
        "id": r.id,
        "project_id": r.project_id,
        "project": _project_brief(r.project),
        "month": r.month,
        "amount_collected": r.amount_collected,
        "notes": r.notes,
        "created_by": {"id": r.creator.id, "email": r.creator.email} if r.creator else None,
        "created_at": r.created_at.isoformat() if r.created_at else None,
        "updated_at": r.updated_at.isoformat() if r.updated_at else None,
    }


def _amount(v):
    try:
        v = float(v)
    except (TypeError, ValueError):
        raise ValidationError("amount_collected must be a number", field="amount_collected")
    if v < 0:
        raise ValidationError("amount_collected must be >= 0", field="amount_collected")
    return v


def _project_id(v):
    try:
        pid = int(v)
    except (TypeError, ValueError):
        raise ValidationError("project_id must be integer", field="project_id")
    if not db.session.get(Project, pid):
        raise NotFoundError("Project not found")
    return pid


def _get(revenue_id: int) -> MonthlyProjectRevenue:
    r = db.session.get(MonthlyProjectRevenue, revenue_id)
    if not r:
        raise NotFoundError("Monthly revenue not found")
    return r


# ---------- routes ----------
@bp.get("")
@requires_roles("admin", "hr", "viewer")
def list_revenues():
    q = MonthlyProjectRevenue.query
    month = request.args.get("month")
    if month:
        q = q.filter(MonthlyProjectRevenue.month == require_month(month))
    rows = q.order_by(MonthlyProjectRevenue.month.desc(), MonthlyProjectRevenue.created_at.desc()).all()
    return ok([_row(r) for r in rows], count=len(rows))


@bp.get("/<int:revenue_id>")
@requires_roles("admin", "hr", "viewer")
def get_revenue(revenue_id: int):
    return ok(_row(_get(revenue_id)))


@bp.get("/month/<month>")
@requires_roles("admin", "hr", "viewer")
def revenues_by_month(month: str):
    require_month(month)
    existing = (MonthlyProjectRevenue.query
                .filter(MonthlyProjectRevenue.month == month)
                .order_by(MonthlyProjectRevenue.created_at.desc())
                .all())
    have = {r.project_id for r in existing}
    missing = (Project.query
               .filter(Project.status == PROJECT_ACTIVE)
               .order_by(Project.id.asc())
               .all())
    return ok({
        "existing_revenues": [_row(r) for r in existing],
        "projects_without_revenue": [_project_brief(p) for p in missing if p.id not in have],
    })


@bp.post("")
@requires_roles("hr")
def create_revenue():
    j = request.get_json(silent=True) or {}
    if j.get("project_id") in (None, "") or not j.get("month") or j.get("amount_collected") is None:
        raise ValidationError("project_id, month and amount_collected are required")
    pid = _project_id(j.get("project_id"))
    month = require_month(j.get("month"))
    amount = _amount(j.get("amount_collected"))

    if MonthlyProjectRevenue.query.filter_by(project_id=pid, month=month).first():
        raise ConflictError("Revenue entry already exists for this project and month")

    r = MonthlyProjectRevenue(project_id=pid, month=month, amount_collected=amount,
                              notes=j.get("notes"), created_by=current_actor_id())
    db.session.add(r)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Revenue entry already exists for this project and month")

    schedule_revenue_recalc(pid, month)
    return ok(_row(r), 201, message="Monthly revenue created successfully")


@bp.put("/<int:revenue_id>")
@requires_roles("hr")
def update_revenue(revenue_id: int):
    r = _get(revenue_id)
    j = request.get_json(silent=True) or {}
    if j.get("amount_collected") is not None:
        r.amount_collected = _amount(j.get("amount_collected"))
    if "notes" in j:
        r.notes = j.get("notes")
    db.session.commit()

    schedule_revenue_recalc(r.project_id, r.month)
    return ok(_row(r), message="Monthly revenue updated successfully")


@bp.delete("/<int:revenue_id>")
@requires_roles("hr")
def delete_revenue(revenue_id: int):
    r = _get(revenue_id)
    pid, month = r.project_id, r.month
    db.session.delete(r)
    db.session.commit()

    schedule_revenue_recalc(pid, month)
    return ok({"id": revenue_id, "deleted": True}, message="Monthly revenue deleted successfully")


@bp.post("/bulk")
@requires_roles("hr")
def bulk_upsert():
    j = request.get_json(silent=True) or {}
    items = j.get("revenues")
    if not isinstance(items, list) or not items:
        raise ValidationError("Please provide an array of revenues", field="revenues")

    actor = current_actor_id()
    results, errors, touched = [], [], set()
    for item in items:
        item = item if isinstance(item, dict) else {}
        pid, month = item.get("project_id"), item.get("month")
        try:
            if pid in (None, "") or not month or item.get("amount_collected") is None:
                raise ValidationError("Missing required fields")
            pid = _project_id(pid)
            month = require_month(month)
            amount = _amount(item.get("amount_collected"))

            r = MonthlyProjectRevenue.query.filter_by(project_id=pid, month=month).first()
            if r is None:
                r = MonthlyProjectRevenue(project_id=pid, month=month, created_by=actor)
                db.session.add(r)
            r.amount_collected = amount
            r.notes = item.get("notes")
            db.session.commit()
            results.append(r)
            touched.add((pid, month))
        except (ValidationError, NotFoundError) as e:
            db.session.rollback()
            errors.append({"project_id": pid, "month": month, "error": e.message})
        except IntegrityError as e:
            db.session.rollback()
            errors.append({"project_id": pid, "month": month, "error": str(e.orig)})

    for pid, month in sorted(touched):
        schedule_revenue_recalc(pid, month)
    current_app.logger.info("bulk revenue upsert: ok=%s errors=%s", len(results), len(errors))

    meta = {"message": f"Processed {len(results)} revenues successfully"}
    if errors:
        meta["errors"] = errors
    return ok([_row(r) for r in results], **meta)
