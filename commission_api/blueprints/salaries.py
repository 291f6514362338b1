# commission_api/blueprints/salaries.py
from __future__ import annotations

from datetime import datetime

from flask import Blueprint, current_app, request

from commission_api.common.auth import requires_roles
from commission_api.common.errors import NotFoundError, ValidationError
from commission_api.common.http import ok
from commission_api.extensions import db
from commission_api.models.salary import Salary, SalaryLine, LINE_GROUPS, SALARY_STATUSES, SALARY_PAID
from commission_api.services.months import require_month, next_month
from commission_api.services.salary_batch import (
    generate_monthly_salaries, generate_next_month, auto_generate_next_month, recalculate_month,
)
from commission_api.services.salary_composer import enrich_salaries, preview_salary
from commission_api.tasks import get_queue

bp = Blueprint("salaries", __name__, url_prefix="/api/v1/salaries")


# ---------- row shape ----------
def _iso(d):
    return d.isoformat() if d else None


def _line(kind, project_id, project_name, amount, commission_type, commission_rate):
    row = {"project_id": project_id, "project_name": project_name, "amount": amount}
    if kind != "developer_bonus":
        row["commission_type"] = commission_type
        row["commission_rate"] = commission_rate
    return row


def _groups(lines, name_of):
    out = {key: [] for key in LINE_GROUPS.values()}
    for l in lines:
        out[LINE_GROUPS[l.kind]].append(
            _line(l.kind, l.project_id, name_of(l), l.amount, l.commission_type, l.commission_rate))
    return out


def _head(s: Salary):
    emp = s.employee
    return {
        "id": s.id,
        "employee_id": s.employee_id,
        "employee": {"id": emp.id, "name": emp.name, "email": emp.email, "role": emp.role} if emp else None,
        "month": s.month,
        "base_salary": s.base_salary,
        "status": s.status,
        "paid_date": _iso(s.paid_date),
        "payment_reference": s.payment_reference,
        "created_at": _iso(s.created_at),
        "updated_at": _iso(s.updated_at),
    }


def _row(s: Salary):
    """Persisted breakdown."""
    out = _head(s)
    out["total_amount"] = s.total_amount
    out.update(_groups(s.lines, lambda l: l.project.name if l.project else None))
    return out


def _enriched_row(s: Salary, composed):
    out = _head(s)
    out["total_amount"] = composed.total_amount
    out.update(_groups(composed.lines, lambda l: l.project_name))
    return out


def _composed_row(emp, composed):
    out = {
        "employee_id": emp.id,
        "employee": {"id": emp.id, "name": emp.name, "email": emp.email, "role": emp.role},
        "month": composed.month,
        "base_salary": composed.base_salary,
        "total_amount": composed.total_amount,
    }
    out.update(_groups(composed.lines, lambda l: l.project_name))
    return out


def _int_arg(name):
    v = request.args.get(name)
    if v is None or v == "":
        return None
    try:
        return int(v)
    except ValueError:
        raise ValidationError(f"{name} must be integer", field=name)


# ---------- routes ----------
@bp.get("")
@requires_roles("admin", "hr", "viewer")
def list_salaries():
    if current_app.config.get("AUTO_GENERATE_ON_READ"):
        get_queue().submit("auto-generate-next-month", auto_generate_next_month)

    q = Salary.query
    status = request.args.get("status")
    if status:
        if status not in SALARY_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(SALARY_STATUSES)}", field="status")
        q = q.filter(Salary.status == status)
    month = request.args.get("month")
    if month:
        q = q.filter(Salary.month == require_month(month))
    employee_id = _int_arg("employee")
    if employee_id is not None:
        q = q.filter(Salary.employee_id == employee_id)
    project_id = _int_arg("project")
    if project_id is not None:
        q = q.filter(Salary.lines.any(SalaryLine.project_id == project_id))

    rows = q.order_by(Salary.month.desc(), Salary.employee_id.asc()).all()
    data = [_enriched_row(s, c) for s, c in enrich_salaries(rows)]
    return ok(data, count=len(data))


@bp.get("/<int:salary_id>")
@requires_roles("admin", "hr", "viewer")
def get_salary(salary_id: int):
    s = db.session.get(Salary, salary_id)
    if not s:
        raise NotFoundError("Salary not found")
    return ok(_row(s))


@bp.get("/employee/<int:employee_id>")
@requires_roles("admin", "hr", "viewer")
def employee_salaries(employee_id: int):
    rows = (Salary.query.filter(Salary.employee_id == employee_id)
            .order_by(Salary.month.desc()).all())
    return ok([_row(s) for s in rows], count=len(rows))


@bp.post("/generate")
@requires_roles("hr")
def generate():
    j = request.get_json(silent=True) or {}
    month = require_month(j.get("month"))
    result = generate_monthly_salaries(month)

    nm = next_month(month)
    get_queue().submit(f"generate-next-month:{nm}", generate_next_month, month)

    data = dict(result, salaries=[_row(s) for s in result["salaries"]])
    return ok(data, 201,
              message=f"Salaries generated for {month}. Next month ({nm}) will be generated automatically.")


@bp.post("/recalculate")
@requires_roles("hr")
def recalculate():
    j = request.get_json(silent=True) or {}
    month = require_month(j.get("month"))
    summary = recalculate_month(month)
    return ok(summary, message=(f"Successfully recalculated {summary['recalculated']} out of "
                                f"{summary['total']} salaries for {month}"))


@bp.get("/calculate/<int:employee_id>")
@requires_roles("admin", "hr", "viewer")
def calculate(employee_id: int):
    month = require_month(request.args.get("month"))
    emp, composed = preview_salary(employee_id, month)
    return ok(_composed_row(emp, composed))


@bp.put("/<int:salary_id>/status")
@requires_roles("hr")
def update_status(salary_id: int):
    s = db.session.get(Salary, salary_id)
    if not s:
        raise NotFoundError("Salary not found")
    j = request.get_json(silent=True) or {}
    status = j.get("status")
    if status not in SALARY_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(SALARY_STATUSES)}", field="status")

    s.status = status
    if status == SALARY_PAID:
        paid = j.get("paid_date")
        if paid:
            try:
                s.paid_date = datetime.fromisoformat(str(paid))
            except ValueError:
                raise ValidationError("paid_date must be ISO date/datetime", field="paid_date")
        else:
            s.paid_date = datetime.utcnow()
        if j.get("payment_reference"):
            s.payment_reference = j["payment_reference"]
    db.session.commit()
    current_app.logger.info("salary %s marked %s", s.id, status)
    return ok(_row(s))
