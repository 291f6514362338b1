# commission_api/blueprints/employees.py
from __future__ import annotations

from flask import Blueprint, request
from sqlalchemy import or_

from commission_api.common.auth import requires_roles
from commission_api.common.errors import ConflictError, NotFoundError, ValidationError
from commission_api.common.http import ok
from commission_api.common.paging import page_limit, text_q
from commission_api.extensions import db
from commission_api.models.employee import (
    Employee, EMPLOYEE_ROLES, EMPLOYEE_STATUSES, STATUS_ACTIVE, STATUS_INACTIVE,
)

bp = Blueprint("employees", __name__, url_prefix="/api/v1/employees")


def _row(e: Employee):
    return {
        "id": e.id,
        "name": e.name,
        "email": e.email,
        "role": e.role,
        "status": e.status,
        "base_salary": e.base_salary,
        "project_ids": [p.id for p in e.projects],
        "created_at": e.created_at.isoformat() if e.created_at else None,
        "updated_at": e.updated_at.isoformat() if e.updated_at else None,
    }


def _get(employee_id: int) -> Employee:
    e = db.session.get(Employee, employee_id)
    if not e:
        raise NotFoundError("Employee not found")
    return e


def _apply(e: Employee, j: dict, creating: bool):
    if creating or "name" in j:
        name = (j.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required", field="name")
        e.name = name
    if creating or "email" in j:
        email = (j.get("email") or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationError("valid email is required", field="email")
        dup = Employee.query.filter(Employee.email == email, Employee.id != (e.id or 0)).first()
        if dup:
            raise ConflictError("Employee with this email already exists")
        e.email = email
    if creating or "role" in j:
        if j.get("role") not in EMPLOYEE_ROLES:
            raise ValidationError(f"role must be one of {', '.join(EMPLOYEE_ROLES)}", field="role")
        e.role = j["role"]
    if creating or "status" in j:
        status = j.get("status") or STATUS_ACTIVE
        if status not in EMPLOYEE_STATUSES:
            raise ValidationError(f"status must be one of {', '.join(EMPLOYEE_STATUSES)}", field="status")
        e.status = status
    if creating or "base_salary" in j:
        try:
            base = float(j.get("base_salary") or 0)
        except (TypeError, ValueError):
            raise ValidationError("base_salary must be a number", field="base_salary")
        if base < 0:
            raise ValidationError("base_salary must be >= 0", field="base_salary")
        e.base_salary = base


@bp.get("")
@requires_roles("admin", "hr", "viewer")
def list_employees():
    q = Employee.query
    for arg, col in (("role", Employee.role), ("status", Employee.status)):
        v = request.args.get(arg)
        if v:
            q = q.filter(col == v)
    s = text_q()
    if s:
        like = f"%{s}%"
        q = q.filter(or_(Employee.name.ilike(like), Employee.email.ilike(like)))
    page, size = page_limit()
    total = q.count()
    rows = q.order_by(Employee.id.asc()).offset((page - 1) * size).limit(size).all()
    return ok([_row(e) for e in rows], page=page, size=size, total=total)


@bp.get("/<int:employee_id>")
@requires_roles("admin", "hr", "viewer")
def get_employee(employee_id: int):
    return ok(_row(_get(employee_id)))


@bp.post("")
@requires_roles("hr")
def create_employee():
    j = request.get_json(silent=True) or {}
    e = Employee()
    _apply(e, j, creating=True)
    db.session.add(e)
    db.session.commit()
    return ok(_row(e), 201)


@bp.put("/<int:employee_id>")
@requires_roles("hr")
def update_employee(employee_id: int):
    e = _get(employee_id)
    _apply(e, request.get_json(silent=True) or {}, creating=False)
    db.session.commit()
    return ok(_row(e))


@bp.delete("/<int:employee_id>")
@requires_roles("hr")
def deactivate_employee(employee_id: int):
    """Soft delete: salaries and team history keep pointing at the row."""
    e = _get(employee_id)
    e.status = STATUS_INACTIVE
    db.session.commit()
    return ok(_row(e))
