# commission_api/blueprints/commission_configs.py
from flask import Blueprint, request

from commission_api.common.auth import requires_roles
from commission_api.common.errors import NotFoundError
from commission_api.common.http import ok
from commission_api.extensions import db
from commission_api.models.commission_config import CommissionConfig
from commission_api.services.commission_configs import initialize_defaults, upsert_config

bp = Blueprint("commission_configs", __name__, url_prefix="/api/v1/commission-configs")


def _row(c: CommissionConfig):
    return {
        "id": c.id,
        "role": c.role,
        "commission_type": c.commission_type,
        "commission_amount": c.commission_amount,
        "is_active": c.is_active,
        "description": c.description,
        "updated_at": c.updated_at.isoformat() if c.updated_at else None,
    }


def _by_role(role: str) -> CommissionConfig:
    c = CommissionConfig.query.filter_by(role=role).first()
    if not c:
        raise NotFoundError(f"Commission configuration for role {role} not found")
    return c


@bp.get("")
@requires_roles("admin", "hr", "viewer")
def list_configs():
    rows = CommissionConfig.query.order_by(CommissionConfig.role.asc()).all()
    return ok([_row(c) for c in rows], count=len(rows))


@bp.get("/<role>")
@requires_roles("admin", "hr", "viewer")
def get_config(role: str):
    return ok(_row(_by_role(role)))


@bp.put("/<role>")
@requires_roles("admin")
def put_config(role: str):
    return ok(_row(upsert_config(role, request.get_json(silent=True) or {})))


@bp.delete("/<role>")
@requires_roles("admin")
def delete_config(role: str):
    c = _by_role(role)
    db.session.delete(c)
    db.session.commit()
    return ok({"role": role, "deleted": True})


@bp.post("/initialize")
@requires_roles("admin")
def initialize():
    rows = initialize_defaults()
    return ok([_row(c) for c in rows], 201, count=len(rows),
              message="Default commission configurations initialized")
