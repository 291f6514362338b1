# commission_api/blueprints/settings.py
from flask import Blueprint, request

from commission_api.common.auth import requires_roles, current_actor_id
from commission_api.common.http import ok
from commission_api.models.settings import AppSettings
from commission_api.services.settings import get_or_create_settings, update_settings

bp = Blueprint("settings", __name__, url_prefix="/api/v1/settings")


def _row(s: AppSettings):
    return {
        "id": s.id,
        "usd_to_pkr_rate": s.usd_to_pkr_rate,
        "pm_commission_percentage": s.pm_commission_percentage,
        "team_lead_bonus_amount": s.team_lead_bonus_amount,
        "bidder_bonus_amount": s.bidder_bonus_amount,
        "last_updated_by": s.last_updated_by,
        "updated_at": s.updated_at.isoformat() if s.updated_at else None,
    }


@bp.get("")
@requires_roles("admin", "hr", "viewer")
def get_settings():
    return ok(_row(get_or_create_settings()))


@bp.put("")
@requires_roles("admin")
def put_settings():
    j = request.get_json(silent=True) or {}
    return ok(_row(update_settings(j, actor_id=current_actor_id())),
              message="Settings updated successfully")
