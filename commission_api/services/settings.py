# commission_api/services/settings.py
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from commission_api.extensions import db
from commission_api.models.settings import AppSettings

log = logging.getLogger(__name__)


def get_or_create_settings() -> AppSettings:
    """Return the singleton settings row, creating it with defaults if missing."""
    s = AppSettings.query.order_by(AppSettings.id.asc()).first()
    if s:
        return s
    s = AppSettings()
    db.session.add(s)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        s = AppSettings.query.order_by(AppSettings.id.asc()).first()
    log.info("created default settings row id=%s", s.id if s else None)
    return s


def update_settings(data: dict, actor_id=None) -> AppSettings:
    """Validate and apply a partial settings update. Keys are snake_case column names."""
    from commission_api.common.errors import ValidationError

    def _num(key):
        v = data.get(key)
        if v is None:
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            raise ValidationError(f"{key} must be a number", field=key)

    rate = _num("usd_to_pkr_rate")
    pm_pct = _num("pm_commission_percentage")
    tl_bonus = _num("team_lead_bonus_amount")
    bid_bonus = _num("bidder_bonus_amount")

    if rate is not None and rate <= 0:
        raise ValidationError("USD to PKR rate must be positive", field="usd_to_pkr_rate")
    if pm_pct is not None and not (0 <= pm_pct <= 100):
        raise ValidationError("PM commission percentage must be between 0 and 100",
                              field="pm_commission_percentage")
    if tl_bonus is not None and tl_bonus < 0:
        raise ValidationError("Team Lead bonus amount must be positive", field="team_lead_bonus_amount")
    if bid_bonus is not None and bid_bonus < 0:
        raise ValidationError("Bidder bonus amount must be positive", field="bidder_bonus_amount")

    s = get_or_create_settings()
    if rate is not None: s.usd_to_pkr_rate = rate
    if pm_pct is not None: s.pm_commission_percentage = pm_pct
    if tl_bonus is not None: s.team_lead_bonus_amount = tl_bonus
    if bid_bonus is not None: s.bidder_bonus_amount = bid_bonus
    s.last_updated_by = actor_id
    db.session.commit()
    return s
