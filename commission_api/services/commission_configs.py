# commission_api/services/commission_configs.py
"""Company-wide default commission rules per team role."""
from __future__ import annotations

import logging
from typing import Dict, List

from commission_api.common.errors import ValidationError
from commission_api.extensions import db
from commission_api.models.commission_config import CommissionConfig, CONFIG_ROLES
from commission_api.models.project import Project, TEAM_SLOTS, COMMISSION_TYPES, COMMISSION_PERCENTAGE
from commission_api.services.commission import CommissionRule

log = logging.getLogger(__name__)

DEFAULT_CONFIGS = (
    ("PM",       COMMISSION_PERCENTAGE, 10, "Default commission for Project Managers"),
    ("TeamLead", COMMISSION_PERCENTAGE, 5,  "Default commission for Team Leads"),
    ("Manager",  COMMISSION_PERCENTAGE, 8,  "Default commission for Managers"),
    ("Bidder",   COMMISSION_PERCENTAGE, 3,  "Default commission for Bidders who help win projects"),
)


def validate_rule(commission_type, amount, field_prefix="commission"):
    if commission_type not in COMMISSION_TYPES:
        raise ValidationError(f"{field_prefix}_type must be one of {', '.join(COMMISSION_TYPES)}",
                              field=f"{field_prefix}_type")
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_prefix}_amount must be a number", field=f"{field_prefix}_amount")
    if amount < 0:
        raise ValidationError(f"{field_prefix}_amount must be >= 0", field=f"{field_prefix}_amount")
    return CommissionRule(commission_type, amount)


def initialize_defaults() -> List[CommissionConfig]:
    """Create the default row for every role that has none yet."""
    created = []
    for role, ctype, amount, desc in DEFAULT_CONFIGS:
        if CommissionConfig.query.filter_by(role=role).first():
            continue
        c = CommissionConfig(role=role, commission_type=ctype, commission_amount=amount,
                             is_active=True, description=desc)
        db.session.add(c)
        created.append(c)
    db.session.commit()
    log.info("initialized %s commission configs", len(created))
    return created


def upsert_config(role: str, data: dict) -> CommissionConfig:
    if role not in CONFIG_ROLES:
        raise ValidationError(f"role must be one of {', '.join(CONFIG_ROLES)}", field="role")
    c = CommissionConfig.query.filter_by(role=role).first()
    if c is None:
        c = CommissionConfig(role=role)
        db.session.add(c)
    rule = validate_rule(data.get("commission_type", c.commission_type),
                         data.get("commission_amount", c.commission_amount))
    c.commission_type, c.commission_amount = rule
    if "is_active" in data:
        c.is_active = bool(data["is_active"])
    if "description" in data:
        c.description = data.get("description")
    db.session.commit()
    return c


def active_default_rules() -> Dict[str, CommissionRule]:
    """team slot -> default rule, for slots whose role has an active config."""
    rows = {c.role: c for c in CommissionConfig.query.filter_by(is_active=True).all()}
    out = {}
    for slot, (_, _, role) in TEAM_SLOTS.items():
        c = rows.get(role)
        if c is not None:
            out[slot] = CommissionRule(c.commission_type, float(c.commission_amount or 0))
    return out


def apply_default_rules(p: Project, explicit_slots) -> List[str]:
    """Fill rules for slots not in ``explicit_slots`` from active configs. Caller commits."""
    applied = []
    for slot, rule in active_default_rules().items():
        if slot in explicit_slots:
            continue
        p.set_commission_rule(slot, rule.type, rule.amount)
        applied.append(slot)
    return applied
