from datetime import datetime
from commission_api.extensions import db

CONFIG_ROLES = ("PM", "TeamLead", "Manager", "Bidder")


class CommissionConfig(db.Model):
    """Company-wide default commission rule per role, copied onto new projects."""
    __tablename__ = "commission_configs"

    id                = db.Column(db.Integer, primary_key=True)
    role              = db.Column(db.String(16), unique=True, nullable=False)  # see CONFIG_ROLES
    commission_type   = db.Column(db.String(16), nullable=False)
    commission_amount = db.Column(db.Float, nullable=False, default=0.0)
    is_active         = db.Column(db.Boolean, nullable=False, default=True)
    description       = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=True, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("commission_amount >= 0", name="ck_commission_config_amount_nonneg"),
    )
