from datetime import datetime
from commission_api.extensions import db

DEFAULT_USD_TO_PKR_RATE = 278.50


class AppSettings(db.Model):
    """Singleton row. Go through services.settings.get_or_create_settings()."""
    __tablename__ = "app_settings"

    id             = db.Column(db.Integer, primary_key=True)
    usd_to_pkr_rate = db.Column(db.Float, nullable=False, default=DEFAULT_USD_TO_PKR_RATE)

    # advisory defaults; commission math reads the per-project rules instead
    pm_commission_percentage = db.Column(db.Float, nullable=False, default=10.0)
    team_lead_bonus_amount   = db.Column(db.Float, nullable=False, default=10000.0)
    bidder_bonus_amount      = db.Column(db.Float, nullable=False, default=5000.0)

    last_updated_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at      = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at      = db.Column(db.DateTime, nullable=True, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("usd_to_pkr_rate > 0", name="ck_settings_rate_positive"),
    )
