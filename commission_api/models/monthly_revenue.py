from datetime import datetime
from commission_api.extensions import db


class MonthlyProjectRevenue(db.Model):
    """Money actually collected for a project in one month (USD)."""
    __tablename__ = "monthly_project_revenues"

    id               = db.Column(db.Integer, primary_key=True)
    project_id       = db.Column(db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    month            = db.Column(db.String(7), nullable=False)  # YYYY-MM
    amount_collected = db.Column(db.Float, nullable=False, default=0.0)
    notes            = db.Column(db.Text, nullable=True)
    created_by       = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=True, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("project_id", "month", name="uq_revenue_project_month"),
        db.CheckConstraint("amount_collected >= 0", name="ck_revenue_amount_nonneg"),
        db.Index("ix_revenue_month", "month"),
    )

    project = db.relationship("Project", lazy="joined")
    creator = db.relationship("User", lazy="joined")
