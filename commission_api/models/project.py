from datetime import datetime
from sqlalchemy import event
from commission_api.extensions import db
from commission_api.models.employee import ROLE_PM, ROLE_TEAM_LEAD, ROLE_MANAGER, ROLE_BIDDER

PROJECT_ACTIVE    = "Active"
PROJECT_COMPLETED = "Completed"
PROJECT_STATUSES  = (PROJECT_ACTIVE, PROJECT_COMPLETED)

COMMISSION_PERCENTAGE = "percentage"
COMMISSION_FIXED      = "fixed"
COMMISSION_TYPES      = (COMMISSION_PERCENTAGE, COMMISSION_FIXED)

# team slot -> (fk column, commission column prefix, employee role that may earn it)
TEAM_SLOTS = {
    "project_manager": ("project_manager_id", "pm",        ROLE_PM),
    "team_lead":       ("team_lead_id",       "team_lead", ROLE_TEAM_LEAD),
    "manager":         ("manager_id",         "manager",   ROLE_MANAGER),
    "bidder":          ("bidder_id",          "bidder",    ROLE_BIDDER),
}

project_developers = db.Table(
    "project_developers",
    db.Column("project_id", db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    db.Column("employee_id", db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True),
)


def _commission_cols(prefix):
    return (
        db.Column(f"{prefix}_commission_type", db.String(16), default=COMMISSION_PERCENTAGE, nullable=False),
        db.Column(f"{prefix}_commission_amount", db.Float, default=0.0, nullable=False),
    )


class Project(db.Model):
    __tablename__ = "projects"

    id           = db.Column(db.Integer, primary_key=True)
    name         = db.Column(db.String(200), nullable=False)
    client_name  = db.Column(db.String(200), nullable=False)
    total_amount = db.Column(db.Float, default=0.0, nullable=False)   # contracted, informational
    start_date   = db.Column(db.Date, nullable=False)
    end_date     = db.Column(db.Date, nullable=True)
    status       = db.Column(db.String(16), default=PROJECT_ACTIVE, nullable=False)
    bonus_pool   = db.Column(db.Float, default=0.0, nullable=False)   # flat fund split across developers

    project_manager_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    team_lead_id       = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    manager_id         = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    bidder_id          = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)

    pm_commission_type, pm_commission_amount = _commission_cols("pm")
    team_lead_commission_type, team_lead_commission_amount = _commission_cols("team_lead")
    manager_commission_type, manager_commission_amount = _commission_cols("manager")
    bidder_commission_type, bidder_commission_amount = _commission_cols("bidder")

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=True, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("total_amount >= 0", name="ck_project_total_nonneg"),
        db.CheckConstraint("bonus_pool >= 0", name="ck_project_bonus_pool_nonneg"),
        db.Index("ix_project_status", "status"),
        db.Index("ix_project_dates", "start_date", "end_date"),
    )

    developers      = db.relationship("Employee", secondary=project_developers, lazy="select",
                                      order_by="Employee.id")
    project_manager = db.relationship("Employee", foreign_keys=[project_manager_id], lazy="joined")
    team_lead       = db.relationship("Employee", foreign_keys=[team_lead_id], lazy="joined")
    manager         = db.relationship("Employee", foreign_keys=[manager_id], lazy="joined")
    bidder          = db.relationship("Employee", foreign_keys=[bidder_id], lazy="joined")

    def commission_rule(self, slot: str):
        from commission_api.services.commission import CommissionRule
        prefix = TEAM_SLOTS[slot][1]
        return CommissionRule(
            getattr(self, f"{prefix}_commission_type") or COMMISSION_PERCENTAGE,
            float(getattr(self, f"{prefix}_commission_amount") or 0),
        )

    def set_commission_rule(self, slot: str, commission_type: str, amount: float):
        prefix = TEAM_SLOTS[slot][1]
        setattr(self, f"{prefix}_commission_type", commission_type)
        setattr(self, f"{prefix}_commission_amount", amount)

    def dates_are_valid(self) -> bool:
        return not (self.end_date and self.start_date and self.end_date <= self.start_date)


@event.listens_for(Project, "before_insert")
@event.listens_for(Project, "before_update")
def _check_project_dates(mapper, connection, target: Project):
    if not target.dates_are_valid():
        from commission_api.common.errors import ValidationError
        raise ValidationError("End date must be after start date", field="end_date")
