from datetime import datetime
from commission_api.extensions import db

SALARY_PENDING = "Pending"
SALARY_PAID    = "Paid"
SALARY_STATUSES = (SALARY_PENDING, SALARY_PAID)

LINE_DEVELOPER_BONUS = "developer_bonus"
LINE_PM_COMMISSION   = "pm_commission"
LINE_TEAM_LEAD_COMMISSION = "team_lead_commission"
LINE_MANAGER_COMMISSION   = "manager_commission"
LINE_BIDDER_COMMISSION    = "bidder_commission"

# line kind -> key used in API payloads
LINE_GROUPS = {
    LINE_DEVELOPER_BONUS:      "project_bonuses",
    LINE_PM_COMMISSION:        "pm_commissions",
    LINE_MANAGER_COMMISSION:   "manager_commissions",
    LINE_TEAM_LEAD_COMMISSION: "team_lead_commissions",
    LINE_BIDDER_COMMISSION:    "bidder_commissions",
}
LINE_KINDS = tuple(LINE_GROUPS)


class Salary(db.Model):
    __tablename__ = "salaries"

    id           = db.Column(db.Integer, primary_key=True)
    # no FK: rows outlive deleted employees
    employee_id  = db.Column(db.Integer, nullable=False, index=True)
    month        = db.Column(db.String(7), nullable=False)  # YYYY-MM
    base_salary  = db.Column(db.Float, nullable=False, default=0.0)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)

    status            = db.Column(db.String(16), nullable=False, default=SALARY_PENDING)
    paid_date         = db.Column(db.DateTime, nullable=True)
    payment_reference = db.Column(db.String(120), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=True, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "month", name="uq_salary_employee_month"),
        db.CheckConstraint("base_salary >= 0", name="ck_salary_base_nonneg"),
        db.Index("ix_salary_month", "month"),
        db.Index("ix_salary_status", "status"),
    )

    employee = db.relationship(
        "Employee",
        primaryjoin="foreign(Salary.employee_id) == Employee.id",
        lazy="joined",
        viewonly=True,
    )
    lines = db.relationship(
        "SalaryLine",
        back_populates="salary",
        cascade="all, delete-orphan",
        order_by="SalaryLine.position",
        lazy="selectin",
    )

    def recompute_total(self):
        self.total_amount = (self.base_salary or 0.0) + sum(l.amount for l in self.lines)
        return self.total_amount

    def lines_of(self, kind: str):
        return [l for l in self.lines if l.kind == kind]


class SalaryLine(db.Model):
    """One bonus / commission entry on a salary, tagged by kind."""
    __tablename__ = "salary_lines"

    id              = db.Column(db.Integer, primary_key=True)
    salary_id       = db.Column(db.Integer, db.ForeignKey("salaries.id", ondelete="CASCADE"), nullable=False, index=True)
    kind            = db.Column(db.String(32), nullable=False)  # see LINE_KINDS
    project_id      = db.Column(db.Integer, nullable=False, index=True)
    amount          = db.Column(db.Float, nullable=False)
    commission_type = db.Column(db.String(16), nullable=True)   # None for developer bonus
    commission_rate = db.Column(db.Float, nullable=True)
    position        = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.CheckConstraint("amount >= 0", name="ck_salary_line_amount_nonneg"),
    )

    salary  = db.relationship("Salary", back_populates="lines")
    project = db.relationship(
        "Project",
        primaryjoin="foreign(SalaryLine.project_id) == Project.id",
        lazy="joined",
        viewonly=True,
    )
