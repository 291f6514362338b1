from datetime import datetime
from commission_api.extensions import db

ROLE_DEVELOPER = "Developer"
ROLE_PM        = "PM"
ROLE_TEAM_LEAD = "TeamLead"
ROLE_MANAGER   = "Manager"
ROLE_BIDDER    = "Bidder"
ROLE_ADMIN     = "Admin"
EMPLOYEE_ROLES = (ROLE_DEVELOPER, ROLE_PM, ROLE_TEAM_LEAD, ROLE_MANAGER, ROLE_BIDDER, ROLE_ADMIN)

STATUS_ACTIVE   = "Active"
STATUS_INACTIVE = "Inactive"
EMPLOYEE_STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE)

# employee -> projects back-reference, kept in step with project teams
employee_projects = db.Table(
    "employee_projects",
    db.Column("employee_id", db.Integer, db.ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True),
    db.Column("project_id", db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
)


class Employee(db.Model):
    __tablename__ = "employees"

    id          = db.Column(db.Integer, primary_key=True)
    name        = db.Column(db.String(120), nullable=False)
    email       = db.Column(db.String(255), unique=True, nullable=False)
    role        = db.Column(db.String(16), nullable=False)                       # see EMPLOYEE_ROLES
    status      = db.Column(db.String(16), default=STATUS_ACTIVE, nullable=False)  # Active / Inactive
    base_salary = db.Column(db.Float, default=0.0, nullable=False)                # payroll currency

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=True, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("base_salary >= 0", name="ck_employee_base_salary_nonneg"),
        db.Index("ix_emp_role", "role"),
        db.Index("ix_emp_status", "status"),
    )

    projects = db.relationship("Project", secondary=employee_projects, lazy="select",
                               order_by="Project.id")

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE
