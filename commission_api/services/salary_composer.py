# commission_api/services/salary_composer.py
"""
Salary composition for one employee and one month.

Base salary plus, for every Active project that recorded collected
revenue that month:
  - developer bonus: bonus_pool / developer_count (flat, not revenue scaled)
  - role commission for the PM / team lead / manager / bidder slot,
    evaluated on revenue converted to payroll currency

Lines are emitted only for positive amounts and only when the employee's
own role matches the slot (a PM-role employee earns the PM commission,
a Developer-role employee earns developer bonuses).

The same routine backs three call modes:
  persist   -> salary_store.upsert_salary / insert_salary_if_absent
  enrich    -> enrich_salaries(), read-time view over stored rows
  preview   -> preview_salary(), never stored
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from commission_api.common.errors import NotFoundError
from commission_api.extensions import db
from commission_api.models.employee import Employee, ROLE_DEVELOPER
from commission_api.models.project import Project, PROJECT_ACTIVE, TEAM_SLOTS
from commission_api.models.salary import (
    Salary, LINE_GROUPS, LINE_DEVELOPER_BONUS, LINE_PM_COMMISSION,
    LINE_TEAM_LEAD_COMMISSION, LINE_MANAGER_COMMISSION, LINE_BIDDER_COMMISSION,
)
from commission_api.services.commission import (
    CommissionRule, apply_rule, calculate_developer_bonus,
)
from commission_api.services.currency import get_exchange_rate, to_payroll_currency
from commission_api.services.months import require_month
from commission_api.services.revenue_ledger import revenue_map, has_qualifying_revenue
from commission_api.services.team_roles import TeamRoles

SLOT_LINE_KIND = {
    "project_manager": LINE_PM_COMMISSION,
    "team_lead":       LINE_TEAM_LEAD_COMMISSION,
    "manager":         LINE_MANAGER_COMMISSION,
    "bidder":          LINE_BIDDER_COMMISSION,
}


@dataclass(frozen=True)
class ProjectTerms:
    id: int
    name: str
    bonus_pool: float
    team: TeamRoles
    rules: Dict[str, CommissionRule]

    @classmethod
    def of(cls, p: Project) -> "ProjectTerms":
        return cls(
            id=p.id,
            name=p.name,
            bonus_pool=float(p.bonus_pool or 0),
            team=TeamRoles.of(p),
            rules={slot: p.commission_rule(slot) for slot in TEAM_SLOTS},
        )


@dataclass(frozen=True)
class PayrollContext:
    """Everything a month's computation reads, loaded once and passed down."""
    month: str
    exchange_rate: float
    revenues: Dict[int, float]
    projects: Tuple[ProjectTerms, ...]

    @classmethod
    def load(cls, month: str, exchange_rate: Optional[float] = None) -> "PayrollContext":
        require_month(month)
        rate = exchange_rate if exchange_rate is not None else get_exchange_rate()
        active = (Project.query
                  .filter(Project.status == PROJECT_ACTIVE)
                  .order_by(Project.id.asc())
                  .all())
        return cls(
            month=month,
            exchange_rate=rate,
            revenues=revenue_map(month),
            projects=tuple(ProjectTerms.of(p) for p in active),
        )


@dataclass(frozen=True)
class ComposedLine:
    kind: str
    project_id: int
    project_name: str
    amount: float
    commission_type: Optional[str] = None
    commission_rate: Optional[float] = None


@dataclass
class ComposedSalary:
    employee_id: int
    month: str
    base_salary: float
    lines: List[ComposedLine] = field(default_factory=list)

    @property
    def total_amount(self) -> float:
        total = self.base_salary
        for line in self.lines:
            total += line.amount
        return total

    def lines_of(self, kind: str) -> List[ComposedLine]:
        return [l for l in self.lines if l.kind == kind]

    def groups(self) -> Dict[str, List[ComposedLine]]:
        out = {key: [] for key in LINE_GROUPS.values()}
        for line in self.lines:
            out[LINE_GROUPS[line.kind]].append(line)
        return out


def compose_salary(employee_id: int, role: Optional[str], base_salary: float,
                   ctx: PayrollContext) -> ComposedSalary:
    out = ComposedSalary(employee_id=employee_id, month=ctx.month, base_salary=float(base_salary or 0))

    for p in ctx.projects:
        revenue_usd = ctx.revenues.get(p.id)
        if not has_qualifying_revenue(revenue_usd):
            continue
        amount_pkr = to_payroll_currency(revenue_usd, ctx.exchange_rate)

        if p.team.is_developer(employee_id) and role == ROLE_DEVELOPER:
            bonus = calculate_developer_bonus(p.bonus_pool, p.team.developer_count)
            if bonus > 0:
                out.lines.append(ComposedLine(LINE_DEVELOPER_BONUS, p.id, p.name, bonus))

        for slot, (_, _, expected_role) in TEAM_SLOTS.items():
            if not p.team.holds(slot, employee_id) or role != expected_role:
                continue
            rule = p.rules[slot]
            commission = apply_rule(amount_pkr, rule)
            if commission > 0:
                out.lines.append(ComposedLine(
                    SLOT_LINE_KIND[slot], p.id, p.name, commission,
                    commission_type=rule.type, commission_rate=rule.amount,
                ))

    return out


def compose_for_employee(employee: Employee, ctx: PayrollContext) -> ComposedSalary:
    return compose_salary(employee.id, employee.role, employee.base_salary, ctx)


def enrich_salaries(salaries: Iterable[Salary]) -> List[Tuple[Salary, ComposedSalary]]:
    """
    Recompute stored rows against current project/revenue data without
    writing anything. The stored base salary snapshot is kept.
    """
    salaries = list(salaries)
    by_month = defaultdict(list)
    for s in salaries:
        by_month[s.month].append(s)
    contexts = {}
    if by_month:
        rate = get_exchange_rate()
        contexts = {m: PayrollContext.load(m, exchange_rate=rate) for m in by_month}

    out = []
    for s in salaries:
        emp = s.employee
        role = emp.role if emp is not None else None
        out.append((s, compose_salary(s.employee_id, role, s.base_salary, contexts[s.month])))
    return out


def preview_salary(employee_id: int, month: str) -> Tuple[Employee, ComposedSalary]:
    require_month(month)
    emp = db.session.get(Employee, employee_id)
    if not emp:
        raise NotFoundError("Employee not found")
    return emp, compose_for_employee(emp, PayrollContext.load(month))
