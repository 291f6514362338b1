import pytest

from commission_api.common.errors import NotFoundError
from commission_api.models.salary import (
    LINE_DEVELOPER_BONUS, LINE_PM_COMMISSION, LINE_TEAM_LEAD_COMMISSION, LINE_BIDDER_COMMISSION,
)
from commission_api.services.salary_composer import (
    PayrollContext, compose_for_employee, preview_salary,
)
from commission_api.services.revenue_ledger import revenue_for
from tests.factories import add_revenue, make_employee, make_project

MONTH = "2025-03"


def test_developer_bonus_needs_revenue(session, rate):
    dev = make_employee("Dana", "Developer", 200000)
    p = make_project(developers=[dev], bonus_pool=50000)

    before = compose_for_employee(dev, PayrollContext.load(MONTH))
    assert before.lines == []
    assert before.total_amount == pytest.approx(200000)

    add_revenue(p, MONTH, 1000)
    after = compose_for_employee(dev, PayrollContext.load(MONTH))
    [line] = after.lines
    assert line.kind == LINE_DEVELOPER_BONUS
    assert line.amount == pytest.approx(50000)
    assert after.total_amount == pytest.approx(250000)


def test_pm_commission_on_converted_revenue(session, rate):
    pm = make_employee("Pat", "PM", 150000)
    p = make_project(project_manager_id=pm.id, pm_commission_type="percentage", pm_commission_amount=10)
    add_revenue(p, MONTH, 2000)

    composed = compose_for_employee(pm, PayrollContext.load(MONTH))
    [line] = composed.lines_of(LINE_PM_COMMISSION)
    assert line.amount == pytest.approx(2000 * 271.2 * 0.10)
    assert line.commission_type == "percentage"
    assert line.commission_rate == 10
    assert composed.total_amount == pytest.approx(150000 + 54240)


def test_fixed_commission_needs_only_some_revenue(session, rate):
    tl = make_employee("Tara", "TeamLead", 100)
    p = make_project(team_lead_id=tl.id, team_lead_commission_type="fixed", team_lead_commission_amount=5000)
    add_revenue(p, MONTH, 1)

    composed = compose_for_employee(tl, PayrollContext.load(MONTH))
    assert [l.amount for l in composed.lines_of(LINE_TEAM_LEAD_COMMISSION)] == [5000]


def test_zero_revenue_does_not_qualify(session, rate):
    dev = make_employee("Dana", "Developer", 1000)
    p = make_project(developers=[dev], bonus_pool=9000)
    add_revenue(p, MONTH, 0)
    assert compose_for_employee(dev, PayrollContext.load(MONTH)).lines == []


def test_completed_projects_are_ignored(session, rate):
    dev = make_employee("Dana", "Developer", 1000)
    p = make_project(developers=[dev], bonus_pool=9000, status="Completed")
    add_revenue(p, MONTH, 500)
    assert compose_for_employee(dev, PayrollContext.load(MONTH)).lines == []


def test_bonus_pool_split_across_developers(session, rate):
    devs = [make_employee(n, "Developer", 0) for n in ("Ann", "Ben", "Cid")]
    p = make_project(developers=devs, bonus_pool=30000)
    add_revenue(p, MONTH, 10)

    ctx = PayrollContext.load(MONTH)
    shares = [compose_for_employee(d, ctx).total_amount for d in devs]
    assert shares == [pytest.approx(10000)] * 3


def test_role_gating(session, rate):
    # a PM listed as developer gets no bonus, a developer put in the PM slot gets no commission
    pm = make_employee("Pat", "PM", 0)
    dev = make_employee("Dana", "Developer", 0)
    p = make_project(developers=[pm, dev], bonus_pool=1000, project_manager_id=dev.id,
                     pm_commission_type="percentage", pm_commission_amount=10)
    add_revenue(p, MONTH, 100)

    ctx = PayrollContext.load(MONTH)
    assert compose_for_employee(pm, ctx).lines == []
    dev_lines = compose_for_employee(dev, ctx).lines
    assert [l.kind for l in dev_lines] == [LINE_DEVELOPER_BONUS]
    # split still counts both listed developers
    assert dev_lines[0].amount == pytest.approx(500)


def test_zero_amount_lines_are_dropped(session, rate):
    bidder = make_employee("Bo", "Bidder", 0)
    p = make_project(bidder_id=bidder.id, bidder_commission_type="percentage", bidder_commission_amount=0)
    add_revenue(p, MONTH, 100)
    assert compose_for_employee(bidder, PayrollContext.load(MONTH)).lines_of(LINE_BIDDER_COMMISSION) == []


def test_lines_follow_project_order(session, rate):
    dev = make_employee("Dana", "Developer", 0)
    first = make_project("Alpha", developers=[dev], bonus_pool=100)
    second = make_project("Beta", developers=[dev], bonus_pool=200)
    add_revenue(second, MONTH, 1)
    add_revenue(first, MONTH, 1)

    lines = compose_for_employee(dev, PayrollContext.load(MONTH)).lines
    assert [l.project_id for l in lines] == [first.id, second.id]


def test_groups_keys(session, rate):
    dev = make_employee("Dana", "Developer", 0)
    p = make_project(developers=[dev], bonus_pool=100)
    add_revenue(p, MONTH, 1)
    groups = compose_for_employee(dev, PayrollContext.load(MONTH)).groups()
    assert set(groups) == {"project_bonuses", "pm_commissions", "manager_commissions",
                           "team_lead_commissions", "bidder_commissions"}
    assert len(groups["project_bonuses"]) == 1


def test_preview_unknown_employee(session):
    with pytest.raises(NotFoundError):
        preview_salary(999, MONTH)


def test_revenue_lookup(session):
    p = make_project()
    assert revenue_for(p.id, MONTH) is None
    add_revenue(p, MONTH, 42)
    assert revenue_for(p.id, MONTH) == 42
    assert revenue_for(p.id, "2025-04") is None
