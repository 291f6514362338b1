from datetime import date

import pytest

from commission_api.models.salary import Salary
from commission_api.services.recalc import (
    schedule_revenue_recalc, target_month, update_salaries_for_project, update_salaries_for_revenue,
)
from commission_api.services.salary_batch import generate_monthly_salaries
from commission_api.tasks import RecalcQueue
from tests.factories import add_revenue, make_employee, make_project

MONTH = "2025-03"


def test_revenue_change_recalculates_team(session, rate, queue):
    dev = make_employee("Dana", "Developer", 200000)
    p = make_project(developers=[dev], bonus_pool=50000)
    generate_monthly_salaries(MONTH)

    add_revenue(p, MONTH, 1000)
    schedule_revenue_recalc(p.id, MONTH)
    assert queue.pending() == 1

    [result] = queue.drain()
    assert result.ok
    assert result.value["recalculated"] == 1
    assert Salary.query.filter_by(employee_id=dev.id, month=MONTH).one().total_amount == pytest.approx(250000)


def test_project_recalc_targets_start_month_when_in_future(session, rate):
    pm = make_employee("Pat", "PM", 1000)
    p = make_project(project_manager_id=pm.id, start=date(2030, 6, 10),
                     pm_commission_type="fixed", pm_commission_amount=700)
    add_revenue(p, "2030-06", 5)

    summary = update_salaries_for_project(p.id, today=date(2030, 1, 20))
    assert summary["month"] == "2030-06"
    row = Salary.query.filter_by(employee_id=pm.id, month="2030-06").one()
    assert row.total_amount == pytest.approx(1700)


def test_project_recalc_uses_current_month_for_old_projects(session, rate):
    dev = make_employee("Dana", "Developer", 1000)
    p = make_project(developers=[dev], start=date(2024, 1, 1))
    summary = update_salaries_for_project(p.id, today=date(2025, 3, 2))
    assert summary["month"] == "2025-03"


def test_project_recalc_includes_removed_members(session, rate):
    dev = make_employee("Dana", "Developer", 1000)
    gone = make_employee("Gus", "Developer", 500)
    p = make_project(developers=[dev], bonus_pool=100)
    summary = update_salaries_for_project(p.id, extra_employee_ids=[gone.id], today=date(2025, 3, 1))
    assert summary["total"] == 2
    assert Salary.query.filter_by(employee_id=gone.id, month="2025-03").count() == 1


def test_revenue_recalc_covers_every_slot(session, rate):
    dev = make_employee("Dana", "Developer", 0)
    pm = make_employee("Pat", "PM", 0)
    bidder = make_employee("Bo", "Bidder", 0)
    p = make_project(developers=[dev], project_manager_id=pm.id, bidder_id=bidder.id)
    summary = update_salaries_for_revenue(p.id, MONTH)
    assert summary["total"] == 3
    assert Salary.query.filter_by(month=MONTH).count() == 3


def test_failed_task_is_recorded(session, queue):
    def boom():
        raise RuntimeError("exploded")

    queue.submit("boom", boom)
    [result] = queue.drain()
    assert not result.ok
    assert result.error == "exploded"
    assert queue.failures()[-1].name == "boom"


def test_drain_on_empty_queue(session, queue):
    assert queue.drain() == []


def test_thread_mode_runs_tasks(app):
    app.config["RECALC_MODE"] = "thread"
    q = RecalcQueue(app)
    seen = []
    q.submit("collect", seen.append, 1)
    q.join()
    q.stop()
    assert seen == [1]
    assert q.results[-1].ok


def test_target_month_is_never_before_project_start():
    today = date(2025, 3, 15)
    assert target_month(date(2024, 7, 1), today) == "2025-03"
    assert target_month(date(2025, 9, 1), today) == "2025-09"
    assert target_month(None, today) == "2025-03"
