from datetime import date

import pytest

from commission_api.extensions import db
from commission_api.models.employee import employee_projects
from commission_api.models.salary import Salary, SALARY_PAID
from commission_api.models.user import User
from commission_api.services.months import current_month
from tests.factories import add_revenue, make_employee, make_project

MONTH = "2025-03"


def test_login_and_me(client, admin):
    r = client.post("/api/v1/auth/login", json={"email": "admin@test.local", "password": "secret"})
    assert r.status_code == 200
    token = r.get_json()["data"]["access"]
    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.get_json()["data"]["email"] == "admin@test.local"

    bad = client.post("/api/v1/auth/login", json={"email": "admin@test.local", "password": "nope"})
    assert bad.status_code == 401


def test_routes_need_a_token(client):
    assert client.get("/api/v1/salaries").status_code == 401


def test_generate_endpoint(client, auth, rate, queue):
    make_employee("Dana", "Developer", 1000)
    r = client.post("/api/v1/salaries/generate", json={"month": MONTH}, headers=auth)
    assert r.status_code == 201
    body = r.get_json()
    assert body["data"]["count"] == 1
    assert body["data"]["existing_count"] == 0
    assert body["data"]["salaries"][0]["status"] == "Pending"

    # next month was queued, not run inline
    assert Salary.query.filter_by(month="2025-04").count() == 0
    queue.drain()
    assert Salary.query.filter_by(month="2025-04").count() == 1


def test_generate_endpoint_validates_month(client, auth):
    r = client.post("/api/v1/salaries/generate", json={"month": "March"}, headers=auth)
    assert r.status_code == 422
    assert r.get_json()["error"]["code"] == "VALIDATION_ERROR"


def test_recalculate_endpoint(client, auth, rate):
    assert client.post("/api/v1/salaries/recalculate", json={"month": MONTH}, headers=auth).status_code == 404

    dev = make_employee("Dana", "Developer", 200000)
    p = make_project(developers=[dev], bonus_pool=50000)
    client.post("/api/v1/salaries/generate", json={"month": MONTH}, headers=auth)
    add_revenue(p, MONTH, 1000)

    r = client.post("/api/v1/salaries/recalculate", json={"month": MONTH}, headers=auth)
    assert r.status_code == 200
    assert r.get_json()["data"]["recalculated"] == 1
    row = client.get(f"/api/v1/salaries/employee/{dev.id}", headers=auth).get_json()["data"][0]
    assert row["total_amount"] == pytest.approx(250000)
    assert row["project_bonuses"][0]["project_name"] == "Apollo"


def test_list_is_enriched_at_read_time(client, auth, rate):
    pm = make_employee("Pat", "PM", 100000)
    p = make_project(project_manager_id=pm.id, pm_commission_type="percentage", pm_commission_amount=10)
    client.post("/api/v1/salaries/generate", json={"month": MONTH}, headers=auth)
    add_revenue(p, MONTH, 2000)

    data = client.get(f"/api/v1/salaries?month={MONTH}", headers=auth).get_json()["data"]
    assert data[0]["total_amount"] == pytest.approx(100000 + 54240)
    assert data[0]["pm_commissions"][0]["commission_rate"] == 10

    # stored row is not touched by reads
    stored = client.get(f"/api/v1/salaries/{data[0]['id']}", headers=auth).get_json()["data"]
    assert stored["total_amount"] == pytest.approx(100000)
    assert stored["pm_commissions"] == []


def test_preview_endpoint(client, auth, rate):
    dev = make_employee("Dana", "Developer", 10)
    p = make_project(developers=[dev], bonus_pool=90)
    add_revenue(p, MONTH, 1)
    r = client.get(f"/api/v1/salaries/calculate/{dev.id}?month={MONTH}", headers=auth)
    assert r.get_json()["data"]["total_amount"] == pytest.approx(100)
    assert Salary.query.count() == 0


def test_status_update(client, auth, rate):
    make_employee("Dana", "Developer", 10)
    sid = client.post("/api/v1/salaries/generate", json={"month": MONTH}, headers=auth).get_json()["data"]["salaries"][0]["id"]

    r = client.put(f"/api/v1/salaries/{sid}/status",
                   json={"status": "Paid", "payment_reference": "TX-9"}, headers=auth)
    data = r.get_json()["data"]
    assert data["status"] == "Paid"
    assert data["paid_date"] is not None
    assert data["payment_reference"] == "TX-9"

    bad = client.put(f"/api/v1/salaries/{sid}/status", json={"status": "Lost"}, headers=auth)
    assert bad.status_code == 422


def test_duplicate_revenue_conflicts(client, auth):
    p = make_project()
    payload = {"project_id": p.id, "month": MONTH, "amount_collected": 100}
    assert client.post("/api/v1/monthly-revenues", json=payload, headers=auth).status_code == 201
    r = client.post("/api/v1/monthly-revenues", json=payload, headers=auth)
    assert r.status_code == 409


def test_revenue_create_triggers_recalculation(client, auth, rate, queue):
    dev = make_employee("Dana", "Developer", 200000)
    p = make_project(developers=[dev], bonus_pool=50000)
    client.post("/api/v1/salaries/generate", json={"month": MONTH}, headers=auth)
    queue.drain()

    client.post("/api/v1/monthly-revenues",
                json={"project_id": p.id, "month": MONTH, "amount_collected": 1000}, headers=auth)
    results = queue.drain()
    assert [r.name for r in results] == [f"revenue-recalc:{p.id}:{MONTH}"]
    db.session.expire_all()
    row = Salary.query.filter_by(employee_id=dev.id, month=MONTH).one()
    assert row.total_amount == pytest.approx(250000)


def test_bulk_revenue_upsert_collects_errors(client, auth):
    p = make_project()
    r = client.post("/api/v1/monthly-revenues/bulk", json={"revenues": [
        {"project_id": p.id, "month": MONTH, "amount_collected": 10},
        {"project_id": p.id, "month": MONTH, "amount_collected": 20},
        {"project_id": 999, "month": MONTH, "amount_collected": 5},
        {"month": MONTH},
    ]}, headers=auth)
    body = r.get_json()
    assert r.status_code == 200
    assert len(body["data"]) == 2
    assert body["data"][1]["amount_collected"] == 20
    assert len(body["meta"]["errors"]) == 2


def test_revenues_by_month_lists_missing_projects(client, auth):
    a = make_project("Alpha")
    b = make_project("Beta")
    make_project("Gamma", status="Completed")
    add_revenue(a, MONTH, 10)
    data = client.get(f"/api/v1/monthly-revenues/month/{MONTH}", headers=auth).get_json()["data"]
    assert [r["project_id"] for r in data["existing_revenues"]] == [a.id]
    assert [p["id"] for p in data["projects_without_revenue"]] == [b.id]


def test_project_end_date_must_follow_start(client, auth):
    r = client.post("/api/v1/projects", json={
        "name": "Apollo", "client_name": "Acme", "start_date": "2025-03-10", "end_date": "2025-03-01",
    }, headers=auth)
    assert r.status_code == 422
    assert r.get_json()["error"]["detail"]["field"] == "end_date"


def test_project_create_writes_history_and_schedules_recalc(client, auth, rate, queue):
    dev = make_employee("Dana", "Developer", 1000)
    r = client.post("/api/v1/projects", json={
        "name": "Apollo", "client_name": "Acme", "start_date": "2025-01-01",
        "bonus_pool": 500, "developer_ids": [dev.id],
    }, headers=auth)
    assert r.status_code == 201
    pid = r.get_json()["data"]["id"]

    history = client.get(f"/api/v1/projects/{pid}/history", headers=auth).get_json()["data"]
    assert history[0]["change_type"] == "CREATED"
    assert history[0]["changed_by"]["email"] == "admin@test.local"

    [result] = queue.drain()
    assert result.ok
    assert Salary.query.filter_by(employee_id=dev.id, month=current_month()).count() == 1


def test_assign_and_remove_keep_memberships_in_step(client, auth):
    dev = make_employee("Dana", "Developer")
    pm = make_employee("Pat", "PM")
    p = make_project()

    r = client.post(f"/api/v1/projects/{p.id}/assign",
                    json={"developer_ids": [dev.id], "project_manager_id": pm.id}, headers=auth)
    team = r.get_json()["data"]["team"]
    assert [d["id"] for d in team["developers"]] == [dev.id]
    assert team["project_manager"]["id"] == pm.id

    def members():
        rows = db.session.execute(db.select(employee_projects.c.employee_id)
                                  .where(employee_projects.c.project_id == p.id)).scalars()
        return set(rows)

    assert members() == {dev.id, pm.id}

    client.delete(f"/api/v1/projects/{p.id}/remove/{pm.id}", headers=auth)
    assert members() == {dev.id}

    history = client.get(f"/api/v1/projects/{p.id}/history", headers=auth).get_json()["data"]
    assert [h["change_type"] for h in history] == ["TEAM_CHANGED", "TEAM_CHANGED"]


def test_assign_unknown_employee_rolls_back(client, auth):
    dev = make_employee("Dana", "Developer")
    p = make_project(developers=[dev])
    r = client.post(f"/api/v1/projects/{p.id}/assign", json={"developer_ids": [dev.id, 777]}, headers=auth)
    assert r.status_code == 404
    db.session.expire_all()
    assert [d.id for d in p.developers] == [dev.id]


def test_settings_validation(client, auth):
    assert client.put("/api/v1/settings", json={"usd_to_pkr_rate": 0}, headers=auth).status_code == 422
    assert client.put("/api/v1/settings", json={"pm_commission_percentage": 120}, headers=auth).status_code == 422
    r = client.put("/api/v1/settings", json={"usd_to_pkr_rate": 280}, headers=auth)
    assert r.get_json()["data"]["usd_to_pkr_rate"] == 280


def test_commission_config_defaults_apply_to_new_projects(client, auth):
    r = client.post("/api/v1/commission-configs/initialize", headers=auth)
    assert r.status_code == 201
    assert len(r.get_json()["data"]) == 4
    assert client.post("/api/v1/commission-configs/initialize", headers=auth).get_json()["data"] == []

    r = client.post("/api/v1/projects", json={
        "name": "Apollo", "client_name": "Acme", "start_date": "2025-01-01",
        "pm_commission_type": "fixed", "pm_commission_amount": 900,
    }, headers=auth)
    data = r.get_json()["data"]
    assert data["pm_commission"] == {"type": "fixed", "amount": 900}
    assert data["team_lead_commission"] == {"type": "percentage", "amount": 5}
    assert data["bidder_commission"] == {"type": "percentage", "amount": 3}


def test_bulk_revenue_update_keeps_creator(client, auth):
    other = User(email="hr@test.local", full_name="HR", role="hr", status="active")
    other.set_password("secret")
    db.session.add(other)
    db.session.commit()
    p = make_project()
    r = add_revenue(p, MONTH, 10)
    r.created_by = other.id
    db.session.commit()

    body = client.post("/api/v1/monthly-revenues/bulk", json={"revenues": [
        {"project_id": p.id, "month": MONTH, "amount_collected": 25},
        {"project_id": p.id, "month": "2025-04", "amount_collected": 5},
    ]}, headers=auth).get_json()
    updated, created = body["data"]
    assert updated["amount_collected"] == 25
    assert updated["created_by"]["email"] == "hr@test.local"
    assert created["created_by"]["email"] == "admin@test.local"


def test_delete_project_recalculates_from_start_month(client, auth, rate, queue):
    dev = make_employee("Dana", "Developer", 1000)
    p = make_project(developers=[dev], start=date(2099, 5, 1))
    pid = p.id

    assert client.delete(f"/api/v1/projects/{pid}", headers=auth).status_code == 200
    [result] = queue.drain()
    assert result.name == f"project-deleted:{pid}"
    assert result.value["month"] == "2099-05"
    assert Salary.query.filter_by(employee_id=dev.id, month="2099-05").count() == 1
    assert Salary.query.filter_by(employee_id=dev.id, month=current_month()).count() == 0


def test_dashboard_metrics(client, auth, rate):
    dana = make_employee("Dana", "Developer", 1000)
    make_employee("Eli", "Developer", 300)
    make_employee("Ivy", "Developer", 700, status="Inactive")
    p = make_project()
    add_revenue(p, MONTH, 1500)
    add_revenue(p, "2025-04", 99)
    client.post("/api/v1/salaries/generate", json={"month": MONTH}, headers=auth)
    row = Salary.query.filter_by(employee_id=dana.id, month=MONTH).one()
    row.status = SALARY_PAID
    db.session.commit()

    data = client.get(f"/api/v1/dashboard/metrics?month={MONTH}", headers=auth).get_json()["data"]
    assert data["month"] == MONTH
    assert data["total_active_employees"] == 2
    assert data["total_paid_salary"] == pytest.approx(1000)
    assert data["paid_count"] == 1
    assert data["total_pending_salary"] == pytest.approx(300)
    assert data["pending_count"] == 1
    assert data["total_project_payout"] == pytest.approx(1500)
    assert [s["employee_id"] for s in data["salary_overview"]["paid"]] == [dana.id]
    assert len(data["salary_overview"]["pending"]) == 1


def test_dashboard_salary_overview(client, auth, rate):
    make_employee("Dana", "Developer", 1000)
    make_employee("Eli", "Developer", 300)
    client.post("/api/v1/salaries/generate", json={"month": MONTH}, headers=auth)

    data = client.get(f"/api/v1/dashboard/salary-overview?month={MONTH}", headers=auth).get_json()["data"]
    assert data["paid"] == {"count": 0, "total": 0.0, "salaries": []}
    assert data["pending"]["count"] == 2
    assert data["pending"]["total"] == pytest.approx(1300)
    assert len(data["pending"]["salaries"]) == 2


def test_dashboard_defaults_to_current_month_and_validates(client, auth):
    data = client.get("/api/v1/dashboard/metrics", headers=auth).get_json()["data"]
    assert data["month"] == current_month()
    assert data["total_paid_salary"] == 0
    assert client.get("/api/v1/dashboard/salary-overview?month=2025-3", headers=auth).status_code == 422
