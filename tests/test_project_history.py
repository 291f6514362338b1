from commission_api.models.project_history import ProjectHistory
from commission_api.services import project_history
from commission_api.services.project_history import (
    diff_snapshots, employee_name, employee_names, get_project_history,
    snapshot_project, track_project_creation, track_project_update,
)
from tests.factories import make_employee, make_project


def _snap(**kw):
    base = {"name": "Apollo", "client_name": "Acme", "total_amount": 100, "status": "Active",
            "project_manager": None, "team_lead": None, "manager": None, "bidder": None,
            "developers": []}
    base.update(kw)
    return base


def _names(eid):
    return {1: "Ann", 2: "Ben"}.get(eid, "") if eid else ""


def test_closing_wins_over_team_change():
    change_type, changes = diff_snapshots(_snap(), _snap(status="Completed", developers=[1]), _names)
    assert change_type == "CLOSED"
    assert [c["field"] for c in changes] == ["status", "team.developers"]


def test_reopened():
    change_type, _ = diff_snapshots(_snap(status="Completed"), _snap(status="Active"), _names)
    assert change_type == "REOPENED"


def test_team_change_beats_plain_update():
    change_type, changes = diff_snapshots(_snap(), _snap(name="Zeus", project_manager=2), _names)
    assert change_type == "TEAM_CHANGED"
    pm = [c for c in changes if c["field"] == "team.project_manager"][0]
    assert pm["old_value"] == "" and pm["new_value"] == "Ben"


def test_plain_update():
    change_type, changes = diff_snapshots(_snap(), _snap(total_amount=250), _names)
    assert change_type == "UPDATED"
    assert changes[0]["old_value"] == 100 and changes[0]["new_value"] == 250


def test_developer_add_and_remove_are_separate_entries():
    _, changes = diff_snapshots(_snap(developers=[1]), _snap(developers=[2]), _names)
    assert [(c["old_value"], c["new_value"]) for c in changes] == [(None, "Ben"), ("Ann", None)]


def test_no_change_no_entries():
    assert diff_snapshots(_snap(), _snap(), _names) == ("UPDATED", [])


def test_employee_name_lookup(session):
    e = make_employee("Dana", "Developer")
    assert employee_name(None) == ""
    assert employee_name(e.id) == "Dana"
    assert employee_name(4242) == "Unknown"
    assert employee_names([e.id, 4242]) == ["Dana"]


def test_creation_and_update_are_recorded(session):
    dev = make_employee("Dana", "Developer")
    p = make_project(developers=[dev])
    created = track_project_creation(p, None)
    assert created.change_type == "CREATED"
    assert created.snapshot["team"]["developers"] == ["Dana"]

    old = snapshot_project(p)
    p.status = "Completed"
    session.commit()
    updated = track_project_update(p.id, old, snapshot_project(p), None)
    assert updated.change_type == "CLOSED"

    assert [h.change_type for h in get_project_history(p.id)] == ["CLOSED", "CREATED"]


def test_update_without_changes_writes_nothing(session):
    p = make_project()
    snap = snapshot_project(p)
    assert track_project_update(p.id, snap, dict(snap), None) is None
    assert ProjectHistory.query.count() == 0


def test_audit_failure_is_swallowed(session, monkeypatch):
    p = make_project()

    def broken(*a, **kw):
        raise RuntimeError("audit store down")

    monkeypatch.setattr(project_history, "diff_snapshots", broken)
    assert track_project_update(p.id, snapshot_project(p), {}, None) is None
    # the project itself is untouched
    assert session.get(type(p), p.id).name == "Apollo"
