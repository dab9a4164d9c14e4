from datetime import date

import pytest

from portfolio_analytics.analytics.schedule.critical_path import task_duration
from portfolio_analytics.data.store import EntityStore, generate_id
from portfolio_analytics.models.entities import ProjectStatus
from portfolio_analytics.utils.exceptions import (
    InvalidIntervalError,
    TeamMembershipError,
    UnknownEntityError,
)

from tests.fixtures.sample_portfolio import TODAY


def booking(member_id="m3", project_id="p1", start="2025-03-01", end="2025-03-31", percent=20):
    return {
        "projectId": project_id,
        "memberId": member_id,
        "startDate": start,
        "endDate": end,
        "capacityPercent": percent,
    }


def test_generated_ids():
    assert generate_id().startswith("id_")
    assert generate_id() != generate_id()


def test_booking_requires_team_membership(store):
    with pytest.raises(TeamMembershipError):
        store.add_booking(booking())

    assert store.add_to_project_team("p1", "m3", "Reviewer", today=TODAY)
    added = store.add_booking(booking())
    assert added.id.startswith("id_")
    assert store.snapshot().get_booking(added.id) is not None


def test_booking_interval_validated(store):
    with pytest.raises(InvalidIntervalError):
        store.add_booking(booking(member_id="m1", start="2025-03-31", end="2025-03-01"))
    with pytest.raises(InvalidIntervalError):
        store.update_booking("b1", end_date=date(2024, 1, 1))
    with pytest.raises(InvalidIntervalError):
        store.add_booking(booking(member_id="m1", start=None))


def test_update_booking(store):
    updated = store.update_booking("b1", capacity_percent=20)
    assert updated.capacity_percent == 20
    with pytest.raises(UnknownEntityError):
        store.update_booking("nope", capacity_percent=20)


def test_add_to_team_twice_is_rejected(store):
    assert not store.add_to_project_team("p1", "m1")


def test_remove_from_team_cascades(store):
    assert store.remove_from_project_team("p1", "m2")
    snapshot = store.snapshot()
    assert not snapshot.is_in_project_team("p1", "m2")
    assert snapshot.get_booking("b3") is None
    assert snapshot.get_booking("b4") is not None
    assert snapshot.get_task("t2").responsible is None
    assert not store.remove_from_project_team("p1", "m2")


def test_set_project_status_stamps_completion_once(store):
    assert store.set_project_status("p1", "completed", today=TODAY)
    project = store.get_project("p1")
    assert project.project_status == ProjectStatus.COMPLETED
    assert project.completed_date == TODAY

    assert store.set_project_status("p1", "archived", today=date(2025, 6, 1))
    assert store.get_project("p1").completed_date == TODAY

    assert not store.set_project_status("p1", "paused")
    assert not store.set_project_status("nope", "active")


def test_remove_project_cascades(store):
    assert store.remove_project("p1")
    snapshot = store.snapshot()
    assert snapshot.get_project("p1") is None
    assert snapshot.tasks_for("p1") == ()
    assert snapshot.bookings_for_project("p1") == ()
    assert snapshot.costs_for("p1") == ()
    assert not store.remove_project("p1")


def test_self_dependency_rejected(store):
    with pytest.raises(ValueError):
        store.add_task({"id": "tx", "projectId": "p1", "dependencies": ["tx"]})


def test_moving_task_end_date_changes_its_duration(store):
    store.add_task({"id": "tm", "projectId": "p1", "startDate": "2025-01-01", "endDate": "2025-01-06"})
    assert task_duration(store.snapshot().get_task("tm")) == 5

    store.update_task("tm", end_date=date(2025, 1, 21))
    assert task_duration(store.snapshot().get_task("tm")) == 20


def test_remove_task_strips_dependencies(store):
    assert store.remove_task("t1")
    snapshot = store.snapshot()
    assert snapshot.get_task("t2").predecessor_ids == ()
    assert snapshot.get_task("t3").predecessor_ids == ()


def test_snapshot_is_detached_from_store(store):
    before = store.snapshot()
    store.remove_booking("b1")
    assert before.get_booking("b1") is not None
    assert store.snapshot().get_booking("b1") is None


def test_add_member_derives_capacity(store):
    member = store.add_member({"name": "Eve", "employmentLevel": 60})
    assert member.available_capacity == 48
    assert store.snapshot().member(member.id).name == "Eve"


def test_add_cost_milestone_risk(store):
    store.add_cost({"projectId": "p2", "type": "external_service", "amount": 1200})
    store.add_milestone({"projectId": "p2", "name": "Beta", "date": "2025-04-01"})
    store.add_risk({"projectId": "p2", "title": "Scope creep", "impact": "medium"})
    snapshot = store.snapshot()
    assert len(snapshot.costs_for("p2")) == 2
    assert len(snapshot.milestones_for("p2")) == 1
    assert len(snapshot.risks_for("p2")) == 2
