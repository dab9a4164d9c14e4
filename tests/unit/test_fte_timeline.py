from datetime import date

import pytest

from portfolio_analytics.analytics.resources.fte_timeline import (
    calculate_project_fte,
    fte_timeline,
    rolling_fte_timeline,
)
from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.utils.exceptions import InvalidIntervalError

from tests.fixtures.sample_portfolio import TODAY, make_booking, make_member, make_project


def small_snapshot(extra_bookings=()):
    return PortfolioSnapshot(
        projects=[make_project("a", name="Alpha"), make_project("z", status="archived")],
        members=[make_member("m1"), make_member("m2")],
        resource_bookings=[
            make_booking("b1", "a", "m1", "2025-03-03", "2025-03-09", 50),
            make_booking("b2", "a", "m2", "2025-03-05", "2025-03-12", 30),
            make_booking("b3", "z", "m1", "2025-03-03", "2025-03-16", 100),
            *extra_bookings,
        ],
    )


def test_weekly_buckets_only_count_active_projects():
    timeline = fte_timeline(small_snapshot(), start=date(2025, 3, 3), end=date(2025, 3, 23))
    assert len(timeline) == 3
    assert timeline.total_available_fte == 1.6

    first, second, third = timeline.periods
    assert (first.start_date, first.end_date) == (date(2025, 3, 3), date(2025, 3, 9))
    assert first.total_fte == 0.8
    assert [p.project_id for p in first.projects] == ["a"]
    assert first.projects[0].project_name == "Alpha"

    assert second.total_fte == 0.3
    assert third.total_fte == 0
    assert third.projects == []
    assert timeline.overloaded_periods == []


def test_periods_are_monday_aligned():
    timeline = fte_timeline(small_snapshot(), start=date(2025, 3, 5), end=date(2025, 3, 11))
    assert [p.start_date for p in timeline.periods] == [date(2025, 3, 3), date(2025, 3, 10)]
    assert all(p.start_date.weekday() == 0 for p in timeline.periods)


def test_overloaded_week_is_flagged():
    extra = [make_booking("b4", "a", "m2", "2025-03-03", "2025-03-09", 90)]
    timeline = fte_timeline(small_snapshot(extra), start=date(2025, 3, 3), end=date(2025, 3, 9))
    period = timeline.periods[0]
    assert period.total_fte == 1.7
    assert period.is_overloaded
    assert timeline.overloaded_periods == [period]


def test_window_defaults_to_booking_span():
    timeline = fte_timeline(small_snapshot())
    assert timeline.periods[0].start_date == date(2025, 3, 3)
    assert timeline.periods[-1].start_date == date(2025, 3, 10)


def test_inverted_booking_rejected_not_clamped():
    extra = [make_booking("bad", "a", "m1", "2025-03-09", "2025-03-03", 40)]
    timeline = fte_timeline(small_snapshot(extra), start=date(2025, 3, 3), end=date(2025, 3, 9))
    assert timeline.rejected_bookings == ["bad"]
    assert timeline.periods[0].total_fte == 0.8


def test_no_bookings_no_periods():
    snapshot = PortfolioSnapshot(projects=[make_project("a")], members=[make_member("m1")])
    timeline = fte_timeline(snapshot)
    assert timeline.periods == []
    assert timeline.total_available_fte == 0.8


def test_inverted_window_raises():
    with pytest.raises(InvalidIntervalError):
        fte_timeline(small_snapshot(), start=date(2025, 3, 10), end=date(2025, 3, 1))


def test_rolling_window_around_today(sample_snapshot):
    timeline = rolling_fte_timeline(sample_snapshot, TODAY)
    assert len(timeline) == 9
    assert timeline.periods[0].start_date == date(2025, 2, 3)
    assert timeline.periods[-1].start_date == date(2025, 3, 31)

    current = timeline.periods[4]
    assert current.start_date == TODAY
    assert current.total_fte == 1.9
    assert not current.is_overloaded
    assert [(p.project_id, p.total_capacity) for p in current.projects] == [("p1", 0.8), ("p2", 1.1)]


def test_project_fte(sample_snapshot):
    assert calculate_project_fte(sample_snapshot, "p1") == 0.8
    assert calculate_project_fte(sample_snapshot, "p1", at=date(2025, 4, 1)) == 0.3


def test_timeline_serializes(sample_snapshot):
    data = rolling_fte_timeline(sample_snapshot, TODAY).to_dict()
    assert data["periods"][0]["start_date"] == "2025-02-03"
