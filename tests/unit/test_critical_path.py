from datetime import date

import pytest

from portfolio_analytics.analytics.schedule.critical_path import (
    compute_project_schedule,
    compute_schedule,
    overdue_critical_tasks,
    task_duration,
)
from portfolio_analytics.utils.exceptions import (
    CycleDetectedError,
    DanglingDependencyError,
    InvalidIntervalError,
    ScheduleError,
)

from tests.fixtures.sample_portfolio import TODAY, make_task


def scenario_a():
    return [
        make_task("T1", 5),
        make_task("T2", 5, deps=["T1"]),
        make_task("T3", 3, deps=["T1"]),
    ]


def test_scenario_a_critical_path_and_slack():
    result = compute_schedule(scenario_a())
    assert result.critical_path == ["T1", "T2"]
    assert result.project_completion_time == 10
    assert result.task_data["T3"].slack == 2
    assert result.task_data["T3"].early_start == 5
    assert result.task_data["T3"].late_start == 7
    assert not result.task_data["T3"].is_critical


def test_dangling_dependency_is_reported_not_scheduled():
    tasks = [
        make_task("T1", 5),
        make_task("T2", 5, deps=["T1", "ghost"]),
    ]
    result = compute_schedule(tasks)
    assert result.has_dangling_dependencies
    assert result.dangling_dependencies[0].task_id == "T2"
    assert result.dangling_dependencies[0].missing_task_id == "ghost"
    assert "ghost" not in result.critical_path
    assert "ghost" not in result.task_data
    assert result.project_completion_time == 10


def test_dangling_dependency_strict_mode_raises():
    tasks = [make_task("T1", 5, deps=["ghost"])]
    with pytest.raises(DanglingDependencyError) as exc:
        compute_schedule(tasks, strict=True)
    assert exc.value.dangling[0].missing_task_id == "ghost"


def test_cycle_is_detected():
    tasks = [
        make_task("A", 1),
        make_task("B", 2, deps=["A", "C"]),
        make_task("C", 3, deps=["B"]),
    ]
    with pytest.raises(CycleDetectedError) as exc:
        compute_schedule(tasks)
    assert set(exc.value.task_ids) == {"B", "C"}
    assert isinstance(exc.value, ScheduleError)


def test_self_dependency_is_a_cycle():
    with pytest.raises(CycleDetectedError):
        compute_schedule([make_task("A", 2, deps=["A"])])


def test_zero_duration_milestone():
    tasks = [make_task("T1", 5), make_task("M", 0, deps=["T1"])]
    result = compute_schedule(tasks)
    assert result.critical_path == ["T1", "M"]
    assert result.task_data["M"].early_start == result.task_data["M"].early_finish == 5
    assert result.project_completion_time == 5


def test_empty_task_set():
    result = compute_schedule([])
    assert result.critical_path == []
    assert result.project_completion_time == 0


def test_duplicate_task_ids_rejected():
    with pytest.raises(ValueError):
        compute_schedule([make_task("A", 1), make_task("A", 2)])


def test_completion_is_max_finish_and_critical_is_zero_slack():
    tasks = [
        make_task("a", 3),
        make_task("b", 2),
        make_task("c", 4, deps=["a"]),
        make_task("d", 1, deps=["a", "b"]),
        make_task("e", 2, deps=["c", "d"]),
        make_task("f", 6, deps=["b"]),
    ]
    result = compute_schedule(tasks)
    finishes = [ts.early_finish for ts in result.task_data.values()]
    assert result.project_completion_time == max(finishes)

    zero_slack = {tid for tid, ts in result.task_data.items() if ts.slack == 0}
    assert set(result.critical_path) == zero_slack
    assert all(ts.slack >= 0 for ts in result.task_data.values())

    starts = [result.task_data[tid].early_start for tid in result.critical_path]
    assert starts == sorted(starts)


def test_parallel_critical_chains_keep_predecessors_first():
    tasks = [
        make_task("x", 0),
        make_task("y", 4, deps=["x"]),
        make_task("z", 4),
    ]
    result = compute_schedule(tasks)
    assert result.critical_path == ["x", "y", "z"]


def test_independent_tasks_keep_input_order():
    tasks = [make_task("b", 1), make_task("a", 1), make_task("c", 1)]
    assert compute_schedule(tasks).topological_order == ["b", "a", "c"]


def test_duration_derived_from_dates():
    task = make_task("T", start="2025-01-06", end="2025-01-10")
    assert task_duration(task) == 4


def test_task_ending_before_start_is_rejected():
    task = make_task("T", start="2025-01-10", end="2025-01-05")
    with pytest.raises(InvalidIntervalError):
        compute_schedule([task])


def test_anchor_maps_offsets_to_dates(sample_snapshot):
    result = compute_project_schedule(sample_snapshot, "p1", use_calendar=True)
    assert result.anchor == date(2025, 1, 6)
    assert result.critical_path == ["t1", "t2"]
    assert result.completion_date == date(2025, 1, 16)
    assert result.to_date(result.task_data["t3"].late_finish) == date(2025, 1, 16)


def test_anchor_does_not_delay_tasks_with_predecessors():
    tasks = [
        make_task("T1", start=date(2025, 1, 1), end=date(2025, 1, 6)),
        make_task("T2", deps=["T1"], start=date(2025, 1, 15), end=date(2025, 1, 20)),
        make_task("T3", deps=["T1"], start=date(2025, 1, 6), end=date(2025, 1, 9)),
    ]
    result = compute_schedule(tasks, anchor=date(2025, 1, 1))

    assert result.critical_path == ["T1", "T2"]
    assert result.task_data["T2"].early_start == 5
    assert result.task_data["T3"].slack == 2
    assert result.project_completion_time == 10
    assert result.completion_date == date(2025, 1, 11)


def test_to_date_requires_anchor():
    result = compute_schedule(scenario_a())
    assert result.completion_date is None
    with pytest.raises(ValueError):
        result.to_date(3)


def test_overdue_critical_tasks_skips_done(sample_snapshot):
    overdue = overdue_critical_tasks(sample_snapshot, "p1", TODAY)
    assert [t.id for t in overdue] == ["t2"]
    assert overdue_critical_tasks(sample_snapshot, "p2", TODAY) == []


def test_schedule_serializes(sample_snapshot):
    data = compute_project_schedule(sample_snapshot, "p1", use_calendar=True).to_dict()
    assert data["anchor"] == "2025-01-06"
    assert data["task_data"]["t2"]["is_critical"] is True
