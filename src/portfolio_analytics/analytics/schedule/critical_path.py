"""
Critical Path Method
====================
Schedule metrics for one project's task graph.

Pipeline:
1. Build the FS dependency graph once (adjacency map keyed by task id)
2. Topological order (Kahn), which doubles as cycle detection
3. Forward pass: early start / early finish
4. Backward pass: late start / late finish
5. Slack = LS - ES; zero-slack tasks form the critical path

Offsets are in days. Without an anchor every source task starts at day 0;
with an anchor date a source task cannot start before its own start date.
"""

import heapq
import math
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.models.entities import Task
from portfolio_analytics.models.results import DanglingDependency, ScheduleResult, TaskSchedule
from portfolio_analytics.utils.calendar import days_between
from portfolio_analytics.utils.exceptions import (
    CycleDetectedError,
    DanglingDependencyError,
    InvalidIntervalError,
)
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)

SLACK_TOLERANCE = 1e-9


# =========================
# GRAPH CONSTRUCTION
# =========================

def task_duration(task: Task) -> float:
    """
    Duration in days: explicit value, else end_date - start_date, else 0.

    Raises:
        InvalidIntervalError: end before start, or negative duration
    """
    if task.start_date is not None and task.end_date is not None and task.end_date < task.start_date:
        raise InvalidIntervalError("task", task.id, task.start_date, task.end_date)

    if task.duration is not None:
        duration = float(task.duration)
    elif task.start_date is not None and task.end_date is not None:
        duration = float(days_between(task.start_date, task.end_date))
    else:
        duration = 0.0

    if duration < 0:
        raise InvalidIntervalError(
            "task", task.id, task.start_date, task.end_date,
            reason=f"negative duration {duration}",
        )
    return duration


def build_dependency_graph(
    tasks: List[Task],
) -> Tuple[Dict[str, List[str]], Dict[str, List[str]], List[DanglingDependency]]:
    """
    Build predecessor/successor adjacency maps.

    Dependencies on unknown tasks are left out of the graph and returned
    as DanglingDependency records.

    Returns:
        (predecessors, successors, dangling)
    """
    known = {t.id for t in tasks}
    predecessors: Dict[str, List[str]] = {t.id: [] for t in tasks}
    successors: Dict[str, List[str]] = {t.id: [] for t in tasks}
    dangling: List[DanglingDependency] = []

    for task in tasks:
        for pred_id in task.predecessor_ids:
            if pred_id == task.id:
                raise CycleDetectedError([task.id], task.project_id or None)
            if pred_id not in known:
                dangling.append(DanglingDependency(task_id=task.id, missing_task_id=pred_id))
                continue
            predecessors[task.id].append(pred_id)
            successors[pred_id].append(task.id)

    return predecessors, successors, dangling


def topological_order(tasks: List[Task], predecessors: Dict[str, List[str]], successors: Dict[str, List[str]]) -> List[str]:
    """
    Kahn's algorithm; ties broken by input position for a stable order.

    Raises:
        CycleDetectedError: some tasks can never reach in-degree 0
    """
    position = {t.id: i for i, t in enumerate(tasks)}
    in_degree = {task_id: len(preds) for task_id, preds in predecessors.items()}

    ready = [(position[tid], tid) for tid, deg in in_degree.items() if deg == 0]
    heapq.heapify(ready)

    order: List[str] = []
    while ready:
        _, task_id = heapq.heappop(ready)
        order.append(task_id)
        for succ in successors[task_id]:
            in_degree[succ] -= 1
            if in_degree[succ] == 0:
                heapq.heappush(ready, (position[succ], succ))

    if len(order) < len(tasks):
        placed = set(order)
        stuck = [t.id for t in tasks if t.id not in placed]
        project_id = tasks[0].project_id or None
        raise CycleDetectedError(stuck, project_id)

    return order


# =========================
# CPM PASSES
# =========================

def compute_schedule(
    tasks: Iterable[Task],
    anchor: Optional[date] = None,
    strict: bool = False,
) -> ScheduleResult:
    """
    Compute CPM schedule metrics for a set of tasks.

    Args:
        tasks: Tasks of a single project
        anchor: Optional calendar date for day 0. When given, a task
            without predecessors starts at its own start date offset
            (never before day 0) and results can be mapped back with
            ScheduleResult.to_date().
        strict: Raise DanglingDependencyError instead of reporting
            dangling dependencies on the result

    Returns:
        ScheduleResult with critical path in schedule order

    Raises:
        CycleDetectedError: dependency graph has a cycle
        InvalidIntervalError: a task ends before it starts
        DanglingDependencyError: strict mode and unknown dependency targets
    """
    tasks = list(tasks)
    if not tasks:
        return ScheduleResult(critical_path=[], task_data={}, project_completion_time=0.0, anchor=anchor)

    seen = set()
    for task in tasks:
        if task.id in seen:
            raise ValueError(f"Duplicate task id in schedule input: {task.id}")
        seen.add(task.id)

    tasks_by_id = {t.id: t for t in tasks}
    durations = {t.id: task_duration(t) for t in tasks}

    predecessors, successors, dangling = build_dependency_graph(tasks)
    if dangling:
        if strict:
            raise DanglingDependencyError(dangling)
        logger.warning(
            f"Ignoring {len(dangling)} dangling dependenc{'y' if len(dangling) == 1 else 'ies'}: "
            + ", ".join(f"{d.task_id} -> {d.missing_task_id}" for d in dangling)
        )

    order = topological_order(tasks, predecessors, successors)

    # Forward pass
    early_start: Dict[str, float] = {}
    early_finish: Dict[str, float] = {}
    for task_id in order:
        release = 0.0
        start_date = tasks_by_id[task_id].start_date
        if anchor is not None and start_date is not None and not predecessors[task_id]:
            release = float(max(0, days_between(anchor, start_date)))
        es = max([release] + [early_finish[p] for p in predecessors[task_id]])
        early_start[task_id] = es
        early_finish[task_id] = es + durations[task_id]

    completion = max(early_finish.values())

    # Backward pass
    late_start: Dict[str, float] = {}
    late_finish: Dict[str, float] = {}
    for task_id in reversed(order):
        lf = min([completion] + [late_start[s] for s in successors[task_id]])
        late_finish[task_id] = lf
        late_start[task_id] = lf - durations[task_id]

    position = {task_id: i for i, task_id in enumerate(order)}
    task_data: Dict[str, TaskSchedule] = {}
    critical: List[str] = []
    for task_id in order:
        slack = late_start[task_id] - early_start[task_id]
        is_critical = math.isclose(slack, 0.0, abs_tol=SLACK_TOLERANCE)
        if is_critical:
            slack = 0.0
            critical.append(task_id)
        task_data[task_id] = TaskSchedule(
            early_start=early_start[task_id],
            early_finish=early_finish[task_id],
            late_start=late_start[task_id],
            late_finish=late_finish[task_id],
            slack=slack,
            duration=durations[task_id],
            is_critical=is_critical,
        )

    # Sorting by (ES, topological position) keeps predecessors first
    critical.sort(key=lambda tid: (early_start[tid], position[tid]))

    logger.debug(
        f"Schedule computed: {len(order)} tasks, completion {completion:g} days, "
        f"critical path {critical}"
    )

    return ScheduleResult(
        critical_path=critical,
        task_data=task_data,
        project_completion_time=completion,
        topological_order=order,
        dangling_dependencies=dangling,
        anchor=anchor,
    )


# =========================
# PROJECT-LEVEL HELPERS
# =========================

def compute_project_schedule(
    snapshot: PortfolioSnapshot,
    project_id: str,
    use_calendar: bool = False,
    strict: bool = False,
) -> ScheduleResult:
    """
    Run the CPM over one project's tasks.

    With use_calendar the project start date (or the earliest task start)
    becomes the anchor, so offsets map to real dates.
    """
    project = snapshot.project(project_id)
    tasks = snapshot.tasks_for(project_id)

    anchor = None
    if use_calendar:
        starts = [t.start_date for t in tasks if t.start_date is not None]
        anchor = project.start_date or (min(starts) if starts else None)

    return compute_schedule(tasks, anchor=anchor, strict=strict)


def overdue_critical_tasks(
    snapshot: PortfolioSnapshot,
    project_id: str,
    today: date,
    schedule: Optional[ScheduleResult] = None,
) -> List[Task]:
    """Critical-path tasks whose end date has passed and that are not done."""
    if schedule is None:
        schedule = compute_project_schedule(snapshot, project_id)

    overdue = []
    for task_id in schedule.critical_path:
        task = snapshot.get_task(task_id)
        if task is None or task.end_date is None:
            continue
        if task.end_date < today and not task.is_done:
            overdue.append(task)
    return overdue
