"""
Exception Hierarchy for the Analytics Engine
============================================
Structural data errors detected while deriving schedules, loads and budgets.

Rule: structural errors are raised per call and scoped to the single
project or member being analyzed. The portfolio pass catches
PortfolioAnalyticsError per project so one bad task graph never hides the
results of the other projects.
"""

from datetime import date
from typing import List, Optional, Sequence


# =============================================================================
# BASE EXCEPTION HIERARCHY
# =============================================================================

class PortfolioAnalyticsError(Exception):
    """
    Base exception for the analytics engine.

    All engine exceptions inherit from this to allow catching every
    structural data error with a single except clause.
    """
    pass


class ScheduleError(PortfolioAnalyticsError):
    """Base class for task graph errors."""
    pass


class CycleDetectedError(ScheduleError):
    """
    Raised when the task dependency graph is not a DAG.

    Args:
        task_ids: Tasks that could not be placed in topological order
            (every task on a cycle plus the tasks downstream of it)
        project_id: Project whose schedule was being computed, if known
    """

    def __init__(self, task_ids: Sequence[str], project_id: Optional[str] = None):
        self.task_ids = list(task_ids)
        self.project_id = project_id
        scope = f" in project {project_id}" if project_id else ""
        super().__init__(
            f"Cyclic task dependencies{scope}: could not schedule "
            f"{len(self.task_ids)} task(s) {self.task_ids}"
        )


class DanglingDependencyError(ScheduleError):
    """
    Raised in strict mode when dependencies reference unknown tasks.

    In the default (lenient) mode the dangling references are excluded
    from the graph and returned on the schedule result instead.
    """

    def __init__(self, dangling: list):
        self.dangling = list(dangling)
        pairs = ", ".join(f"{d.task_id} -> {d.missing_task_id}" for d in self.dangling)
        super().__init__(f"Dependencies reference unknown tasks: {pairs}")


class InvalidIntervalError(PortfolioAnalyticsError, ValueError):
    """
    Raised when a task, booking or query range ends before it starts or
    lacks one of its dates.

    Intervals are rejected, never clamped.
    """

    def __init__(
        self,
        entity: str,
        entity_id: Optional[str],
        start: Optional[date],
        end: Optional[date],
        reason: Optional[str] = None,
    ):
        self.entity = entity
        self.entity_id = entity_id
        self.start = start
        self.end = end
        if reason is None:
            if start is None or end is None:
                reason = "start or end date missing"
            else:
                reason = f"end {end} is before start {start}"
        label = f"{entity} {entity_id}" if entity_id else entity
        super().__init__(f"Invalid interval for {label}: {reason}")


class UnknownEntityError(PortfolioAnalyticsError, KeyError):
    """Raised when an id does not resolve to an entity in the snapshot."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"Unknown {kind}: {entity_id}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class TeamMembershipError(PortfolioAnalyticsError):
    """Raised when booking a member who is not part of the project team."""

    def __init__(self, project_id: str, member_id: str):
        self.project_id = project_id
        self.member_id = member_id
        super().__init__(
            f"Member {member_id} must join the team of project {project_id} before being booked"
        )


def describe_error(error: PortfolioAnalyticsError) -> dict:
    """Export an engine error to the plain dict format used in reports."""
    payload = {
        'type': type(error).__name__,
        'message': str(error),
    }
    if isinstance(error, CycleDetectedError):
        payload['task_ids'] = error.task_ids
    elif isinstance(error, InvalidIntervalError):
        payload['entity'] = error.entity
        payload['entity_id'] = error.entity_id
    return payload


__all__: List[str] = [
    'PortfolioAnalyticsError',
    'ScheduleError',
    'CycleDetectedError',
    'DanglingDependencyError',
    'InvalidIntervalError',
    'UnknownEntityError',
    'TeamMembershipError',
    'describe_error',
]
