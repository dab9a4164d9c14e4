"""
Result Models
=============
Structured, machine-readable outputs of the analytics engine.

Every result exposes to_dict() so the rendering layer can consume plain
data; enums become their values and dates become ISO strings.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from portfolio_analytics.utils.calendar import add_days


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (JSON-serializable)."""
        return _plain(asdict(self))

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


# ================================================================================
# SCHEDULE
# ================================================================================

@dataclass(frozen=True)
class TaskSchedule(_Serializable):
    """CPM figures for one task, in day offsets."""
    early_start: float
    early_finish: float
    late_start: float
    late_finish: float
    slack: float
    duration: float
    is_critical: bool


@dataclass(frozen=True)
class DanglingDependency(_Serializable):
    """A dependency whose target task does not exist in the task set."""
    task_id: str
    missing_task_id: str


@dataclass
class ScheduleResult(_Serializable):
    """
    Output of the critical path computation.

    Offsets are relative to `anchor` when one was given, otherwise to the
    earliest possible start (day 0).
    """
    critical_path: List[str]
    task_data: Dict[str, TaskSchedule]
    project_completion_time: float
    topological_order: List[str] = field(default_factory=list)
    dangling_dependencies: List[DanglingDependency] = field(default_factory=list)
    anchor: Optional[date] = None

    @property
    def has_dangling_dependencies(self) -> bool:
        return bool(self.dangling_dependencies)

    def to_date(self, offset: float) -> date:
        """Convert a day offset back to a calendar date (requires an anchor)."""
        if self.anchor is None:
            raise ValueError("Schedule was computed without an anchor date")
        return add_days(self.anchor, offset)

    @property
    def completion_date(self) -> Optional[date]:
        if self.anchor is None:
            return None
        return self.to_date(self.project_completion_time)


# ================================================================================
# RESOURCES
# ================================================================================

@dataclass
class UtilizationResult(_Serializable):
    """Baseline booked capacity of a member within a date range."""
    member_id: str
    utilization: float
    overbook_warning: bool
    available_capacity: float
    booking_count: int
    booking_ids: List[str] = field(default_factory=list)

    def would_overbook(self, candidate_percent: float) -> bool:
        """Check a prospective new or edited booking against the baseline."""
        return self.utilization + candidate_percent > self.available_capacity


@dataclass(frozen=True)
class ProjectLoad(_Serializable):
    project_id: str
    project_name: str
    project_status: str
    total_capacity: float
    booking_count: int = 0


@dataclass
class GlobalUtilization(_Serializable):
    """Load of a member across all projects (only active projects count)."""
    member_id: str
    total_utilization: float
    is_overbooked: bool
    available_capacity: float
    remaining_capacity: float
    by_project: List[ProjectLoad] = field(default_factory=list)
    rejected_bookings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CompetencyGroupLoad(_Serializable):
    name: str
    member_count: int
    total_capacity: float
    booked_fte: float
    utilization_percent: int
    is_overloaded: bool


@dataclass(frozen=True)
class ProjectFTE(_Serializable):
    project_id: str
    project_name: str
    total_capacity: float


@dataclass
class FTEPeriod(_Serializable):
    start_date: date
    end_date: date
    total_fte: float
    is_overloaded: bool
    projects: List[ProjectFTE] = field(default_factory=list)


@dataclass
class FTETimeline(_Serializable):
    periods: List[FTEPeriod]
    total_available_fte: float
    rejected_bookings: List[str] = field(default_factory=list)

    @property
    def overloaded_periods(self) -> List[FTEPeriod]:
        return [p for p in self.periods if p.is_overloaded]

    def __len__(self) -> int:
        return len(self.periods)


# ================================================================================
# BUDGET
# ================================================================================

@dataclass(frozen=True)
class CategoryCosts(_Serializable):
    budget: float
    actual: float
    forecast: float


@dataclass(frozen=True)
class CostBreakdown(_Serializable):
    intern: CategoryCosts
    extern: CategoryCosts
    investitionen: CategoryCosts

    @property
    def total_actual(self) -> float:
        return self.intern.actual + self.extern.actual + self.investitionen.actual

    @property
    def total_forecast(self) -> float:
        return self.intern.forecast + self.extern.forecast + self.investitionen.forecast


class VarianceColor(str, Enum):
    GREEN = "green"
    ORANGE = "orange"
    RED = "red"


@dataclass(frozen=True)
class VarianceClassification(_Serializable):
    """
    Budget traffic light.

    variance_ratio is None when the budget total is zero (relative
    overrun undefined).
    """
    color: VarianceColor
    icon: str
    variance: float
    variance_ratio: Optional[float] = None


@dataclass
class StatusAssessment(_Serializable):
    project_id: str
    light: str
    manual_override: bool = False
    reasons: List[str] = field(default_factory=list)


# ================================================================================
# PORTFOLIO REPORT
# ================================================================================

@dataclass
class ProjectReport(_Serializable):
    project_id: str
    project_name: str
    schedule: Optional[ScheduleResult] = None
    costs: Optional[CostBreakdown] = None
    variance: Optional[VarianceClassification] = None
    burnrate: float = 0.0
    fte: float = 0.0
    status: Optional[StatusAssessment] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class PortfolioReport(_Serializable):
    """Complete result of one analytics pass over the portfolio."""
    as_of: date
    projects: List[ProjectReport] = field(default_factory=list)
    members: List[GlobalUtilization] = field(default_factory=list)
    competency_groups: List[CompetencyGroupLoad] = field(default_factory=list)
    timeline: Optional[FTETimeline] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def overbooked_members(self) -> List[str]:
        return [m.member_id for m in self.members if m.is_overbooked]

    @property
    def failed_projects(self) -> List[str]:
        return [p.project_id for p in self.projects if p.errors]
