"""
Entity Models
=============
Dataclasses for the records held by the entity store.

Every entity is built through a from_dict() normalizer that accepts the
camelCase keys of the application state blob (snake_case works too),
parses ISO dates and resolves defaults once. The calculators can then
assume fully-populated records and never repeat `or 0` fallbacks.

Entities are frozen: the engine receives them inside a snapshot and must
not be able to mutate them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from portfolio_analytics.config.thresholds import CAPACITY_FACTOR
from portfolio_analytics.utils.calendar import parse_date


# ================================================================================
# ENUMS
# ================================================================================

class ProjectStatus(str, Enum):
    """Lifecycle state of a project. Only active projects consume capacity."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class DependencyType(str, Enum):
    """Only Finish-to-Start dependencies are supported."""
    FINISH_TO_START = "FS"


class CostType(str, Enum):
    INTERNAL_HOURS = "internal_hours"
    EXTERNAL_SERVICE = "external_service"
    INVESTMENT = "investment"


class TrafficLight(str, Enum):
    """Project status light."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class RiskImpact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskStatus(str, Enum):
    OPEN = "open"
    MITIGATED = "mitigated"
    CLOSED = "closed"


PROGRESS_STEPS = (0, 25, 50, 75, 100)
DEFAULT_COMPETENCY_GROUP = "Unassigned"


# ================================================================================
# NORMALIZATION HELPERS
# ================================================================================

def _get(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First present, non-None value among camelCase/snake_case aliases."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _number(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    number = float(value)
    if not math.isfinite(number):
        return default
    return number


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _coerce_enum(enum_cls, value: Any, default):
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = [e.value for e in enum_cls]
        raise ValueError(f"Invalid {enum_cls.__name__} {value!r}. Allowed: {allowed}") from None


def _snap_progress(value: Any) -> int:
    raw = min(100.0, max(0.0, _number(value)))
    return PROGRESS_STEPS[_round_half_up(raw / 25)]


# ================================================================================
# TASKS
# ================================================================================

@dataclass(frozen=True)
class Dependency:
    """Finish-to-Start edge: the owning task starts after `task` finishes."""
    task: str
    type: DependencyType = DependencyType.FINISH_TO_START

    @classmethod
    def from_dict(cls, data: Any) -> "Dependency":
        if isinstance(data, Dependency):
            return data
        if isinstance(data, str):
            return cls(task=data)
        dep_type = str(_get(data, "type", default="FS")).upper()
        if dep_type != DependencyType.FINISH_TO_START.value:
            raise ValueError(f"Unsupported dependency type {dep_type!r}: only 'FS' is supported")
        return cls(task=str(data["task"]))


@dataclass(frozen=True)
class Task:
    """
    A scheduled unit of work.

    duration is in days and stays None unless the record sets it; the
    scheduler then takes end_date - start_date, so a date edit always
    moves the duration with it. Zero-duration tasks (milestones) are
    representable.
    """
    id: str
    project_id: str
    name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[float] = None
    dependencies: Tuple[Dependency, ...] = ()
    progress: int = 0
    status: TaskStatus = TaskStatus.OPEN
    responsible: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Task":
        start = parse_date(_get(data, "startDate", "start_date"))
        end = parse_date(_get(data, "endDate", "end_date", "dueDate"))
        duration = _get(data, "duration")
        if duration is not None:
            duration = _number(duration)

        # Ordered set: keep first occurrence only
        deps = []
        seen = set()
        for raw in _get(data, "dependencies", default=()) or ():
            dep = Dependency.from_dict(raw)
            if dep.task not in seen:
                seen.add(dep.task)
                deps.append(dep)

        return cls(
            id=str(data["id"]),
            project_id=str(_get(data, "projectId", "project_id", default="")),
            name=_get(data, "name", default=""),
            start_date=start,
            end_date=end,
            duration=duration,
            dependencies=tuple(deps),
            progress=_snap_progress(_get(data, "progress", default=0)),
            status=_coerce_enum(TaskStatus, _get(data, "status"), TaskStatus.OPEN),
            responsible=_get(data, "responsible"),
        )

    @property
    def predecessor_ids(self) -> Tuple[str, ...]:
        return tuple(dep.task for dep in self.dependencies)

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE


# ================================================================================
# PROJECTS
# ================================================================================

@dataclass(frozen=True)
class Budget:
    """Planned budget and managerial forecast per cost category."""
    intern: float = 0.0
    extern: float = 0.0
    investitionen: float = 0.0
    total: float = 0.0
    forecast_intern: float = 0.0
    forecast_extern: float = 0.0
    forecast_investitionen: float = 0.0
    forecast_total: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Budget":
        """
        A missing category forecast defaults to the planned category value
        (no forecast means "on plan"); missing totals default to the sum of
        the categories.
        """
        data = data or {}
        intern = _number(_get(data, "intern"))
        extern = _number(_get(data, "extern"))
        invest = _number(_get(data, "investitionen"))

        forecast_intern = _number(_get(data, "forecastIntern", "forecast_intern"), intern)
        forecast_extern = _number(_get(data, "forecastExtern", "forecast_extern"), extern)
        forecast_invest = _number(_get(data, "forecastInvestitionen", "forecast_investitionen"), invest)

        total = _number(_get(data, "total"), intern + extern + invest)
        forecast_total = _number(
            _get(data, "forecastTotal", "forecast_total"),
            forecast_intern + forecast_extern + forecast_invest,
        )
        return cls(
            intern=intern,
            extern=extern,
            investitionen=invest,
            total=total,
            forecast_intern=forecast_intern,
            forecast_extern=forecast_extern,
            forecast_investitionen=forecast_invest,
            forecast_total=forecast_total,
        )


@dataclass(frozen=True)
class StatusFlag:
    """Stored project light; used as-is when manual_override is set."""
    light: TrafficLight = TrafficLight.GREEN
    manual_override: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "StatusFlag":
        data = data or {}
        return cls(
            light=_coerce_enum(TrafficLight, _get(data, "light"), TrafficLight.GREEN),
            manual_override=bool(_get(data, "manualOverride", "manual_override", default=False)),
        )


@dataclass(frozen=True)
class Project:
    id: str
    name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    priority: int = 3
    project_status: ProjectStatus = ProjectStatus.ACTIVE
    budget: Budget = field(default_factory=Budget)
    status: StatusFlag = field(default_factory=StatusFlag)
    completed_date: Optional[date] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        priority = _round_half_up(_number(_get(data, "priority"), 3))
        return cls(
            id=str(data["id"]),
            name=_get(data, "name", default=""),
            start_date=parse_date(_get(data, "startDate", "start_date")),
            end_date=parse_date(_get(data, "endDate", "end_date", "plannedEndDate")),
            priority=min(5, max(1, priority)),
            project_status=_coerce_enum(
                ProjectStatus, _get(data, "projectStatus", "project_status"), ProjectStatus.ACTIVE
            ),
            budget=Budget.from_dict(_get(data, "budget")),
            status=StatusFlag.from_dict(_get(data, "status")),
            completed_date=parse_date(_get(data, "completedDate", "completed_date")),
        )

    @property
    def is_active(self) -> bool:
        return self.project_status == ProjectStatus.ACTIVE


# ================================================================================
# PEOPLE AND BOOKINGS
# ================================================================================

@dataclass(frozen=True)
class Member:
    """
    A staff member.

    available_capacity is expressed in percentage points of a full-time
    role and is always resolved at construction.
    """
    id: str
    name: str = ""
    employment_level: float = 100.0
    available_capacity: float = 80.0
    active: bool = True
    competency_group: str = DEFAULT_COMPETENCY_GROUP
    hourly_rate_internal: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], capacity_factor: float = CAPACITY_FACTOR.value) -> "Member":
        level = _number(_get(data, "employmentLevel", "employment_level"), 100.0)
        if not 0 < level <= 100:
            raise ValueError(f"employmentLevel must be in (0, 100], got {level} for member {data.get('id')}")
        capacity = _get(data, "availableCapacity", "available_capacity")
        if capacity is None:
            capacity = _round_half_up(level * capacity_factor)
        return cls(
            id=str(data["id"]),
            name=_get(data, "name", default=""),
            employment_level=level,
            available_capacity=_number(capacity),
            active=_get(data, "active", default=True) is not False,
            competency_group=_get(data, "competencyGroup", "competency_group", default=DEFAULT_COMPETENCY_GROUP),
            hourly_rate_internal=_number(_get(data, "hourlyRateInternal", "hourly_rate_internal")),
        )

    @property
    def available_fte(self) -> float:
        return self.available_capacity / 100


@dataclass(frozen=True)
class ProjectTeamMember:
    project_id: str
    member_id: str
    role_in_project: str = ""
    added_date: Optional[date] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProjectTeamMember":
        return cls(
            project_id=str(_get(data, "projectId", "project_id")),
            member_id=str(_get(data, "memberId", "member_id")),
            role_in_project=_get(data, "roleInProject", "role_in_project", default=""),
            added_date=parse_date(_get(data, "addedDate", "added_date")),
        )


@dataclass(frozen=True)
class ResourceBooking:
    """Commitment of capacity_percent of a member's time over [start_date, end_date]."""
    id: str
    project_id: str
    member_id: str
    start_date: Optional[date]
    end_date: Optional[date]
    capacity_percent: float = 0.0
    description: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ResourceBooking":
        return cls(
            id=str(data["id"]),
            project_id=str(_get(data, "projectId", "project_id")),
            member_id=str(_get(data, "memberId", "member_id")),
            start_date=parse_date(_get(data, "startDate", "start_date")),
            end_date=parse_date(_get(data, "endDate", "end_date")),
            capacity_percent=_number(_get(data, "capacityPercent", "capacity_percent")),
            description=_get(data, "description", default=""),
        )

    @property
    def fte(self) -> float:
        return self.capacity_percent / 100

    @property
    def is_valid_interval(self) -> bool:
        if self.start_date is None or self.end_date is None:
            return False
        return self.end_date >= self.start_date


# ================================================================================
# FINANCE, MILESTONES, RISKS
# ================================================================================

@dataclass(frozen=True)
class Cost:
    """Actual spend. Forecasts live on the project budget, not on cost records."""
    id: str
    project_id: str
    type: CostType
    date: Optional[date] = None
    amount: float = 0.0
    description: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Cost":
        return cls(
            id=str(data["id"]),
            project_id=str(_get(data, "projectId", "project_id")),
            type=_coerce_enum(CostType, _get(data, "type"), CostType.INTERNAL_HOURS),
            date=parse_date(_get(data, "date")),
            amount=_number(_get(data, "amount")),
            description=_get(data, "description", default=""),
        )


@dataclass(frozen=True)
class Milestone:
    id: str
    project_id: str
    name: str = ""
    date: Optional[date] = None
    status: str = "pending"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Milestone":
        return cls(
            id=str(data["id"]),
            project_id=str(_get(data, "projectId", "project_id")),
            name=_get(data, "name", default=""),
            date=parse_date(_get(data, "date")),
            status=_get(data, "status", default="pending"),
        )


@dataclass(frozen=True)
class Risk:
    id: str
    project_id: str
    title: str = ""
    probability: str = "medium"
    impact: RiskImpact = RiskImpact.MEDIUM
    status: RiskStatus = RiskStatus.OPEN

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Risk":
        return cls(
            id=str(data["id"]),
            project_id=str(_get(data, "projectId", "project_id")),
            title=_get(data, "title", default=""),
            probability=_get(data, "probability", default="medium"),
            impact=_coerce_enum(RiskImpact, _get(data, "impact"), RiskImpact.MEDIUM),
            status=_coerce_enum(RiskStatus, _get(data, "status"), RiskStatus.OPEN),
        )

