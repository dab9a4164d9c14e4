"""
Portfolio Snapshot
==================
Read-only view of the entity store handed to every engine function.

Lookup tables (id -> entity, project -> tasks, member -> bookings, ...)
are built once when the snapshot is created, so calculators never scan
the collections to resolve an id.
"""

from __future__ import annotations

from collections import defaultdict
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from portfolio_analytics.config.thresholds import CAPACITY_FACTOR
from portfolio_analytics.models.entities import (
    Cost,
    Member,
    Milestone,
    Project,
    ProjectStatus,
    ProjectTeamMember,
    ResourceBooking,
    Risk,
    Task,
)
from portfolio_analytics.utils.exceptions import UnknownEntityError


def _group_by(items: Iterable[Any], key: str) -> Mapping[str, Tuple[Any, ...]]:
    grouped: Dict[str, list] = defaultdict(list)
    for item in items:
        grouped[getattr(item, key)].append(item)
    return MappingProxyType({k: tuple(v) for k, v in grouped.items()})


def _index(items: Iterable[Any], kind: str) -> Mapping[str, Any]:
    index: Dict[str, Any] = {}
    for item in items:
        if item.id in index:
            raise ValueError(f"Duplicate {kind} id: {item.id}")
        index[item.id] = item
    return MappingProxyType(index)


class PortfolioSnapshot:
    """
    Immutable collections of all entities plus O(1) lookup tables.

    Build one with PortfolioSnapshot(...) from entities,
    PortfolioSnapshot.from_records(...) from the plain state blob, or
    EntityStore.snapshot().
    """

    def __init__(
        self,
        projects: Iterable[Project] = (),
        tasks: Iterable[Task] = (),
        members: Iterable[Member] = (),
        project_team_members: Iterable[ProjectTeamMember] = (),
        resource_bookings: Iterable[ResourceBooking] = (),
        costs: Iterable[Cost] = (),
        milestones: Iterable[Milestone] = (),
        risks: Iterable[Risk] = (),
    ):
        self.projects: Tuple[Project, ...] = tuple(projects)
        self.tasks: Tuple[Task, ...] = tuple(tasks)
        self.members: Tuple[Member, ...] = tuple(members)
        self.project_team_members: Tuple[ProjectTeamMember, ...] = tuple(project_team_members)
        self.resource_bookings: Tuple[ResourceBooking, ...] = tuple(resource_bookings)
        self.costs: Tuple[Cost, ...] = tuple(costs)
        self.milestones: Tuple[Milestone, ...] = tuple(milestones)
        self.risks: Tuple[Risk, ...] = tuple(risks)

        self._projects_by_id = _index(self.projects, "project")
        self._members_by_id = _index(self.members, "member")
        self._tasks_by_id = _index(self.tasks, "task")
        self._bookings_by_id = _index(self.resource_bookings, "booking")

        self._tasks_by_project = _group_by(self.tasks, "project_id")
        self._bookings_by_member = _group_by(self.resource_bookings, "member_id")
        self._bookings_by_project = _group_by(self.resource_bookings, "project_id")
        self._costs_by_project = _group_by(self.costs, "project_id")
        self._risks_by_project = _group_by(self.risks, "project_id")
        self._milestones_by_project = _group_by(self.milestones, "project_id")
        self._team = frozenset((ptm.project_id, ptm.member_id) for ptm in self.project_team_members)

    @classmethod
    def from_records(
        cls,
        data: Mapping[str, Any],
        capacity_factor: float = CAPACITY_FACTOR.value,
    ) -> "PortfolioSnapshot":
        """Normalize the plain state blob (camelCase collections) into a snapshot."""
        def records(*keys):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return []

        return cls(
            projects=[Project.from_dict(r) for r in records("projects")],
            tasks=[Task.from_dict(r) for r in records("tasks")],
            members=[Member.from_dict(r, capacity_factor) for r in records("members")],
            project_team_members=[
                ProjectTeamMember.from_dict(r) for r in records("projectTeamMembers", "project_team_members")
            ],
            resource_bookings=[
                ResourceBooking.from_dict(r) for r in records("resourceBookings", "resource_bookings")
            ],
            costs=[Cost.from_dict(r) for r in records("costs")],
            milestones=[Milestone.from_dict(r) for r in records("milestones")],
            risks=[Risk.from_dict(r) for r in records("risks")],
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects_by_id.get(project_id)

    def project(self, project_id: str) -> Project:
        project = self._projects_by_id.get(project_id)
        if project is None:
            raise UnknownEntityError("project", project_id)
        return project

    def get_member(self, member_id: str) -> Optional[Member]:
        return self._members_by_id.get(member_id)

    def member(self, member_id: str) -> Member:
        member = self._members_by_id.get(member_id)
        if member is None:
            raise UnknownEntityError("member", member_id)
        return member

    def get_task(self, task_id: str) -> Optional[Task]:
        return self._tasks_by_id.get(task_id)

    def get_booking(self, booking_id: str) -> Optional[ResourceBooking]:
        return self._bookings_by_id.get(booking_id)

    def tasks_for(self, project_id: str) -> Tuple[Task, ...]:
        return self._tasks_by_project.get(project_id, ())

    def bookings_for_member(self, member_id: str) -> Tuple[ResourceBooking, ...]:
        return self._bookings_by_member.get(member_id, ())

    def bookings_for_project(self, project_id: str) -> Tuple[ResourceBooking, ...]:
        return self._bookings_by_project.get(project_id, ())

    def costs_for(self, project_id: str) -> Tuple[Cost, ...]:
        return self._costs_by_project.get(project_id, ())

    def risks_for(self, project_id: str) -> Tuple[Risk, ...]:
        return self._risks_by_project.get(project_id, ())

    def milestones_for(self, project_id: str) -> Tuple[Milestone, ...]:
        return self._milestones_by_project.get(project_id, ())

    def is_in_project_team(self, project_id: str, member_id: str) -> bool:
        return (project_id, member_id) in self._team

    def team_of(self, project_id: str) -> Tuple[ProjectTeamMember, ...]:
        return tuple(ptm for ptm in self.project_team_members if ptm.project_id == project_id)

    # ------------------------------------------------------------------
    # Filtered views
    # ------------------------------------------------------------------

    def active_projects(self) -> Tuple[Project, ...]:
        return tuple(p for p in self.projects if p.project_status == ProjectStatus.ACTIVE)

    def all_projects(self, include_archived: bool = False) -> Tuple[Project, ...]:
        if include_archived:
            return self.projects
        return tuple(p for p in self.projects if p.project_status != ProjectStatus.ARCHIVED)

    def active_members(self) -> Tuple[Member, ...]:
        return tuple(m for m in self.members if m.active)

    def is_project_active(self, project_id: str) -> bool:
        project = self._projects_by_id.get(project_id)
        return project is not None and project.is_active

    def __repr__(self) -> str:
        return (
            f"PortfolioSnapshot(projects={len(self.projects)}, tasks={len(self.tasks)}, "
            f"members={len(self.members)}, bookings={len(self.resource_bookings)}, "
            f"costs={len(self.costs)})"
        )
