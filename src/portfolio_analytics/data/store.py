"""
Entity Store
============
Mutable, explicitly owned collections of portfolio entities.

Only the application layer calls the mutation methods; the engine works
on the read-only PortfolioSnapshot returned by snapshot(). Each snapshot
is a fresh copy, so nothing computed from an old snapshot can go stale
silently after a mutation.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Union

from portfolio_analytics.config.thresholds import DEFAULT_SETTINGS, EngineSettings
from portfolio_analytics.data.snapshot import PortfolioSnapshot
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
from portfolio_analytics.utils.exceptions import (
    InvalidIntervalError,
    TeamMembershipError,
    UnknownEntityError,
)
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)

EntityInput = Union[Mapping[str, Any], Any]


def generate_id() -> str:
    return f"id_{uuid.uuid4().hex[:16]}"


class EntityStore:
    """In-memory entity collections with the mutation rules of the application."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS
        self.projects: List[Project] = []
        self.tasks: List[Task] = []
        self.members: List[Member] = []
        self.project_team_members: List[ProjectTeamMember] = []
        self.resource_bookings: List[ResourceBooking] = []
        self.costs: List[Cost] = []
        self.milestones: List[Milestone] = []
        self.risks: List[Risk] = []

    @classmethod
    def from_snapshot(cls, snapshot: PortfolioSnapshot, settings: Optional[EngineSettings] = None) -> "EntityStore":
        store = cls(settings)
        store.projects = list(snapshot.projects)
        store.tasks = list(snapshot.tasks)
        store.members = list(snapshot.members)
        store.project_team_members = list(snapshot.project_team_members)
        store.resource_bookings = list(snapshot.resource_bookings)
        store.costs = list(snapshot.costs)
        store.milestones = list(snapshot.milestones)
        store.risks = list(snapshot.risks)
        return store

    def snapshot(self) -> PortfolioSnapshot:
        return PortfolioSnapshot(
            projects=self.projects,
            tasks=self.tasks,
            members=self.members,
            project_team_members=self.project_team_members,
            resource_bookings=self.resource_bookings,
            costs=self.costs,
            milestones=self.milestones,
            risks=self.risks,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _with_id(data: Mapping[str, Any]) -> Dict[str, Any]:
        record = dict(data)
        if not record.get("id"):
            record["id"] = generate_id()
        return record

    def _coerce(self, entity_cls, data: EntityInput):
        if isinstance(data, entity_cls):
            return data
        if entity_cls is Member:
            return Member.from_dict(self._with_id(data), self.settings.capacity_factor)
        if entity_cls is ProjectTeamMember:
            return ProjectTeamMember.from_dict(data)
        return entity_cls.from_dict(self._with_id(data))

    @staticmethod
    def _find_index(items: list, entity_id: str, kind: str) -> int:
        for i, item in enumerate(items):
            if item.id == entity_id:
                return i
        raise UnknownEntityError(kind, entity_id)

    def get_project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def add_project(self, data: EntityInput) -> Project:
        project = self._coerce(Project, data)
        self.projects.append(project)
        return project

    def update_project(self, project_id: str, **changes: Any) -> Project:
        i = self._find_index(self.projects, project_id, "project")
        self.projects[i] = replace(self.projects[i], **changes)
        return self.projects[i]

    def set_project_status(self, project_id: str, new_status: str, today: Optional[date] = None) -> bool:
        """
        Move a project between active / completed / archived.

        Leaving the active state stamps completed_date once. Returns False
        for unknown projects or invalid statuses.
        """
        project = self.get_project(project_id)
        if project is None:
            return False
        try:
            status = ProjectStatus(new_status)
        except ValueError:
            logger.warning(f"Rejected project status {new_status!r} for project {project_id}")
            return False

        changes: Dict[str, Any] = {"project_status": status}
        if status != ProjectStatus.ACTIVE and project.completed_date is None:
            changes["completed_date"] = today or date.today()
        self.update_project(project_id, **changes)
        return True

    def remove_project(self, project_id: str) -> bool:
        before = len(self.projects)
        self.projects = [p for p in self.projects if p.id != project_id]
        if len(self.projects) == before:
            return False
        self.tasks = [t for t in self.tasks if t.project_id != project_id]
        self.project_team_members = [ptm for ptm in self.project_team_members if ptm.project_id != project_id]
        self.resource_bookings = [b for b in self.resource_bookings if b.project_id != project_id]
        self.costs = [c for c in self.costs if c.project_id != project_id]
        self.milestones = [m for m in self.milestones if m.project_id != project_id]
        self.risks = [r for r in self.risks if r.project_id != project_id]
        return True

    # ------------------------------------------------------------------
    # Members and teams
    # ------------------------------------------------------------------

    def add_member(self, data: EntityInput) -> Member:
        member = self._coerce(Member, data)
        self.members.append(member)
        return member

    def is_in_project_team(self, project_id: str, member_id: str) -> bool:
        return any(
            ptm.project_id == project_id and ptm.member_id == member_id
            for ptm in self.project_team_members
        )

    def add_to_project_team(
        self,
        project_id: str,
        member_id: str,
        role_in_project: str = "",
        today: Optional[date] = None,
    ) -> bool:
        """Returns False when the member is already in the team."""
        if self.is_in_project_team(project_id, member_id):
            return False
        self.project_team_members.append(ProjectTeamMember(
            project_id=project_id,
            member_id=member_id,
            role_in_project=role_in_project,
            added_date=today or date.today(),
        ))
        return True

    def remove_from_project_team(self, project_id: str, member_id: str) -> bool:
        """Remove the member with their bookings on the project and unassign their tasks."""
        if not self.is_in_project_team(project_id, member_id):
            return False

        self.project_team_members = [
            ptm for ptm in self.project_team_members
            if not (ptm.project_id == project_id and ptm.member_id == member_id)
        ]
        self.resource_bookings = [
            b for b in self.resource_bookings
            if not (b.project_id == project_id and b.member_id == member_id)
        ]
        self.tasks = [
            replace(t, responsible=None)
            if t.project_id == project_id and t.responsible == member_id else t
            for t in self.tasks
        ]
        return True

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def _validate_booking(self, booking: ResourceBooking) -> None:
        if not self.is_in_project_team(booking.project_id, booking.member_id):
            raise TeamMembershipError(booking.project_id, booking.member_id)
        if not booking.is_valid_interval:
            raise InvalidIntervalError("booking", booking.id, booking.start_date, booking.end_date)

    def add_booking(self, data: EntityInput) -> ResourceBooking:
        booking = self._coerce(ResourceBooking, data)
        self._validate_booking(booking)
        self.resource_bookings.append(booking)
        return booking

    def update_booking(self, booking_id: str, **changes: Any) -> ResourceBooking:
        i = self._find_index(self.resource_bookings, booking_id, "booking")
        booking = replace(self.resource_bookings[i], **changes)
        self._validate_booking(booking)
        self.resource_bookings[i] = booking
        return booking

    def remove_booking(self, booking_id: str) -> bool:
        before = len(self.resource_bookings)
        self.resource_bookings = [b for b in self.resource_bookings if b.id != booking_id]
        return len(self.resource_bookings) < before

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(self, data: EntityInput) -> Task:
        task = self._coerce(Task, data)
        if task.id in task.predecessor_ids:
            raise ValueError(f"Task {task.id} cannot depend on itself")
        self.tasks.append(task)
        return task

    def update_task(self, task_id: str, **changes: Any) -> Task:
        i = self._find_index(self.tasks, task_id, "task")
        self.tasks[i] = replace(self.tasks[i], **changes)
        return self.tasks[i]

    def remove_task(self, task_id: str) -> bool:
        """Remove a task and every dependency pointing at it."""
        before = len(self.tasks)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        if len(self.tasks) == before:
            return False
        self.tasks = [
            replace(t, dependencies=tuple(d for d in t.dependencies if d.task != task_id))
            if task_id in t.predecessor_ids else t
            for t in self.tasks
        ]
        return True

    # ------------------------------------------------------------------
    # Costs, milestones, risks
    # ------------------------------------------------------------------

    def add_cost(self, data: EntityInput) -> Cost:
        cost = self._coerce(Cost, data)
        self.costs.append(cost)
        return cost

    def add_milestone(self, data: EntityInput) -> Milestone:
        milestone = self._coerce(Milestone, data)
        self.milestones.append(milestone)
        return milestone

    def add_risk(self, data: EntityInput) -> Risk:
        risk = self._coerce(Risk, data)
        self.risks.append(risk)
        return risk
