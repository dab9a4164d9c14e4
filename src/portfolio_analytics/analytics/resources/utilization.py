"""
Resource Utilization
====================
Booked capacity of members, per date range, across the portfolio and per
competency group.

Units: capacity_percent and available_capacity are percentage points of
a full-time role; FTE figures are the same values divided by 100.
"""

from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional

import numpy as np

from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.models.results import (
    CompetencyGroupLoad,
    GlobalUtilization,
    ProjectLoad,
    UtilizationResult,
)
from portfolio_analytics.utils.calendar import intervals_overlap
from portfolio_analytics.utils.exceptions import InvalidIntervalError
from portfolio_analytics.utils.guards import round_fte, safe_divide
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)


def utilization_for(
    snapshot: PortfolioSnapshot,
    member_id: str,
    range_start: date,
    range_end: date,
    exclude_booking_id: Optional[str] = None,
    active_only: bool = False,
) -> UtilizationResult:
    """
    Sum capacity_percent of a member's bookings overlapping a date range.

    Overlap is inclusive: booking.start <= range_end and booking.end >= range_start.
    The result is the baseline load; to check a prospective booking use
    UtilizationResult.would_overbook(candidate_percent).

    Args:
        snapshot: Portfolio snapshot
        member_id: Member to analyze
        range_start: First day of the range
        range_end: Last day of the range
        exclude_booking_id: Booking to leave out (the one being edited)
        active_only: Count only bookings on active projects

    Raises:
        UnknownEntityError: unknown member
        InvalidIntervalError: range or an overlapping booking ends before it
            starts, or a booking lacks a date
    """
    member = snapshot.member(member_id)
    if range_end < range_start:
        raise InvalidIntervalError("utilization range", member_id, range_start, range_end)

    counted = []
    for booking in snapshot.bookings_for_member(member_id):
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        has_dates = booking.start_date is not None and booking.end_date is not None
        if has_dates and not intervals_overlap(booking.start_date, booking.end_date, range_start, range_end):
            continue
        if not booking.is_valid_interval:
            raise InvalidIntervalError("booking", booking.id, booking.start_date, booking.end_date)
        if active_only and not snapshot.is_project_active(booking.project_id):
            continue
        counted.append(booking)

    utilization = float(np.sum([b.capacity_percent for b in counted])) if counted else 0.0

    return UtilizationResult(
        member_id=member_id,
        utilization=utilization,
        overbook_warning=utilization > member.available_capacity,
        available_capacity=member.available_capacity,
        booking_count=len(counted),
        booking_ids=[b.id for b in counted],
    )


def global_utilization_for(snapshot: PortfolioSnapshot, member_id: str) -> GlobalUtilization:
    """
    Load of a member across all projects, independent of dates.

    Only bookings on active projects count; bookings on completed or
    archived projects are listed with a total of 0 because those projects
    release their resource commitments. Bookings on unknown projects are
    ignored. Bookings with an inverted or incomplete interval are left out
    of every total and listed in rejected_bookings.

    Raises:
        UnknownEntityError: unknown member
    """
    member = snapshot.member(member_id)

    by_project: "OrderedDict[str, Dict]" = OrderedDict()
    rejected: List[str] = []
    for booking in snapshot.bookings_for_member(member_id):
        if not booking.is_valid_interval:
            logger.warning(f"Booking {booking.id} ignored in global utilization: invalid interval")
            rejected.append(booking.id)
            continue
        project = snapshot.get_project(booking.project_id)
        if project is None:
            continue
        entry = by_project.setdefault(project.id, {
            "project_id": project.id,
            "project_name": project.name,
            "project_status": project.project_status.value,
            "total_capacity": 0.0,
            "booking_count": 0,
        })
        entry["booking_count"] += 1
        if project.is_active:
            entry["total_capacity"] += booking.capacity_percent

    loads = [ProjectLoad(**entry) for entry in by_project.values()]
    total = float(sum(load.total_capacity for load in loads))

    return GlobalUtilization(
        member_id=member_id,
        total_utilization=total,
        is_overbooked=total > member.available_capacity,
        available_capacity=member.available_capacity,
        remaining_capacity=max(0.0, member.available_capacity - total),
        by_project=loads,
        rejected_bookings=rejected,
    )


def total_available_fte(snapshot: PortfolioSnapshot) -> float:
    """Sum of active members' available capacity, in FTE."""
    return round_fte(sum(m.available_fte for m in snapshot.active_members()))


def competency_group_utilization(snapshot: PortfolioSnapshot) -> List[CompetencyGroupLoad]:
    """
    Capacity vs booked load per competency group of active members.

    total_capacity is the group's available FTE; booked_fte is the sum of
    the members' global utilization in FTE. Sorted by group name.
    """
    groups: Dict[str, Dict] = {}
    for member in snapshot.active_members():
        group = groups.setdefault(member.competency_group, {
            "member_count": 0,
            "total_capacity": 0.0,
            "booked_fte": 0.0,
        })
        group["member_count"] += 1
        group["total_capacity"] += member.available_fte
        group["booked_fte"] += global_utilization_for(snapshot, member.id).total_utilization / 100

    result = []
    for name, group in groups.items():
        ratio = safe_divide(group["booked_fte"], group["total_capacity"], default=0.0)
        is_overloaded = group["booked_fte"] > group["total_capacity"]
        if is_overloaded:
            logger.warning(
                f"Competency group {name!r} overloaded: {group['booked_fte']:.2f} FTE booked "
                f"of {group['total_capacity']:.2f} available"
            )
        result.append(CompetencyGroupLoad(
            name=name,
            member_count=group["member_count"],
            total_capacity=round_fte(group["total_capacity"]),
            booked_fte=round_fte(group["booked_fte"]),
            utilization_percent=int(round(ratio * 100)),
            is_overloaded=is_overloaded,
        ))

    return sorted(result, key=lambda g: g.name.lower())
