"""
Portfolio FTE Timeline
======================
Weekly (Monday-aligned, ISO week) FTE load of all active projects,
flagged against the organization's available FTE.

Bookings are loaded into a DataFrame once; each period is a vectorized
overlap mask followed by a groupby on project.
"""

from datetime import date, timedelta
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.models.results import FTEPeriod, FTETimeline, ProjectFTE
from portfolio_analytics.analytics.resources.utilization import total_available_fte
from portfolio_analytics.utils.calendar import week_start
from portfolio_analytics.utils.exceptions import InvalidIntervalError
from portfolio_analytics.utils.guards import round_fte
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)

BOOKING_COLUMNS = ["booking_id", "project_id", "start", "end", "fte"]


def _active_bookings_frame(snapshot: PortfolioSnapshot) -> Tuple[pd.DataFrame, List[str]]:
    """Bookings of active projects as a DataFrame, plus ids of rejected bookings."""
    rows = []
    rejected: List[str] = []
    for project in snapshot.active_projects():
        for booking in snapshot.bookings_for_project(project.id):
            if not booking.is_valid_interval:
                logger.warning(
                    f"Skipping booking {booking.id}: invalid interval {booking.start_date} to {booking.end_date}"
                )
                rejected.append(booking.id)
                continue
            rows.append({
                "booking_id": booking.id,
                "project_id": project.id,
                "start": pd.Timestamp(booking.start_date),
                "end": pd.Timestamp(booking.end_date),
                "fte": booking.fte,
            })
    return pd.DataFrame(rows, columns=BOOKING_COLUMNS), rejected


def fte_timeline(
    snapshot: PortfolioSnapshot,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> FTETimeline:
    """
    Bucket active projects' bookings into weekly periods.

    Without an explicit window the span covers every booking of every
    active project. Each period runs Monday to Sunday. Projects with no
    FTE in a period are omitted from that period.

    Raises:
        InvalidIntervalError: explicit window ends before it starts
    """
    if start is not None and end is not None and end < start:
        raise InvalidIntervalError("timeline window", None, start, end)

    bookings, rejected = _active_bookings_frame(snapshot)
    available = total_available_fte(snapshot)

    if start is None or end is None:
        if bookings.empty:
            return FTETimeline(periods=[], total_available_fte=available, rejected_bookings=rejected)
        start = start or bookings["start"].min().date()
        end = end or bookings["end"].max().date()
        if end < start:
            return FTETimeline(periods=[], total_available_fte=available, rejected_bookings=rejected)

    mondays = pd.date_range(start=week_start(start), end=end, freq="W-MON")
    names = {p.id: p.name for p in snapshot.active_projects()}
    project_rank = {p.id: i for i, p in enumerate(snapshot.active_projects())}

    periods: List[FTEPeriod] = []
    for monday in mondays:
        period_start = monday.date()
        period_end = period_start + timedelta(days=6)

        projects: List[ProjectFTE] = []
        raw_fte: List[float] = []
        if not bookings.empty:
            mask = (bookings["start"] <= pd.Timestamp(period_end)) & (bookings["end"] >= pd.Timestamp(period_start))
            per_project = bookings.loc[mask].groupby("project_id")["fte"].sum()
            for project_id in sorted(per_project.index, key=project_rank.get):
                fte = float(per_project[project_id])
                if fte > 0:
                    raw_fte.append(fte)
                    projects.append(ProjectFTE(
                        project_id=project_id,
                        project_name=names[project_id],
                        total_capacity=round_fte(fte),
                    ))

        total = float(np.sum(raw_fte)) if raw_fte else 0.0
        is_overloaded = total > available
        if is_overloaded:
            logger.warning(f"Week of {period_start}: {total:.2f} FTE booked, {available:.2f} available")
        periods.append(FTEPeriod(
            start_date=period_start,
            end_date=period_end,
            total_fte=round_fte(total),
            is_overloaded=is_overloaded,
            projects=projects,
        ))

    return FTETimeline(periods=periods, total_available_fte=available, rejected_bookings=rejected)


def rolling_fte_timeline(
    snapshot: PortfolioSnapshot,
    today: date,
    weeks_back: int = 4,
    weeks_ahead: int = 4,
) -> FTETimeline:
    """Timeline window around the current week (default: 4 past, current, 4 future)."""
    current = week_start(today)
    start = current - timedelta(weeks=weeks_back)
    end = current + timedelta(weeks=weeks_ahead + 1) - timedelta(days=1)
    return fte_timeline(snapshot, start=start, end=end)


def calculate_project_fte(
    snapshot: PortfolioSnapshot,
    project_id: str,
    at: Optional[date] = None,
) -> float:
    """
    FTE booked on one project.

    Without `at` every booking counts (whole-duration figure used for
    Gantt bar labels); with `at` only bookings running on that day count.
    Bookings with an inverted or incomplete interval never count.
    """
    snapshot.project(project_id)
    total = 0.0
    for booking in snapshot.bookings_for_project(project_id):
        if not booking.is_valid_interval:
            continue
        if at is not None and not (booking.start_date <= at <= booking.end_date):
            continue
        total += booking.fte
    return round_fte(total)
