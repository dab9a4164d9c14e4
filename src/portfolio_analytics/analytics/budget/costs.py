"""
Project Costs
=============
Actual spend per category, burnrate and booking-based cost forecast.

Actuals come from cost records; forecasts are managerial estimates stored
on the project budget and are never rolled up from cost records.
"""

from datetime import date
from typing import Optional

from portfolio_analytics.config.thresholds import DEFAULT_SETTINGS, EngineSettings
from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.models.entities import CostType
from portfolio_analytics.models.results import CategoryCosts, CostBreakdown, VarianceClassification
from portfolio_analytics.analytics.budget.variance import classify_variance
from portfolio_analytics.utils.calendar import days_between, inclusive_days
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)

# Cost type -> budget category
CATEGORY_BY_COST_TYPE = {
    CostType.INTERNAL_HOURS: "intern",
    CostType.EXTERNAL_SERVICE: "extern",
    CostType.INVESTMENT: "investitionen",
}


def costs_by_category(snapshot: PortfolioSnapshot, project_id: str) -> CostBreakdown:
    """
    Budget, actual and forecast for intern / extern / investitionen.

    Raises:
        UnknownEntityError: unknown project
    """
    project = snapshot.project(project_id)
    budget = project.budget

    actual = {"intern": 0.0, "extern": 0.0, "investitionen": 0.0}
    for cost in snapshot.costs_for(project_id):
        actual[CATEGORY_BY_COST_TYPE[cost.type]] += cost.amount

    return CostBreakdown(
        intern=CategoryCosts(budget=budget.intern, actual=actual["intern"], forecast=budget.forecast_intern),
        extern=CategoryCosts(budget=budget.extern, actual=actual["extern"], forecast=budget.forecast_extern),
        investitionen=CategoryCosts(
            budget=budget.investitionen,
            actual=actual["investitionen"],
            forecast=budget.forecast_investitionen,
        ),
    )


def burnrate(
    snapshot: PortfolioSnapshot,
    project_id: str,
    today: date,
    settings: Optional[EngineSettings] = None,
) -> float:
    """
    Average internal cost per elapsed calendar month.

    Elapsed time runs from the project start (or the first internal cost
    when the project has no start date) to today. No elapsed time returns
    0.0; less than one month counts as one month.
    """
    settings = settings or DEFAULT_SETTINGS
    project = snapshot.project(project_id)

    internal = [c for c in snapshot.costs_for(project_id) if c.type == CostType.INTERNAL_HOURS]
    internal_actual = sum(c.amount for c in internal)

    start = project.start_date
    if start is None:
        dated = [c.date for c in internal if c.date is not None]
        start = min(dated) if dated else None
    if start is None:
        return 0.0

    elapsed_days = days_between(start, today)
    if elapsed_days <= 0:
        return 0.0

    months = max(1.0, elapsed_days / settings.days_per_month)
    return internal_actual / months


def forecast_from_bookings(
    snapshot: PortfolioSnapshot,
    project_id: str,
    settings: Optional[EngineSettings] = None,
) -> int:
    """
    Internal cost implied by the project's bookings.

    hours = FTE * working days * hours per day, priced at the member's
    internal hourly rate. Working days approximate calendar days (both
    ends included) times 5/7. Bookings of unknown members or with
    inverted intervals are skipped.
    """
    settings = settings or DEFAULT_SETTINGS
    snapshot.project(project_id)

    total = 0.0
    for booking in snapshot.bookings_for_project(project_id):
        member = snapshot.get_member(booking.member_id)
        if member is None:
            continue
        if not booking.is_valid_interval:
            logger.warning(f"Booking {booking.id} ignored in cost forecast: inverted interval")
            continue
        working_days = inclusive_days(booking.start_date, booking.end_date) * settings.working_day_ratio
        hours = booking.fte * working_days * settings.hours_per_day
        total += hours * member.hourly_rate_internal

    return int(round(total))


def budget_variance(
    snapshot: PortfolioSnapshot,
    project_id: str,
    settings: Optional[EngineSettings] = None,
) -> VarianceClassification:
    """Traffic light of the project's forecast total against its budget total."""
    budget = snapshot.project(project_id).budget
    return classify_variance(budget.forecast_total, budget.total, settings)
