"""
Engine Module
=============
PortfolioAnalytics binds a snapshot and settings and exposes every
analytics operation; analyze_portfolio() runs the full pass.

Structural errors (cycles, invalid intervals, unknown references) are
scoped: during the portfolio pass they are logged and recorded on the
affected project instead of aborting the whole report.
"""

from datetime import date
from typing import List, Optional

from portfolio_analytics.config.thresholds import DEFAULT_SETTINGS, EngineSettings
from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.models.results import (
    CompetencyGroupLoad,
    CostBreakdown,
    FTETimeline,
    GlobalUtilization,
    PortfolioReport,
    ProjectReport,
    ScheduleResult,
    StatusAssessment,
    UtilizationResult,
    VarianceClassification,
)
from portfolio_analytics.analytics.schedule.critical_path import (
    compute_project_schedule,
    compute_schedule,
)
from portfolio_analytics.analytics.resources.utilization import (
    competency_group_utilization,
    global_utilization_for,
    total_available_fte,
    utilization_for,
)
from portfolio_analytics.analytics.resources.fte_timeline import (
    calculate_project_fte,
    fte_timeline,
    rolling_fte_timeline,
)
from portfolio_analytics.analytics.budget.costs import (
    budget_variance,
    burnrate,
    costs_by_category,
    forecast_from_bookings,
)
from portfolio_analytics.analytics.budget.variance import classify_variance
from portfolio_analytics.analytics.status import project_status
from portfolio_analytics.utils.exceptions import PortfolioAnalyticsError, describe_error
from portfolio_analytics.utils.logger import get_logger, log_performance

logger = get_logger(__name__)


class PortfolioAnalytics:
    """
    Facade over the analytics functions for one snapshot.

    The snapshot is immutable, so repeated calls return equal results.
    """

    def __init__(self, snapshot: PortfolioSnapshot, settings: Optional[EngineSettings] = None):
        self.snapshot = snapshot
        self.settings = settings or DEFAULT_SETTINGS

    def __repr__(self) -> str:
        return f"PortfolioAnalytics({self.snapshot!r})"

    # =========================
    # SCHEDULE
    # =========================

    def critical_path(self, project_id: str, use_calendar: bool = False, strict: bool = False) -> ScheduleResult:
        return compute_project_schedule(self.snapshot, project_id, use_calendar=use_calendar, strict=strict)

    def schedule_tasks(self, tasks, anchor: Optional[date] = None, strict: bool = False) -> ScheduleResult:
        return compute_schedule(tasks, anchor=anchor, strict=strict)

    # =========================
    # RESOURCES
    # =========================

    def utilization(
        self,
        member_id: str,
        range_start: date,
        range_end: date,
        exclude_booking_id: Optional[str] = None,
        active_only: bool = False,
    ) -> UtilizationResult:
        return utilization_for(
            self.snapshot, member_id, range_start, range_end,
            exclude_booking_id=exclude_booking_id, active_only=active_only,
        )

    def global_utilization(self, member_id: str) -> GlobalUtilization:
        return global_utilization_for(self.snapshot, member_id)

    def competency_groups(self) -> List[CompetencyGroupLoad]:
        return competency_group_utilization(self.snapshot)

    def available_fte(self) -> float:
        return total_available_fte(self.snapshot)

    def fte_timeline(self, start: Optional[date] = None, end: Optional[date] = None) -> FTETimeline:
        return fte_timeline(self.snapshot, start=start, end=end)

    def rolling_timeline(self, today: date) -> FTETimeline:
        return rolling_fte_timeline(
            self.snapshot, today,
            weeks_back=self.settings.timeline_weeks_back,
            weeks_ahead=self.settings.timeline_weeks_ahead,
        )

    def project_fte(self, project_id: str, at: Optional[date] = None) -> float:
        return calculate_project_fte(self.snapshot, project_id, at=at)

    # =========================
    # BUDGET
    # =========================

    def costs(self, project_id: str) -> CostBreakdown:
        return costs_by_category(self.snapshot, project_id)

    def burnrate(self, project_id: str, today: date) -> float:
        return burnrate(self.snapshot, project_id, today, self.settings)

    def forecast_from_bookings(self, project_id: str) -> int:
        return forecast_from_bookings(self.snapshot, project_id, self.settings)

    def variance(self, project_id: str) -> VarianceClassification:
        return budget_variance(self.snapshot, project_id, self.settings)

    def classify_variance(self, forecast_total: float, budget_total: float) -> VarianceClassification:
        return classify_variance(forecast_total, budget_total, self.settings)

    def status(self, project_id: str, today: date) -> StatusAssessment:
        return project_status(self.snapshot, project_id, today, self.settings)

    # =========================
    # PORTFOLIO PASS
    # =========================

    def _project_report(self, project_id: str, today: date) -> ProjectReport:
        project = self.snapshot.project(project_id)
        report = ProjectReport(project_id=project.id, project_name=project.name)

        try:
            report.schedule = compute_project_schedule(self.snapshot, project.id, use_calendar=True)
        except PortfolioAnalyticsError as e:
            logger.warning(f"Project {project.id}: schedule failed: {e}")
            report.errors.append(describe_error(e))

        report.costs = costs_by_category(self.snapshot, project.id)
        report.variance = budget_variance(self.snapshot, project.id, self.settings)
        report.burnrate = burnrate(self.snapshot, project.id, today, self.settings)
        report.fte = calculate_project_fte(self.snapshot, project.id)
        report.status = project_status(
            self.snapshot, project.id, today, self.settings, schedule=report.schedule,
        )
        return report

    @log_performance(logger)
    def analyze_portfolio(self, today: date, include_archived: bool = False) -> PortfolioReport:
        """
        Run every analysis over the portfolio.

        Args:
            today: Reference date for burnrate, overdue checks and the
                rolling timeline
            include_archived: Also report archived projects

        Returns:
            PortfolioReport with per-project, per-member and timeline results
        """
        report = PortfolioReport(as_of=today)

        for project in self.snapshot.all_projects(include_archived=include_archived):
            try:
                report.projects.append(self._project_report(project.id, today))
            except PortfolioAnalyticsError as e:
                logger.error(f"Project {project.id}: analysis failed: {e}")
                error = describe_error(e)
                report.projects.append(ProjectReport(
                    project_id=project.id,
                    project_name=project.name,
                    errors=[error],
                ))
                report.errors.append({"project_id": project.id, **error})

        for member in self.snapshot.active_members():
            report.members.append(global_utilization_for(self.snapshot, member.id))

        report.competency_groups = competency_group_utilization(self.snapshot)

        try:
            report.timeline = self.rolling_timeline(today)
        except PortfolioAnalyticsError as e:
            logger.error(f"Timeline failed: {e}")
            report.errors.append(describe_error(e))

        logger.debug(
            f"Portfolio pass: {len(report.projects)} projects, {len(report.members)} members, "
            f"{len(report.failed_projects)} with errors"
        )
        return report
