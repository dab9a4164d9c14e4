"""
Project Status Light
====================
Automatic green / yellow / red assessment of a project.

Policy (assumption, see PROJECT_STATUS_POLICY in config.thresholds):
- manual override on the project -> stored light, nothing computed
- red: any critical-path task overdue, or budget variance red
- yellow: budget variance orange, or any open high-impact risk
- green: otherwise
"""

from datetime import date
from typing import List, Optional

from portfolio_analytics.config.thresholds import DEFAULT_SETTINGS, EngineSettings
from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.models.entities import Risk, TrafficLight
from portfolio_analytics.models.results import ScheduleResult, StatusAssessment, VarianceColor
from portfolio_analytics.analytics.budget.costs import budget_variance
from portfolio_analytics.analytics.schedule.critical_path import (
    compute_project_schedule,
    overdue_critical_tasks,
)
from portfolio_analytics.utils.exceptions import ScheduleError, InvalidIntervalError
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)


def open_high_impact_risks(
    snapshot: PortfolioSnapshot,
    project_id: str,
    settings: Optional[EngineSettings] = None,
) -> List[Risk]:
    """
    Risks of a project that are still open and rated high or critical.

    Impact levels and open statuses come from the settings, so a stricter
    policy can drop "high" or count "mitigated" risks as open.
    """
    settings = settings or DEFAULT_SETTINGS
    return [
        r for r in snapshot.risks_for(project_id)
        if r.impact.value in settings.high_impact_levels and r.status.value in settings.open_risk_statuses
    ]


def project_status(
    snapshot: PortfolioSnapshot,
    project_id: str,
    today: date,
    settings: Optional[EngineSettings] = None,
    schedule: Optional[ScheduleResult] = None,
) -> StatusAssessment:
    """
    Derive the project traffic light.

    A schedule that cannot be computed (cycle, invalid task interval) is
    listed as a reason and does not raise; the budget and risk signals
    still apply.

    Raises:
        UnknownEntityError: unknown project
    """
    settings = settings or DEFAULT_SETTINGS
    project = snapshot.project(project_id)

    if project.status.manual_override:
        return StatusAssessment(
            project_id=project_id,
            light=project.status.light.value,
            manual_override=True,
            reasons=["manual override"],
        )

    red_reasons = []
    yellow_reasons = []

    try:
        if schedule is None:
            schedule = compute_project_schedule(snapshot, project_id)
        overdue = overdue_critical_tasks(snapshot, project_id, today, schedule=schedule)
        if overdue:
            red_reasons.append(f"{len(overdue)} overdue critical task(s): {[t.id for t in overdue]}")
    except (ScheduleError, InvalidIntervalError) as e:
        logger.warning(f"Project {project_id}: schedule unavailable for status ({e})")
        yellow_reasons.append(f"schedule unavailable: {e}")

    variance = budget_variance(snapshot, project_id, settings)
    if variance.color == VarianceColor.RED:
        red_reasons.append(f"budget variance red ({variance.variance:+,.0f})")
    elif variance.color == VarianceColor.ORANGE:
        yellow_reasons.append(f"budget variance orange ({variance.variance:+,.0f})")

    risks = open_high_impact_risks(snapshot, project_id, settings)
    if risks:
        yellow_reasons.append(f"{len(risks)} open high-impact risk(s)")

    if red_reasons:
        light = TrafficLight.RED
    elif yellow_reasons:
        light = TrafficLight.YELLOW
    else:
        light = TrafficLight.GREEN

    return StatusAssessment(
        project_id=project_id,
        light=light.value,
        manual_override=False,
        reasons=red_reasons + yellow_reasons,
    )
