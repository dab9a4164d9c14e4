# Threshold Documentation
# =======================
# Every decision boundary used by the analytics engine lives here,
# together with where the value comes from.

"""
THRESHOLD DOCUMENTATION
=======================

This module documents the basis for all thresholds used by the engine and
exposes them through EngineSettings, the single settings object passed to
the calculators.

METHODOLOGY:
- Each threshold includes: value, source, sensitivity and notes
- Sources are ranked: business rule > industry convention > calendar convention
- EngineSettings.with_overrides() is the only way values change at runtime
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict


class ThresholdSource(Enum):
    """Classification of threshold sources."""
    BUSINESS_RULE = "Portfolio office business rule"
    INDUSTRY = "Industry standard/convention"
    CALENDAR = "Calendar convention"
    ASSUMPTION = "Assumption - to validate with stakeholders"


@dataclass(frozen=True)
class DocumentedThreshold:
    """A threshold with full documentation."""
    name: str
    value: float
    source_type: ThresholdSource
    source_citation: str
    sensitivity: str
    notes: str = ""


# ================================================================================
# BUDGET VARIANCE THRESHOLDS
# ================================================================================

VARIANCE_RELATIVE_THRESHOLD = DocumentedThreshold(
    name="Budget overrun (relative)",
    value=0.10,
    source_type=ThresholdSource.BUSINESS_RULE,
    source_citation="Portfolio board traffic light: more than 10% over budget is escalated",
    sensitivity="At 0.05 most orange projects turn red. At 0.15 small projects stay orange longer.",
    notes="""
    Only defined when the budget total is positive. With a zero budget the
    relative overrun is undefined and only the absolute threshold applies.
    """
)

VARIANCE_ABSOLUTE_THRESHOLD = DocumentedThreshold(
    name="Budget overrun (absolute)",
    value=100_000.0,
    source_type=ThresholdSource.BUSINESS_RULE,
    source_citation="Portfolio board traffic light: overruns above 100k escalate regardless of size",
    sensitivity="Strict comparison: exactly 100000 does not trip this threshold.",
    notes="Catches large programmes where 10% would already be a large amount."
)


# ================================================================================
# CAPACITY THRESHOLDS
# ================================================================================

CAPACITY_FACTOR = DocumentedThreshold(
    name="Plannable share of employment level",
    value=0.8,
    source_type=ThresholdSource.INDUSTRY,
    source_citation="Roughly 20% of working time goes to meetings, admin and support",
    sensitivity="At 0.7 overbooking warnings appear 12% earlier. At 0.9 most warnings vanish.",
    notes="available_capacity = round(employment_level * factor), computed once at member construction."
)

HOURS_PER_DAY = DocumentedThreshold(
    name="Working hours per day",
    value=8.0,
    source_type=ThresholdSource.CALENDAR,
    source_citation="Standard full-time working day",
    sensitivity="Linear in the booking-based cost forecast.",
)

WORKING_DAY_RATIO = DocumentedThreshold(
    name="Working days per calendar day",
    value=5.0 / 7.0,
    source_type=ThresholdSource.CALENDAR,
    source_citation="Five working days out of seven, holidays ignored",
    sensitivity="Linear in the booking-based cost forecast.",
)

DAYS_PER_MONTH = DocumentedThreshold(
    name="Average days per month",
    value=30.44,
    source_type=ThresholdSource.CALENDAR,
    source_citation="365.25 / 12",
    sensitivity="Burnrate only.",
)


# ================================================================================
# PROJECT STATUS POLICY
# ================================================================================

HIGH_IMPACT_LEVELS = ("high", "critical")
OPEN_RISK_STATUSES = ("open",)

PROJECT_STATUS_POLICY = DocumentedThreshold(
    name="Automatic project traffic light",
    value=0.0,
    source_type=ThresholdSource.ASSUMPTION,
    source_citation="Red: overdue critical task or red budget. Yellow: orange budget or open high-impact risk.",
    sensitivity="Precedence of schedule vs budget vs risk signals is not validated with stakeholders.",
)


# ================================================================================
# ENGINE SETTINGS
# ================================================================================

@dataclass(frozen=True)
class EngineSettings:
    """
    Runtime values of all thresholds.

    Defaults mirror the documented thresholds above; load overrides with
    portfolio_analytics.config.loader.load_settings_file().
    """
    variance_relative_threshold: float = VARIANCE_RELATIVE_THRESHOLD.value
    variance_absolute_threshold: float = VARIANCE_ABSOLUTE_THRESHOLD.value
    capacity_factor: float = CAPACITY_FACTOR.value
    hours_per_day: float = HOURS_PER_DAY.value
    working_day_ratio: float = WORKING_DAY_RATIO.value
    days_per_month: float = DAYS_PER_MONTH.value
    timeline_weeks_back: int = 4
    timeline_weeks_ahead: int = 4
    high_impact_levels: tuple = field(default=HIGH_IMPACT_LEVELS)
    open_risk_statuses: tuple = field(default=OPEN_RISK_STATUSES)

    def __post_init__(self):
        if self.variance_relative_threshold < 0:
            raise ValueError("variance_relative_threshold must be >= 0")
        if self.variance_absolute_threshold < 0:
            raise ValueError("variance_absolute_threshold must be >= 0")
        if not 0 < self.capacity_factor <= 1:
            raise ValueError("capacity_factor must be in (0, 1]")
        if self.days_per_month <= 0:
            raise ValueError("days_per_month must be > 0")
        if self.timeline_weeks_back < 0 or self.timeline_weeks_ahead < 0:
            raise ValueError("timeline window must not be negative")

    def with_overrides(self, overrides: Dict[str, Any]) -> "EngineSettings":
        """Return a copy with known keys replaced; unknown keys raise ValueError."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown settings: {unknown}. Known: {sorted(known)}")
        values = dict(overrides)
        for key in ("high_impact_levels", "open_risk_statuses"):
            if key in values:
                values[key] = tuple(str(v).lower() for v in values[key])
        return replace(self, **values)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_SETTINGS = EngineSettings()


def get_all_thresholds() -> Dict[str, DocumentedThreshold]:
    """Get all documented thresholds as a dictionary."""
    return {
        "variance_relative": VARIANCE_RELATIVE_THRESHOLD,
        "variance_absolute": VARIANCE_ABSOLUTE_THRESHOLD,
        "capacity_factor": CAPACITY_FACTOR,
        "hours_per_day": HOURS_PER_DAY,
        "working_day_ratio": WORKING_DAY_RATIO,
        "days_per_month": DAYS_PER_MONTH,
        "project_status_policy": PROJECT_STATUS_POLICY,
    }


def get_threshold_report() -> str:
    """Generate a plain-text report of all thresholds and their sources."""
    report = ["# Threshold Report", "=" * 50, ""]

    for threshold in get_all_thresholds().values():
        report.append(f"## {threshold.name}")
        report.append(f"Current value: {threshold.value}")
        report.append(f"Source: {threshold.source_type.value}")
        report.append(f"Citation: {threshold.source_citation}")
        report.append(f"Sensitivity: {threshold.sensitivity}")
        report.append("")

    return "\n".join(report)
