"""
Budget Variance Traffic Light
=============================
variance = forecast_total - budget_total

- variance <= 0                                   -> green
- variance / budget_total > relative threshold    -> red (only if budget_total > 0)
- variance > absolute threshold                   -> red
- otherwise (overrun within both thresholds)      -> orange

Both comparisons are strict: an overrun of exactly 100000 does not trip
the absolute threshold.
"""

from typing import Optional

from portfolio_analytics.config.thresholds import DEFAULT_SETTINGS, EngineSettings
from portfolio_analytics.models.results import VarianceClassification, VarianceColor
from portfolio_analytics.utils.guards import safe_divide

VARIANCE_ICONS = {
    VarianceColor.GREEN: "✓",
    VarianceColor.ORANGE: "⚠",
    VarianceColor.RED: "✖",
}


def classify_variance(
    forecast_total: float,
    budget_total: float,
    settings: Optional[EngineSettings] = None,
) -> VarianceClassification:
    """
    Classify the budget overrun of a forecast.

    Args:
        forecast_total: Managerial forecast of total cost
        budget_total: Approved budget
        settings: Thresholds (defaults: 10% relative, 100000 absolute)

    Returns:
        VarianceClassification with color, icon, variance and the
        relative variance (None when the budget is zero)
    """
    settings = settings or DEFAULT_SETTINGS
    forecast_total = float(forecast_total or 0.0)
    budget_total = float(budget_total or 0.0)

    variance = forecast_total - budget_total
    ratio = safe_divide(variance, budget_total, default=None) if budget_total > 0 else None

    if variance <= 0:
        color = VarianceColor.GREEN
    else:
        relative_exceeded = ratio is not None and ratio > settings.variance_relative_threshold
        absolute_exceeded = variance > settings.variance_absolute_threshold
        color = VarianceColor.RED if (relative_exceeded or absolute_exceeded) else VarianceColor.ORANGE

    return VarianceClassification(
        color=color,
        icon=VARIANCE_ICONS[color],
        variance=variance,
        variance_ratio=ratio,
    )
