"""
Budget Submodule
================
Actual costs, burnrate, booking-based forecast and variance traffic light.
"""

from portfolio_analytics.analytics.budget.variance import classify_variance, VARIANCE_ICONS
from portfolio_analytics.analytics.budget.costs import (
    costs_by_category,
    burnrate,
    forecast_from_bookings,
    budget_variance,
)

__all__ = [
    'classify_variance',
    'VARIANCE_ICONS',
    'costs_by_category',
    'burnrate',
    'forecast_from_bookings',
    'budget_variance',
]
