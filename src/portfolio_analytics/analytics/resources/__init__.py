"""
Resources Submodule
===================
Booked capacity per member, per competency group and per week.
"""

from portfolio_analytics.analytics.resources.utilization import (
    utilization_for,
    global_utilization_for,
    total_available_fte,
    competency_group_utilization,
)
from portfolio_analytics.analytics.resources.fte_timeline import (
    fte_timeline,
    rolling_fte_timeline,
    calculate_project_fte,
)

__all__ = [
    'utilization_for',
    'global_utilization_for',
    'total_available_fte',
    'competency_group_utilization',
    'fte_timeline',
    'rolling_fte_timeline',
    'calculate_project_fte',
]
