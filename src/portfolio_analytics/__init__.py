"""
Portfolio Analytics Engine
==========================
Computation layer of a project-portfolio management tool: critical-path
scheduling, resource utilization, weekly FTE load and budget traffic
lights over an immutable portfolio snapshot.

Main Components:
    - analytics: Schedule, resources, budget and status calculators
    - core: PortfolioAnalytics facade and the full portfolio pass
    - data: Mutable entity store and immutable snapshot
    - config: Documented thresholds and settings loader
    - models: Entity and result data structures
    - utils: Logging, exceptions, calendar helpers

Example:
    >>> from portfolio_analytics import PortfolioAnalytics, PortfolioSnapshot
    >>> snapshot = PortfolioSnapshot.from_records(records)
    >>> report = PortfolioAnalytics(snapshot).analyze_portfolio(date.today())
"""

__version__ = "1.0.0"
__author__ = "Portfolio Analysis Team"

from portfolio_analytics.config.thresholds import DEFAULT_SETTINGS, EngineSettings
from portfolio_analytics.core.engine import PortfolioAnalytics
from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.data.store import EntityStore

__all__ = [
    "DEFAULT_SETTINGS",
    "EngineSettings",
    "EntityStore",
    "PortfolioAnalytics",
    "PortfolioSnapshot",
]
