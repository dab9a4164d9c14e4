"""
Data Package
============
EntityStore holds the mutable collections; snapshot() freezes them into
a PortfolioSnapshot that the analytics read.
"""

from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.data.store import EntityStore, generate_id

__all__ = ["PortfolioSnapshot", "EntityStore", "generate_id"]
