from portfolio_analytics.core.engine import PortfolioAnalytics

__all__ = ["PortfolioAnalytics"]
