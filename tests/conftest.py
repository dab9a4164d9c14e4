import pytest

from portfolio_analytics.config.thresholds import EngineSettings
from portfolio_analytics.core.engine import PortfolioAnalytics
from portfolio_analytics.data.store import EntityStore

from tests.fixtures.sample_portfolio import (
    TODAY,
    build_sample_records,
    build_sample_snapshot,
)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def sample_records():
    return build_sample_records()


@pytest.fixture
def sample_snapshot():
    return build_sample_snapshot()


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def store(sample_snapshot):
    return EntityStore.from_snapshot(sample_snapshot)


@pytest.fixture
def engine(sample_snapshot, settings):
    return PortfolioAnalytics(sample_snapshot, settings)
