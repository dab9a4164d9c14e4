from datetime import date, timedelta

import pytest

from portfolio_analytics.analytics.budget.costs import (
    budget_variance,
    burnrate,
    costs_by_category,
    forecast_from_bookings,
)
from portfolio_analytics.analytics.budget.variance import classify_variance
from portfolio_analytics.config.thresholds import EngineSettings
from portfolio_analytics.data.snapshot import PortfolioSnapshot
from portfolio_analytics.models.results import VarianceColor
from portfolio_analytics.utils.exceptions import UnknownEntityError

from tests.fixtures.sample_portfolio import TODAY, make_project


def test_scenario_c_small_overrun_is_orange():
    result = classify_variance(105000, 100000)
    assert result.color == VarianceColor.ORANGE
    assert result.icon == "⚠"
    assert result.variance == 5000
    assert result.variance_ratio == pytest.approx(0.05)


def test_scenario_c_relative_threshold_makes_red():
    result = classify_variance(200000, 100000)
    assert result.variance == 100000
    assert result.color == VarianceColor.RED
    assert result.icon == "✖"


def test_no_overrun_is_green():
    assert classify_variance(90000, 100000).color == VarianceColor.GREEN
    assert classify_variance(100000, 100000).color == VarianceColor.GREEN
    assert classify_variance(0, 0).icon == "✓"


def test_absolute_threshold_is_strict():
    assert classify_variance(2_100_000, 2_000_000).color == VarianceColor.ORANGE
    assert classify_variance(2_100_001, 2_000_000).color == VarianceColor.RED


def test_zero_budget_uses_absolute_threshold_only():
    orange = classify_variance(50000, 0)
    assert orange.color == VarianceColor.ORANGE
    assert orange.variance_ratio is None
    assert classify_variance(150000, 0).color == VarianceColor.RED


def test_thresholds_come_from_settings():
    settings = EngineSettings(variance_relative_threshold=0.02)
    assert classify_variance(105000, 100000, settings).color == VarianceColor.RED


def test_costs_by_category(sample_snapshot):
    costs = costs_by_category(sample_snapshot, "p1")
    assert costs.intern.actual == 45000
    assert costs.extern.actual == 10000
    assert costs.investitionen.actual == 5000
    assert costs.intern.budget == 200000
    assert costs.intern.forecast == 210000
    assert costs.total_actual == 60000
    assert costs.total_forecast == 310000


def test_missing_forecast_defaults_to_plan(sample_snapshot):
    costs = costs_by_category(sample_snapshot, "p2")
    assert costs.intern.forecast == 80000
    assert costs.extern.forecast == 20000
    assert costs.investitionen.actual == 0


def test_budget_variance(sample_snapshot):
    assert budget_variance(sample_snapshot, "p1").color == VarianceColor.ORANGE
    assert budget_variance(sample_snapshot, "p2").color == VarianceColor.GREEN


def test_burnrate_uses_internal_costs_per_month(sample_snapshot):
    elapsed_days = (TODAY - date(2025, 1, 6)).days
    assert burnrate(sample_snapshot, "p1", TODAY) == pytest.approx(45000 / (elapsed_days / 30.44))


def test_burnrate_guards(sample_snapshot):
    start = date(2025, 1, 6)
    assert burnrate(sample_snapshot, "p1", start) == 0.0
    assert burnrate(sample_snapshot, "p1", start - timedelta(days=3)) == 0.0
    # less than a month elapsed counts as one month
    assert burnrate(sample_snapshot, "p1", start + timedelta(days=10)) == 45000


def test_burnrate_without_start_or_costs():
    snapshot = PortfolioSnapshot(projects=[make_project("x")])
    assert burnrate(snapshot, "x", TODAY) == 0.0


def test_forecast_from_bookings(sample_snapshot):
    # 84 calendar days -> 60 working days, 8h/day
    # m1: 0.5 FTE * 480h * 100 + m3: 0.6 FTE * 480h * 80
    assert forecast_from_bookings(sample_snapshot, "p2") == 24000 + 23040


def test_unknown_project(sample_snapshot):
    with pytest.raises(UnknownEntityError):
        costs_by_category(sample_snapshot, "nope")
