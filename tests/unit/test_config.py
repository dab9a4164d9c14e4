import json

import pytest

from portfolio_analytics.config.loader import build_settings, load_config_file, load_settings_file
from portfolio_analytics.config.thresholds import (
    DEFAULT_SETTINGS,
    EngineSettings,
    get_all_thresholds,
    get_threshold_report,
)


def test_default_settings():
    assert DEFAULT_SETTINGS.variance_relative_threshold == 0.10
    assert DEFAULT_SETTINGS.variance_absolute_threshold == 100000
    assert DEFAULT_SETTINGS.capacity_factor == 0.8
    assert DEFAULT_SETTINGS.hours_per_day == 8
    assert DEFAULT_SETTINGS.days_per_month == 30.44


def test_with_overrides_rejects_unknown_keys():
    settings = DEFAULT_SETTINGS.with_overrides({"capacity_factor": 0.7})
    assert settings.capacity_factor == 0.7
    assert DEFAULT_SETTINGS.capacity_factor == 0.8
    with pytest.raises(ValueError):
        DEFAULT_SETTINGS.with_overrides({"not_a_setting": 1})


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        EngineSettings(capacity_factor=1.5)
    with pytest.raises(ValueError):
        EngineSettings(days_per_month=0)


def test_build_settings_merges_sections():
    settings = build_settings({
        "analytics": {"timeline_weeks_ahead": 8},
        "THRESHOLDS": {"variance_absolute_threshold": 50000},
        "high_impact_levels": ["CRITICAL"],
    })
    assert settings.timeline_weeks_ahead == 8
    assert settings.variance_absolute_threshold == 50000
    assert settings.high_impact_levels == ("critical",)


def test_load_yaml_settings(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("thresholds:\n  variance_relative_threshold: 0.05\n", encoding="utf-8")
    assert load_settings_file(str(path)).variance_relative_threshold == 0.05


def test_load_json_settings(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"analytics": {"capacity_factor": 0.75}}), encoding="utf-8")
    assert load_settings_file(str(path)).capacity_factor == 0.75


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_settings_file(str(path)) == DEFAULT_SETTINGS


def test_loader_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config_file(str(tmp_path / "missing.yaml"))

    toml = tmp_path / "settings.toml"
    toml.write_text("x = 1", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config_file(str(toml))

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config_file(str(listing))


def test_threshold_report_lists_every_threshold():
    report = get_threshold_report()
    for threshold in get_all_thresholds().values():
        assert threshold.name in report
