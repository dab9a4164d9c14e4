from portfolio_analytics.config.thresholds import (
    DEFAULT_SETTINGS,
    EngineSettings,
    DocumentedThreshold,
    get_all_thresholds,
    get_threshold_report,
)
from portfolio_analytics.config.loader import load_config_file, build_settings, load_settings_file

__all__ = [
    "DEFAULT_SETTINGS",
    "EngineSettings",
    "DocumentedThreshold",
    "get_all_thresholds",
    "get_threshold_report",
    "load_config_file",
    "build_settings",
    "load_settings_file",
]
