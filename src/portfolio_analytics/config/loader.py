"""
Settings Loader
===============
Load engine settings from JSON/YAML files and normalize them into
EngineSettings. Called by the application at startup, never by the
calculators themselves.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from portfolio_analytics.config.thresholds import DEFAULT_SETTINGS, EngineSettings


def _load_yaml(path: Path) -> Dict[str, Any]:
    import yaml

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("YAML settings must be a mapping at top level.")
    return data


def load_config_file(path: str) -> Dict[str, Any]:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    suffix = file_path.suffix.lower()
    if suffix in {".yml", ".yaml"}:
        return _load_yaml(file_path)
    if suffix == ".json":
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("JSON settings must be an object at top level.")
        return data

    raise ValueError(f"Unsupported settings format: {suffix}. Use .json or .yaml/.yml.")


def build_settings(raw: Dict[str, Any], base: Optional[EngineSettings] = None) -> EngineSettings:
    """
    Normalize an external settings mapping into EngineSettings.

    Accepts overrides at top level or nested under "analytics" and
    "thresholds" (upper-case section names work too).
    """
    overrides: Dict[str, Any] = {}

    for section in ("analytics", "thresholds"):
        block = raw.get(section) or raw.get(section.upper())
        if isinstance(block, dict):
            overrides.update(block)

    for key, value in raw.items():
        if key.lower() in ("analytics", "thresholds"):
            continue
        overrides[key] = value

    return (base or DEFAULT_SETTINGS).with_overrides(overrides)


def load_settings_file(path: str, base: Optional[EngineSettings] = None) -> EngineSettings:
    return build_settings(load_config_file(path), base=base)
