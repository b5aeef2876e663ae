"""YAML Defaults Loader

Loads defaults.yaml once and serves nested default values by dotted path.
Stack files given to the CLI are merged over these defaults with
merge_with_defaults(), so a user file only needs the keys it changes.
It has no dependencies on other config modules to avoid circular imports.

Usage:
    from usadel_1d.config.yaml_loader import get_default, merge_with_defaults
    tolerance = get_default('solver.tolerance')
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml

_ENV_VARIABLE = "USADEL_DEFAULTS_PATH"

_CONFIG_CACHE: dict[str, Any] | None = None


def _get_yaml_path() -> Path:
    """Locate defaults.yaml ($USADEL_DEFAULTS_PATH first, then the package copy).

    Raises:
        FileNotFoundError: If no defaults file exists.
    """
    override = os.getenv(_ENV_VARIABLE)
    if override and Path(override).exists():
        return Path(override)

    yaml_path = Path(__file__).with_name("defaults.yaml")
    if not yaml_path.exists():
        raise FileNotFoundError(
            f"Defaults file not found: {yaml_path}\n"
            f"Point {_ENV_VARIABLE} at a relocated defaults.yaml."
        )
    return yaml_path


def _get_config() -> dict[str, Any]:
    global _CONFIG_CACHE
    if _CONFIG_CACHE is None:
        reload_defaults()
    return _CONFIG_CACHE


def reload_defaults() -> None:
    """Re-read defaults.yaml from disk (e.g. after changing the env override)."""
    global _CONFIG_CACHE
    with open(_get_yaml_path(), encoding="utf-8") as f:
        _CONFIG_CACHE = yaml.safe_load(f) or {}


def get_defaults() -> dict[str, Any]:
    """Deep copy of the whole defaults tree.

    Example:
        >>> get_defaults()['solver']['order']
        4
    """
    return copy.deepcopy(_get_config())


def get_default(key_path: str, default: Any = None) -> Any:
    """Look up a default by dotted key path.

    Example:
        >>> get_default('solver.tolerance')
        0.0001
        >>> get_default('grid.positions')
        151
        >>> get_default('nonexistent.key', 'fallback')
        'fallback'
    """
    value: Any = _get_config()
    for key in key_path.split("."):
        if not isinstance(value, dict) or value.get(key) is None:
            return default
        value = value[key]
    return copy.deepcopy(value)


def merge_with_defaults(overrides: dict[str, Any], section: str | None = None) -> dict[str, Any]:
    """Recursively merge overrides over the defaults tree (or one section of it).

    Args:
        overrides: User-supplied values; nested dicts are merged key by key,
            everything else replaces the default
        section: Optional dotted path selecting the subtree to merge into

    Returns:
        New merged dictionary; neither input is modified
    """
    base = get_defaults() if section is None else get_default(section, {})
    return _deep_merge(base, overrides)


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
