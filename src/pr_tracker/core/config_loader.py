"""
YAML → Settings loader.

Loads defaults from settings.yaml (bundled with the package), merges the
user override at <app_dir>/config.yaml, then applies environment variables.

Usage:
    from pr_tracker.core.config_loader import load_settings
    settings = load_settings()
    settings.records_path

If the user override file exists but cannot be parsed, a warning is logged
and the file is ignored.  A broken bundled file is a packaging bug and
raises.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .config import (
    DEFAULT_APP_DIRNAME,
    DEFAULT_HISTORY_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_RECORDS_FILE,
    ENV_HOME,
    ENV_LOG_LEVEL,
    USER_CONFIG_FILE,
    Settings,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; a non-mapping document yields {}."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_bundled_settings() -> dict[str, Any]:
    """Return the parsed settings.yaml shipped inside the package."""
    ref = importlib.resources.files("pr_tracker").joinpath("settings.yaml")
    with importlib.resources.as_file(ref) as p:
        return _load_yaml_file(p)


def load_user_settings(app_dir: Path) -> dict[str, Any]:
    """
    Return the user's config.yaml as a dict, or {} when absent or invalid.

    Args:
        app_dir: Directory holding config.yaml
    """
    path = app_dir / USER_CONFIG_FILE
    if not path.exists():
        return {}
    try:
        return _load_yaml_file(path)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return {}


def resolve_app_dir(raw: Mapping[str, Any], environ: Mapping[str, str]) -> Path:
    """Pick the app directory: environment first, then settings, then ~/.pr-tracker."""
    value = environ.get(ENV_HOME) or raw.get("app_dir") or f"~/{DEFAULT_APP_DIRNAME}"
    return Path(str(value)).expanduser()


def settings_from_dict(raw: Mapping[str, Any], app_dir: Path) -> Settings:
    """Build Settings from a merged settings mapping."""
    storage = raw.get("storage") or {}
    logging_cfg = raw.get("logging") or {}
    return Settings(
        app_dir=app_dir,
        records_file=str(storage.get("records_file", DEFAULT_RECORDS_FILE)),
        history_file=str(storage.get("history_file", DEFAULT_HISTORY_FILE)),
        log_level=str(logging_cfg.get("level", DEFAULT_LOG_LEVEL)).upper(),
    )


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Load and merge settings from all sources.

    Load order (later overrides earlier):
    1. Bundled src/pr_tracker/settings.yaml
    2. User override at <app_dir>/config.yaml
    3. PR_TRACKER_HOME / PR_TRACKER_LOG_LEVEL environment variables

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Resolved Settings
    """
    env = os.environ if environ is None else environ

    config = load_bundled_settings()
    app_dir = resolve_app_dir(config, env)

    user_cfg = load_user_settings(app_dir)
    if user_cfg:
        config = _deep_merge(config, user_cfg)
        # A user file may relocate the app dir; the environment still wins.
        app_dir = resolve_app_dir(config, env)

    settings = settings_from_dict(config, app_dir)

    level = env.get(ENV_LOG_LEVEL)
    if level:
        settings = replace(settings, log_level=level.upper())

    return settings
