"""
Configuration constants and runtime settings for pr-tracker.

Constants are centralized here; user-adjustable values (paths, log level)
are resolved by config_loader into a Settings instance.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Final

# =============================================================================
# PERSISTENCE
# =============================================================================

STORE_FORMAT_VERSION: Final[int] = 1  # "version" field of records.json
DEFAULT_APP_DIRNAME: Final[str] = ".pr-tracker"
DEFAULT_RECORDS_FILE: Final[str] = "records.json"
DEFAULT_HISTORY_FILE: Final[str] = "workouts.jsonl"
USER_CONFIG_FILE: Final[str] = "config.yaml"

# =============================================================================
# ENVIRONMENT OVERRIDES
# =============================================================================

ENV_HOME: Final[str] = "PR_TRACKER_HOME"
ENV_LOG_LEVEL: Final[str] = "PR_TRACKER_LOG_LEVEL"

# =============================================================================
# CONTROLLER
# =============================================================================

# Surfaced to the user when the store cannot be read; the controller keeps
# working on an empty table.
LOAD_ERROR_MESSAGE: Final[str] = "Failed to load personal records"
SAVE_ERROR_MESSAGE: Final[str] = "Failed to save personal records"

# App lifecycle state that triggers a reload.
APP_STATE_ACTIVE: Final[str] = "active"

# =============================================================================
# LOGGING
# =============================================================================

DEFAULT_LOG_LEVEL: Final[str] = "WARNING"


@dataclass(frozen=True)
class Settings:
    """
    Resolved runtime settings.

    All paths are absolute once loaded through config_loader.load_settings().
    """

    app_dir: Path
    records_file: str = DEFAULT_RECORDS_FILE
    history_file: str = DEFAULT_HISTORY_FILE
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def records_path(self) -> Path:
        """Path of the persisted record table."""
        return self.app_dir / self.records_file

    @property
    def history_path(self) -> Path:
        """Path of the workout history JSONL file."""
        return self.app_dir / self.history_file
