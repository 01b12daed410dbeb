"""Shared Typer app object, shared option types, and store utilities."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.config import Settings
from ..core.config_loader import load_settings
from ..core.controller import RecordController
from ..core.sync import SyncBus
from ..io.history_store import WorkoutHistoryStore
from ..io.record_store import JsonRecordStore

# Shared path options used across commands
RecordsPathOption = Annotated[
    Optional[Path],
    typer.Option("--records-path", "-r", help="Path to the records JSON file"),
]
HistoryPathOption = Annotated[
    Optional[Path],
    typer.Option("--history-path", "-p", help="Path to the workout history JSONL file"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="pr-tracker",
    help="Personal record tracker: best weights and best reps per weight, per exercise.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def get_settings() -> Settings:
    """Resolve settings from settings.yaml, the user config and the environment."""
    return load_settings()


def get_record_store(records_path: Path | None) -> JsonRecordStore:
    """Get the record store from path or the configured location."""
    if records_path is None:
        records_path = get_settings().records_path
    return JsonRecordStore(records_path)


def get_history_store(history_path: Path | None) -> WorkoutHistoryStore:
    """Get the workout history store from path or the configured location."""
    if history_path is None:
        history_path = get_settings().history_path
    return WorkoutHistoryStore(history_path)


def make_controller(records_path: Path | None) -> RecordController:
    """A controller on its own bus; each CLI invocation is a single consumer."""
    return RecordController(get_record_store(records_path), SyncBus(), instance_id="cli")


def now_iso() -> str:
    """Current UTC time as an ISO-8601 timestamp (seconds precision)."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")
