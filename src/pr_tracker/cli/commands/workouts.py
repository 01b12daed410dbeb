"""Workout commands: log-workout, migrate, show-history, and helpers."""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.controller import RecordController
from ...core.errors import SaveFailed, StoreUnavailable
from ...core.models import CompletedWorkout, WorkoutExercise
from ...io.history_store import WorkoutHistoryStore
from ...io.serializers import (
    ValidationError,
    dict_to_workout,
    parse_sets_string,
    validate_iso_datetime,
    workout_to_dict,
)
from .. import views
from ..app import HistoryPathOption, JsonOption, RecordsPathOption, app, get_history_store, make_controller, now_iso


def parse_exercise_option(value: str) -> WorkoutExercise:
    """
    Parse one --exercise value of the form "Name: sets".

    Example: "Bench Press: 5@80, 3x3@90"

    Raises:
        ValidationError: If the value has no name or an invalid sets string
    """
    name, sep, sets_str = value.partition(":")
    if not sep or not name.strip():
        raise ValidationError(f"Expected 'Exercise name: sets', got '{value}'")
    return WorkoutExercise(name=name.strip(), sets=parse_sets_string(sets_str))


def load_workout_file(path: Path) -> CompletedWorkout:
    """
    Read a workout JSON file.

    Raises:
        ValidationError: If the file is missing or malformed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ValidationError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}") from e
    return dict_to_workout(data)


async def commit_workout(controller: RecordController, workout: CompletedWorkout) -> list[tuple[str, str]]:
    """
    Show live PR flags set by set, then commit the workout.

    Flags come from speculative updates, so a record hit twice in the same
    workout is reported once.  The commit itself folds the workout over the
    committed table and saves once.

    Returns:
        (label, badges) rows for every set that was a record
    """
    async with controller:
        if controller.error:
            raise StoreUnavailable(controller.error)

        rows: list[tuple[str, str]] = []
        for s in workout.completed_sets():
            result = controller.update_records_temporary(s.exercise_name, s.weight, s.reps, s.date)
            badges = views.format_pr_badges(result.weight_pr, result.reps_pr)
            if badges:
                rows.append((f"{s.exercise_name}: {s.reps} @ {views.format_weight(s.weight)}", badges))

        await controller.update_records_from_completed_workout(workout)

    return rows


@app.command("log-workout")
def log_workout(
    exercises: Annotated[
        Optional[list[str]],
        typer.Option(
            "--exercise", "-x",
            help="Exercise and sets, e.g. 'Bench Press: 5@80, 3x3@90' (repeatable)",
        ),
    ] = None,
    workout_file: Annotated[
        Optional[Path],
        typer.Option("--file", "-f", help="Workout JSON file instead of --exercise options"),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="ISO-8601 date/time of the workout (default: now)"),
    ] = None,
    records_path: RecordsPathOption = None,
    history_path: HistoryPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log a finished workout: update and save records, append to history.
    """
    try:
        if workout_file is not None:
            workout = load_workout_file(workout_file)
        elif exercises:
            workout = CompletedWorkout(
                date=validate_iso_datetime(date) if date else now_iso(),
                exercises=[parse_exercise_option(v) for v in exercises],
            )
        else:
            views.print_error("Give at least one --exercise or a --file")
            raise typer.Exit(1)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    controller = make_controller(records_path)
    try:
        rows = asyncio.run(commit_workout(controller, workout))
    except (StoreUnavailable, SaveFailed) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    get_history_store(history_path).append_workout(workout)

    if json_out:
        print(json.dumps({"workout": workout_to_dict(workout), "records": [r[0] for r in rows]}, indent=2))
        return

    if rows:
        for label, badges in rows:
            views.console.print(f"  {label}  {badges}")
    else:
        views.print_info("No new records this time.")
    views.print_success("Workout logged.")


@app.command()
def migrate(
    records_path: RecordsPathOption = None,
    history_path: HistoryPathOption = None,
) -> None:
    """
    Rebuild records from the workout history (safe to run repeatedly).
    """
    history = get_history_store(history_path)
    try:
        workouts = history.load_history()
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    controller = make_controller(records_path)
    try:
        result = asyncio.run(controller.migrate_from_workout_history(workouts))
    except (StoreUnavailable, SaveFailed) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if result.has_updates:
        views.print_success(f"Records rebuilt from {len(workouts)} workouts.")
    else:
        views.print_info("Records already up to date.")
    views.print_records(result.updated_table)


@app.command("show-history")
def show_history(
    history_path: HistoryPathOption = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-l", help="Limit number of workouts to show"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Display logged workouts.
    """
    if limit is not None and limit < 1:
        views.print_error(f"--limit must be at least 1, got {limit}")
        raise typer.Exit(1)

    store: WorkoutHistoryStore = get_history_store(history_path)

    if not store.exists():
        views.print_error(f"History file not found: {store.history_path}")
        views.print_info("Log a workout first.")
        raise typer.Exit(1)

    try:
        workouts = store.load_history()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if limit is not None:
        workouts = workouts[-limit:]

    if json_out:
        print(json.dumps([workout_to_dict(w) for w in workouts], indent=2))
        return

    views.print_history(workouts)
