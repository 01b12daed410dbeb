"""
JSON serialization for record and workout models.

Handles conversion between dataclasses and JSON-compatible dicts, plus
parsing of the compact set strings typed on the command line.
"""

import json
import re
from datetime import datetime
from typing import Any

from ..core.models import (
    CompletedWorkout,
    ExerciseRecord,
    PersonalRecordTable,
    RepsEntry,
    WorkoutExercise,
    WorkoutSet,
    weight_key,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_iso_datetime(date_str: str) -> str:
    """
    Validate an ISO-8601 date or timestamp string.

    Args:
        date_str: Date string to validate

    Returns:
        The string unchanged

    Raises:
        ValidationError: If the string is not ISO-8601
    """
    if not isinstance(date_str, str) or not date_str:
        raise ValidationError(f"Invalid date: {date_str!r}. Expected an ISO-8601 string")
    try:
        datetime.fromisoformat(date_str)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}. Expected ISO-8601") from e
    return date_str


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is a non-negative number.

    Raises:
        ValidationError: If value is negative or not a number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _field(data: dict[str, Any], name: str, legacy_name: str, default: Any = None) -> Any:
    """Read a field by its snake_case name, falling back to the mobile app's camelCase."""
    if name in data:
        return data[name]
    return data.get(legacy_name, default)


# =============================================================================
# Records
# =============================================================================


def reps_entry_to_dict(entry: RepsEntry) -> dict[str, Any]:
    return {"reps": entry.reps, "date": entry.date}


def dict_to_reps_entry(data: dict[str, Any]) -> RepsEntry:
    """
    Convert dict to RepsEntry.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Ledger entry must be an object, got {data!r}")
    reps = data.get("reps")
    validate_non_negative(reps, "reps")
    try:
        return RepsEntry(reps=int(reps), date=validate_iso_datetime(data.get("date", "")))
    except ValueError as e:
        raise ValidationError(str(e)) from e


def exercise_record_to_dict(record: ExerciseRecord) -> dict[str, Any]:
    """
    Convert ExerciseRecord to JSON-compatible dict.

    Ledger keys are kept as strings (JSON object keys), sorted by weight.
    """
    return {
        "exercise_name": record.exercise_name,
        "max_weight": record.max_weight,
        "max_weight_date": record.max_weight_date,
        "reps_per_weight": {
            key: reps_entry_to_dict(record.reps_per_weight[key])
            for key in sorted(record.reps_per_weight, key=float)
        },
    }


def dict_to_exercise_record(name: str, data: dict[str, Any]) -> ExerciseRecord:
    """
    Convert dict to ExerciseRecord.

    Accepts both this package's snake_case fields and the camelCase fields
    (maxWeight, maxWeightDate, repsPerWeight) of the mobile app's export.

    Args:
        name: Table key the record was stored under
        data: Dict representation

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Record for {name!r} must be an object")

    max_weight = _field(data, "max_weight", "maxWeight", 0)
    validate_non_negative(max_weight, f"{name}: max_weight")

    max_weight_date = _field(data, "max_weight_date", "maxWeightDate", "") or ""
    if max_weight_date:
        validate_iso_datetime(max_weight_date)

    raw_ledger = _field(data, "reps_per_weight", "repsPerWeight", {}) or {}
    if not isinstance(raw_ledger, dict):
        raise ValidationError(f"{name}: reps_per_weight must be an object")

    ledger: dict[str, RepsEntry] = {}
    for key, entry in raw_ledger.items():
        try:
            weight = float(key)
        except ValueError as e:
            raise ValidationError(f"{name}: invalid weight key {key!r}") from e
        # Re-key so "80.0" written by another tool lands in the "80" slot.
        ledger[weight_key(weight)] = dict_to_reps_entry(entry)

    try:
        return ExerciseRecord(
            exercise_name=_field(data, "exercise_name", "exerciseName", name) or name,
            max_weight=float(max_weight),
            max_weight_date=max_weight_date,
            reps_per_weight=ledger,
        )
    except ValueError as e:
        raise ValidationError(f"{name}: {e}") from e


def table_to_dict(table: PersonalRecordTable) -> dict[str, Any]:
    """Convert a PersonalRecordTable to a JSON-compatible dict."""
    return {name: exercise_record_to_dict(record) for name, record in table.items()}


def dict_to_table(data: dict[str, Any]) -> PersonalRecordTable:
    """
    Convert dict to PersonalRecordTable.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Records must be a JSON object keyed by exercise name")
    return {name: dict_to_exercise_record(name, record) for name, record in data.items()}


# =============================================================================
# Workouts
# =============================================================================


def workout_set_to_dict(s: WorkoutSet) -> dict[str, Any]:
    return {"weight": s.weight, "reps": s.reps, "completed": s.completed}


def dict_to_workout_set(data: dict[str, Any]) -> WorkoutSet:
    """
    Convert dict to WorkoutSet.

    A missing "completed" field means the set was performed.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Set must be an object, got {data!r}")
    weight = data.get("weight", 0)
    reps = data.get("reps", 0)
    validate_non_negative(weight, "weight")
    validate_non_negative(reps, "reps")
    return WorkoutSet(
        weight=float(weight),
        reps=int(reps),
        completed=bool(data.get("completed", True)),
    )


def workout_to_dict(workout: CompletedWorkout) -> dict[str, Any]:
    """Convert CompletedWorkout to JSON-compatible dict."""
    return {
        "date": workout.date,
        "exercises": [
            {"name": ex.name, "sets": [workout_set_to_dict(s) for s in ex.sets]}
            for ex in workout.exercises
        ],
    }


def dict_to_workout(data: dict[str, Any]) -> CompletedWorkout:
    """
    Convert dict to CompletedWorkout.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Workout must be a JSON object")

    date = validate_iso_datetime(data.get("date", ""))

    exercises_data = data.get("exercises", [])
    if not isinstance(exercises_data, list):
        raise ValidationError("Workout exercises must be a list")

    exercises: list[WorkoutExercise] = []
    for ex in exercises_data:
        if not isinstance(ex, dict) or not ex.get("name"):
            raise ValidationError(f"Exercise entry needs a name: {ex!r}")
        sets = ex.get("sets", [])
        if not isinstance(sets, list):
            raise ValidationError(f"{ex['name']}: sets must be a list")
        exercises.append(
            WorkoutExercise(name=str(ex["name"]), sets=[dict_to_workout_set(s) for s in sets])
        )

    return CompletedWorkout(date=date, exercises=exercises)


def workout_to_json_line(workout: CompletedWorkout) -> str:
    """Serialize a workout to one compact JSON line (no trailing newline)."""
    return json.dumps(workout_to_dict(workout), separators=(",", ":"))


# =============================================================================
# Set strings
# =============================================================================

_SET_PATTERN = re.compile(
    r"^(?P<skipped>~)?\s*(?:(?P<count>\d+)\s*x\s*)?(?P<reps>\d+)\s*@\s*\+?(?P<weight>\d+(?:\.\d+)?)\s*(?:kg)?$",
    re.IGNORECASE,
)


def parse_sets_string(sets_str: str) -> list[WorkoutSet]:
    """
    Parse a comma-separated sets string.

    Per-set format:
        reps@weight       e.g. "5@80"      5 reps at 80
        NxR@weight        e.g. "3x8@60"    3 sets of 8 reps at 60
        ~reps@weight      e.g. "~4@100"    set not completed (ignored for records)

    A trailing "kg" is accepted and ignored; weights carry no unit.

    Args:
        sets_str: Sets string to parse

    Returns:
        List of WorkoutSet, in the order given

    Raises:
        ValidationError: If format is invalid
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    sets: list[WorkoutSet] = []
    parts = [p.strip() for p in sets_str.split(",") if p.strip()]

    for part in parts:
        match = _SET_PATTERN.match(part)
        if match is None:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                f"Use: reps@weight (e.g. 5@80), NxR@weight (e.g. 3x8@60),\n"
                f"     prefix with ~ for a set that was not completed (e.g. ~4@100)."
            )

        count = int(match.group("count") or 1)
        if count < 1:
            raise ValidationError(f"Set count must be at least 1: '{part}'")

        reps = int(match.group("reps"))
        weight = float(match.group("weight"))
        completed = match.group("skipped") is None

        sets.extend(WorkoutSet(weight=weight, reps=reps, completed=completed) for _ in range(count))

    return sets
