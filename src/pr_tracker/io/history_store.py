"""
JSONL-based history of completed workouts.

Each line holds one workout.  The history is what the record table can be
rebuilt from (see RecordController.migrate_from_workout_history).
"""

import json
from pathlib import Path

from ..core.engine import workout_sort_key
from ..core.models import CompletedWorkout
from .serializers import ValidationError, dict_to_workout, workout_to_json_line


class WorkoutHistoryStore:
    """
    Manages completed workouts stored in JSONL format.

    The file contains one JSON object per line:
    {"date": ..., "exercises": [{"name": ..., "sets": [...]}]}
    """

    def __init__(self, history_path: str | Path):
        """
        Initialize the history store.

        Args:
            history_path: Path to the JSONL history file
        """
        self.history_path = Path(history_path)

    def exists(self) -> bool:
        """Check if the history file exists."""
        return self.history_path.exists()

    def init(self) -> None:
        """
        Initialize empty history file if it doesn't exist.

        Creates parent directories if needed.
        """
        self.history_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.history_path.exists():
            self.history_path.touch()

    def load_history(self) -> list[CompletedWorkout]:
        """
        Load all workouts from the history file.

        Returns:
            List of CompletedWorkout, sorted by date

        Raises:
            FileNotFoundError: If history file doesn't exist
            ValidationError: If a line cannot be parsed
        """
        if not self.history_path.exists():
            raise FileNotFoundError(f"History file not found: {self.history_path}")

        workouts: list[CompletedWorkout] = []

        with open(self.history_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    workouts.append(dict_to_workout(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.history_path}: {e}"
                    ) from e

        workouts.sort(key=workout_sort_key)

        return workouts

    def append_workout(self, workout: CompletedWorkout) -> None:
        """
        Append a workout to the history file.

        Creates the file if needed.  Order on disk does not matter:
        load_history() sorts.

        Args:
            workout: Workout to append
        """
        self.init()
        with open(self.history_path, "a", encoding="utf-8") as f:
            f.write(workout_to_json_line(workout) + "\n")

    def clear_history(self) -> None:
        """
        Clear all history (dangerous - use with caution).
        """
        if self.history_path.exists():
            self.history_path.write_text("")
