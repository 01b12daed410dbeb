"""
Per-workout session overlay.

The overlay shadows the committed records for the length of one workout.
It remembers the heaviest weight already credited as a record during the
session, so two sets at 85 kg over an 80 kg best celebrate once, while a
later 90 kg set still celebrates again.

Lifecycle: initialize_session() when a workout starts, clear_session()
when it is finished or cancelled.  Nothing here is ever persisted.
"""

import logging
from typing import Iterable

from . import engine
from .models import (
    NO_RECORD,
    ExerciseRecord,
    NewWeightPR,
    PersonalRecordTable,
    RepsCheck,
    SetPRResult,
    WeightCheck,
)

logger = logging.getLogger(__name__)


def pr_result_key(exercise_id: str, set_index: int) -> str:
    """Cache key of one set's PR flags."""
    return f"{exercise_id}_set_{set_index}"


class SessionOverlay:
    """
    In-memory PR state for the workout in progress.

    Attributes:
        baseline: Snapshot of the committed table taken at session start
        session_max_weights: Heaviest weight credited per exercise this session
        current_pr_result: PR flags of the set currently on display
        exercise_pr_results: Cached PR flags per exercise set
    """

    def __init__(self, baseline: PersonalRecordTable | None = None):
        self.baseline: PersonalRecordTable = dict(baseline or {})
        self.session_max_weights: dict[str, float] = {}
        self.current_pr_result: SetPRResult | None = None
        self.exercise_pr_results: dict[str, SetPRResult] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize_session(self, table: PersonalRecordTable) -> None:
        """Start a session against a snapshot of the committed table."""
        logger.debug("Initializing session with records for %s", sorted(table))
        self.baseline = dict(table)
        self.session_max_weights = {}
        self.current_pr_result = None
        self.exercise_pr_results = {}

    def clear_session(self) -> None:
        """Forget everything achieved this session; the baseline is kept."""
        logger.debug("Clearing session")
        self.session_max_weights = {}
        self.current_pr_result = None
        self.exercise_pr_results = {}

    def reset_session_max_weights(self) -> None:
        self.session_max_weights = {}

    # ------------------------------------------------------------------
    # Record checks
    # ------------------------------------------------------------------

    def check_original_weight_pr(self, exercise: str, weight: float) -> WeightCheck:
        """Weight check against the baseline only."""
        if not exercise or weight <= 0:
            return NO_RECORD
        return engine.check_weight_pr(exercise, weight, self.baseline)

    def check_original_reps_pr(self, exercise: str, weight: float, reps: int) -> RepsCheck:
        """Reps check against the baseline; reps records ignore the session ratchet."""
        if not exercise or weight <= 0 or reps <= 0:
            return NO_RECORD
        return engine.check_reps_pr(exercise, weight, reps, self.baseline)

    def check_session_weight_pr(self, exercise: str, weight: float) -> WeightCheck:
        """
        Weight check against the baseline max and the session ratchet.

        A record needs weight > max(baseline max, session max): the first
        set over the historical best is flagged, equal or lighter sets
        later in the session are not, and a heavier one is flagged again.
        """
        if not exercise or weight <= 0:
            return NO_RECORD

        record = self.baseline.get(exercise)
        baseline_max = record.max_weight if record is not None else 0.0
        session_max = self.session_max_weights.get(exercise, 0.0)

        if weight > max(baseline_max, session_max):
            logger.debug(
                "New session weight PR for %s: %s > %s",
                exercise, weight, max(baseline_max, session_max),
            )
            return NewWeightPR(weight=weight)

        return NO_RECORD

    def safe_update_session_weight(self, exercise: str, weight: float) -> None:
        """Raise the session max for an exercise; lower weights are ignored."""
        if weight > self.session_max_weights.get(exercise, 0.0):
            self.session_max_weights[exercise] = weight

    # ------------------------------------------------------------------
    # Per-set PR cache
    # ------------------------------------------------------------------

    def safe_set_pr_result(self, result: SetPRResult | None) -> None:
        self.current_pr_result = result

    def safe_set_exercise_pr_results(
        self,
        exercise_id: str,
        set_index: int,
        result: SetPRResult | None,
    ) -> None:
        """Cache the PR flags of one set; None removes the entry."""
        key = pr_result_key(exercise_id, set_index)
        if result is None:
            self.exercise_pr_results.pop(key, None)
        else:
            self.exercise_pr_results[key] = result

    def get_exercise_pr_result(self, exercise_id: str, set_index: int) -> SetPRResult | None:
        return self.exercise_pr_results.get(pr_result_key(exercise_id, set_index))

    def reset_exercise_pr_results(self) -> None:
        self.exercise_pr_results = {}

    def clear_exercise_prs(self, exercise_id: str) -> None:
        """Drop cached flags of every set of one exercise (its sets were edited or reordered)."""
        prefix = f"{exercise_id}_set_"
        self.exercise_pr_results = {
            key: value
            for key, value in self.exercise_pr_results.items()
            if not key.startswith(prefix)
        }
        logger.debug("Cleared PRs for exercise %s", exercise_id)

    # ------------------------------------------------------------------
    # Baseline maintenance
    # ------------------------------------------------------------------

    def update_baseline_for_exercise(self, exercise: str, table: PersonalRecordTable) -> None:
        """
        Bring one exercise of the baseline up to date.

        Used when an exercise is added or swapped mid-session.  An exercise
        without committed records gets an empty entry (max 0) unless the
        baseline already has one.
        """
        record = table.get(exercise)
        if record is not None:
            self.baseline[exercise] = record
        elif exercise not in self.baseline:
            self.baseline[exercise] = ExerciseRecord(exercise_name=exercise)

    def sync_baseline_with_exercises(
        self,
        exercise_names: Iterable[str],
        table: PersonalRecordTable,
    ) -> bool:
        """
        Make sure every exercise of the session is present in the baseline.

        Returns:
            True if the baseline changed
        """
        names = list(exercise_names)
        changed = False
        for name in names:
            before = self.baseline.get(name)
            self.update_baseline_for_exercise(name, table)
            if self.baseline.get(name) != before:
                changed = True

        if changed:
            logger.debug("Synced session baseline with %s", sorted(names))
        return changed
