"""
Tests for the per-workout session overlay.
"""

from pr_tracker.core.models import (
    NO_RECORD,
    ExerciseRecord,
    NewRepsPR,
    NewWeightPR,
    RepsEntry,
    SetPRResult,
)
from pr_tracker.core.session import SessionOverlay, pr_result_key

D1 = "2024-01-01T10:00:00+00:00"


def _baseline() -> dict[str, ExerciseRecord]:
    return {
        "Bench Press": ExerciseRecord(
            exercise_name="Bench Press",
            max_weight=80,
            max_weight_date=D1,
            reps_per_weight={"80": RepsEntry(reps=5, date=D1)},
        )
    }


def _session() -> SessionOverlay:
    overlay = SessionOverlay()
    overlay.initialize_session(_baseline())
    return overlay


def _credit(overlay: SessionOverlay, exercise: str, weight: float) -> bool:
    """Check a set and ratchet the session max the way a live screen does."""
    result = overlay.check_session_weight_pr(exercise, weight)
    if result.is_new:
        overlay.safe_update_session_weight(exercise, weight)
    return result.is_new


class TestSessionWeightRatchet:
    def test_first_set_over_baseline_is_flagged_once(self):
        overlay = _session()
        assert _credit(overlay, "Bench Press", 85)
        assert not _credit(overlay, "Bench Press", 85)

    def test_heavier_set_is_flagged_again(self):
        overlay = _session()
        flags = [_credit(overlay, "Bench Press", w) for w in (85, 85, 90, 87.5)]
        assert flags == [True, False, True, False]
        assert overlay.session_max_weights["Bench Press"] == 90

    def test_baseline_max_is_not_a_record(self):
        overlay = _session()
        assert overlay.check_session_weight_pr("Bench Press", 80) == NO_RECORD

    def test_new_exercise_first_set_is_flagged(self):
        overlay = _session()
        assert overlay.check_session_weight_pr("Squat", 60) == NewWeightPR(weight=60)

    def test_invalid_inputs(self):
        overlay = _session()
        assert overlay.check_session_weight_pr("", 100) == NO_RECORD
        assert overlay.check_session_weight_pr("Bench Press", 0) == NO_RECORD

    def test_ratchet_never_lowers(self):
        overlay = _session()
        overlay.safe_update_session_weight("Bench Press", 90)
        overlay.safe_update_session_weight("Bench Press", 70)
        assert overlay.session_max_weights["Bench Press"] == 90

    def test_clear_session_resets_ratchet(self):
        overlay = _session()
        _credit(overlay, "Bench Press", 85)
        overlay.clear_session()

        assert overlay.session_max_weights == {}
        assert _credit(overlay, "Bench Press", 85)
        assert overlay.baseline == _baseline()

    def test_reset_session_max_weights(self):
        overlay = _session()
        _credit(overlay, "Bench Press", 85)
        overlay.reset_session_max_weights()
        assert _credit(overlay, "Bench Press", 85)


class TestOriginalChecks:
    def test_original_weight_check_ignores_ratchet(self):
        overlay = _session()
        _credit(overlay, "Bench Press", 90)
        assert overlay.check_original_weight_pr("Bench Press", 85) == NewWeightPR(weight=85)

    def test_original_reps_check(self):
        overlay = _session()
        assert overlay.check_original_reps_pr("Bench Press", 80, 6) == NewRepsPR(
            weight=80, reps=6, previous_reps=5
        )
        assert overlay.check_original_reps_pr("Bench Press", 80, 5) == NO_RECORD
        assert overlay.check_original_reps_pr("", 80, 6) == NO_RECORD


class TestPRResultCache:
    def test_key_format(self):
        assert pr_result_key("bench-1", 2) == "bench-1_set_2"

    def test_set_and_get(self):
        overlay = _session()
        result = SetPRResult(set_index=0, weight_pr=NewWeightPR(weight=85))
        overlay.safe_set_exercise_pr_results("bench-1", 0, result)

        assert overlay.get_exercise_pr_result("bench-1", 0) is result
        assert overlay.get_exercise_pr_result("bench-1", 1) is None

    def test_none_removes_entry(self):
        overlay = _session()
        overlay.safe_set_exercise_pr_results("bench-1", 0, SetPRResult(set_index=0))
        overlay.safe_set_exercise_pr_results("bench-1", 0, None)
        assert overlay.exercise_pr_results == {}

    def test_clear_exercise_prs_only_touches_one_exercise(self):
        overlay = _session()
        for index in range(3):
            overlay.safe_set_exercise_pr_results("bench", index, SetPRResult(set_index=index))
        overlay.safe_set_exercise_pr_results("squat", 0, SetPRResult(set_index=0))

        overlay.clear_exercise_prs("bench")
        assert list(overlay.exercise_pr_results) == ["squat_set_0"]

    def test_current_result(self):
        overlay = _session()
        result = SetPRResult(set_index=1)
        overlay.safe_set_pr_result(result)
        assert overlay.current_pr_result is result

        overlay.clear_session()
        assert overlay.current_pr_result is None

    def test_reset_exercise_pr_results(self):
        overlay = _session()
        overlay.safe_set_exercise_pr_results("bench", 0, SetPRResult(set_index=0))
        overlay.reset_exercise_pr_results()
        assert overlay.exercise_pr_results == {}


class TestBaselineSync:
    def test_baseline_is_a_snapshot(self):
        table = _baseline()
        overlay = SessionOverlay()
        overlay.initialize_session(table)
        table["Squat"] = ExerciseRecord(exercise_name="Squat")
        assert "Squat" not in overlay.baseline

    def test_unknown_exercise_gets_empty_entry(self):
        overlay = _session()
        changed = overlay.sync_baseline_with_exercises(["Squat"], {})

        assert changed
        assert overlay.baseline["Squat"] == ExerciseRecord(exercise_name="Squat")

    def test_committed_record_replaces_baseline_entry(self):
        overlay = _session()
        newer = ExerciseRecord(
            exercise_name="Bench Press",
            max_weight=95,
            max_weight_date=D1,
            reps_per_weight={"95": RepsEntry(reps=1, date=D1)},
        )
        assert overlay.sync_baseline_with_exercises(["Bench Press"], {"Bench Press": newer})
        assert overlay.baseline["Bench Press"] is newer

    def test_no_change_reports_false(self):
        overlay = _session()
        assert not overlay.sync_baseline_with_exercises(["Bench Press"], _baseline())

    def test_accepts_generator(self):
        overlay = _session()
        assert overlay.sync_baseline_with_exercises((n for n in ["Squat", "Row"]), {})
        assert {"Squat", "Row"} <= set(overlay.baseline)
