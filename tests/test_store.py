"""
Tests for persistence and parsing: JSON record store, workout history,
serializers, set strings and settings loading.
"""

import json

import pytest

from pr_tracker.core.config_loader import _deep_merge, load_settings
from pr_tracker.core.engine import update_records
from pr_tracker.core.errors import StoreUnavailable
from pr_tracker.core.models import CompletedWorkout, RepsEntry, WorkoutExercise, WorkoutSet
from pr_tracker.io.history_store import WorkoutHistoryStore
from pr_tracker.io.record_store import JsonRecordStore, MemoryRecordStore, records_document
from pr_tracker.io.serializers import (
    ValidationError,
    dict_to_table,
    dict_to_workout,
    exercise_record_to_dict,
    parse_sets_string,
    validate_iso_datetime,
)

D1 = "2024-01-01T10:00:00+00:00"
D2 = "2024-01-02T10:00:00+00:00"


def _table():
    table = update_records("Bench Press", 80, 5, D1, {}).updated_table
    table = update_records("Bench Press", 82.5, 3, D2, table).updated_table
    return update_records("Squat", 100, 5, D1, table).updated_table


# ---------------------------------------------------------------------------
# JsonRecordStore
# ---------------------------------------------------------------------------


class TestJsonRecordStore:
    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path):
        store = JsonRecordStore(tmp_path / "records.json")
        assert not store.exists()
        assert await store.load() == {}

    @pytest.mark.asyncio
    async def test_save_then_load(self, tmp_path):
        store = JsonRecordStore(tmp_path / "nested" / "records.json")
        await store.save(_table())

        assert store.exists()
        assert await store.load() == _table()
        assert not (tmp_path / "nested" / "records.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_document_format(self, tmp_path):
        path = tmp_path / "records.json"
        await JsonRecordStore(path).save(_table())

        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert "last_updated" in data
        assert list(data["records"]["Bench Press"]["reps_per_weight"]) == ["80", "82.5"]

    @pytest.mark.asyncio
    async def test_failed_write_removes_temp_file(self, tmp_path, monkeypatch):
        path = tmp_path / "records.json"

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("pr_tracker.io.record_store.os.replace", failing_replace)

        with pytest.raises(StoreUnavailable):
            await JsonRecordStore(path).save(_table())

        assert not path.exists()
        assert not (tmp_path / "records.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_store_unavailable(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_text("{not json")

        with pytest.raises(StoreUnavailable):
            await JsonRecordStore(path).load()

    @pytest.mark.asyncio
    async def test_invalid_record_raises_store_unavailable(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_text(json.dumps({"Squat": {"max_weight": -5}}))

        with pytest.raises(StoreUnavailable):
            await JsonRecordStore(path).load()

    @pytest.mark.asyncio
    async def test_reads_mobile_export(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_text(json.dumps({
            "Bench Press": {
                "exerciseName": "Bench Press",
                "maxWeight": 80,
                "maxWeightDate": D1,
                "repsPerWeight": {"80.0": {"reps": 5, "date": D1}},
            }
        }))

        table = await JsonRecordStore(path).load()
        assert table["Bench Press"].reps_per_weight == {"80": RepsEntry(reps=5, date=D1)}


class TestMemoryRecordStore:
    @pytest.mark.asyncio
    async def test_stored_copy_is_independent(self):
        store = MemoryRecordStore()
        table = _table()
        await store.save(table)
        del table["Squat"]

        assert "Squat" in await store.load()
        assert store.save_count == 1


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------


class TestSerializers:
    def test_record_dict_round_trip(self):
        table = _table()
        raw = records_document(table)["records"]
        assert dict_to_table(raw) == table

    def test_record_dict_fields(self):
        data = exercise_record_to_dict(_table()["Squat"])
        assert data == {
            "exercise_name": "Squat",
            "max_weight": 100,
            "max_weight_date": D1,
            "reps_per_weight": {"100": {"reps": 5, "date": D1}},
        }

    def test_bad_ledger_key(self):
        with pytest.raises(ValidationError, match="weight key"):
            dict_to_table({"Squat": {"reps_per_weight": {"heavy": {"reps": 1, "date": D1}}}})

    def test_zero_reps_entry_rejected(self):
        with pytest.raises(ValidationError):
            dict_to_table({"Squat": {"reps_per_weight": {"100": {"reps": 0, "date": D1}}}})

    def test_workout_defaults_completed(self):
        workout = dict_to_workout({
            "date": D1,
            "exercises": [{"name": "Squat", "sets": [{"weight": 100, "reps": 5}]}],
        })
        assert workout.exercises[0].sets == [WorkoutSet(weight=100.0, reps=5, completed=True)]

    @pytest.mark.parametrize("data", [
        {"exercises": []},
        {"date": "yesterday", "exercises": []},
        {"date": D1, "exercises": [{"sets": []}]},
        {"date": D1, "exercises": [{"name": "Squat", "sets": [{"weight": -1, "reps": 5}]}]},
        {"date": D1, "exercises": [{"name": "Squat", "sets": [{"weight": "x", "reps": 5}]}]},
    ])
    def test_invalid_workouts(self, data):
        with pytest.raises(ValidationError):
            dict_to_workout(data)

    def test_validate_iso_datetime(self):
        assert validate_iso_datetime("2024-01-01") == "2024-01-01"
        with pytest.raises(ValidationError):
            validate_iso_datetime("01/02/2024")


class TestParseSetsString:
    def test_single_set(self):
        assert parse_sets_string("5@80") == [WorkoutSet(weight=80.0, reps=5)]

    def test_multiple_and_repeated(self):
        sets = parse_sets_string("3x8@60, 5@82.5kg")
        assert [(s.reps, s.weight) for s in sets] == [(8, 60.0), (8, 60.0), (8, 60.0), (5, 82.5)]

    def test_not_completed_marker(self):
        (s,) = parse_sets_string("~4@100")
        assert s.completed is False

    @pytest.mark.parametrize("raw", ["", "   ", "5x@80", "abc", "5@", "0x5@80"])
    def test_invalid(self, raw):
        with pytest.raises(ValidationError):
            parse_sets_string(raw)


# ---------------------------------------------------------------------------
# WorkoutHistoryStore
# ---------------------------------------------------------------------------


class TestWorkoutHistoryStore:
    def _workout(self, date, weight):
        return CompletedWorkout(
            date=date,
            exercises=[WorkoutExercise(name="Squat", sets=[WorkoutSet(weight=weight, reps=5)])],
        )

    def test_load_missing_file(self, tmp_path):
        store = WorkoutHistoryStore(tmp_path / "workouts.jsonl")
        with pytest.raises(FileNotFoundError):
            store.load_history()

    def test_append_and_load_sorted(self, tmp_path):
        store = WorkoutHistoryStore(tmp_path / "sub" / "workouts.jsonl")
        store.append_workout(self._workout(D2, 110))
        store.append_workout(self._workout(D1, 100))

        history = store.load_history()
        assert [w.date for w in history] == [D1, D2]
        assert history[1].exercises[0].sets[0].weight == 110

    def test_bad_line_names_line_number(self, tmp_path):
        path = tmp_path / "workouts.jsonl"
        store = WorkoutHistoryStore(path)
        store.append_workout(self._workout(D1, 100))
        with open(path, "a", encoding="utf-8") as f:
            f.write("{broken\n")

        with pytest.raises(ValidationError, match="line 2"):
            store.load_history()

    def test_clear_history(self, tmp_path):
        store = WorkoutHistoryStore(tmp_path / "workouts.jsonl")
        store.append_workout(self._workout(D1, 100))
        store.clear_history()
        assert store.load_history() == []


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self, tmp_path):
        settings = load_settings({"PR_TRACKER_HOME": str(tmp_path)})

        assert settings.app_dir == tmp_path
        assert settings.records_path == tmp_path / "records.json"
        assert settings.history_path == tmp_path / "workouts.jsonl"
        assert settings.log_level == "WARNING"

    def test_user_config_overrides_bundled(self, tmp_path):
        (tmp_path / "config.yaml").write_text(
            "storage:\n  records_file: prs.json\nlogging:\n  level: info\n"
        )
        settings = load_settings({"PR_TRACKER_HOME": str(tmp_path)})

        assert settings.records_file == "prs.json"
        assert settings.history_file == "workouts.jsonl"
        assert settings.log_level == "INFO"

    def test_env_log_level_wins(self, tmp_path):
        (tmp_path / "config.yaml").write_text("logging:\n  level: info\n")
        settings = load_settings({"PR_TRACKER_HOME": str(tmp_path), "PR_TRACKER_LOG_LEVEL": "debug"})
        assert settings.log_level == "DEBUG"

    def test_broken_user_config_is_ignored(self, tmp_path):
        (tmp_path / "config.yaml").write_text("storage: [unclosed\n")
        settings = load_settings({"PR_TRACKER_HOME": str(tmp_path)})
        assert settings.records_file == "records.json"

    def test_deep_merge(self):
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        merged = _deep_merge(base, {"a": {"y": 3}})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1}
        assert base["a"]["y"] == 2
