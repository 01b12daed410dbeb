"""
Pure record computation functions.

Nothing here performs I/O or mutates its inputs: every function that
"changes" a PersonalRecordTable returns a new one.  Invalid sets (weight
or reps not positive) are ordinary input and simply yield NO_RECORD or an
unchanged table.

The central rule of update_records is evaluate-before-mutate: the PR flags
it returns describe the table as it was before the set, while the table
it returns already contains the set.
"""

from datetime import datetime, timezone
from typing import Iterable

from .errors import RecordNotFound
from .models import (
    NO_RECORD,
    CompletedWorkout,
    ExerciseRecord,
    NewRepsPR,
    NewWeightPR,
    PersonalRecordTable,
    PRCheck,
    PRUpdate,
    RepsCheck,
    RepsEntry,
    WeightCheck,
    WorkoutUpdate,
    weight_key,
)


def check_weight_pr(
    exercise: str,
    weight: float,
    table: PersonalRecordTable,
) -> WeightCheck:
    """
    Check whether a weight beats the all-time max for an exercise.

    The comparison is strictly greater-than: matching the current max is
    never a record.  The first positive weight ever logged for an exercise
    always is one.

    Args:
        exercise: Exercise name (case-sensitive)
        weight: Weight lifted
        table: Committed records

    Returns:
        NewWeightPR or NO_RECORD
    """
    if weight <= 0:
        return NO_RECORD

    record = table.get(exercise)
    if record is None or weight > record.max_weight:
        return NewWeightPR(weight=weight)

    return NO_RECORD


def check_reps_pr(
    exercise: str,
    weight: float,
    reps: int,
    table: PersonalRecordTable,
) -> RepsCheck:
    """
    Check whether a rep count beats the best ever at this exact weight.

    There must be something to beat: an unknown exercise or a weight that
    has never been lifted is not a reps record, even though update_records
    will store it.

    Args:
        exercise: Exercise name
        weight: Weight lifted
        reps: Reps performed
        table: Committed records

    Returns:
        NewRepsPR carrying the previous best, or NO_RECORD
    """
    if weight <= 0 or reps <= 0:
        return NO_RECORD

    record = table.get(exercise)
    if record is None:
        return NO_RECORD

    previous = record.reps_at(weight)
    if previous is None or reps <= previous.reps:
        return NO_RECORD

    return NewRepsPR(weight=weight, reps=reps, previous_reps=previous.reps)


def check_prs(
    exercise: str,
    weight: float,
    reps: int,
    table: PersonalRecordTable,
) -> PRCheck:
    """Run both record checks for one set."""
    return PRCheck(
        weight_pr=check_weight_pr(exercise, weight, table),
        reps_pr=check_reps_pr(exercise, weight, reps, table),
    )


def update_records(
    exercise: str,
    weight: float,
    reps: int,
    date: str,
    table: PersonalRecordTable,
) -> PRUpdate:
    """
    Merge one completed set into a copy of the table.

    Steps:
    1. weight / reps flags are evaluated against the pre-update table
    2. invalid sets return the input table untouched, without flags
    3. the exercise entry is created if absent
    4. max_weight moves up when the weight is strictly heavier
    5. the ledger slot for this weight is written when the reps beat it
       (this also records first-time weights, which never flag a reps PR)

    The input table and its records are never modified; only the touched
    exercise gets a new ExerciseRecord in the returned table.

    Args:
        exercise: Exercise name
        weight: Weight lifted
        reps: Reps performed
        date: ISO-8601 timestamp of the set
        table: Table to merge into

    Returns:
        PRUpdate with the new table and any PR flags
    """
    weight_check = check_weight_pr(exercise, weight, table)
    reps_check = check_reps_pr(exercise, weight, reps, table)

    if weight <= 0 or reps <= 0:
        return PRUpdate(updated_table=table)

    current = table.get(exercise) or ExerciseRecord(exercise_name=exercise)

    max_weight = current.max_weight
    max_weight_date = current.max_weight_date
    if weight > max_weight:
        max_weight = weight
        max_weight_date = date

    ledger = current.reps_per_weight
    key = weight_key(weight)
    previous = ledger.get(key)
    if reps > (previous.reps if previous is not None else 0):
        ledger = {**ledger, key: RepsEntry(reps=reps, date=date)}

    updated = ExerciseRecord(
        exercise_name=exercise,
        max_weight=max_weight,
        max_weight_date=max_weight_date,
        reps_per_weight=ledger,
    )

    new_table = dict(table)
    new_table[exercise] = updated

    return PRUpdate(
        updated_table=new_table,
        weight_pr=weight_check if isinstance(weight_check, NewWeightPR) else None,
        reps_pr=reps_check if isinstance(reps_check, NewRepsPR) else None,
    )


def get_records_for_exercise(
    exercise: str,
    table: PersonalRecordTable,
) -> ExerciseRecord | None:
    """Return the record for an exercise, or None."""
    return table.get(exercise)


def apply_workout(
    workout: CompletedWorkout,
    table: PersonalRecordTable,
) -> WorkoutUpdate:
    """
    Fold every completed set of a workout into the table.

    Sets are applied in order, exercise by exercise, so a later set sees
    the effect of an earlier one (85 kg then 90 kg in the same workout
    moves the max twice).

    Args:
        workout: Finished workout
        table: Starting table (not modified)

    Returns:
        WorkoutUpdate; has_updates is True when the table changed at all
    """
    updated = table
    for s in workout.completed_sets():
        if s.weight > 0 and s.reps > 0:
            updated = update_records(s.exercise_name, s.weight, s.reps, s.date, updated).updated_table

    return WorkoutUpdate(updated_table=updated, has_updates=updated != table)


def workout_sort_key(workout: CompletedWorkout) -> datetime:
    """Chronological sort key; naive timestamps are taken as UTC."""
    parsed = datetime.fromisoformat(workout.date)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def replay_history(
    workouts: Iterable[CompletedWorkout],
    table: PersonalRecordTable,
) -> WorkoutUpdate:
    """
    Rebuild records from past workouts, oldest first.

    Replaying the same history over its own result changes nothing, since
    maxima and ledger entries only ever move on strict improvements.

    Args:
        workouts: Past workouts in any order
        table: Starting table (usually what the store currently holds)

    Returns:
        WorkoutUpdate over the whole history
    """
    updated = table
    for workout in sorted(workouts, key=workout_sort_key):
        updated = apply_workout(workout, updated).updated_table

    return WorkoutUpdate(updated_table=updated, has_updates=updated != table)


# =============================================================================
# Administrative deletes
#
# The only operations allowed to lower max_weight or drop ledger entries.
# =============================================================================


def delete_rep_record(
    exercise: str,
    weight: float,
    table: PersonalRecordTable,
) -> PersonalRecordTable:
    """
    Remove the ledger entry for one weight.

    When the removed weight was the max, the max falls back to the heaviest
    remaining ledger weight (with that entry's date).  An exercise whose
    ledger ends up empty is removed entirely.

    Raises:
        RecordNotFound: If the exercise or the weight has no record
    """
    record = table.get(exercise)
    if record is None:
        raise RecordNotFound(f"No records found for exercise: {exercise}")

    key = weight_key(weight)
    if key not in record.reps_per_weight:
        raise RecordNotFound(f"No record found for {key} in {exercise}")

    ledger = {k: v for k, v in record.reps_per_weight.items() if k != key}
    new_table = dict(table)

    if not ledger:
        del new_table[exercise]
        return new_table

    max_weight = record.max_weight
    max_weight_date = record.max_weight_date
    if float(weight) == record.max_weight:
        heaviest = max(ledger, key=float)
        max_weight = float(heaviest)
        max_weight_date = ledger[heaviest].date

    new_table[exercise] = ExerciseRecord(
        exercise_name=exercise,
        max_weight=max_weight,
        max_weight_date=max_weight_date,
        reps_per_weight=ledger,
    )
    return new_table


def delete_exercise_records(
    exercise: str,
    table: PersonalRecordTable,
) -> PersonalRecordTable:
    """
    Remove every record of one exercise.

    Raises:
        RecordNotFound: If the exercise has no record
    """
    if exercise not in table:
        raise RecordNotFound(f"No records found for exercise: {exercise}")

    return {name: record for name, record in table.items() if name != exercise}
