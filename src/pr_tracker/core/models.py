"""
Data models for pr-tracker.

Record dataclasses are frozen: a PersonalRecordTable is handled as a value,
and engine functions build new records instead of editing existing ones.
Workout input dataclasses mirror what a finished workout looks like when
it is handed over for record keeping.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Literal, TypeAlias


def weight_key(weight: float) -> str:
    """
    Render a weight as its ledger key.

    Whole numbers drop the fractional part so that 80 and 80.0 share one
    slot ("80"); other values keep their shortest repr ("82.5").
    """
    value = float(weight)
    if value.is_integer():
        return str(int(value))
    return repr(value)


@dataclass(frozen=True)
class RepsEntry:
    """Best rep count at one exact weight, and when it was achieved."""

    reps: int
    date: str  # ISO-8601 timestamp

    def __post_init__(self) -> None:
        """Validate entry data."""
        if self.reps <= 0:
            raise ValueError("reps must be positive")


@dataclass(frozen=True)
class ExerciseRecord:
    """
    All-time bests for one exercise.

    max_weight is the heaviest weight ever logged (0 = none yet) and
    reps_per_weight is the ledger: for every weight ever lifted, the best
    rep count at exactly that weight.
    """

    exercise_name: str
    max_weight: float = 0.0
    max_weight_date: str = ""  # '' while max_weight == 0
    reps_per_weight: dict[str, RepsEntry] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate record invariants."""
        if self.max_weight < 0:
            raise ValueError("max_weight must be non-negative")
        if self.max_weight == 0 and self.max_weight_date:
            raise ValueError("max_weight_date must be empty while max_weight is 0")

    def reps_at(self, weight: float) -> RepsEntry | None:
        """Return the ledger entry for this exact weight, if any."""
        return self.reps_per_weight.get(weight_key(weight))

    @property
    def weights(self) -> list[float]:
        """Ledger weights, heaviest first."""
        return sorted((float(k) for k in self.reps_per_weight), reverse=True)


# Exercise name → record.  Keys are case-sensitive.
PersonalRecordTable: TypeAlias = dict[str, ExerciseRecord]


# =============================================================================
# PR results
# =============================================================================


@dataclass(frozen=True)
class NoRecord:
    """Not a record: invalid set, nothing to beat, or no improvement."""

    is_new: ClassVar[bool] = False


@dataclass(frozen=True)
class NewWeightPR:
    """A weight heavier than anything previously logged for the exercise."""

    weight: float

    is_new: ClassVar[bool] = True


@dataclass(frozen=True)
class NewRepsPR:
    """More reps than ever before at a weight that had been lifted already."""

    weight: float
    reps: int
    previous_reps: int

    is_new: ClassVar[bool] = True

    @property
    def gained(self) -> int:
        """Rep improvement over the previous best (the "+N" badge)."""
        return self.reps - self.previous_reps


NO_RECORD = NoRecord()

WeightCheck: TypeAlias = NoRecord | NewWeightPR
RepsCheck: TypeAlias = NoRecord | NewRepsPR


@dataclass(frozen=True)
class PRCheck:
    """Both record checks for one set, without touching any table."""

    weight_pr: WeightCheck
    reps_pr: RepsCheck

    @property
    def any_new(self) -> bool:
        return self.weight_pr.is_new or self.reps_pr.is_new


@dataclass(frozen=True)
class PRUpdate:
    """
    Result of merging one set into a table.

    weight_pr / reps_pr describe the table *before* the set was applied;
    updated_table is the table *after*.
    """

    updated_table: PersonalRecordTable
    weight_pr: NewWeightPR | None = None
    reps_pr: NewRepsPR | None = None


@dataclass(frozen=True)
class WorkoutUpdate:
    """Result of folding one or more workouts into a table."""

    updated_table: PersonalRecordTable
    has_updates: bool


@dataclass
class SetPRResult:
    """PR flags cached for one set of one exercise during a session."""

    set_index: int
    weight_pr: NewWeightPR | None = None
    reps_pr: NewRepsPR | None = None


# =============================================================================
# Workout input
# =============================================================================


@dataclass
class CompletedSet:
    """A single logged set, as produced while a workout is in progress."""

    exercise_name: str
    weight: float
    reps: int
    completed: bool
    date: str  # ISO-8601 timestamp


@dataclass
class WorkoutSet:
    """One set inside a finished workout."""

    weight: float
    reps: int
    completed: bool = True


@dataclass
class WorkoutExercise:
    """An exercise and its sets inside a finished workout."""

    name: str
    sets: list[WorkoutSet] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate exercise data."""
        if not self.name:
            raise ValueError("exercise name must not be empty")


@dataclass
class CompletedWorkout:
    """
    A finished workout.

    Only sets flagged completed are ever folded into records.
    """

    date: str  # ISO-8601 timestamp
    exercises: list[WorkoutExercise] = field(default_factory=list)

    def completed_sets(self) -> list[CompletedSet]:
        """Flatten to CompletedSet rows (completed sets only), in workout order."""
        return [
            CompletedSet(
                exercise_name=exercise.name,
                weight=s.weight,
                reps=s.reps,
                completed=True,
                date=self.date,
            )
            for exercise in self.exercises
            for s in exercise.sets
            if s.completed
        ]


AppState = Literal["active", "background", "inactive"]
