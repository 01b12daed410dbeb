"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of records and PR badges.
"""

from rich.console import Console
from rich.table import Table

from ..core.models import (
    CompletedWorkout,
    ExerciseRecord,
    NewRepsPR,
    NewWeightPR,
    PersonalRecordTable,
    PRCheck,
    weight_key,
)

console = Console()


def format_weight(weight: float) -> str:
    """Display a weight the way it is keyed in the ledger (80, 82.5)."""
    return weight_key(weight)


def format_date(date: str) -> str:
    """Show the calendar date part of an ISO timestamp."""
    return date[:10] if date else "-"


def format_pr_badges(
    weight_pr: NewWeightPR | None,
    reps_pr: NewRepsPR | None,
) -> str:
    """
    Build the badge text for one set.

    Returns:
        Rich markup such as "[bold yellow]NEW PR 85[/bold yellow]" or "" when
        the set was not a record
    """
    badges: list[str] = []
    if weight_pr is not None:
        badges.append(f"[bold yellow]NEW PR {format_weight(weight_pr.weight)}[/bold yellow]")
    if reps_pr is not None:
        badges.append(
            f"[bold green]+{reps_pr.gained} @ {format_weight(reps_pr.weight)}[/bold green]"
            f" [dim]({reps_pr.previous_reps} → {reps_pr.reps})[/dim]"
        )
    return "  ".join(badges)


def format_records_table(table: PersonalRecordTable) -> Table:
    """
    Format all records as a Rich table.

    Args:
        table: Records to display

    Returns:
        Rich Table object
    """
    out = Table(title="Personal Records", show_header=True, header_style="bold")
    out.add_column("Exercise", style="cyan")
    out.add_column("Max", justify="right", style="bold")
    out.add_column("Set on")
    out.add_column("Weights", justify="right")
    out.add_column("Best reps @ max", justify="right")

    for name in sorted(table):
        record = table[name]
        at_max = record.reps_at(record.max_weight)
        out.add_row(
            name,
            format_weight(record.max_weight),
            format_date(record.max_weight_date),
            str(len(record.reps_per_weight)),
            str(at_max.reps) if at_max is not None else "-",
        )

    return out


def format_ledger_table(record: ExerciseRecord) -> Table:
    """Format the reps-per-weight ledger of one exercise, heaviest first."""
    out = Table(title=record.exercise_name, show_header=True, header_style="bold")
    out.add_column("Weight", justify="right", style="cyan")
    out.add_column("Best reps", justify="right", style="bold")
    out.add_column("Date")

    for weight in record.weights:
        entry = record.reps_at(weight)
        marker = " [yellow]★[/yellow]" if weight == record.max_weight else ""
        out.add_row(f"{format_weight(weight)}{marker}", str(entry.reps), format_date(entry.date))

    return out


def print_records(table: PersonalRecordTable) -> None:
    """Print the record table, or a hint when it is empty."""
    if not table:
        console.print("[yellow]No personal records yet.[/yellow]")
        return
    console.print(format_records_table(table))


def print_exercise_records(record: ExerciseRecord) -> None:
    console.print(
        f"Max: [bold]{format_weight(record.max_weight)}[/bold] "
        f"({format_date(record.max_weight_date)})"
    )
    console.print(format_ledger_table(record))


def print_pr_check(exercise: str, weight: float, reps: int, check: PRCheck) -> None:
    """Print the outcome of checking one hypothetical set."""
    weight_pr = check.weight_pr if isinstance(check.weight_pr, NewWeightPR) else None
    reps_pr = check.reps_pr if isinstance(check.reps_pr, NewRepsPR) else None
    badges = format_pr_badges(weight_pr, reps_pr)
    label = f"{exercise}: {reps} @ {format_weight(weight)}"
    if badges:
        console.print(f"{label}  {badges}")
    else:
        console.print(f"{label}  [dim]no record[/dim]")


def print_history(workouts: list[CompletedWorkout]) -> None:
    """
    Print workout history to console.

    Args:
        workouts: Workouts to display
    """
    if not workouts:
        console.print("[yellow]No workouts recorded yet.[/yellow]")
        return

    out = Table(title="Workout History", show_header=True, header_style="bold")
    out.add_column("#", justify="right", style="dim")
    out.add_column("Date", style="cyan")
    out.add_column("Exercise")
    out.add_column("Sets")

    for i, workout in enumerate(workouts, 1):
        for j, exercise in enumerate(workout.exercises):
            sets = ", ".join(
                f"{s.reps}@{format_weight(s.weight)}" if s.completed
                else f"[dim]~{s.reps}@{format_weight(s.weight)}[/dim]"
                for s in exercise.sets
            )
            out.add_row(
                str(i) if j == 0 else "",
                format_date(workout.date) if j == 0 else "",
                exercise.name,
                sets,
            )

    console.print(out)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
