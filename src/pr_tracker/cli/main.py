"""
CLI entry point using Typer.

Provides commands for personal record tracking:
- show: Display records
- check: Check whether a set would be a record
- log-workout: Log a finished workout
- session: Log a workout interactively with live PR badges
- migrate: Rebuild records from workout history
- show-history: Display logged workouts
- delete-weight / delete-exercise: Remove records
"""

from typing import Annotated

import typer

from ..core.logging_setup import configure_logging
from . import views
from .app import app, get_settings
from .commands import records, session, workouts  # noqa: F401  (registers commands)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Personal record tracker. Run without a command for interactive mode.
    """
    configure_logging("DEBUG" if verbose else get_settings().log_level)

    if ctx.invoked_subcommand is not None:
        return  # A sub-command was given — let it handle things

    # ── Interactive main menu ───────────────────────────────────────────────
    views.console.print()
    views.console.print("[bold cyan]pr-tracker[/bold cyan] — personal records")
    views.console.print()

    menu = {
        "1": ("show",         "Show personal records"),
        "2": ("session",      "Start a workout session"),
        "3": ("show-history", "Show workout history"),
        "4": ("migrate",      "Rebuild records from history"),
        "0": ("quit",         "Quit"),
    }

    for key, (_, desc) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    choice = views.console.input("Choose [1]: ").strip() or "1"

    if choice == "0":
        raise typer.Exit(0)

    chosen = menu.get(choice, (None,))[0]

    if chosen == "show":
        ctx.invoke(records.show)
    elif chosen == "session":
        ctx.invoke(session.session)
    elif chosen == "show-history":
        ctx.invoke(workouts.show_history)
    elif chosen == "migrate":
        ctx.invoke(workouts.migrate)
    else:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
