"""Record commands: show, check, delete-weight, delete-exercise."""

import asyncio
import json
from typing import Annotated, Optional

import typer

from ...core.errors import RecordNotFound, SaveFailed, StoreUnavailable
from ...core.models import NewRepsPR, NewWeightPR
from ...io.serializers import exercise_record_to_dict, table_to_dict
from .. import views
from ..app import JsonOption, RecordsPathOption, app, make_controller


@app.command()
def show(
    exercise: Annotated[
        Optional[str],
        typer.Argument(help="Exercise name; omit to list every exercise"),
    ] = None,
    records_path: RecordsPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Display personal records.
    """
    controller = make_controller(records_path)
    table = asyncio.run(controller.attach())

    if controller.error:
        views.print_error(controller.error)
        raise typer.Exit(1)

    if exercise is None:
        if json_out:
            print(json.dumps(table_to_dict(table), indent=2))
            return
        views.print_records(table)
        return

    record = controller.get_records_for_exercise(exercise)
    if record is None:
        views.print_error(f"No records for {exercise!r}")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(exercise_record_to_dict(record), indent=2))
        return

    views.print_exercise_records(record)


@app.command()
def check(
    exercise: Annotated[str, typer.Argument(help="Exercise name")],
    weight: Annotated[float, typer.Argument(help="Weight of the set")],
    reps: Annotated[int, typer.Argument(help="Reps of the set")],
    records_path: RecordsPathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Check whether a set would be a new record, without saving anything.
    """
    controller = make_controller(records_path)
    asyncio.run(controller.attach())

    if controller.error:
        views.print_warning(f"{controller.error}; checking against empty records")

    result = controller.check_prs(exercise, weight, reps)

    if json_out:
        output: dict = {"exercise": exercise, "weight": weight, "reps": reps, "weight_pr": None, "reps_pr": None}
        if isinstance(result.weight_pr, NewWeightPR):
            output["weight_pr"] = {"weight": result.weight_pr.weight}
        if isinstance(result.reps_pr, NewRepsPR):
            output["reps_pr"] = {
                "weight": result.reps_pr.weight,
                "reps": result.reps_pr.reps,
                "previous_reps": result.reps_pr.previous_reps,
            }
        print(json.dumps(output, indent=2))
        return

    views.print_pr_check(exercise, weight, reps, result)


@app.command("delete-weight")
def delete_weight(
    exercise: Annotated[str, typer.Argument(help="Exercise name")],
    weight: Annotated[float, typer.Argument(help="Weight whose rep record is removed")],
    records_path: RecordsPathOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """
    Delete the rep record of one weight (the max falls back if needed).
    """
    label = f"{exercise} @ {views.format_weight(weight)}"
    if not force and not views.confirm_action(f"Delete the record for {label}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    controller = make_controller(records_path)
    try:
        asyncio.run(controller.delete_rep_record(exercise, weight))
    except (RecordNotFound, StoreUnavailable, SaveFailed) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Deleted record: {label}")


@app.command("delete-exercise")
def delete_exercise(
    exercise: Annotated[str, typer.Argument(help="Exercise name")],
    records_path: RecordsPathOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """
    Delete every record of one exercise.
    """
    if not force and not views.confirm_action(f"Delete all records for {exercise}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    controller = make_controller(records_path)
    try:
        asyncio.run(controller.delete_all_records_for_exercise(exercise))
    except (RecordNotFound, StoreUnavailable, SaveFailed) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Deleted all records for {exercise}")
