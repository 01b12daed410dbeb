"""Interactive workout session: live PR badges, commit or discard at the end."""

import asyncio

import typer

from ...core.controller import RecordController
from ...core.errors import SaveFailed, StoreUnavailable
from ...core.models import CompletedWorkout, SetPRResult, WorkoutExercise, WorkoutSet
from ...core.session import SessionOverlay
from ...io.history_store import WorkoutHistoryStore
from ...io.serializers import ValidationError, parse_sets_string
from .. import views
from ..app import HistoryPathOption, RecordsPathOption, app, get_history_store, make_controller, now_iso


def record_set(
    controller: RecordController,
    overlay: SessionOverlay,
    exercise: WorkoutExercise,
    new_set: WorkoutSet,
    date: str,
) -> SetPRResult | None:
    """
    Register one completed set with the session and return its PR flags.

    Weight records go through the session ratchet, so the same heavier
    weight is celebrated once per session.  Reps records come from the
    speculative table, which already holds this session's earlier sets.
    """
    exercise.sets.append(new_set)
    set_index = len(exercise.sets) - 1

    if not new_set.completed:
        return None

    weight_check = controller.check_session_weight_pr(exercise.name, new_set.weight)
    update = controller.update_records_temporary(exercise.name, new_set.weight, new_set.reps, date)

    weight_pr = weight_check if weight_check.is_new else None
    if weight_pr is not None:
        controller.update_session_weight(exercise.name, new_set.weight)

    if weight_pr is None and update.reps_pr is None:
        overlay.safe_set_exercise_pr_results(exercise.name, set_index, None)
        return None

    result = SetPRResult(set_index=set_index, weight_pr=weight_pr, reps_pr=update.reps_pr)
    overlay.safe_set_exercise_pr_results(exercise.name, set_index, result)
    overlay.safe_set_pr_result(result)
    return result


async def _ask(prompt: str) -> str:
    """Read one line in a worker thread so the event loop keeps running."""
    return (await asyncio.to_thread(views.console.input, prompt)).strip()


async def _prompt_sets(
    controller: RecordController,
    overlay: SessionOverlay,
    exercise: WorkoutExercise,
    date: str,
) -> None:
    """Prompt for the sets of one exercise until an empty line."""
    views.console.print(
        "  Sets as [cyan]reps@weight[/cyan] or [cyan]NxR@weight[/cyan]"
        "  e.g. [green]5@80[/green]  [green]3x5@80[/green]  ([green]~[/green] = not completed)"
    )
    while True:
        raw = await _ask(f"  Set {len(exercise.sets) + 1}: ")
        if not raw:
            return
        try:
            new_sets = parse_sets_string(raw)
        except ValidationError as e:
            views.print_error(str(e))
            continue

        for new_set in new_sets:
            result = record_set(controller, overlay, exercise, new_set, date)
            if result is not None:
                views.console.print(f"    {views.format_pr_badges(result.weight_pr, result.reps_pr)}")


async def run_session(
    controller: RecordController,
    history: WorkoutHistoryStore,
) -> bool:
    """
    Drive one interactive session.

    Returns:
        True if the workout was saved

    Raises:
        StoreUnavailable: The records could not be loaded; nothing is asked
            or saved, so a broken store is never overwritten
        SaveFailed: The store rejected the commit
    """
    async with controller:
        if controller.error:
            raise StoreUnavailable(controller.error)

        overlay = controller.start_session()
        workout = CompletedWorkout(date=now_iso())

        while True:
            name = await _ask("Exercise (Enter to finish): ")
            if not name:
                break
            exercise = next((e for e in workout.exercises if e.name == name), None)
            if exercise is None:
                exercise = WorkoutExercise(name=name)
                workout.exercises.append(exercise)
                await controller.sync_session_baseline(overlay, [name])
            await _prompt_sets(controller, overlay, exercise, workout.date)

        if not workout.completed_sets():
            controller.discard_temporary()
            controller.end_session()
            views.print_info("Nothing logged.")
            return False

        views.print_info(f"{len(overlay.exercise_pr_results)} record set(s) this session.")

        if not await asyncio.to_thread(views.confirm_action, "Save this workout?"):
            controller.discard_temporary()
            controller.end_session()
            views.print_info("Workout discarded. Records unchanged.")
            return False

        try:
            await controller.update_records_from_completed_workout(workout)
        finally:
            controller.end_session()

    history.append_workout(workout)
    return True


@app.command()
def session(
    records_path: RecordsPathOption = None,
    history_path: HistoryPathOption = None,
) -> None:
    """
    Log a workout interactively with live PR badges; nothing is saved until you confirm.
    """
    controller = make_controller(records_path)
    try:
        saved = asyncio.run(run_session(controller, get_history_store(history_path)))
    except (StoreUnavailable, SaveFailed) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if saved:
        views.print_success("Workout saved.")
