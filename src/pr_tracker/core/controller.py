"""
Record controller: the object a consumer (a screen, a CLI command) attaches to.

A controller owns a local copy of the committed record table, answers PR
checks against it, applies speculative updates while a workout is running,
and persists only when a workout is explicitly committed.  Every commit is
published on the SyncBus so other controllers reload.

Concurrency model:
- single event loop; each controller serializes its own store I/O
- across controllers, whole-table last-write-wins: two controllers that
  load the same table and commit independent updates end with the table
  of whichever saved last.  Nothing is merged.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Iterable

from . import engine
from .config import APP_STATE_ACTIVE, LOAD_ERROR_MESSAGE, SAVE_ERROR_MESSAGE
from .errors import SaveFailed, StoreUnavailable
from .models import (
    AppState,
    CompletedWorkout,
    ExerciseRecord,
    PersonalRecordTable,
    PRCheck,
    PRUpdate,
    RepsCheck,
    WeightCheck,
    WorkoutUpdate,
)
from .session import SessionOverlay
from .sync import SyncBus
from ..io.record_store import RecordStore

logger = logging.getLogger(__name__)


class ControllerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class RecordController:
    """
    Per-consumer view of the personal record table.

    Attributes:
        instance_id: Short id used in log lines
        state: UNINITIALIZED until the first load attempt finishes
        loading: True while a load is in flight
        error: User-facing message of the last failed load/save, else None
        records: Table used for checks (may hold speculative updates)
        committed: Table as last loaded from or saved to the store
        stale: A change notification arrived with no event loop to reload on
        session: Overlay of the workout in progress, if any
    """

    def __init__(
        self,
        store: RecordStore,
        bus: SyncBus,
        instance_id: str | None = None,
    ):
        self.store = store
        self.bus = bus
        self.instance_id = instance_id or uuid.uuid4().hex[:12]

        self.state = ControllerState.UNINITIALIZED
        self.loading = False
        self.error: str | None = None
        self.records: PersonalRecordTable = {}
        self.committed: PersonalRecordTable = {}
        self.stale = False
        self.session: SessionOverlay | None = None

        self._has_committed = False
        self._io_lock = asyncio.Lock()
        self._unsubscribe = None
        self._publishing = False
        self._reload_tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def attach(self) -> PersonalRecordTable:
        """Subscribe to record changes and load the table."""
        if self._unsubscribe is None:
            self._unsubscribe = self.bus.subscribe(self._on_records_changed)
        return await self.load_records()

    def detach(self) -> None:
        """Stop listening for record changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def __aenter__(self) -> RecordController:
        await self.attach()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.detach()

    async def load_records(self) -> PersonalRecordTable:
        """
        Load the committed table from the store.

        A failed load never raises: the controller becomes READY, keeps the
        table it had (empty on first load) and exposes the failure through
        ``error``.  Speculative updates are dropped by a successful load.
        """
        self.loading = True
        logger.debug("[%s] Loading records from store", self.instance_id)
        try:
            async with self._io_lock:
                table = await self.store.load()
        except (StoreUnavailable, OSError) as e:
            logger.error("[%s] Error loading records: %s", self.instance_id, e)
            return self._load_failed()
        except Exception:
            logger.exception("[%s] Unexpected error loading records", self.instance_id)
            return self._load_failed()
        finally:
            self.loading = False

        self.records = table
        self.committed = table
        self._has_committed = True
        self.error = None
        self.stale = False
        self.state = ControllerState.READY
        logger.debug("[%s] Records loaded: %s", self.instance_id, sorted(table))
        return table

    def _load_failed(self) -> PersonalRecordTable:
        self.error = LOAD_ERROR_MESSAGE
        if self.state is ControllerState.UNINITIALIZED:
            self.records = {}
            self.committed = {}
        self.state = ControllerState.READY
        return self.records

    async def handle_app_state(self, app_state: AppState) -> PersonalRecordTable | None:
        """Reload when the app comes back to the foreground."""
        if app_state != APP_STATE_ACTIVE:
            return None
        logger.debug("[%s] App became active, reloading records", self.instance_id)
        return await self.load_records()

    async def wait_for_reloads(self) -> None:
        """Wait until reloads triggered by change notifications have finished."""
        while self._reload_tasks:
            await asyncio.gather(*list(self._reload_tasks))

    def _on_records_changed(self) -> None:
        if self._publishing:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[%s] Records changed with no running event loop", self.instance_id)
            self.stale = True
            return

        logger.debug("[%s] Records updated elsewhere, reloading", self.instance_id)
        task = loop.create_task(self.load_records())
        self._reload_tasks.add(task)
        task.add_done_callback(self._reload_tasks.discard)

    def _publish(self) -> None:
        self._publishing = True
        try:
            self.bus.notify()
        finally:
            self._publishing = False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def check_weight_pr(self, exercise: str, weight: float) -> WeightCheck:
        return engine.check_weight_pr(exercise, weight, self.records)

    def check_reps_pr(self, exercise: str, weight: float, reps: int) -> RepsCheck:
        return engine.check_reps_pr(exercise, weight, reps, self.records)

    def check_prs(self, exercise: str, weight: float, reps: int) -> PRCheck:
        return engine.check_prs(exercise, weight, reps, self.records)

    def get_records_for_exercise(self, exercise: str) -> ExerciseRecord | None:
        return engine.get_records_for_exercise(exercise, self.records)

    # ------------------------------------------------------------------
    # Speculative updates (never persisted)
    # ------------------------------------------------------------------

    def update_records_temporary(
        self,
        exercise: str,
        weight: float,
        reps: int,
        date: str,
    ) -> PRUpdate:
        """
        Apply a set to the in-memory table only, for live feedback.

        The store is not touched; a cancelled workout leaves the committed
        records exactly as they were.
        """
        logger.debug(
            "[%s] Temporary update for %s: %s x %s", self.instance_id, exercise, weight, reps,
        )
        result = engine.update_records(exercise, weight, reps, date, self.records)
        self.records = result.updated_table
        return result

    def discard_temporary(self) -> None:
        """Drop speculative updates and return to the committed table."""
        self.records = self.committed

    # ------------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------------

    async def _persist(self, table: PersonalRecordTable) -> None:
        try:
            async with self._io_lock:
                await self.store.save(table)
        except (StoreUnavailable, OSError) as e:
            logger.error("[%s] Failed to save records: %s", self.instance_id, e)
            self.error = SAVE_ERROR_MESSAGE
            raise SaveFailed(f"{SAVE_ERROR_MESSAGE}: {e}") from e

    async def save_records(self, table: PersonalRecordTable) -> None:
        """
        Persist a table, adopt it locally, and notify other controllers.

        Raises:
            SaveFailed: The store rejected the save; ``records`` keeps the
                value it had before this call
        """
        previous = self.records
        logger.info("[%s] Saving records for %s", self.instance_id, sorted(table))
        try:
            await self._persist(table)
        except SaveFailed:
            self.records = previous
            raise

        self.records = table
        self.committed = table
        self._has_committed = True
        self.error = None
        logger.debug("[%s] Records saved, notifying listeners", self.instance_id)
        self._publish()

    async def update_records_from_completed_workout(self, workout: CompletedWorkout) -> WorkoutUpdate:
        """
        Fold a validated workout into the committed records and persist once.

        The fold starts from the committed table, not from the speculative
        one, so sets already shown as live PRs are counted exactly once.
        A controller that never managed to load refuses to commit: its
        empty fallback table would replace every stored record.

        Raises:
            StoreUnavailable: The records were never loaded successfully
            SaveFailed: The store rejected the save
        """
        if not self._has_committed:
            raise StoreUnavailable(self.error or LOAD_ERROR_MESSAGE)

        logger.debug("[%s] Processing completed workout from %s", self.instance_id, workout.date)
        result = engine.apply_workout(workout, self.committed)

        if result.has_updates:
            await self.save_records(result.updated_table)
            logger.info("[%s] Records updated from completed workout", self.instance_id)
        else:
            self.records = self.committed
            logger.info("[%s] No record updates from completed workout", self.instance_id)

        return result

    async def migrate_from_workout_history(
        self,
        workouts: Iterable[CompletedWorkout],
    ) -> WorkoutUpdate:
        """
        Rebuild records from past workouts on top of what the store holds.

        Safe to run repeatedly: replaying the same history again changes
        nothing and saves nothing.

        Raises:
            StoreUnavailable: The current table could not be read
            SaveFailed: The store rejected the save
        """
        logger.info("[%s] Starting migration from workout history", self.instance_id)
        async with self._io_lock:
            current = await self.store.load()

        result = engine.replay_history(workouts, current)
        if result.has_updates:
            await self._persist(result.updated_table)

        await self.load_records()
        self._publish()
        logger.info("[%s] Migration completed (changed=%s)", self.instance_id, result.has_updates)
        return result

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def delete_rep_record(self, exercise: str, weight: float) -> None:
        """
        Delete the ledger entry of one weight, then reload and publish.

        Raises:
            RecordNotFound: Nothing recorded for that exercise/weight
            StoreUnavailable: The current table could not be read
            SaveFailed: The store rejected the save
        """
        async with self._io_lock:
            current = await self.store.load()

        await self._persist(engine.delete_rep_record(exercise, weight, current))
        logger.info("[%s] Deleted %s record at %s", self.instance_id, exercise, weight)
        await self.load_records()
        self._publish()

    async def delete_all_records_for_exercise(self, exercise: str) -> None:
        """
        Delete every record of one exercise, then reload and publish.

        Raises:
            RecordNotFound: Nothing recorded for that exercise
            StoreUnavailable: The current table could not be read
            SaveFailed: The store rejected the save
        """
        async with self._io_lock:
            current = await self.store.load()

        await self._persist(engine.delete_exercise_records(exercise, current))
        logger.info("[%s] Deleted all records for %s", self.instance_id, exercise)
        await self.load_records()
        self._publish()

    # ------------------------------------------------------------------
    # Session support
    # ------------------------------------------------------------------

    def start_session(self) -> SessionOverlay:
        """Start a session overlay over the committed table and keep it as ``session``."""
        overlay = SessionOverlay()
        overlay.initialize_session(self.committed)
        self.session = overlay
        return overlay

    def end_session(self) -> None:
        """Forget the session in progress (saved or cancelled)."""
        if self.session is not None:
            self.session.clear_session()
        self.session = None

    def check_session_weight_pr(self, exercise: str, weight: float) -> WeightCheck:
        """
        Weight check for a live set, honouring the session ratchet.

        Without a session in progress this is a plain check against the
        committed table.
        """
        if self.session is None:
            return engine.check_weight_pr(exercise, weight, self.committed)
        return self.session.check_session_weight_pr(exercise, weight)

    def update_session_weight(self, exercise: str, weight: float) -> None:
        """Credit a weight record to the session in progress."""
        if self.session is not None:
            self.session.safe_update_session_weight(exercise, weight)

    async def sync_session_baseline(
        self,
        overlay: SessionOverlay,
        exercise_names: Iterable[str],
    ) -> bool:
        """
        Refresh the session baseline for exercises added mid-session.

        Falls back to the committed table when the store cannot be read.

        Returns:
            True if the baseline changed
        """
        try:
            async with self._io_lock:
                table = await self.store.load()
        except (StoreUnavailable, OSError) as e:
            logger.error("[%s] Error syncing session baseline: %s", self.instance_id, e)
            table = self.committed
        except Exception:
            logger.exception("[%s] Unexpected error syncing session baseline", self.instance_id)
            table = self.committed

        return overlay.sync_baseline_with_exercises(exercise_names, table)
