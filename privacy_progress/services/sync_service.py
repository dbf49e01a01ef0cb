"""
SyncCoordinator - Remote Mirror Synchronization

Local state is the source of truth. The remote mirror receives whole-record
snapshots after local commits and is read back only on a cold start.

Push path:
    push_mutation() marks the touched records dirty in local sync_state
    (synchronously) and schedules one background drain on the running loop.
    The drain pushes snapshots read from the local store and clears the dirty
    mark once a push succeeds. Failures are logged and the mark stays, so the
    next drain or session start retries.

Cold start:
    load_from_remote() pushes records left dirty by an earlier session
    (local wins) and overwrites clean records from the remote copy, unless a
    local mutation already happened in this session.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Set

from privacy_progress.gamification.challenges import recompute_progress
from privacy_progress.models.sync import RecordKind, SyncDelta
from privacy_progress.observability.metrics import record_rehydration, record_sync_push
from privacy_progress.storage.local_store import LocalStore
from privacy_progress.storage.remote import (
    RemoteStore,
    challenge_fields,
    challenge_from_remote,
    progress_fields,
    progress_from_remote,
)
from privacy_progress.utils.datetime_helpers import Clock, ensure_utc

logger = logging.getLogger(__name__)

RehydrateHandler = Callable[[Set[RecordKind]], None]


class SyncCoordinator:
    """
    Mirrors one session's local records to a RemoteStore.

    With no remote configured every method is a cheap no-op apart from the
    dirty bookkeeping, so an offline session keeps a record of what to push
    once a mirror becomes available.
    """

    def __init__(self, store: LocalStore, remote: Optional[RemoteStore], clock: Clock):
        self.store = store
        self.remote = remote
        self.clock = clock
        self._mutated_this_session = False
        self._versions: Dict[RecordKind, int] = {kind: 0 for kind in RecordKind}
        self._drain_lock = asyncio.Lock()
        self._drain_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._handlers: List[RehydrateHandler] = []
        logger.debug("SyncCoordinator initialized")

    @property
    def enabled(self) -> bool:
        return self.remote is not None

    @property
    def mutated_this_session(self) -> bool:
        return self._mutated_this_session

    def on_rehydrate(self, handler: RehydrateHandler) -> RehydrateHandler:
        """Register a callback run after remote records replace local ones"""
        self._handlers.append(handler)
        return handler

    def pending(self) -> List[RecordKind]:
        """Record kinds with local changes not yet mirrored"""
        return list(self.store.load_sync_state().dirty)

    # ------------------------------------------------------------------
    # Push path
    # ------------------------------------------------------------------

    def push_mutation(self, user_id: str, delta: SyncDelta) -> Optional[asyncio.Task]:
        """
        Record a committed local mutation and mirror it in the background

        Never blocks and never raises because of the remote side. Returns the
        drain task when one is scheduled (tests may await it).
        """
        self._mutated_this_session = True
        with self.store.transaction():
            state = self.store.load_sync_state()
            for kind in delta.kinds:
                state.mark_dirty(kind)
                self._versions[kind] += 1
            self.store.save_sync_state(state)

        if self.remote is None:
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"[SYNC] No running loop; {delta.reason} stays queued for the next drain")
            return None

        if self._drain_task is not None and not self._drain_task.done():
            # The running drain re-reads dirty marks before it finishes
            return self._drain_task

        task = loop.create_task(self._drain(user_id), name=f"progress-sync-{user_id}")
        self._drain_task = task
        self._tasks.add(task)
        task.add_done_callback(self._on_drain_done)
        logger.debug(f"[SYNC] Scheduled drain after {delta.reason}")
        return task

    def _on_drain_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info("[SYNC] Drain cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"[SYNC] Drain task crashed: {error}", exc_info=error)

    async def drain(self, user_id: str) -> bool:
        """
        Push every dirty record now

        Returns:
            True when nothing is left dirty
        """
        if self.remote is None:
            return not self.pending()
        if self._drain_task is not None and not self._drain_task.done():
            await asyncio.gather(self._drain_task, return_exceptions=True)
        return await self._drain(user_id)

    async def _drain(self, user_id: str) -> bool:
        async with self._drain_lock:
            while True:
                dirty = self.store.load_sync_state().dirty
                if not dirty:
                    return True
                for kind in list(dirty):
                    version = self._versions[kind]
                    if not await self._push_kind(user_id, kind):
                        return False
                    if self._versions[kind] == version:
                        self._mark_clean(kind)

    def _mark_clean(self, kind: RecordKind) -> None:
        with self.store.transaction():
            state = self.store.load_sync_state()
            state.mark_clean(kind)
            state.last_synced_at = self.clock.now()
            self.store.save_sync_state(state)

    async def _push_kind(self, user_id: str, kind: RecordKind) -> bool:
        try:
            if kind == RecordKind.CHALLENGE:
                await self._push_challenge(user_id)
            else:
                await self._push_progress(user_id)
        except Exception as e:
            # Remote trouble never reaches the caller; the record stays dirty
            logger.warning(
                f"[SYNC] Failed to push {kind.value} for user {user_id}: {type(e).__name__}: {e}"
            )
            record_sync_push(kind.value, success=False)
            return False

        record_sync_push(kind.value, success=True)
        logger.debug(f"[SYNC] Pushed {kind.value} for user {user_id}")
        return True

    async def _push_challenge(self, user_id: str) -> None:
        challenge = self.store.load_challenge()
        remote_challenge = await self.remote.get_challenge(user_id)

        if challenge is None or not challenge.has_started:
            if remote_challenge is not None:
                await self.remote.delete_challenge(remote_challenge.id)
                logger.info(f"[SYNC] Deleted remote challenge {remote_challenge.id} after reset")
            return

        if remote_challenge is not None and ensure_utc(remote_challenge.start_date) != ensure_utc(challenge.start_date):
            # Remote row belongs to an earlier challenge lifetime
            await self.remote.delete_challenge(remote_challenge.id)
            remote_challenge = None
        if remote_challenge is None:
            remote_challenge = await self.remote.create_challenge(user_id, challenge.start_date)

        await self.remote.update_challenge(remote_challenge.id, challenge_fields(challenge))

        remote_tasks = {t.task_key: t for t in await self.remote.get_daily_tasks(remote_challenge.id)}
        for task in challenge.completed_tasks:
            row = remote_tasks.get(task.id)
            if row is None:
                logger.warning(f"[SYNC] Remote challenge has no row for task {task.id}")
                continue
            if not row.completed:
                await self.remote.complete_task(row.id, task.completed_at)

    async def _push_progress(self, user_id: str) -> None:
        progress = self.store.load_progress()
        await self.remote.update_user_progress(user_id, progress_fields(progress))

        remote_unlocked = {
            a.achievement_id for a in await self.remote.get_user_achievements(user_id) if a.unlocked
        }
        local_unlocked = {state.id for state in progress.achievements.values() if state.unlocked}
        for state in progress.achievements.values():
            if state.unlocked and state.id not in remote_unlocked:
                await self.remote.unlock_achievement(user_id, state.id, state.unlocked_at)
        # Only a progress reset locks achievements again
        for achievement_id in sorted(remote_unlocked - local_unlocked):
            await self.remote.lock_achievement(user_id, achievement_id)

    # ------------------------------------------------------------------
    # Cold start
    # ------------------------------------------------------------------

    async def load_from_remote(self, user_id: str) -> Set[RecordKind]:
        """
        Rehydrate local records from the remote mirror

        Returns:
            Record kinds that were replaced by their remote copy
        """
        if self.remote is None:
            return set()

        dirty = set(self.store.load_sync_state().dirty)
        if dirty:
            logger.info(
                f"[SYNC] Local changes from a previous session win for {sorted(k.value for k in dirty)}"
            )
            for kind in dirty:
                record_rehydration(kind.value, "local_wins")
            await self.drain(user_id)

        applied: Set[RecordKind] = set()
        for kind in RecordKind:
            if kind in dirty:
                continue
            try:
                record = await self._fetch(user_id, kind)
            except Exception as e:
                logger.warning(
                    f"[SYNC] Could not load {kind.value} for user {user_id}: {type(e).__name__}: {e}"
                )
                record_rehydration(kind.value, "failed")
                continue

            # No awaits below: a mutation cannot slip in between check and write
            if self._mutated_this_session or kind in self.store.load_sync_state().dirty:
                record_rehydration(kind.value, "skipped")
                continue
            if record is None:
                record_rehydration(kind.value, "absent")
                continue

            with self.store.transaction():
                if kind == RecordKind.CHALLENGE:
                    self.store.save_challenge(record)
                else:
                    self.store.save_progress(record)
            applied.add(kind)
            record_rehydration(kind.value, "applied")
            logger.info(f"[SYNC] Rehydrated {kind.value} for user {user_id} from remote")

        if applied:
            for handler in self._handlers:
                handler(applied)
        return applied

    async def _fetch(self, user_id: str, kind: RecordKind):
        if kind == RecordKind.CHALLENGE:
            remote_challenge = await self.remote.get_challenge(user_id)
            if remote_challenge is None:
                return None
            tasks = await self.remote.get_daily_tasks(remote_challenge.id)
            return recompute_progress(challenge_from_remote(remote_challenge, tasks), self.clock)

        remote_progress = await self.remote.get_user_progress(user_id)
        if remote_progress is None:
            return None
        achievements = await self.remote.get_user_achievements(user_id)
        return progress_from_remote(remote_progress, achievements)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Wait for in-flight pushes and release the remote client"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self.remote is not None:
            await self.remote.aclose()
