"""
Session Container - Dependency Injection Container

One container per user session. It owns the session's clock, local store,
remote mirror, sync coordinator and engine, builds them lazily on first
access and tears them down in close(). There is no module-level instance.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import logging

from privacy_progress.config import DATA_PATH, remote_configured
from privacy_progress.storage.local_store import LocalStore
from privacy_progress.storage.remote import RemoteStore
from privacy_progress.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)


@dataclass
class SessionContainer:
    """
    Dependency container for one user session.

    Infrastructure (store, remote, clock) can be injected; anything not
    injected is created from configuration on first access.
    """

    user_id: str
    timezone: Optional[str] = None
    data_path: Path = DATA_PATH

    # Infrastructure dependencies (optional injection)
    store: Optional[LocalStore] = None
    remote: Optional[RemoteStore] = None
    clock: Optional[Clock] = None
    use_configured_remote: bool = True

    # Services (lazy-loaded via properties)
    _sync: Optional[object] = field(default=None, init=False, repr=False)
    _engine: Optional[object] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.clock is None:
            self.clock = Clock(self.timezone)
        if self.store is None:
            self.store = LocalStore.for_user(self.user_id, self.data_path)
        if self.remote is None and self.use_configured_remote and remote_configured():
            from privacy_progress.storage.supabase_store import SupabaseRemoteStore
            self.remote = SupabaseRemoteStore()
            logger.debug("SupabaseRemoteStore instantiated")

    @property
    def sync(self):
        """Get SyncCoordinator instance (lazy-loaded)"""
        if self._sync is None:
            from privacy_progress.services.sync_service import SyncCoordinator
            self._sync = SyncCoordinator(self.store, self.remote, self.clock)
            logger.debug("SyncCoordinator instantiated")
        return self._sync

    @property
    def engine(self):
        """Get ProgressEngine instance (lazy-loaded)"""
        if self._engine is None:
            from privacy_progress.services.progress_service import ProgressEngine
            self._engine = ProgressEngine(self.user_id, self.store, self.clock, self.sync)
            logger.debug("ProgressEngine instantiated")
        return self._engine

    async def start(self):
        """Rehydrate from the remote mirror and return the engine"""
        engine = self.engine
        await engine.load_from_remote()
        logger.info(f"Session started for user {self.user_id}")
        return engine

    async def close(self) -> None:
        """Flush in-flight pushes and release the remote client"""
        if self._sync is not None:
            await self._sync.close()
        elif self.remote is not None:
            await self.remote.aclose()
        logger.info(f"Session closed for user {self.user_id}")


async def open_session(
    user_id: str,
    timezone: Optional[str] = None,
    remote: Optional[RemoteStore] = None,
    store: Optional[LocalStore] = None,
    clock: Optional[Clock] = None
) -> SessionContainer:
    """
    Build a session container and run cold-start rehydration.

    Args:
        user_id: Identity of the signed-in user
        timezone: IANA zone for calendar-day math (None uses DEFAULT_TIMEZONE)
        remote: Remote mirror to use instead of the configured one
        store: Local store to use instead of DATA_PATH/<user_id>/
        clock: Clock to use instead of the real one

    Returns:
        SessionContainer with a ready engine
    """
    container = SessionContainer(
        user_id=user_id,
        timezone=timezone,
        store=store,
        remote=remote,
        clock=clock,
    )
    await container.start()
    return container
