"""Session services: the engine facade, remote sync and the session container"""

from privacy_progress.services.container import SessionContainer, open_session
from privacy_progress.services.progress_service import ActionResult, ProgressEngine
from privacy_progress.services.sync_service import SyncCoordinator

__all__ = [
    "SessionContainer",
    "open_session",
    "ActionResult",
    "ProgressEngine",
    "SyncCoordinator",
]
