"""Local persisted state (the source of truth)

Key-value storage of JSON blobs, one namespace per user:
- progress    -> UserProgress
- challenge   -> Challenge with its embedded DailyTasks
- sync_state  -> SyncState (records not yet mirrored remotely)

Unreadable blobs are treated as absent: the caller gets defaults and the
session continues as a fresh one.
"""
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel

from privacy_progress.config import DATA_PATH
from privacy_progress.exceptions import CorruptStateError, StorageError
from privacy_progress.models.challenge import Challenge
from privacy_progress.models.progress import UserProgress
from privacy_progress.models.sync import SyncState
from privacy_progress.observability.metrics import record_store_fallback

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

PROGRESS_KEY = "progress"
CHALLENGE_KEY = "challenge"
SYNC_STATE_KEY = "sync_state"


class StorageBackend(ABC):
    """Raw string storage keyed by record name"""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    def commit(self, changes: Dict[str, Optional[str]]) -> None:
        """
        Apply several writes (None deletes) as one unit

        If any write fails, the keys already written are restored to their
        previous values before the error is re-raised.
        """
        previous = {key: self.read(key) for key in changes}
        applied = []
        try:
            for key, value in changes.items():
                if value is None:
                    self.delete(key)
                else:
                    self.write(key, value)
                applied.append(key)
        except Exception:
            for key in reversed(applied):
                if previous[key] is None:
                    self.delete(key)
                else:
                    self.write(key, previous[key])
            raise


class MemoryBackend(StorageBackend):
    """Process-local backend (tests, ephemeral sessions)"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def write(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileBackend(StorageBackend):
    """One JSON file per key inside the user's data directory"""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"[LOCAL_STORE] Could not read {path}: {e}")
            return None

    def _stage(self, key: str, value: str) -> str:
        """Write value to a temp file beside its target and return the temp path"""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(
                message=f"Failed to write {self._path(key)}: {e}",
                operation="local_store.write",
                context={"key": key},
                cause=e
            )
        return tmp_name

    def write(self, key: str, value: str) -> None:
        self.commit({key: value})

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def commit(self, changes: Dict[str, Optional[str]]) -> None:
        """
        Stage every blob to a temp file, then rename them all into place

        A failure while staging leaves every existing file untouched.
        """
        staged: Dict[str, str] = {}
        try:
            for key, value in changes.items():
                if value is not None:
                    staged[key] = self._stage(key, value)
        except StorageError:
            for tmp_name in staged.values():
                Path(tmp_name).unlink(missing_ok=True)
            raise

        for key, value in changes.items():
            if value is None:
                self.delete(key)
            else:
                os.replace(staged[key], self._path(key))


class LocalStore:
    """
    Typed access to a user's persisted records.

    Mutations made inside transaction() are buffered and written once when
    the outermost block exits, so a multi-step action is committed as one
    unit. The store's lock is also the session's single-writer lock.
    """

    def __init__(self, backend: StorageBackend, user_id: Optional[str] = None):
        self.backend = backend
        self.user_id = user_id
        self._lock = threading.RLock()
        self._depth = 0
        self._pending: Dict[str, Optional[str]] = {}

    @classmethod
    def for_user(cls, user_id: str, data_path: Path = DATA_PATH) -> "LocalStore":
        """File-backed store under DATA_PATH/<user_id>/"""
        return cls(JsonFileBackend(Path(data_path) / user_id), user_id=user_id)

    @classmethod
    def in_memory(cls, user_id: Optional[str] = None) -> "LocalStore":
        return cls(MemoryBackend(), user_id=user_id)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["LocalStore"]:
        """Serialize and batch a read-modify-write sequence"""
        with self._lock:
            self._depth += 1
            try:
                yield self
            except BaseException:
                if self._depth == 1:
                    # Nothing reaches the backend if the action failed midway
                    self._pending.clear()
                raise
            else:
                if self._depth == 1:
                    self._flush()
            finally:
                self._depth -= 1

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _flush(self) -> None:
        pending, self._pending = self._pending, {}
        if not pending:
            return
        # All keys land together or none do
        self.backend.commit(pending)
        logger.debug(f"[LOCAL_STORE] Committed {sorted(pending)} for user {self.user_id}")

    def _read(self, key: str) -> Optional[str]:
        with self._lock:
            if key in self._pending:
                return self._pending[key]
            return self.backend.read(key)

    def _write(self, key: str, value: Optional[str]) -> None:
        with self._lock:
            if self._depth:
                self._pending[key] = value
            elif value is None:
                self.backend.delete(key)
            else:
                self.backend.write(key, value)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def _decode(self, key: str, raw: str, model: Type[M]) -> M:
        try:
            return model.model_validate_json(raw)
        except (pydantic.ValidationError, ValueError) as e:
            raise CorruptStateError(
                message=f"Persisted '{key}' record is unreadable",
                key=key,
                user_id=self.user_id,
                operation="local_store.load",
                cause=e
            )

    def _load(self, key: str, model: Type[M]) -> Optional[M]:
        raw = self._read(key)
        if raw is None:
            return None
        try:
            return self._decode(key, raw, model)
        except CorruptStateError:
            logger.warning(
                f"[LOCAL_STORE] Discarding unreadable '{key}' for user {self.user_id}; using defaults"
            )
            record_store_fallback(key)
            return None

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def load_progress(self) -> UserProgress:
        return self._load(PROGRESS_KEY, UserProgress) or UserProgress()

    def save_progress(self, progress: UserProgress) -> None:
        self._write(PROGRESS_KEY, progress.model_dump_json())

    def load_challenge(self) -> Optional[Challenge]:
        return self._load(CHALLENGE_KEY, Challenge)

    def save_challenge(self, challenge: Challenge) -> None:
        self._write(CHALLENGE_KEY, challenge.model_dump_json())

    def load_sync_state(self) -> SyncState:
        return self._load(SYNC_STATE_KEY, SyncState) or SyncState()

    def save_sync_state(self, state: SyncState) -> None:
        self._write(SYNC_STATE_KEY, state.model_dump_json())

    def clear(self) -> None:
        """Forget everything stored for this user"""
        with self.transaction():
            for key in (PROGRESS_KEY, CHALLENGE_KEY, SYNC_STATE_KEY):
                self._write(key, None)
