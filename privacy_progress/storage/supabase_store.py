"""Hosted mirror over Supabase's PostgREST API

Every request goes through the shared circuit breaker and the transient-error
retry policy. Failures surface as RemoteSyncError; the SyncCoordinator is
the only caller and never lets them reach the UI.
"""
import logging
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
import pybreaker
from pydantic import TypeAdapter

from privacy_progress.config import (
    REMOTE_MAX_RETRIES,
    REMOTE_TIMEOUT,
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
)
from privacy_progress.exceptions import ConfigurationError, RemoteSyncError, wrap_external_exception
from privacy_progress.gamification.challenge_tasks import CHALLENGE_TEMPLATE
from privacy_progress.models.sync import (
    RemoteAchievement,
    RemoteChallenge,
    RemoteDailyTask,
    RemoteUserProgress,
)
from privacy_progress.resilience.circuit_breaker import REMOTE_BREAKER, with_circuit_breaker
from privacy_progress.resilience.metrics import record_remote_call
from privacy_progress.resilience.retry import with_retry
from privacy_progress.storage.remote import RemoteStore
from privacy_progress.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)

CHALLENGES_TABLE = "privacy_thirty_day_challenges"
TASKS_TABLE = "privacy_daily_tasks"
PROGRESS_TABLE = "privacy_user_progress"
ACHIEVEMENTS_TABLE = "privacy_achievements"

RETURN_REPRESENTATION = "return=representation"
UPSERT = "resolution=merge-duplicates,return=representation"

_json_payload = TypeAdapter(Any)


def _to_json(payload: Any) -> Any:
    """Make datetimes and dates JSON-safe"""
    return _json_payload.dump_python(payload, mode="json")


class SupabaseRemoteStore(RemoteStore):
    """RemoteStore backed by the hosted privacy_* tables"""

    def __init__(
        self,
        url: str = SUPABASE_URL,
        api_key: str = SUPABASE_ANON_KEY,
        timeout: float = REMOTE_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
        breaker: pybreaker.CircuitBreaker = REMOTE_BREAKER,
        max_retries: int = REMOTE_MAX_RETRIES
    ):
        if not url:
            raise ConfigurationError("SUPABASE_URL is not configured", config_key="SUPABASE_URL")
        self.breaker = breaker
        self.max_retries = max_retries
        self._client = client or httpx.AsyncClient(
            base_url=url.rstrip("/"),
            timeout=timeout,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        operation: str,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        payload: Any = None,
        prefer: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        headers = {"Prefer": prefer} if prefer else None
        body = _to_json(payload) if payload is not None else None

        @with_circuit_breaker(self.breaker)
        @with_retry(max_retries=self.max_retries, operation=operation)
        async def _send() -> List[Dict[str, Any]]:
            response = await self._client.request(
                method, f"/rest/v1/{table}", params=params, json=body, headers=headers
            )
            response.raise_for_status()
            if not response.content:
                return []
            data = response.json()
            return data if isinstance(data, list) else [data]

        start = time.perf_counter()
        try:
            rows = await _send()
        except pybreaker.CircuitBreakerError as e:
            record_remote_call(operation, success=False, duration=time.perf_counter() - start)
            raise RemoteSyncError(
                message=f"Remote mirror unavailable (circuit open) during {operation}",
                operation=operation,
                cause=e
            )
        except Exception as e:
            record_remote_call(operation, success=False, duration=time.perf_counter() - start)
            raise wrap_external_exception(e, operation=operation, context={"table": table})

        record_remote_call(operation, success=True, duration=time.perf_counter() - start)
        return rows

    @staticmethod
    def _single(rows: List[Dict[str, Any]], operation: str) -> Dict[str, Any]:
        if not rows:
            raise RemoteSyncError(message=f"{operation} returned no rows", operation=operation)
        return rows[0]

    # ------------------------------------------------------------------
    # Challenges
    # ------------------------------------------------------------------

    async def create_challenge(self, user_id: str, start_date: Optional[datetime] = None) -> RemoteChallenge:
        rows = await self._request(
            "create_challenge", "POST", CHALLENGES_TABLE,
            payload={
                "user_id": user_id,
                "start_date": start_date or now_utc(),
                "current_day": 1,
                "completed_days": 0,
                "streak": 0,
                "total_points": 0,
                "milestones": {"day7": False, "day14": False, "day21": False, "day30": False},
                "achievements": {},
            },
            prefer=RETURN_REPRESENTATION,
        )
        challenge = RemoteChallenge.model_validate(self._single(rows, "create_challenge"))

        await self._request(
            "create_daily_tasks", "POST", TASKS_TABLE,
            payload=[
                {
                    "id": str(uuid.uuid4()),
                    "challenge_id": challenge.id,
                    "task_key": template.id,
                    "day": template.day,
                    "title": template.title,
                    "description": template.description,
                    "category": template.category.value,
                    "difficulty": template.difficulty.value,
                    "estimated_time": template.estimated_time,
                    "completed": False,
                }
                for template in CHALLENGE_TEMPLATE
            ],
        )
        logger.info(f"[SYNC] Created remote challenge {challenge.id} for user {user_id}")
        return challenge

    async def get_challenge(self, user_id: str) -> Optional[RemoteChallenge]:
        rows = await self._request(
            "get_challenge", "GET", CHALLENGES_TABLE,
            params={"user_id": f"eq.{user_id}", "select": "*", "limit": "1"},
        )
        return RemoteChallenge.model_validate(rows[0]) if rows else None

    async def update_challenge(self, challenge_id: str, fields: Dict[str, Any]) -> RemoteChallenge:
        rows = await self._request(
            "update_challenge", "PATCH", CHALLENGES_TABLE,
            params={"id": f"eq.{challenge_id}"},
            payload={**fields, "updated_at": now_utc()},
            prefer=RETURN_REPRESENTATION,
        )
        return RemoteChallenge.model_validate(self._single(rows, "update_challenge"))

    async def delete_challenge(self, challenge_id: str) -> None:
        await self._request(
            "delete_daily_tasks", "DELETE", TASKS_TABLE,
            params={"challenge_id": f"eq.{challenge_id}"},
        )
        await self._request(
            "delete_challenge", "DELETE", CHALLENGES_TABLE,
            params={"id": f"eq.{challenge_id}"},
        )

    # ------------------------------------------------------------------
    # Daily tasks
    # ------------------------------------------------------------------

    async def get_daily_tasks(self, challenge_id: str) -> List[RemoteDailyTask]:
        rows = await self._request(
            "get_daily_tasks", "GET", TASKS_TABLE,
            params={"challenge_id": f"eq.{challenge_id}", "select": "*", "order": "day.asc"},
        )
        return [RemoteDailyTask.model_validate(row) for row in rows]

    async def complete_task(self, task_id: str, completed_at: Optional[datetime] = None) -> RemoteDailyTask:
        now = now_utc()
        rows = await self._request(
            "complete_task", "PATCH", TASKS_TABLE,
            params={"id": f"eq.{task_id}"},
            payload={"completed": True, "completed_at": completed_at or now, "updated_at": now},
            prefer=RETURN_REPRESENTATION,
        )
        return RemoteDailyTask.model_validate(self._single(rows, "complete_task"))

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    async def get_user_progress(self, user_id: str) -> Optional[RemoteUserProgress]:
        rows = await self._request(
            "get_user_progress", "GET", PROGRESS_TABLE,
            params={"user_id": f"eq.{user_id}", "select": "*", "limit": "1"},
        )
        return RemoteUserProgress.model_validate(rows[0]) if rows else None

    async def update_user_progress(self, user_id: str, fields: Dict[str, Any]) -> RemoteUserProgress:
        rows = await self._request(
            "update_user_progress", "POST", PROGRESS_TABLE,
            params={"on_conflict": "user_id"},
            payload={**fields, "user_id": user_id, "updated_at": now_utc()},
            prefer=UPSERT,
        )
        return RemoteUserProgress.model_validate(self._single(rows, "update_user_progress"))

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------

    async def get_user_achievements(self, user_id: str) -> List[RemoteAchievement]:
        rows = await self._request(
            "get_user_achievements", "GET", ACHIEVEMENTS_TABLE,
            params={"user_id": f"eq.{user_id}", "select": "*"},
        )
        return [RemoteAchievement.model_validate(row) for row in rows]

    async def create_achievement(self, achievement: RemoteAchievement) -> RemoteAchievement:
        rows = await self._request(
            "create_achievement", "POST", ACHIEVEMENTS_TABLE,
            payload=achievement.model_dump(),
            prefer=RETURN_REPRESENTATION,
        )
        return RemoteAchievement.model_validate(self._single(rows, "create_achievement"))

    async def unlock_achievement(
        self,
        user_id: str,
        achievement_id: str,
        unlocked_at: Optional[datetime] = None
    ) -> RemoteAchievement:
        rows = await self._request(
            "unlock_achievement", "POST", ACHIEVEMENTS_TABLE,
            params={"on_conflict": "user_id,achievement_id"},
            payload={
                "user_id": user_id,
                "achievement_id": achievement_id,
                "unlocked": True,
                "unlocked_at": unlocked_at or now_utc(),
            },
            prefer=UPSERT,
        )
        return RemoteAchievement.model_validate(self._single(rows, "unlock_achievement"))

    async def lock_achievement(self, user_id: str, achievement_id: str) -> None:
        await self._request(
            "lock_achievement", "PATCH", ACHIEVEMENTS_TABLE,
            params={"user_id": f"eq.{user_id}", "achievement_id": f"eq.{achievement_id}"},
            payload={"unlocked": False, "unlocked_at": None},
        )
