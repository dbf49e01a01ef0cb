"""Remote progress mirror

RemoteStore is the record-CRUD surface of the hosted mirror. It is never a
second authority: the SyncCoordinator pushes whole local records into it and
only reads it back on a cold start.

This module also holds the mapping between local records and remote rows and
an in-memory implementation for offline sessions and tests.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from privacy_progress.gamification.challenge_tasks import CHALLENGE_TEMPLATE, generate_daily_tasks
from privacy_progress.gamification.point_ledger import apply_level
from privacy_progress.models.achievement import AchievementState
from privacy_progress.models.challenge import Challenge, Milestones
from privacy_progress.models.progress import UserProgress
from privacy_progress.models.sync import (
    RemoteAchievement,
    RemoteChallenge,
    RemoteDailyTask,
    RemoteUserProgress,
)
from privacy_progress.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


class RemoteStore(ABC):
    """Remote collaborator surface (async)"""

    # Challenges
    @abstractmethod
    async def create_challenge(self, user_id: str, start_date: Optional[datetime] = None) -> RemoteChallenge:
        """Create the user's challenge row and seed its 30 task rows"""

    @abstractmethod
    async def get_challenge(self, user_id: str) -> Optional[RemoteChallenge]:
        ...

    @abstractmethod
    async def update_challenge(self, challenge_id: str, fields: Dict[str, Any]) -> RemoteChallenge:
        ...

    @abstractmethod
    async def delete_challenge(self, challenge_id: str) -> None:
        """Delete a challenge row and its task rows"""

    # Daily tasks
    @abstractmethod
    async def get_daily_tasks(self, challenge_id: str) -> List[RemoteDailyTask]:
        ...

    @abstractmethod
    async def complete_task(self, task_id: str, completed_at: Optional[datetime] = None) -> RemoteDailyTask:
        ...

    # Progress
    @abstractmethod
    async def get_user_progress(self, user_id: str) -> Optional[RemoteUserProgress]:
        ...

    @abstractmethod
    async def update_user_progress(self, user_id: str, fields: Dict[str, Any]) -> RemoteUserProgress:
        """Upsert the user's progress row"""

    # Achievements
    @abstractmethod
    async def get_user_achievements(self, user_id: str) -> List[RemoteAchievement]:
        ...

    @abstractmethod
    async def create_achievement(self, achievement: RemoteAchievement) -> RemoteAchievement:
        ...

    @abstractmethod
    async def unlock_achievement(
        self,
        user_id: str,
        achievement_id: str,
        unlocked_at: Optional[datetime] = None
    ) -> RemoteAchievement:
        ...

    @abstractmethod
    async def lock_achievement(self, user_id: str, achievement_id: str) -> None:
        """Clear an unlock, used when progress is reset"""

    async def aclose(self) -> None:
        """Release network resources"""


# ==========================================
# Local <-> remote mapping
# ==========================================

def challenge_fields(challenge: Challenge) -> Dict[str, Any]:
    """Whole-record update payload for a challenge row"""
    return {
        "start_date": challenge.start_date,
        "current_day": challenge.current_day,
        "completed_days": challenge.completed_day_count,
        "streak": challenge.streak,
        "total_points": challenge.total_points,
        "milestones": challenge.milestones.model_dump(),
        "achievements": {
            key: state.model_dump(mode="json") for key, state in challenge.achievements.items()
        },
    }


def progress_fields(progress: UserProgress) -> Dict[str, Any]:
    """Whole-record upsert payload for a progress row"""
    return {
        "total_points": progress.total_points,
        "level": progress.level,
        "current_level_points": progress.current_level_points,
        "next_level_points": progress.next_level_points,
        "streak": progress.streak_days,
        "last_activity_date": progress.last_activity_date,
        "assessment_count": progress.assessment_count,
        "social_shares": progress.social_share_count,
        "completed_actions": list(progress.completed_action_ids),
        "best_assessment_score": progress.best_assessment_score,
        "challenges_started": progress.challenges_started,
    }


def _achievement_states(raw: Dict[str, Any]) -> Dict[str, AchievementState]:
    states = {}
    for key, value in raw.items():
        if isinstance(value, dict):
            states[key] = AchievementState(id=key, **{k: v for k, v in value.items() if k != "id"})
        elif isinstance(value, bool):
            # Legacy rows stored bare flags without timestamps
            states[key] = AchievementState(id=key, unlocked=value)
    return states


def challenge_from_remote(remote: RemoteChallenge, tasks: List[RemoteDailyTask]) -> Challenge:
    """
    Rebuild a local Challenge from remote rows

    Task content always comes from the local template; remote rows only
    contribute completion state, matched by task_key.
    """
    completed = {t.task_key: t for t in tasks if t.completed}
    local_tasks = generate_daily_tasks()
    for task in local_tasks:
        row = completed.get(task.id)
        if row is not None:
            task.completed = True
            task.completed_at = row.completed_at

    known_keys = {t.id for t in CHALLENGE_TEMPLATE}
    unknown = set(completed) - known_keys
    if unknown:
        logger.warning(f"[SYNC] Ignoring remote tasks not in the template: {sorted(unknown)}")

    milestone_fields = set(Milestones.model_fields)
    return Challenge(
        start_date=remote.start_date,
        streak=remote.streak,
        total_points=remote.total_points,
        tasks=local_tasks,
        milestones=Milestones(**{k: v for k, v in remote.milestones.items() if k in milestone_fields}),
        achievements=_achievement_states(remote.achievements),
    )


def progress_from_remote(remote: RemoteUserProgress, achievements: List[RemoteAchievement]) -> UserProgress:
    """Rebuild a local UserProgress from remote rows, re-deriving the level"""
    progress = UserProgress(
        total_points=max(remote.total_points, 0),
        streak_days=max(remote.streak, 0),
        last_activity_date=remote.last_activity_date,
        completed_action_ids=list(dict.fromkeys(remote.completed_actions)),
        assessment_count=max(remote.assessment_count, 0),
        social_share_count=max(remote.social_shares, 0),
        best_assessment_score=remote.best_assessment_score,
        challenges_started=max(remote.challenges_started, 0),
        achievements={
            a.achievement_id: AchievementState(id=a.achievement_id, unlocked=True, unlocked_at=a.unlocked_at)
            for a in achievements if a.unlocked
        },
    )
    return apply_level(progress)


# ==========================================
# In-memory implementation
# ==========================================

class InMemoryRemoteStore(RemoteStore):
    """
    Process-local mirror

    Used when no hosted mirror is configured and as the test double. Set
    fail_with to an exception (optionally limited to fail_operations) to
    simulate an unreachable service.
    """

    def __init__(self):
        self.challenges: Dict[str, RemoteChallenge] = {}
        self.tasks: Dict[str, RemoteDailyTask] = {}
        self.progress: Dict[str, RemoteUserProgress] = {}
        self.achievements: Dict[str, Dict[str, RemoteAchievement]] = {}
        self.calls: List[str] = []
        self.fail_with: Optional[Exception] = None
        self.fail_operations: Optional[set] = None

    def _call(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail_with is not None and (
            self.fail_operations is None or operation in self.fail_operations
        ):
            raise self.fail_with

    async def create_challenge(self, user_id: str, start_date: Optional[datetime] = None) -> RemoteChallenge:
        self._call("create_challenge")
        challenge_id = str(uuid.uuid4())
        challenge = RemoteChallenge(
            id=challenge_id,
            user_id=user_id,
            start_date=start_date or now_utc(),
            updated_at=now_utc(),
        )
        self.challenges[challenge_id] = challenge
        for template in CHALLENGE_TEMPLATE:
            task_id = str(uuid.uuid4())
            self.tasks[task_id] = RemoteDailyTask(
                id=task_id,
                challenge_id=challenge_id,
                task_key=template.id,
                day=template.day,
                title=template.title,
                difficulty=template.difficulty.value,
            )
        return challenge.model_copy(deep=True)

    async def get_challenge(self, user_id: str) -> Optional[RemoteChallenge]:
        self._call("get_challenge")
        for challenge in self.challenges.values():
            if challenge.user_id == user_id:
                return challenge.model_copy(deep=True)
        return None

    async def update_challenge(self, challenge_id: str, fields: Dict[str, Any]) -> RemoteChallenge:
        self._call("update_challenge")
        current = self.challenges[challenge_id]
        updated = current.model_copy(update={**fields, "updated_at": now_utc()}, deep=True)
        self.challenges[challenge_id] = RemoteChallenge.model_validate(updated.model_dump())
        return self.challenges[challenge_id].model_copy(deep=True)

    async def delete_challenge(self, challenge_id: str) -> None:
        self._call("delete_challenge")
        self.tasks = {k: t for k, t in self.tasks.items() if t.challenge_id != challenge_id}
        self.challenges.pop(challenge_id, None)

    async def get_daily_tasks(self, challenge_id: str) -> List[RemoteDailyTask]:
        self._call("get_daily_tasks")
        rows = [t.model_copy(deep=True) for t in self.tasks.values() if t.challenge_id == challenge_id]
        return sorted(rows, key=lambda t: t.day)

    async def complete_task(self, task_id: str, completed_at: Optional[datetime] = None) -> RemoteDailyTask:
        self._call("complete_task")
        task = self.tasks[task_id]
        task.completed = True
        task.completed_at = completed_at or now_utc()
        return task.model_copy(deep=True)

    async def get_user_progress(self, user_id: str) -> Optional[RemoteUserProgress]:
        self._call("get_user_progress")
        row = self.progress.get(user_id)
        return row.model_copy(deep=True) if row else None

    async def update_user_progress(self, user_id: str, fields: Dict[str, Any]) -> RemoteUserProgress:
        self._call("update_user_progress")
        current = self.progress.get(user_id) or RemoteUserProgress(user_id=user_id)
        data = {**current.model_dump(), **fields, "user_id": user_id, "updated_at": now_utc()}
        self.progress[user_id] = RemoteUserProgress.model_validate(data)
        return self.progress[user_id].model_copy(deep=True)

    async def get_user_achievements(self, user_id: str) -> List[RemoteAchievement]:
        self._call("get_user_achievements")
        return [a.model_copy(deep=True) for a in self.achievements.get(user_id, {}).values()]

    async def create_achievement(self, achievement: RemoteAchievement) -> RemoteAchievement:
        self._call("create_achievement")
        rows = self.achievements.setdefault(achievement.user_id, {})
        rows[achievement.achievement_id] = achievement.model_copy(deep=True)
        return achievement.model_copy(deep=True)

    async def unlock_achievement(
        self,
        user_id: str,
        achievement_id: str,
        unlocked_at: Optional[datetime] = None
    ) -> RemoteAchievement:
        self._call("unlock_achievement")
        rows = self.achievements.setdefault(user_id, {})
        row = rows.get(achievement_id) or RemoteAchievement(user_id=user_id, achievement_id=achievement_id)
        row.unlocked = True
        row.unlocked_at = unlocked_at or now_utc()
        rows[achievement_id] = row
        return row.model_copy(deep=True)

    async def lock_achievement(self, user_id: str, achievement_id: str) -> None:
        self._call("lock_achievement")
        row = self.achievements.get(user_id, {}).get(achievement_id)
        if row is not None:
            row.unlocked = False
            row.unlocked_at = None
