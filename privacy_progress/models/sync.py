"""Sync bookkeeping and remote mirror record models

Remote records use the column names of the hosted tables
(privacy_thirty_day_challenges, privacy_daily_tasks,
privacy_user_progress, privacy_achievements).
"""
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RecordKind(str, Enum):
    """Locally owned records that are mirrored remotely"""
    PROGRESS = "progress"
    CHALLENGE = "challenge"


class SyncState(BaseModel):
    """Local bookkeeping of what still has to reach the remote mirror"""
    dirty: List[RecordKind] = Field(default_factory=list)
    last_synced_at: Optional[datetime] = None

    def mark_dirty(self, kind: RecordKind) -> None:
        if kind not in self.dirty:
            self.dirty.append(kind)

    def mark_clean(self, kind: RecordKind) -> None:
        if kind in self.dirty:
            self.dirty.remove(kind)


class SyncDelta(BaseModel):
    """Describes one local mutation to mirror"""
    kinds: List[RecordKind]
    reason: str


class RemoteChallenge(BaseModel):
    id: str
    user_id: str
    start_date: Optional[datetime] = None
    current_day: int = 1
    completed_days: int = 0
    streak: int = 0
    total_points: int = 0
    milestones: Dict[str, bool] = Field(default_factory=dict)
    achievements: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None


class RemoteDailyTask(BaseModel):
    id: str
    challenge_id: str
    task_key: str
    day: int
    title: str = ""
    difficulty: str = "easy"
    completed: bool = False
    completed_at: Optional[datetime] = None


class RemoteUserProgress(BaseModel):
    user_id: str
    total_points: int = 0
    level: int = 1
    current_level_points: int = 0
    next_level_points: int = 100
    streak: int = 0
    last_activity_date: Optional[date] = None
    assessment_count: int = 0
    social_shares: int = 0
    completed_actions: List[str] = Field(default_factory=list)
    best_assessment_score: Optional[int] = None
    challenges_started: int = 0
    updated_at: Optional[datetime] = None


class RemoteAchievement(BaseModel):
    user_id: str
    achievement_id: str
    title: str = ""
    points: int = 0
    category: str = ""
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None
