"""Pydantic data models for progress, achievements, challenges and sync"""
from privacy_progress.models.achievement import AchievementCategory, AchievementState, AchievementView
from privacy_progress.models.challenge import (
    CHALLENGE_DAYS,
    DIFFICULTY_POINTS,
    Challenge,
    ChallengeStats,
    ChallengeStatus,
    DailyTask,
    Milestones,
    TaskCategory,
    TaskDifficulty,
    TaskResource,
)
from privacy_progress.models.progress import POINTS_PER_LEVEL, LevelInfo, UserProgress
from privacy_progress.models.sync import RecordKind, SyncDelta, SyncState

__all__ = [
    "AchievementCategory",
    "AchievementState",
    "AchievementView",
    "CHALLENGE_DAYS",
    "DIFFICULTY_POINTS",
    "Challenge",
    "ChallengeStats",
    "ChallengeStatus",
    "DailyTask",
    "Milestones",
    "TaskCategory",
    "TaskDifficulty",
    "TaskResource",
    "POINTS_PER_LEVEL",
    "LevelInfo",
    "UserProgress",
    "RecordKind",
    "SyncDelta",
    "SyncState",
]
