"""
Gamification core for the privacy progress engine

- Point ledger and fixed-width levels
- Calendar-day streak tracking
- Data-driven achievement catalogs
- The 30-day privacy challenge
"""

from privacy_progress.gamification.point_ledger import AwardResult, PointLedger, calculate_level_from_points
from privacy_progress.gamification.streak_system import StreakTracker
from privacy_progress.gamification.achievement_system import (
    CHALLENGE_ACHIEVEMENTS,
    GENERAL_ACHIEVEMENTS,
    AchievementContext,
    AchievementDefinition,
    AchievementEngine,
)
from privacy_progress.gamification.challenges import ChallengeProgressEvent, ChallengeTracker

__all__ = [
    "AwardResult",
    "PointLedger",
    "calculate_level_from_points",
    "StreakTracker",
    "CHALLENGE_ACHIEVEMENTS",
    "GENERAL_ACHIEVEMENTS",
    "AchievementContext",
    "AchievementDefinition",
    "AchievementEngine",
    "ChallengeProgressEvent",
    "ChallengeTracker",
]
