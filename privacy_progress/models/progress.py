"""User progress models"""
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from privacy_progress.models.achievement import AchievementState

# Fixed level width: level = total // 100 + 1
POINTS_PER_LEVEL = 100


class UserProgress(BaseModel):
    """Cumulative gamification state for one user"""
    total_points: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    current_level_points: int = Field(default=0, ge=0, lt=POINTS_PER_LEVEL)
    next_level_points: int = POINTS_PER_LEVEL
    streak_days: int = Field(default=0, ge=0)
    last_activity_date: Optional[date] = None
    completed_action_ids: List[str] = Field(default_factory=list)
    assessment_count: int = Field(default=0, ge=0)
    social_share_count: int = Field(default=0, ge=0)
    best_assessment_score: Optional[int] = Field(default=None, ge=0, le=100)
    challenges_started: int = Field(default=0, ge=0)
    achievements: Dict[str, AchievementState] = Field(default_factory=dict)

    def is_unlocked(self, achievement_id: str) -> bool:
        state = self.achievements.get(achievement_id)
        return bool(state and state.unlocked)

    @property
    def unlocked_achievement_ids(self) -> List[str]:
        return [a.id for a in self.achievements.values() if a.unlocked]


class LevelInfo(BaseModel):
    """Level breakdown derived from a point total"""
    level: int
    current_level_points: int
    next_level_points: int
    points_to_next_level: int
