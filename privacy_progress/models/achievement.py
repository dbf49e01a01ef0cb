"""Achievement models for gamification"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AchievementCategory(str, Enum):
    """Achievement categories"""
    ASSESSMENT = "assessment"
    ACTION = "action"
    STREAK = "streak"
    SOCIAL = "social"
    SECURITY = "security"


class AchievementState(BaseModel):
    """Per-user unlock state of one catalog entry"""
    id: str
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None


class AchievementView(BaseModel):
    """Catalog entry joined with its unlock state, for display"""
    id: str
    title: str
    description: str
    icon: str
    points: int
    category: AchievementCategory
    catalog: str
    unlocked: bool
    unlocked_at: Optional[datetime] = None
