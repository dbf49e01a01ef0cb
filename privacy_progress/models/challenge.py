"""30-day challenge models"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from privacy_progress.models.achievement import AchievementState

CHALLENGE_DAYS = 30
MILESTONE_DAYS = (7, 14, 21, 30)


class TaskDifficulty(str, Enum):
    """Task difficulty, mapped to a point value"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DIFFICULTY_POINTS: Dict[TaskDifficulty, int] = {
    TaskDifficulty.EASY: 10,
    TaskDifficulty.MEDIUM: 20,
    TaskDifficulty.HARD: 30,
}


class TaskCategory(str, Enum):
    """Privacy area a task belongs to"""
    PASSWORD = "password"
    BROWSER = "browser"
    SOCIAL = "social"
    DEVICE = "device"
    DATA = "data"
    PRIVACY_SETTINGS = "privacy-settings"
    EDUCATION = "education"
    TOOLS = "tools"


class ChallengeStatus(str, Enum):
    """Lifecycle of one user's challenge"""
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETED = "completed"


class TaskResource(BaseModel):
    """Link attached to a task"""
    title: str
    url: str
    type: Literal["guide", "tool", "article", "video"] = "guide"


class DailyTask(BaseModel):
    """One task of the 30-day catalog"""
    id: str
    day: int = Field(ge=1, le=CHALLENGE_DAYS)
    title: str
    description: str
    category: TaskCategory
    difficulty: TaskDifficulty
    estimated_time: str
    completed: bool = False
    completed_at: Optional[datetime] = None
    resources: List[TaskResource] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)

    @property
    def points(self) -> int:
        return DIFFICULTY_POINTS[self.difficulty]


class Milestones(BaseModel):
    """Cumulative completed-day thresholds; flags only ever go false -> true"""
    day7: bool = False
    day14: bool = False
    day21: bool = False
    day30: bool = False


class Challenge(BaseModel):
    """One user's instance of the 30-day plan"""
    start_date: Optional[datetime] = None
    current_day: int = Field(default=1, ge=1, le=CHALLENGE_DAYS)
    completed_day_count: int = Field(default=0, ge=0, le=CHALLENGE_DAYS)
    streak: int = Field(default=0, ge=0)
    total_points: int = Field(default=0, ge=0)
    tasks: List[DailyTask] = Field(default_factory=list)
    milestones: Milestones = Field(default_factory=Milestones)
    achievements: Dict[str, AchievementState] = Field(default_factory=dict)

    @property
    def status(self) -> ChallengeStatus:
        if self.start_date is None:
            return ChallengeStatus.NOT_STARTED
        if self.completed_day_count >= CHALLENGE_DAYS:
            return ChallengeStatus.COMPLETED
        return ChallengeStatus.ACTIVE

    @property
    def has_started(self) -> bool:
        return self.start_date is not None

    @property
    def completed_tasks(self) -> List[DailyTask]:
        return [t for t in self.tasks if t.completed]

    def get_task(self, task_id: str) -> Optional[DailyTask]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def tasks_for_day(self, day: int) -> List[DailyTask]:
        return [t for t in self.tasks if t.day == day]


class ChallengeStats(BaseModel):
    """Summary numbers for the challenge dashboard"""
    status: ChallengeStatus
    completed_tasks: int
    total_tasks: int
    completion_rate: float
    completed_day_count: int
    total_points: int
    streak: int
