"""
Achievement System

Achievements are declared as data: each catalog entry carries its reward and
an unlock predicate over an AchievementContext snapshot. Evaluation walks the
catalog generically, so adding an achievement means adding a row.

Catalogs:
- General: assessments, actions, streaks, sharing, security and the 30-day
  plan milestones. Unlock state lives on UserProgress.
- Challenge: week milestones and the streak keeper badge of the current
  30-day challenge. Unlock state lives on the Challenge and is cleared with it.

Unlocks only ever go false -> true. Rewards found in one pass are paid as a
single ledger award, and that award never triggers another evaluation.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence
import logging

from privacy_progress.gamification.point_ledger import PointLedger
from privacy_progress.models.achievement import AchievementCategory, AchievementState, AchievementView
from privacy_progress.models.challenge import Challenge
from privacy_progress.models.progress import UserProgress
from privacy_progress.observability.metrics import record_achievement_unlocked

logger = logging.getLogger(__name__)

GENERAL_CATALOG = "general"
CHALLENGE_CATALOG = "challenge"
ACHIEVEMENT_SOURCE = "achievement"


@dataclass(frozen=True)
class AchievementContext:
    """Aggregate state the unlock predicates look at"""
    assessment_count: int = 0
    completed_action_count: int = 0
    streak_days: int = 0
    social_share_count: int = 0
    best_assessment_score: Optional[int] = None
    challenge_started: bool = False
    challenge_completed_days: int = 0
    challenge_streak: int = 0

    @classmethod
    def from_state(cls, progress: UserProgress, challenge: Optional[Challenge]) -> "AchievementContext":
        return cls(
            assessment_count=progress.assessment_count,
            completed_action_count=len(progress.completed_action_ids),
            streak_days=progress.streak_days,
            social_share_count=progress.social_share_count,
            best_assessment_score=progress.best_assessment_score,
            challenge_started=bool(challenge and challenge.has_started),
            challenge_completed_days=challenge.completed_day_count if challenge else 0,
            challenge_streak=challenge.streak if challenge else 0,
        )


@dataclass(frozen=True)
class AchievementDefinition:
    """One catalog row"""
    id: str
    title: str
    description: str
    icon: str
    points: int
    category: AchievementCategory
    predicate: Callable[[AchievementContext], bool]


def _completed_days_at_least(days: int) -> Callable[[AchievementContext], bool]:
    return lambda ctx: ctx.challenge_completed_days >= days


GENERAL_ACHIEVEMENTS: List[AchievementDefinition] = [
    AchievementDefinition(
        id="first-assessment",
        title="Privacy Explorer",
        description="Complete your first privacy assessment",
        icon="Search",
        points=50,
        category=AchievementCategory.ASSESSMENT,
        predicate=lambda ctx: ctx.assessment_count >= 1,
    ),
    AchievementDefinition(
        id="assessment-master",
        title="Assessment Master",
        description="Complete 5 privacy assessments",
        icon="Trophy",
        points=200,
        category=AchievementCategory.ASSESSMENT,
        predicate=lambda ctx: ctx.assessment_count >= 5,
    ),
    AchievementDefinition(
        id="action-hero",
        title="Action Hero",
        description="Complete your first action item",
        icon="Zap",
        points=25,
        category=AchievementCategory.ACTION,
        predicate=lambda ctx: ctx.completed_action_count >= 1,
    ),
    AchievementDefinition(
        id="action-champion",
        title="Action Champion",
        description="Complete 10 action items",
        icon="Award",
        points=150,
        category=AchievementCategory.ACTION,
        predicate=lambda ctx: ctx.completed_action_count >= 10,
    ),
    AchievementDefinition(
        id="streak-starter",
        title="Streak Starter",
        description="Maintain a 3-day activity streak",
        icon="Flame",
        points=100,
        category=AchievementCategory.STREAK,
        predicate=lambda ctx: ctx.streak_days >= 3,
    ),
    AchievementDefinition(
        id="streak-master",
        title="Streak Master",
        description="Maintain a 7-day activity streak",
        icon="Star",
        points=300,
        category=AchievementCategory.STREAK,
        predicate=lambda ctx: ctx.streak_days >= 7,
    ),
    AchievementDefinition(
        id="social-butterfly",
        title="Social Butterfly",
        description="Share your progress 5 times",
        icon="Share2",
        points=75,
        category=AchievementCategory.SOCIAL,
        predicate=lambda ctx: ctx.social_share_count >= 5,
    ),
    AchievementDefinition(
        id="security-expert",
        title="Security Expert",
        description="Achieve a 90%+ privacy score",
        icon="Shield",
        points=500,
        category=AchievementCategory.SECURITY,
        predicate=lambda ctx: (ctx.best_assessment_score or 0) >= 90,
    ),
    AchievementDefinition(
        id="30day-challenge-starter",
        title="Privacy Protector",
        description="Start your 30-day privacy protection plan",
        icon="Calendar",
        points=100,
        category=AchievementCategory.ACTION,
        predicate=lambda ctx: ctx.challenge_started,
    ),
    AchievementDefinition(
        id="30day-week-one",
        title="Week One Warrior",
        description="Complete your first week of the 30-day plan",
        icon="Target",
        points=200,
        category=AchievementCategory.ACTION,
        predicate=_completed_days_at_least(7),
    ),
    AchievementDefinition(
        id="30day-week-two",
        title="Week Two Champion",
        description="Complete your second week of the 30-day plan",
        icon="Medal",
        points=300,
        category=AchievementCategory.ACTION,
        predicate=_completed_days_at_least(14),
    ),
    AchievementDefinition(
        id="30day-week-three",
        title="Week Three Master",
        description="Complete your third week of the 30-day plan",
        icon="Award",
        points=400,
        category=AchievementCategory.ACTION,
        predicate=_completed_days_at_least(21),
    ),
    AchievementDefinition(
        id="30day-complete",
        title="Privacy Master",
        description="Complete all 30 days of the protection plan",
        icon="Crown",
        points=1000,
        category=AchievementCategory.SECURITY,
        predicate=_completed_days_at_least(30),
    ),
]

# No rewards here: the general 30day-* rows already pay for these thresholds
CHALLENGE_ACHIEVEMENTS: List[AchievementDefinition] = [
    AchievementDefinition(
        id="challenge:first-week",
        title="First Week",
        description="Complete 7 days of the current challenge",
        icon="Target",
        points=0,
        category=AchievementCategory.ACTION,
        predicate=_completed_days_at_least(7),
    ),
    AchievementDefinition(
        id="challenge:second-week",
        title="Second Week",
        description="Complete 14 days of the current challenge",
        icon="Medal",
        points=0,
        category=AchievementCategory.ACTION,
        predicate=_completed_days_at_least(14),
    ),
    AchievementDefinition(
        id="challenge:third-week",
        title="Third Week",
        description="Complete 21 days of the current challenge",
        icon="Award",
        points=0,
        category=AchievementCategory.ACTION,
        predicate=_completed_days_at_least(21),
    ),
    AchievementDefinition(
        id="challenge:privacy-master",
        title="Challenge Complete",
        description="Complete all 30 days of the current challenge",
        icon="Crown",
        points=0,
        category=AchievementCategory.SECURITY,
        predicate=_completed_days_at_least(30),
    ),
    AchievementDefinition(
        id="challenge:streak-keeper",
        title="Streak Keeper",
        description="Complete challenge tasks 7 days in a row",
        icon="Flame",
        points=0,
        category=AchievementCategory.STREAK,
        predicate=lambda ctx: ctx.challenge_streak >= 7,
    ),
]


def ensure_disjoint(*catalogs: Sequence[AchievementDefinition]) -> None:
    """Raise ValueError if any achievement id appears twice across catalogs"""
    seen = set()
    for catalog in catalogs:
        for definition in catalog:
            if definition.id in seen:
                raise ValueError(f"Duplicate achievement id: {definition.id}")
            seen.add(definition.id)


ensure_disjoint(GENERAL_ACHIEVEMENTS, CHALLENGE_ACHIEVEMENTS)


class AchievementEngine:
    """
    Evaluates one catalog against the unlock states it owns

    Args:
        catalog: Catalog rows to evaluate
        ledger: Ledger paying the rewards
        catalog_name: Label for logs, metrics and views
    """

    def __init__(
        self,
        catalog: Iterable[AchievementDefinition],
        ledger: PointLedger,
        catalog_name: str = GENERAL_CATALOG
    ):
        self.catalog = list(catalog)
        ensure_disjoint(self.catalog)
        self.ledger = ledger
        self.catalog_name = catalog_name

    def evaluate(self, states: Dict[str, AchievementState], context: AchievementContext) -> List[str]:
        """
        Unlock every locked entry whose predicate holds

        Args:
            states: Unlock states keyed by achievement id (mutated in place)
            context: Post-mutation snapshot the predicates run against

        Returns:
            Ids unlocked by this call, in catalog order
        """
        newly_unlocked = []
        reward = 0
        now = self.ledger.clock.now()

        for definition in self.catalog:
            state = states.get(definition.id)
            if state is not None and state.unlocked:
                continue
            if not definition.predicate(context):
                continue

            states[definition.id] = AchievementState(id=definition.id, unlocked=True, unlocked_at=now)
            newly_unlocked.append(definition.id)
            reward += definition.points
            record_achievement_unlocked(self.catalog_name)
            logger.info(
                f"Unlocked achievement: {definition.id} "
                f"({definition.title}) +{definition.points} points"
            )

        if reward:
            # One batched award; ledger awards are not themselves achievement triggers
            self.ledger.award(reward, source=ACHIEVEMENT_SOURCE)

        return newly_unlocked

    def get_definition(self, achievement_id: str) -> Optional[AchievementDefinition]:
        for definition in self.catalog:
            if definition.id == achievement_id:
                return definition
        return None

    def views(self, states: Dict[str, AchievementState], include_locked: bool = True) -> List[AchievementView]:
        """Catalog rows joined with their unlock state"""
        views = []
        for definition in self.catalog:
            state = states.get(definition.id)
            unlocked = bool(state and state.unlocked)
            if not unlocked and not include_locked:
                continue
            views.append(AchievementView(
                id=definition.id,
                title=definition.title,
                description=definition.description,
                icon=definition.icon,
                points=definition.points,
                category=definition.category,
                catalog=self.catalog_name,
                unlocked=unlocked,
                unlocked_at=state.unlocked_at if state else None,
            ))
        return views
