"""
ProgressEngine - Progress & Challenge Business Logic

The single entry point the UI layer calls. Every mutation:
1. runs inside one local store transaction (single writer, one commit)
2. records streak activity, mutates state, awards points, evaluates
   achievements, in that order
3. hands the committed change to the SyncCoordinator without awaiting it

Mutations never fail because of the remote mirror. They raise only for
caller bugs (negative points, unknown task ids, invalid transitions).
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set

from privacy_progress.exceptions import ValidationError
from privacy_progress.gamification.achievement_system import (
    CHALLENGE_ACHIEVEMENTS,
    CHALLENGE_CATALOG,
    GENERAL_ACHIEVEMENTS,
    GENERAL_CATALOG,
    AchievementContext,
    AchievementEngine,
)
from privacy_progress.gamification.challenges import ChallengeProgressEvent, ChallengeTracker, new_challenge
from privacy_progress.gamification.point_ledger import PointLedger, calculate_level_from_points
from privacy_progress.gamification.streak_system import StreakTracker
from privacy_progress.models.achievement import AchievementView
from privacy_progress.models.challenge import Challenge, ChallengeStats, ChallengeStatus, DailyTask
from privacy_progress.models.progress import LevelInfo, UserProgress
from privacy_progress.models.sync import RecordKind, SyncDelta
from privacy_progress.services.sync_service import SyncCoordinator
from privacy_progress.storage.local_store import LocalStore
from privacy_progress.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)

ACTION_POINTS = 25
ASSESSMENT_POINTS = 50
SHARE_POINTS = 15

ACTION_SOURCE = "action-completion"
ASSESSMENT_SOURCE = "assessment-completion"
SHARE_SOURCE = "social-share"


@dataclass
class ActionResult:
    """What one user action changed, for notifications"""
    points_awarded: int = 0
    leveled_up: bool = False
    new_level: int = 1
    unlocked: List[str] = field(default_factory=list)
    challenge: Optional[Challenge] = None
    progress: Optional[UserProgress] = None
    changed: bool = True


class ProgressEngine:
    """
    Session facade over ledger, streaks, achievements and the challenge.

    One instance per user session; construct it through SessionContainer.
    """

    def __init__(
        self,
        user_id: str,
        store: LocalStore,
        clock: Clock,
        sync: Optional[SyncCoordinator] = None
    ):
        self.user_id = user_id
        self.store = store
        self.clock = clock
        self.sync = sync

        self.ledger = PointLedger(store, clock)
        self.streaks = StreakTracker()
        self.general_achievements = AchievementEngine(GENERAL_ACHIEVEMENTS, self.ledger, GENERAL_CATALOG)
        self.challenge_achievements = AchievementEngine(CHALLENGE_ACHIEVEMENTS, self.ledger, CHALLENGE_CATALOG)
        self.challenges = ChallengeTracker(store, self.ledger, self.challenge_achievements, self.streaks)

        self._unlocked: List[str] = []
        self.challenges.on_challenge_progress(self._on_challenge_progress)
        if sync is not None:
            sync.on_rehydrate(self._on_rehydrate)

        logger.debug(f"ProgressEngine initialized for user {user_id}")

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @property
    def _progress(self) -> UserProgress:
        return self.ledger.progress

    @contextmanager
    def _action(self, reason: str, kinds: List[RecordKind]) -> Iterator[ActionResult]:
        result = ActionResult()
        try:
            with self.store.transaction():
                old_total = self._progress.total_points
                old_level = self._progress.level
                self._unlocked = []
                yield result
                self._finish(result, old_total, old_level)
        except Exception:
            # The transaction discarded the writes; drop the in-memory changes too
            self._reload_from_store()
            raise

        if result.unlocked:
            logger.info(f"User {self.user_id} unlocked {result.unlocked} via {reason}")
        if result.changed:
            self._push(reason, kinds)

    def _finish(self, result: ActionResult, old_total: int, old_level: int) -> None:
        result.points_awarded = max(self._progress.total_points - old_total, 0)
        result.new_level = self._progress.level
        result.leveled_up = result.new_level > old_level
        result.unlocked = list(self._unlocked)
        result.progress = self.progress
        result.challenge = self.challenge

    def _push(self, reason: str, kinds: List[RecordKind]) -> None:
        if self.sync is not None:
            self.sync.push_mutation(self.user_id, SyncDelta(kinds=kinds, reason=reason))

    def _record_activity(self) -> None:
        self.streaks.record_activity(self._progress, self.clock.today())

    def _evaluate_general(self) -> List[str]:
        context = AchievementContext.from_state(self._progress, self.challenges.challenge)
        unlocked = self.general_achievements.evaluate(self._progress.achievements, context)
        if unlocked:
            self.store.save_progress(self._progress)
        self._unlocked.extend(unlocked)
        return unlocked

    def _on_challenge_progress(self, event: ChallengeProgressEvent) -> None:
        self._unlocked.extend(event.unlocked)
        if event.kind != "reset":
            event.unlocked.extend(self._evaluate_general())

    def _reload_from_store(self) -> None:
        with self.store.transaction():
            self.ledger.replace(self.store.load_progress())
            self.challenges.replace(self.store.load_challenge() or new_challenge())

    def _on_rehydrate(self, kinds: Set[RecordKind]) -> None:
        with self.store.transaction():
            if RecordKind.PROGRESS in kinds:
                self.ledger.replace(self.store.load_progress())
            if RecordKind.CHALLENGE in kinds:
                self.challenges.replace(self.store.load_challenge() or new_challenge())
        logger.info(f"Reloaded {sorted(k.value for k in kinds)} for user {self.user_id} after rehydration")

    # ------------------------------------------------------------------
    # Challenge mutations
    # ------------------------------------------------------------------

    def start_challenge(self) -> ActionResult:
        """Start the 30-day plan (100 point bonus)"""
        with self._action("challenge-start", [RecordKind.PROGRESS, RecordKind.CHALLENGE]) as result:
            if self.challenges.challenge.status == ChallengeStatus.NOT_STARTED:
                self._record_activity()
            self.challenges.start_challenge()
        return result

    def complete_task(self, task_id: str) -> ActionResult:
        """
        Complete a challenge task

        Safe to call repeatedly: an already-completed task changes nothing
        and nothing is pushed.
        """
        with self._action("task-completion", [RecordKind.PROGRESS, RecordKind.CHALLENGE]) as result:
            task = self.challenges.challenge.get_task(task_id)
            if task is not None and task.completed:
                logger.debug(f"Task {task_id} already completed for user {self.user_id}")
                result.changed = False
            else:
                if task is not None and self.challenges.challenge.has_started:
                    self._record_activity()
                self.challenges.complete_task(task_id)
        return result

    def reset_challenge(self) -> ActionResult:
        """Back to not started with a fresh task catalog"""
        with self._action("challenge-reset", [RecordKind.CHALLENGE]) as result:
            self.challenges.reset_challenge()
        return result

    # ------------------------------------------------------------------
    # Progress mutations
    # ------------------------------------------------------------------

    def add_points(self, points: int, source: str = "manual") -> ActionResult:
        """
        Award an arbitrary number of points

        Raises:
            ValidationError: points is negative
        """
        with self._action(f"points:{source}", [RecordKind.PROGRESS]) as result:
            self._record_activity()
            self.ledger.award(points, source=source)
            self._evaluate_general()
        return result

    def complete_action(self, action_id: str) -> ActionResult:
        """
        Complete a recommended privacy action (25 points, once per action id)

        Raises:
            ValidationError: action_id is empty
        """
        if not isinstance(action_id, str) or not action_id.strip():
            raise ValidationError("Action id must be a non-empty string", field="action_id", value=action_id)

        with self._action("action-completion", [RecordKind.PROGRESS]) as result:
            # Checked under the writer lock so concurrent calls pay once
            if action_id in self._progress.completed_action_ids:
                logger.debug(f"Action {action_id} already completed for user {self.user_id}")
                result.changed = False
            else:
                self._record_activity()
                self._progress.completed_action_ids.append(action_id)
                self.ledger.award(ACTION_POINTS, source=ACTION_SOURCE)
                self._evaluate_general()
        return result

    def complete_assessment(self, score: Optional[int] = None) -> ActionResult:
        """
        Record a finished privacy assessment (50 points)

        Args:
            score: Optional overall score 0..100; the best one is kept

        Raises:
            ValidationError: score is outside 0..100
        """
        if score is not None and (isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100):
            raise ValidationError("Assessment score must be an integer from 0 to 100", field="score", value=score)

        with self._action("assessment-completion", [RecordKind.PROGRESS]) as result:
            self._record_activity()
            progress = self._progress
            progress.assessment_count += 1
            if score is not None:
                progress.best_assessment_score = max(score, progress.best_assessment_score or 0)
            self.ledger.award(ASSESSMENT_POINTS, source=ASSESSMENT_SOURCE)
            self._evaluate_general()
        return result

    def share_content(self) -> ActionResult:
        """Record a social share (15 points)"""
        with self._action("social-share", [RecordKind.PROGRESS]) as result:
            self._record_activity()
            self._progress.social_share_count += 1
            self.ledger.award(SHARE_POINTS, source=SHARE_SOURCE)
            self._evaluate_general()
        return result

    def reset_progress(self) -> ActionResult:
        """Restore points, level, streak and general achievements to defaults"""
        with self._action("progress-reset", [RecordKind.PROGRESS]) as result:
            self.ledger.reset()
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def progress(self) -> UserProgress:
        return self._progress.model_copy(deep=True)

    @property
    def challenge(self) -> Challenge:
        return self.challenges.challenge.model_copy(deep=True)

    def progress_percentage(self) -> int:
        return self.challenges.progress_percentage()

    def streak_days(self) -> int:
        return self.challenges.streak_days()

    def current_day_tasks(self) -> List[DailyTask]:
        return [task.model_copy(deep=True) for task in self.challenges.current_day_tasks()]

    def level_info(self) -> LevelInfo:
        return calculate_level_from_points(self._progress.total_points)

    def challenge_status(self) -> ChallengeStatus:
        return self.challenges.challenge.status

    def challenge_stats(self) -> ChallengeStats:
        return self.challenges.stats()

    def get_achievements(self, include_locked: bool = True) -> List[AchievementView]:
        """Both catalogs with unlock state (general first)"""
        return (
            self.general_achievements.views(self._progress.achievements, include_locked)
            + self.challenge_achievements.views(self.challenges.challenge.achievements, include_locked)
        )

    # ------------------------------------------------------------------
    # Session sync
    # ------------------------------------------------------------------

    async def load_from_remote(self) -> Set[RecordKind]:
        """Cold-start rehydration; safe to call with no remote configured"""
        if self.sync is None:
            return set()
        return await self.sync.load_from_remote(self.user_id)

    async def drain(self) -> bool:
        """Push pending changes now (True when nothing is left to push)"""
        if self.sync is None:
            return True
        return await self.sync.drain(self.user_id)
