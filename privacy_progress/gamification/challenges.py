"""
30-Day Challenge Tracker

State machine per challenge:
    NOT_STARTED --start--> ACTIVE --30 completed days--> COMPLETED
    any state --reset--> NOT_STARTED

Completing a task runs, in order: task mutation, point award, challenge
achievement evaluation, then the progress event. Listeners registered with
on_challenge_progress() see the post-mutation state (the session facade uses
this to evaluate the general achievement catalog).
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from privacy_progress.exceptions import ChallengeStateError, TaskNotFoundError
from privacy_progress.gamification.achievement_system import AchievementContext, AchievementEngine
from privacy_progress.gamification.challenge_tasks import generate_daily_tasks
from privacy_progress.gamification.point_ledger import PointLedger
from privacy_progress.gamification.streak_system import StreakTracker
from privacy_progress.models.challenge import (
    CHALLENGE_DAYS,
    MILESTONE_DAYS,
    Challenge,
    ChallengeStats,
    ChallengeStatus,
    DailyTask,
)
from privacy_progress.observability.metrics import record_challenge_transition, record_task_completed
from privacy_progress.storage.local_store import LocalStore
from privacy_progress.utils.datetime_helpers import Clock, days_between

logger = logging.getLogger(__name__)

CHALLENGE_START_POINTS = 100
CHALLENGE_START_SOURCE = "challenge-start"
CHALLENGE_TASK_SOURCE = "challenge-task"


@dataclass
class ChallengeProgressEvent:
    """Emitted after every challenge mutation"""
    kind: str  # started / task_completed / reset
    challenge: Challenge
    task: Optional[DailyTask] = None
    unlocked: List[str] = field(default_factory=list)


ChallengeProgressHandler = Callable[[ChallengeProgressEvent], None]


def new_challenge() -> Challenge:
    """Not-started challenge with a fresh task catalog"""
    return Challenge(tasks=generate_daily_tasks())


def recompute_progress(challenge: Challenge, clock: Clock, streaks: Optional[StreakTracker] = None) -> Challenge:
    """Re-derive day counters, milestones and streak from the completed tasks"""
    completed = challenge.completed_tasks
    challenge.completed_day_count = max((t.day for t in completed), default=0)
    challenge.current_day = min(challenge.completed_day_count + 1, CHALLENGE_DAYS)

    # Milestones never go back to false within a challenge's lifetime
    for day in MILESTONE_DAYS:
        name = f"day{day}"
        reached = challenge.completed_day_count >= day
        setattr(challenge.milestones, name, getattr(challenge.milestones, name) or reached)

    challenge.streak = (streaks or StreakTracker()).consecutive_days(
        clock.to_local_date(t.completed_at) for t in completed if t.completed_at
    )
    return challenge


class ChallengeTracker:
    """Owns the session's Challenge and its daily tasks"""

    def __init__(
        self,
        store: LocalStore,
        ledger: PointLedger,
        achievements: AchievementEngine,
        streaks: Optional[StreakTracker] = None,
        challenge: Optional[Challenge] = None
    ):
        self.store = store
        self.ledger = ledger
        self.achievements = achievements
        self.streaks = streaks or StreakTracker()
        self.clock = ledger.clock
        if challenge is None:
            challenge = store.load_challenge()
        self.challenge = challenge if challenge is not None else new_challenge()
        self._handlers: List[ChallengeProgressHandler] = []

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_challenge_progress(self, handler: ChallengeProgressHandler) -> ChallengeProgressHandler:
        """Register a listener for challenge mutations"""
        self._handlers.append(handler)
        return handler

    def _emit(self, event: ChallengeProgressEvent) -> None:
        for handler in self._handlers:
            handler(event)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def start_challenge(self) -> Challenge:
        """
        Start the 30-day plan

        Raises:
            ChallengeStateError: challenge is already active or completed
        """
        status = self.challenge.status
        if status != ChallengeStatus.NOT_STARTED:
            raise ChallengeStateError(
                f"Cannot start a challenge that is {status.value}",
                current_status=status.value,
                operation="start_challenge"
            )

        self.challenge = Challenge(start_date=self.clock.now(), tasks=generate_daily_tasks())
        self.ledger.progress.challenges_started += 1
        self.store.save_challenge(self.challenge)
        self.ledger.award(CHALLENGE_START_POINTS, source=CHALLENGE_START_SOURCE)

        unlocked = self._evaluate_achievements()
        record_challenge_transition("started")
        logger.info(f"Challenge started on {self.challenge.start_date.isoformat()}")

        self._emit(ChallengeProgressEvent(kind="started", challenge=self.challenge, unlocked=unlocked))
        return self.challenge

    def complete_task(self, task_id: str) -> Challenge:
        """
        Mark a task completed and award its points

        Completing an already-completed task is a no-op that returns the
        unchanged challenge.

        Raises:
            TaskNotFoundError: task_id is not part of the catalog
            ChallengeStateError: challenge has not been started
        """
        challenge = self.challenge
        task = challenge.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id, operation="complete_task")
        if task.completed:
            logger.debug(f"Task {task_id} already completed, nothing to do")
            return challenge
        if not challenge.has_started:
            raise ChallengeStateError(
                "Start the challenge before completing tasks",
                current_status=challenge.status.value,
                operation="complete_task"
            )

        was_completed = challenge.status == ChallengeStatus.COMPLETED

        task.completed = True
        task.completed_at = self.clock.now()

        points = task.points
        challenge.total_points += points
        self._recompute_progress(challenge)
        self.store.save_challenge(challenge)
        # Mirrors the challenge ledger into overall progress in the same transaction
        self.ledger.award(points, source=CHALLENGE_TASK_SOURCE)

        unlocked = self._evaluate_achievements()

        record_task_completed(task.difficulty.value)
        logger.info(
            f"Completed task {task_id} (day {task.day}, {task.difficulty.value}) +{points} points. "
            f"Completed days: {challenge.completed_day_count}/{CHALLENGE_DAYS}"
        )
        if not was_completed and challenge.status == ChallengeStatus.COMPLETED:
            record_challenge_transition("completed")
            logger.info("30-day challenge completed!")

        self._emit(ChallengeProgressEvent(kind="task_completed", challenge=challenge, task=task, unlocked=unlocked))
        return challenge

    def reset_challenge(self) -> Challenge:
        """Return to NOT_STARTED with a regenerated catalog"""
        previous = self.challenge.status
        self.challenge = new_challenge()
        self.store.save_challenge(self.challenge)

        record_challenge_transition("reset")
        logger.info(f"Challenge reset (was {previous.value})")

        self._emit(ChallengeProgressEvent(kind="reset", challenge=self.challenge))
        return self.challenge

    def replace(self, challenge: Challenge) -> None:
        """Adopt a challenge loaded from elsewhere (rehydration)"""
        self._recompute_progress(challenge)
        self.challenge = challenge

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def _recompute_progress(self, challenge: Challenge) -> None:
        recompute_progress(challenge, self.clock, self.streaks)

    def _evaluate_achievements(self) -> List[str]:
        context = AchievementContext.from_state(self.ledger.progress, self.challenge)
        unlocked = self.achievements.evaluate(self.challenge.achievements, context)
        if unlocked:
            self.store.save_challenge(self.challenge)
        return unlocked

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def progress_percentage(self) -> int:
        """Completed tasks as a rounded percentage of the 30-day plan"""
        return round(len(self.challenge.completed_tasks) / CHALLENGE_DAYS * 100)

    def streak_days(self) -> int:
        """Calendar days since the local start date (inclusive), capped at 30"""
        start_date = self.challenge.start_date
        if start_date is None:
            return 0
        elapsed = days_between(self.clock.to_local_date(start_date), self.clock.today()) + 1
        return max(0, min(elapsed, CHALLENGE_DAYS))

    def current_day_tasks(self) -> List[DailyTask]:
        return self.challenge.tasks_for_day(self.challenge.current_day)

    def stats(self) -> ChallengeStats:
        challenge = self.challenge
        completed = len(challenge.completed_tasks)
        total = len(challenge.tasks)
        return ChallengeStats(
            status=challenge.status,
            completed_tasks=completed,
            total_tasks=total,
            completion_rate=round(completed / total * 100, 1) if total else 0.0,
            completed_day_count=challenge.completed_day_count,
            total_points=challenge.total_points,
            streak=challenge.streak,
        )
