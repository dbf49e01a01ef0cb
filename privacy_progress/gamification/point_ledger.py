"""
Point Ledger

Maintains the user's cumulative points and derives the level from them.

Leveling Curve:
- Fixed width: every level is POINTS_PER_LEVEL (100) points
- level = total // 100 + 1
- current_level_points = total % 100

Point Sources (see callers):
- Action completion: 25
- Assessment completion: 50
- Social share: 15
- Challenge start: 100
- Challenge task: 10 / 20 / 30 by difficulty
- Achievement rewards: per catalog entry
"""

from dataclasses import dataclass
from typing import Optional
import logging

from privacy_progress.exceptions import ValidationError
from privacy_progress.models.progress import POINTS_PER_LEVEL, LevelInfo, UserProgress
from privacy_progress.observability.metrics import record_level_up, record_points_awarded
from privacy_progress.storage.local_store import LocalStore
from privacy_progress.utils.datetime_helpers import Clock

logger = logging.getLogger(__name__)


def calculate_level_from_points(total_points: int) -> LevelInfo:
    """
    Calculate level breakdown from a point total

    Returns:
        LevelInfo with level, points inside the level and points still needed
    """
    if total_points < 0:
        raise ValidationError(
            "Point total cannot be negative",
            field="total_points",
            value=total_points
        )
    current = total_points % POINTS_PER_LEVEL
    return LevelInfo(
        level=total_points // POINTS_PER_LEVEL + 1,
        current_level_points=current,
        next_level_points=POINTS_PER_LEVEL,
        points_to_next_level=POINTS_PER_LEVEL - current,
    )


def apply_level(progress: UserProgress) -> UserProgress:
    """Rewrite the derived level fields of progress from its total"""
    info = calculate_level_from_points(progress.total_points)
    progress.level = info.level
    progress.current_level_points = info.current_level_points
    progress.next_level_points = info.next_level_points
    return progress


@dataclass
class AwardResult:
    """Outcome of one ledger award"""
    points_awarded: int
    source: str
    old_total: int
    new_total: int
    old_level: int
    new_level: int

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


class PointLedger:
    """
    Running point total of one user session

    The ledger owns the session's UserProgress object. Other components
    (streaks, achievements) mutate that same object and the ledger persists
    it with every award.
    """

    def __init__(self, store: LocalStore, clock: Clock, progress: Optional[UserProgress] = None):
        self.store = store
        self.clock = clock
        self.progress = progress if progress is not None else store.load_progress()

    def award(self, points: int, source: str = "manual") -> AwardResult:
        """
        Add points and recompute the level

        Args:
            points: Non-negative number of points
            source: Label for logs and metrics

        Raises:
            ValidationError: points is negative (or not an int)
        """
        if isinstance(points, bool) or not isinstance(points, int) or points < 0:
            raise ValidationError(
                "Point awards must be a non-negative integer",
                field="points",
                value=points,
                operation="award"
            )

        progress = self.progress
        old_total = progress.total_points
        old_level = progress.level

        progress.total_points = old_total + points
        apply_level(progress)
        progress.last_activity_date = self.clock.today()
        self.store.save_progress(progress)

        result = AwardResult(
            points_awarded=points,
            source=source,
            old_total=old_total,
            new_total=progress.total_points,
            old_level=old_level,
            new_level=progress.level,
        )

        if points:
            record_points_awarded(source, points)
            logger.info(
                f"Awarded {points} points for {source}. "
                f"Total: {result.new_total}, Level: {result.new_level}"
            )
        if result.leveled_up:
            record_level_up()
            logger.info(f"Leveled up from {old_level} to {result.new_level}!")

        return result

    def reset(self) -> UserProgress:
        """Restore every progress field to its default"""
        self.progress = UserProgress()
        self.store.save_progress(self.progress)
        logger.info("Progress reset to defaults")
        return self.progress

    def replace(self, progress: UserProgress) -> None:
        """Adopt a progress record loaded from elsewhere (rehydration)"""
        self.progress = apply_level(progress)
