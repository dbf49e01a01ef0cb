"""
Streak Tracking

A streak is the number of consecutive calendar days with recorded activity.
Days are always local calendar dates from the session Clock, never elapsed
hours, so an activity at 23:55 followed by one at 00:05 continues a streak.

Logic:
- Same day as the last activity: no change
- Exactly one day after: streak + 1
- First activity or a gap of 2+ days: streak restarts at 1
"""

from datetime import date
from typing import Iterable
import logging

from privacy_progress.models.progress import UserProgress
from privacy_progress.utils.datetime_helpers import days_between

logger = logging.getLogger(__name__)


class StreakTracker:
    """Derives the activity streak stored on UserProgress"""

    def record_activity(self, progress: UserProgress, today: date) -> int:
        """
        Record activity for a local calendar day

        Must run before the point award of the same action, because the award
        stamps last_activity_date with today.

        Args:
            progress: Session progress record (mutated in place)
            today: Current date in the user's zone

        Returns:
            The new streak length
        """
        last_date = progress.last_activity_date

        if last_date == today:
            return progress.streak_days

        if last_date is not None and days_between(last_date, today) == 1:
            progress.streak_days += 1
            logger.info(f"Streak continues: day {progress.streak_days}")
        else:
            if last_date is not None and progress.streak_days:
                gap = days_between(last_date, today)
                logger.info(
                    f"Streak broken. Was {progress.streak_days} days, gap was {gap} days"
                )
            progress.streak_days = 1

        progress.last_activity_date = today
        return progress.streak_days

    @staticmethod
    def consecutive_days(days: Iterable[date]) -> int:
        """
        Length of the run of consecutive dates ending at the latest one

        Duplicate dates count once. Used for the challenge streak, where the
        dates are the local completion days of finished tasks.
        """
        unique = sorted(set(days), reverse=True)
        if not unique:
            return 0

        run = 1
        for newer, older in zip(unique, unique[1:]):
            if days_between(older, newer) != 1:
                break
            run += 1
        return run
