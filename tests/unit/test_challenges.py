"""Unit tests for the 30-day challenge (privacy_progress/gamification/challenges.py)"""
import pytest
from datetime import date

from privacy_progress.exceptions import ChallengeStateError, TaskNotFoundError
from privacy_progress.gamification.achievement_system import (
    CHALLENGE_ACHIEVEMENTS,
    CHALLENGE_CATALOG,
    AchievementEngine,
)
from privacy_progress.gamification.challenge_tasks import CHALLENGE_TEMPLATE, generate_daily_tasks
from privacy_progress.gamification.challenges import (
    ChallengeTracker,
    new_challenge,
    recompute_progress,
)
from privacy_progress.gamification.point_ledger import PointLedger
from privacy_progress.models.challenge import DIFFICULTY_POINTS, Challenge, ChallengeStatus


@pytest.fixture
def ledger(memory_store, clock):
    return PointLedger(memory_store, clock)


@pytest.fixture
def tracker(memory_store, ledger):
    achievements = AchievementEngine(CHALLENGE_ACHIEVEMENTS, ledger, CHALLENGE_CATALOG)
    return ChallengeTracker(memory_store, ledger, achievements)


def task_id_for_day(challenge: Challenge, day: int) -> str:
    return challenge.tasks_for_day(day)[0].id


def complete_days(tracker: ChallengeTracker, days) -> None:
    for day in days:
        tracker.complete_task(task_id_for_day(tracker.challenge, day))


# ============================================================================
# Task Template Tests
# ============================================================================

def test_template_covers_every_day_once():
    assert sorted(t.day for t in CHALLENGE_TEMPLATE) == list(range(1, 31))


def test_generated_tasks_start_incomplete():
    tasks = generate_daily_tasks()

    assert len(tasks) == 30
    assert not any(t.completed for t in tasks)
    assert tasks[0].id == "day-1-password-audit"
    assert tasks[0].resources[0].type == "guide"


def test_generated_tasks_are_fresh_copies():
    first = generate_daily_tasks()
    first[0].completed = True

    assert generate_daily_tasks()[0].completed is False


# ============================================================================
# Start Tests
# ============================================================================

def test_new_challenge_is_not_started(tracker):
    assert tracker.challenge.status == ChallengeStatus.NOT_STARTED
    assert tracker.progress_percentage() == 0
    assert tracker.streak_days() == 0


def test_start_challenge(tracker, ledger, clock, memory_store):
    challenge = tracker.start_challenge()

    assert challenge.status == ChallengeStatus.ACTIVE
    assert challenge.start_date == clock.now()
    assert challenge.current_day == 1
    assert ledger.progress.total_points == 100
    assert ledger.progress.challenges_started == 1
    assert memory_store.load_challenge().start_date == clock.now()


def test_start_twice_raises(tracker):
    tracker.start_challenge()

    with pytest.raises(ChallengeStateError) as exc_info:
        tracker.start_challenge()

    assert exc_info.value.current_status == "active"


def test_start_emits_event(tracker):
    events = []
    tracker.on_challenge_progress(events.append)

    tracker.start_challenge()

    assert [e.kind for e in events] == ["started"]


# ============================================================================
# Task Completion Tests
# ============================================================================

def test_complete_task_awards_difficulty_points(tracker, ledger):
    tracker.start_challenge()
    task = tracker.challenge.tasks_for_day(1)[0]

    tracker.complete_task(task.id)

    assert tracker.challenge.get_task(task.id).completed is True
    assert tracker.challenge.total_points == DIFFICULTY_POINTS[task.difficulty]
    assert ledger.progress.total_points == 100 + DIFFICULTY_POINTS[task.difficulty]
    assert tracker.challenge.completed_day_count == 1
    assert tracker.challenge.current_day == 2


def test_complete_task_twice_is_noop(tracker, ledger):
    tracker.start_challenge()
    task_id = task_id_for_day(tracker.challenge, 1)
    tracker.complete_task(task_id)
    total = ledger.progress.total_points

    tracker.complete_task(task_id)

    assert ledger.progress.total_points == total
    assert len(tracker.challenge.completed_tasks) == 1


def test_complete_unknown_task_raises(tracker):
    tracker.start_challenge()

    with pytest.raises(TaskNotFoundError):
        tracker.complete_task("day-99-nothing")


def test_complete_task_before_start_raises(tracker):
    with pytest.raises(ChallengeStateError):
        tracker.complete_task(task_id_for_day(tracker.challenge, 1))


def test_completed_day_count_is_highest_day(tracker):
    """Skipping ahead counts the highest completed day"""
    tracker.start_challenge()

    complete_days(tracker, [1, 5])

    assert tracker.challenge.completed_day_count == 5
    assert tracker.challenge.current_day == 6


def test_milestones_and_challenge_achievements(tracker):
    tracker.start_challenge()

    complete_days(tracker, range(1, 8))

    assert tracker.challenge.milestones.day7 is True
    assert tracker.challenge.milestones.day14 is False
    assert "challenge:first-week" in tracker.challenge.achievements


def test_complete_all_tasks(tracker, ledger):
    tracker.start_challenge()
    events = []
    tracker.on_challenge_progress(events.append)

    complete_days(tracker, range(1, 31))

    challenge = tracker.challenge
    template_points = sum(DIFFICULTY_POINTS[t.difficulty] for t in CHALLENGE_TEMPLATE)
    assert challenge.status == ChallengeStatus.COMPLETED
    assert challenge.completed_day_count == 30
    assert challenge.current_day == 30
    assert tracker.progress_percentage() == 100
    assert challenge.total_points == template_points
    assert ledger.progress.total_points == 100 + template_points
    assert all(getattr(challenge.milestones, f"day{d}") for d in (7, 14, 21, 30))
    assert "challenge:privacy-master" in challenge.achievements
    assert len(events) == 30
    assert tracker.stats().completion_rate == 100.0


def test_challenge_streak_counts_completion_days(tracker, clock):
    tracker.start_challenge()

    for day in range(1, 4):
        tracker.complete_task(task_id_for_day(tracker.challenge, day))
        clock.advance(days=1)
    clock.advance(days=2)
    tracker.complete_task(task_id_for_day(tracker.challenge, 4))

    assert tracker.challenge.streak == 1


def test_challenge_streak_seven_days_unlocks_streak_keeper(tracker, clock):
    tracker.start_challenge()

    for day in range(1, 8):
        tracker.complete_task(task_id_for_day(tracker.challenge, day))
        clock.advance(days=1)

    assert tracker.challenge.streak == 7
    assert "challenge:streak-keeper" in tracker.challenge.achievements


# ============================================================================
# Reset Tests
# ============================================================================

def test_reset_challenge_clears_everything(tracker, ledger, memory_store):
    tracker.start_challenge()
    complete_days(tracker, range(1, 8))
    total = ledger.progress.total_points

    challenge = tracker.reset_challenge()

    assert challenge.status == ChallengeStatus.NOT_STARTED
    assert challenge.start_date is None
    assert challenge.completed_tasks == []
    assert challenge.total_points == 0
    assert challenge.milestones.day7 is False
    assert challenge.achievements == {}
    # Points already earned stay on the overall ledger
    assert ledger.progress.total_points == total
    assert memory_store.load_challenge().start_date is None


def test_restart_after_reset(tracker, ledger):
    tracker.start_challenge()
    tracker.reset_challenge()

    tracker.start_challenge()

    assert tracker.challenge.status == ChallengeStatus.ACTIVE
    assert ledger.progress.challenges_started == 2
    assert ledger.progress.total_points == 200


# ============================================================================
# Query Tests
# ============================================================================

def test_streak_days_is_inclusive_and_capped(tracker, clock):
    tracker.start_challenge()
    assert tracker.streak_days() == 1

    clock.advance(days=4)
    assert tracker.streak_days() == 5

    clock.advance(days=60)
    assert tracker.streak_days() == 30


def test_current_day_tasks(tracker):
    tracker.start_challenge()
    complete_days(tracker, [1, 2])

    tasks = tracker.current_day_tasks()

    assert [t.day for t in tasks] == [3]


def test_progress_percentage_rounds(tracker):
    tracker.start_challenge()
    complete_days(tracker, [1])

    assert tracker.progress_percentage() == 3


def test_recompute_progress_keeps_milestones(clock):
    """Milestone flags stay set even if fewer completed days are derived"""
    challenge = new_challenge()
    challenge.milestones.day7 = True

    recompute_progress(challenge, clock)

    assert challenge.milestones.day7 is True
    assert challenge.completed_day_count == 0


def test_tracker_loads_persisted_challenge(memory_store, ledger, tracker):
    tracker.start_challenge()
    complete_days(tracker, [1])

    reloaded = ChallengeTracker(
        memory_store, ledger, AchievementEngine(CHALLENGE_ACHIEVEMENTS, ledger, CHALLENGE_CATALOG)
    )

    assert reloaded.challenge.completed_day_count == 1
    assert reloaded.challenge.start_date.date() == date(2024, 3, 1)
