"""Unit tests for Pydantic models"""
import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from privacy_progress.gamification.challenges import new_challenge
from privacy_progress.models.challenge import (
    Challenge,
    ChallengeStatus,
    DailyTask,
    TaskCategory,
    TaskDifficulty,
)
from privacy_progress.models.progress import UserProgress
from privacy_progress.models.sync import RecordKind, SyncState


def test_user_progress_defaults():
    progress = UserProgress()

    assert progress.total_points == 0
    assert progress.level == 1
    assert progress.next_level_points == 100
    assert progress.achievements == {}
    assert progress.unlocked_achievement_ids == []


def test_user_progress_rejects_negative_points():
    with pytest.raises(ValidationError):
        UserProgress(total_points=-1)


def test_user_progress_rejects_out_of_range_level_points():
    with pytest.raises(ValidationError):
        UserProgress(current_level_points=100)


def test_daily_task_points_follow_difficulty():
    task = DailyTask(
        id="t",
        day=1,
        title="T",
        description="D",
        category=TaskCategory.TOOLS,
        difficulty=TaskDifficulty.HARD,
        estimated_time="5 min",
    )

    assert task.points == 30


def test_daily_task_day_range():
    with pytest.raises(ValidationError):
        DailyTask(
            id="t",
            day=31,
            title="T",
            description="D",
            category=TaskCategory.TOOLS,
            difficulty=TaskDifficulty.EASY,
            estimated_time="5 min",
        )


def test_challenge_status_is_derived():
    challenge = new_challenge()
    assert challenge.status == ChallengeStatus.NOT_STARTED

    challenge.start_date = datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert challenge.status == ChallengeStatus.ACTIVE

    challenge.completed_day_count = 30
    assert challenge.status == ChallengeStatus.COMPLETED


def test_challenge_json_round_trip_keeps_tasks():
    challenge = new_challenge()
    challenge.tasks[2].completed = True

    restored = Challenge.model_validate_json(challenge.model_dump_json())

    assert restored == challenge
    assert restored.completed_tasks[0].day == 3


def test_sync_state_mark_dirty_and_clean():
    state = SyncState()

    state.mark_dirty(RecordKind.PROGRESS)
    state.mark_dirty(RecordKind.PROGRESS)
    state.mark_clean(RecordKind.CHALLENGE)

    assert state.dirty == [RecordKind.PROGRESS]

    state.mark_clean(RecordKind.PROGRESS)
    assert state.dirty == []
