"""End-to-end session tests: container, engine, local store and remote mirror together"""
import pytest

from privacy_progress.exceptions import RemoteSyncError
from privacy_progress.models.challenge import ChallengeStatus
from privacy_progress.models.sync import RecordKind
from privacy_progress.services.container import SessionContainer, open_session
from privacy_progress.storage.local_store import LocalStore


def day_task(engine, day: int) -> str:
    return engine.challenge.tasks_for_day(day)[0].id


@pytest.mark.asyncio
async def test_new_user_session_starts_empty(test_user_id, memory_store, remote, clock):
    session = await open_session(test_user_id, store=memory_store, remote=remote, clock=clock)

    engine = session.engine
    assert engine.progress.total_points == 0
    assert engine.challenge_status() == ChallengeStatus.NOT_STARTED
    await session.close()


@pytest.mark.asyncio
async def test_progress_follows_user_to_new_device(test_user_id, remote, clock):
    first = await open_session(test_user_id, store=LocalStore.in_memory(test_user_id), remote=remote, clock=clock)
    engine = first.engine
    engine.start_challenge()
    engine.complete_task(day_task(engine, 1))
    engine.complete_action("enable-2fa")
    engine.share_content()
    await first.close()

    second = await open_session(test_user_id, store=LocalStore.in_memory(test_user_id), remote=remote, clock=clock)
    restored = second.engine

    assert restored.progress.total_points == engine.progress.total_points
    assert restored.progress.social_share_count == 1
    assert restored.progress.is_unlocked("30day-challenge-starter")
    assert restored.challenge_status() == ChallengeStatus.ACTIVE
    assert restored.challenge.get_task(day_task(restored, 1)).completed is True
    assert [t.day for t in restored.current_day_tasks()] == [2]
    await second.close()


@pytest.mark.asyncio
async def test_offline_changes_reach_the_mirror_later(test_user_id, memory_store, remote, clock):
    """Pushes that fail stay queued locally and win at the next session start"""
    remote.fail_with = RemoteSyncError("mirror down")
    first = SessionContainer(user_id=test_user_id, store=memory_store, remote=remote, clock=clock)
    engine = await first.start()
    result = engine.complete_action("action-1")
    await first.close()

    assert result.points_awarded == 50
    assert memory_store.load_sync_state().dirty == [RecordKind.PROGRESS]

    remote.fail_with = None
    second = await open_session(test_user_id, store=memory_store, remote=remote, clock=clock)

    assert second.engine.progress.total_points == 50
    assert remote.progress[test_user_id].total_points == 50
    assert second.sync.pending() == []
    await second.close()


@pytest.mark.asyncio
async def test_unreachable_mirror_never_blocks_actions(test_user_id, memory_store, remote, clock):
    remote.fail_with = RemoteSyncError("mirror down")
    session = await open_session(test_user_id, store=memory_store, remote=remote, clock=clock)
    engine = session.engine

    engine.start_challenge()
    for day in range(1, 8):
        engine.complete_task(day_task(engine, day))

    assert engine.progress.is_unlocked("30day-week-one")
    assert await engine.drain() is False
    await session.close()


@pytest.mark.asyncio
async def test_offline_session_persists_to_disk(test_user_id, tmp_path, clock):
    first = SessionContainer(user_id=test_user_id, data_path=tmp_path, clock=clock, use_configured_remote=False)
    engine = await first.start()
    engine.start_challenge()
    engine.complete_assessment(score=91)
    await first.close()

    second = SessionContainer(user_id=test_user_id, data_path=tmp_path, clock=clock, use_configured_remote=False)
    restored = await second.start()

    assert first.remote is None
    assert restored.progress == engine.progress
    assert restored.challenge_status() == ChallengeStatus.ACTIVE
    assert restored.progress.is_unlocked("security-expert")
    await second.close()


@pytest.mark.asyncio
async def test_streak_continues_across_sessions(test_user_id, memory_store, remote, clock):
    for _ in range(3):
        session = await open_session(test_user_id, store=memory_store, remote=remote, clock=clock)
        session.engine.share_content()
        await session.close()
        clock.advance(days=1)

    assert memory_store.load_progress().streak_days == 3
    assert memory_store.load_progress().is_unlocked("streak-starter")


@pytest.mark.asyncio
async def test_reset_is_mirrored(test_user_id, remote, clock):
    first = await open_session(test_user_id, store=LocalStore.in_memory(test_user_id), remote=remote, clock=clock)
    first.engine.start_challenge()
    await first.engine.drain()
    first.engine.reset_challenge()
    await first.close()

    second = await open_session(test_user_id, store=LocalStore.in_memory(test_user_id), remote=remote, clock=clock)

    assert second.engine.challenge_status() == ChallengeStatus.NOT_STARTED
    assert remote.challenges == {}
    await second.close()
