"""Unit tests for Achievement System (privacy_progress/gamification/achievement_system.py)"""
import pytest
from unittest.mock import patch

from privacy_progress.gamification.achievement_system import (
    CHALLENGE_ACHIEVEMENTS,
    CHALLENGE_CATALOG,
    GENERAL_ACHIEVEMENTS,
    AchievementContext,
    AchievementDefinition,
    AchievementEngine,
    ensure_disjoint,
)
from privacy_progress.gamification.point_ledger import PointLedger
from privacy_progress.models.achievement import AchievementCategory


@pytest.fixture
def ledger(memory_store, clock):
    return PointLedger(memory_store, clock)


@pytest.fixture
def engine(ledger):
    return AchievementEngine(GENERAL_ACHIEVEMENTS, ledger)


# ============================================================================
# Catalog Tests
# ============================================================================

def test_catalog_ids_are_unique_across_catalogs():
    ids = [a.id for a in GENERAL_ACHIEVEMENTS + CHALLENGE_ACHIEVEMENTS]
    assert len(ids) == len(set(ids))


def test_challenge_catalog_pays_no_points():
    """Week milestones already pay through the general catalog"""
    assert all(a.points == 0 for a in CHALLENGE_ACHIEVEMENTS)


def test_ensure_disjoint_rejects_duplicates():
    row = GENERAL_ACHIEVEMENTS[0]

    with pytest.raises(ValueError):
        ensure_disjoint([row], [row])


def test_general_catalog_rewards():
    rewards = {a.id: a.points for a in GENERAL_ACHIEVEMENTS}

    assert rewards["first-assessment"] == 50
    assert rewards["action-hero"] == 25
    assert rewards["30day-challenge-starter"] == 100
    assert rewards["30day-complete"] == 1000


# ============================================================================
# Evaluation Tests
# ============================================================================

def test_nothing_unlocks_on_empty_context(engine, ledger):
    states = {}

    assert engine.evaluate(states, AchievementContext()) == []
    assert states == {}
    assert ledger.progress.total_points == 0


def test_first_action_unlocks_action_hero(engine, ledger):
    states = {}

    unlocked = engine.evaluate(states, AchievementContext(completed_action_count=1))

    assert unlocked == ["action-hero"]
    assert states["action-hero"].unlocked is True
    assert states["action-hero"].unlocked_at is not None
    assert ledger.progress.total_points == 25


def test_evaluate_is_idempotent(engine, ledger):
    """A second pass over the same context unlocks and pays nothing"""
    states = {}
    context = AchievementContext(assessment_count=1, completed_action_count=1)

    first = engine.evaluate(states, context)
    total = ledger.progress.total_points
    second = engine.evaluate(states, context)

    assert set(first) == {"first-assessment", "action-hero"}
    assert second == []
    assert ledger.progress.total_points == total


def test_rewards_are_paid_as_one_award(engine, ledger):
    """Several unlocks in one pass produce a single ledger award"""
    states = {}
    context = AchievementContext(assessment_count=5, best_assessment_score=95)

    with patch.object(ledger, "award", wraps=ledger.award) as award:
        unlocked = engine.evaluate(states, context)

    assert unlocked == ["first-assessment", "assessment-master", "security-expert"]
    award.assert_called_once_with(750, source="achievement")


def test_unlock_never_reverts(engine):
    states = {}
    engine.evaluate(states, AchievementContext(streak_days=3))

    # Streak broke; the badge stays
    engine.evaluate(states, AchievementContext(streak_days=1))

    assert states["streak-starter"].unlocked is True


def test_unlocks_follow_catalog_order(engine):
    context = AchievementContext(
        challenge_started=True,
        challenge_completed_days=30,
    )

    unlocked = engine.evaluate({}, context)

    assert unlocked == [
        "30day-challenge-starter",
        "30day-week-one",
        "30day-week-two",
        "30day-week-three",
        "30day-complete",
    ]


def test_security_expert_threshold(engine):
    assert engine.evaluate({}, AchievementContext(best_assessment_score=89)) == []
    assert engine.evaluate({}, AchievementContext(best_assessment_score=90)) == ["security-expert"]


def test_challenge_catalog_streak_keeper(ledger):
    engine = AchievementEngine(CHALLENGE_ACHIEVEMENTS, ledger, CHALLENGE_CATALOG)

    unlocked = engine.evaluate({}, AchievementContext(challenge_streak=7))

    assert unlocked == ["challenge:streak-keeper"]
    assert ledger.progress.total_points == 0


def test_custom_catalog_row(ledger):
    """Adding an achievement is adding a row"""
    row = AchievementDefinition(
        id="sharer",
        title="Sharer",
        description="Share once",
        icon="Share2",
        points=5,
        category=AchievementCategory.SOCIAL,
        predicate=lambda ctx: ctx.social_share_count >= 1,
    )
    engine = AchievementEngine([row], ledger)

    assert engine.evaluate({}, AchievementContext(social_share_count=1)) == ["sharer"]
    assert ledger.progress.total_points == 5


# ============================================================================
# View Tests
# ============================================================================

def test_views_include_locked(engine):
    states = {}
    engine.evaluate(states, AchievementContext(completed_action_count=1))

    views = engine.views(states)

    assert len(views) == len(GENERAL_ACHIEVEMENTS)
    hero = next(v for v in views if v.id == "action-hero")
    assert hero.unlocked is True
    assert hero.catalog == "general"


def test_views_unlocked_only(engine):
    states = {}
    engine.evaluate(states, AchievementContext(completed_action_count=1))

    views = engine.views(states, include_locked=False)

    assert [v.id for v in views] == ["action-hero"]


def test_get_definition(engine):
    assert engine.get_definition("streak-master").points == 300
    assert engine.get_definition("missing") is None
