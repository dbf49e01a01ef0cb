"""
Prometheus metrics definitions for the progress engine.

Organized by category:
- Gamification metrics: points, level-ups, achievement unlocks
- Challenge metrics: starts, task completions, resets
- Sync metrics: remote mirror pushes and rehydrations
- Local storage metrics: fallbacks on unreadable state

The host application exposes the default registry for Prometheus scraping.
"""

import logging
from prometheus_client import Counter

logger = logging.getLogger(__name__)

# =============================================================================
# Gamification Metrics
# =============================================================================

gamification_points_awarded_total = Counter(
    "gamification_points_awarded_total",
    "Total points awarded",
    ["source"],  # source: action-completion/assessment-completion/achievement/task/...
)

gamification_level_ups_total = Counter(
    "gamification_level_ups_total",
    "Total level-ups observed",
)

gamification_achievements_unlocked_total = Counter(
    "gamification_achievements_unlocked_total",
    "Total achievements unlocked",
    ["catalog"],  # catalog: general/challenge
)

# =============================================================================
# Challenge Metrics
# =============================================================================

challenge_transitions_total = Counter(
    "challenge_transitions_total",
    "Challenge lifecycle transitions",
    ["transition"],  # transition: started/completed/reset
)

challenge_tasks_completed_total = Counter(
    "challenge_tasks_completed_total",
    "Challenge tasks completed",
    ["difficulty"],
)

# =============================================================================
# Sync Metrics
# =============================================================================

sync_pushes_total = Counter(
    "sync_pushes_total",
    "Remote mirror pushes",
    ["record", "status"],  # status: success/failure
)

sync_rehydrations_total = Counter(
    "sync_rehydrations_total",
    "Cold-start loads from the remote mirror",
    ["record", "outcome"],  # outcome: applied/absent/local_wins/skipped/failed
)

# =============================================================================
# Local Storage Metrics
# =============================================================================

local_store_fallbacks_total = Counter(
    "local_store_fallbacks_total",
    "Unreadable persisted records replaced by defaults",
    ["key"],
)


def record_points_awarded(source: str, points: int) -> None:
    try:
        gamification_points_awarded_total.labels(source=source).inc(points)
    except Exception as e:
        logger.error(f"Failed to record points metric: {e}")


def record_level_up() -> None:
    try:
        gamification_level_ups_total.inc()
    except Exception as e:
        logger.error(f"Failed to record level-up metric: {e}")


def record_achievement_unlocked(catalog: str) -> None:
    try:
        gamification_achievements_unlocked_total.labels(catalog=catalog).inc()
    except Exception as e:
        logger.error(f"Failed to record achievement metric: {e}")


def record_challenge_transition(transition: str) -> None:
    try:
        challenge_transitions_total.labels(transition=transition).inc()
    except Exception as e:
        logger.error(f"Failed to record challenge transition metric: {e}")


def record_task_completed(difficulty: str) -> None:
    try:
        challenge_tasks_completed_total.labels(difficulty=difficulty).inc()
    except Exception as e:
        logger.error(f"Failed to record task completion metric: {e}")


def record_sync_push(record: str, success: bool) -> None:
    try:
        status = "success" if success else "failure"
        sync_pushes_total.labels(record=record, status=status).inc()
    except Exception as e:
        logger.error(f"Failed to record sync push metric: {e}")


def record_rehydration(record: str, outcome: str) -> None:
    try:
        sync_rehydrations_total.labels(record=record, outcome=outcome).inc()
    except Exception as e:
        logger.error(f"Failed to record rehydration metric: {e}")


def record_store_fallback(key: str) -> None:
    try:
        local_store_fallbacks_total.labels(key=key).inc()
    except Exception as e:
        logger.error(f"Failed to record store fallback metric: {e}")
