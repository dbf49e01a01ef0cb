"""Global test fixtures and utilities for privacy-progress tests"""
import pytest
import pybreaker
from datetime import datetime, timedelta, timezone

from privacy_progress.resilience.circuit_breaker import REMOTE_BREAKER
from privacy_progress.storage.local_store import LocalStore
from privacy_progress.storage.remote import InMemoryRemoteStore
from privacy_progress.utils.datetime_helpers import Clock


class FrozenClock(Clock):
    """Clock whose 'now' only moves when a test moves it"""

    def __init__(self, start: datetime, tz_name: str = "UTC"):
        self.current = start
        super().__init__(tz_name, now_func=lambda: self.current)

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


# ============================================================================
# Identity & Time Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def start_time():
    """Mid-day UTC so day arithmetic never straddles midnight by accident"""
    return datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(start_time):
    """Frozen UTC clock"""
    return FrozenClock(start_time)


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def memory_store(test_user_id):
    """Local store kept in memory"""
    return LocalStore.in_memory(test_user_id)


@pytest.fixture
def file_store(tmp_path, test_user_id):
    """Local store writing JSON files under a temp directory"""
    return LocalStore.for_user(test_user_id, tmp_path)


@pytest.fixture
def remote():
    """In-memory remote mirror"""
    return InMemoryRemoteStore()


# ============================================================================
# Resilience Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def reset_remote_breaker():
    """Every test starts with a closed remote breaker"""
    REMOTE_BREAKER.close()
    yield
    REMOTE_BREAKER.close()


@pytest.fixture
def test_breaker():
    """Isolated breaker with a low threshold"""
    return pybreaker.CircuitBreaker(fail_max=3, reset_timeout=60, name="test_breaker")
