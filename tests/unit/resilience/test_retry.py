"""Unit tests for retry logic"""
import pytest
import httpx
from unittest.mock import AsyncMock, patch

from privacy_progress.resilience.retry import (
    MAX_DELAY,
    calculate_backoff,
    is_retryable_error,
    retry_with_backoff,
    with_retry,
)


def status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.supabase.co/rest/v1/privacy_user_progress")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError("Error", request=request, response=response)


# ============================================================================
# Classification Tests
# ============================================================================

def test_is_retryable_error_timeout():
    """Test that timeout errors are retryable"""
    assert is_retryable_error(httpx.TimeoutException("Timeout")) is True
    assert is_retryable_error(httpx.ConnectTimeout("Connect timeout")) is True
    assert is_retryable_error(httpx.ReadTimeout("Read timeout")) is True


def test_is_retryable_error_network():
    assert is_retryable_error(httpx.ConnectError("refused")) is True


@pytest.mark.parametrize("code,expected", [
    (429, True), (500, True), (502, True), (503, True), (504, True),
    (400, False), (401, False), (403, False), (404, False), (409, False), (422, False),
])
def test_is_retryable_error_http_status(code, expected):
    assert is_retryable_error(status_error(code)) is expected


def test_is_retryable_error_non_retryable():
    assert is_retryable_error(ValueError("Bad value")) is False
    assert is_retryable_error(KeyError("Missing key")) is False


# ============================================================================
# Backoff Tests
# ============================================================================

def test_calculate_backoff():
    """Delays double from 0.5s with 10% jitter"""
    assert 0.45 <= calculate_backoff(0) <= 0.55
    assert 0.9 <= calculate_backoff(1) <= 1.1
    assert 1.8 <= calculate_backoff(2) <= 2.2


def test_calculate_backoff_max_delay():
    assert calculate_backoff(20) <= MAX_DELAY * 1.1


# ============================================================================
# retry_with_backoff Tests
# ============================================================================

@pytest.mark.asyncio
async def test_retry_with_backoff_success_first_try():
    func = AsyncMock(return_value="ok")

    assert await retry_with_backoff(func, max_retries=2, operation="get_challenge") == "ok"
    func.assert_awaited_once()


@pytest.mark.asyncio
async def test_retry_with_backoff_recovers_from_transient_errors():
    func = AsyncMock(side_effect=[httpx.ConnectError("refused"), status_error(503), "ok"])

    with patch("privacy_progress.resilience.retry.asyncio.sleep", new_callable=AsyncMock) as sleep, \
            patch("privacy_progress.resilience.metrics.record_retry") as record_retry:
        result = await retry_with_backoff(func, max_retries=2, operation="get_challenge")

    assert result == "ok"
    assert func.await_count == 3
    assert sleep.await_count == 2
    record_retry.assert_called_with("get_challenge")


@pytest.mark.asyncio
async def test_retry_with_backoff_gives_up():
    func = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

    with patch("privacy_progress.resilience.retry.asyncio.sleep", new_callable=AsyncMock):
        with pytest.raises(httpx.ReadTimeout):
            await retry_with_backoff(func, max_retries=2)

    assert func.await_count == 3


@pytest.mark.asyncio
async def test_retry_with_backoff_does_not_retry_client_errors():
    func = AsyncMock(side_effect=status_error(400))

    with patch("privacy_progress.resilience.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
        with pytest.raises(httpx.HTTPStatusError):
            await retry_with_backoff(func, max_retries=2)

    func.assert_awaited_once()
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_zero_retries_is_single_attempt():
    func = AsyncMock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(httpx.ConnectError):
        await retry_with_backoff(func, max_retries=0)

    func.assert_awaited_once()


@pytest.mark.asyncio
async def test_retry_passes_arguments():
    func = AsyncMock(return_value=3)

    await retry_with_backoff(func, "a", max_retries=0, key="b")

    func.assert_awaited_once_with("a", key="b")


@pytest.mark.asyncio
async def test_with_retry_decorator():
    attempts = 0

    @with_retry(max_retries=1)
    async def flaky():
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise httpx.ConnectError("refused")
        return "done"

    with patch("privacy_progress.resilience.retry.asyncio.sleep", new_callable=AsyncMock):
        assert await flaky() == "done"

    assert attempts == 2
