"""Retry logic with exponential backoff and jitter

Used by the remote mirror client:
1. Only retries transient errors (timeouts, connection drops, 429, 5xx)
2. Uses exponential backoff with jitter to prevent thundering herd
3. Gives up after max retries; the caller then leaves the record dirty
"""

import asyncio
import logging
import random
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from privacy_progress.config import REMOTE_MAX_RETRIES

logger = logging.getLogger(__name__)

T = TypeVar('T')

BASE_DELAY = 0.5  # seconds
MAX_DELAY = 8.0  # seconds
JITTER = 0.1  # 10% random jitter

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_retryable_error(exc: Exception) -> bool:
    """
    Determine if a remote error is transient and should be retried.

    Retryable:
    - Timeouts and dropped connections
    - HTTP 429 and 5xx gateway/server errors

    Not retryable:
    - HTTP 4xx client errors (bad payload, auth)
    - Open circuit breaker
    - Anything that is not an httpx error
    """
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES

    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return True

    return False


def calculate_backoff(attempt: int) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Formula: delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY) ± 10%

    Example:
        Attempt 0: ~0.5s
        Attempt 1: ~1s
        Attempt 2: ~2s
    """
    delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)
    jitter_amount = random.uniform(-JITTER * delay, JITTER * delay)
    return max(delay + jitter_amount, 0.0)


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = REMOTE_MAX_RETRIES,
    operation: str | None = None,
    **kwargs: Any
) -> T:
    """
    Retry async function with exponential backoff.

    Args:
        func: Async function to retry
        max_retries: Maximum number of retry attempts
        operation: Name used in logs and metrics (defaults to func.__name__)
        *args, **kwargs: Arguments to pass to func

    Returns:
        Result from func

    Raises:
        Last exception if all retries exhausted or error is not retryable
    """
    name = operation or getattr(func, "__name__", "remote_call")

    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            if attempt == max_retries:
                if max_retries:
                    logger.error(f"[RETRY] All {max_retries} retries exhausted for {name}")
                raise

            if not is_retryable_error(e):
                logger.warning(
                    f"[RETRY] Non-retryable error for {name}: {type(e).__name__}: {e}"
                )
                raise

            backoff = calculate_backoff(attempt)

            from privacy_progress.resilience.metrics import record_retry
            record_retry(name)

            logger.info(
                f"[RETRY] Attempt {attempt + 1}/{max_retries} for {name} "
                f"after {backoff:.2f}s (error: {type(e).__name__})"
            )
            await asyncio.sleep(backoff)

    raise RuntimeError(f"Retry loop for {name} exited without result")


def with_retry(max_retries: int = REMOTE_MAX_RETRIES, operation: str | None = None) -> Callable:
    """
    Decorator to add retry logic to async functions.

    operation names the call in logs and metrics (defaults to func.__name__).

    Example:
        @with_retry(max_retries=2)
        async def fetch():
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await retry_with_backoff(
                func, *args, max_retries=max_retries, operation=operation, **kwargs
            )
        return wrapper
    return decorator
