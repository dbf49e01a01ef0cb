"""Circuit breaker for the remote progress mirror

Stops hammering the remote service while it is down. Sync is best-effort, so
an open breaker only means pushes wait for the next drain or session start.

State Machine:
    CLOSED (normal) → OPEN (failing fast) → HALF_OPEN (testing) → CLOSED/OPEN
"""

import logging
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import pybreaker

from privacy_progress.config import REMOTE_BREAKER_FAIL_MAX, REMOTE_BREAKER_RESET_TIMEOUT

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CircuitBreakerListener(pybreaker.CircuitBreakerListener):
    """Listener to log circuit breaker state changes and emit metrics"""

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        old_name = old_state.name if old_state else "none"
        logger.warning(
            f"[CIRCUIT_BREAKER] {cb.name}: {old_name} → {new_state.name}"
        )
        from privacy_progress.resilience.metrics import record_circuit_breaker_state
        record_circuit_breaker_state(cb.name, new_state.name.lower().replace("-", "_"))

    def failure(self, cb: pybreaker.CircuitBreaker, exc: BaseException) -> None:
        logger.error(
            f"[CIRCUIT_BREAKER] {cb.name} recorded failure: {type(exc).__name__}: {exc}"
        )
        from privacy_progress.resilience.metrics import record_remote_failure
        record_remote_failure(cb.name, type(exc).__name__)

    def success(self, cb: pybreaker.CircuitBreaker) -> None:
        logger.debug(f"[CIRCUIT_BREAKER] {cb.name} recorded success")


REMOTE_BREAKER = pybreaker.CircuitBreaker(
    fail_max=REMOTE_BREAKER_FAIL_MAX,
    reset_timeout=REMOTE_BREAKER_RESET_TIMEOUT,
    name="progress_remote",
    listeners=[CircuitBreakerListener()]
)


async def call_with_breaker(
    breaker: pybreaker.CircuitBreaker,
    func: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any
) -> T:
    """
    Run a coroutine under the breaker using pybreaker's synchronous API.

    The coroutine is awaited first and its outcome is then replayed through
    breaker.call(), so successes and failures are counted by pybreaker itself.
    While OPEN, a no-op trial call asks pybreaker whether the reset timeout has
    elapsed; once it has, that call is admitted as the half-open trial and the
    real call then runs under a CLOSED breaker.

    Raises:
        pybreaker.CircuitBreakerError: breaker is OPEN (or trips on this failure)
    """
    if breaker.current_state == pybreaker.STATE_OPEN:
        # Raises CircuitBreakerError until reset_timeout has elapsed
        breaker.call(lambda: None)

    outcome: BaseException | None = None
    result: Any = None
    try:
        result = await func(*args, **kwargs)
    except Exception as e:
        outcome = e

    def _replay() -> Any:
        if outcome is not None:
            raise outcome
        return result

    return breaker.call(_replay)


def with_circuit_breaker(breaker: pybreaker.CircuitBreaker) -> Callable:
    """
    Decorator to wrap async functions with circuit breaker protection.

    When the circuit is OPEN, calls fail immediately with CircuitBreakerError
    instead of reaching the remote service.

    Example:
        @with_circuit_breaker(REMOTE_BREAKER)
        async def fetch_challenge():
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await call_with_breaker(breaker, func, *args, **kwargs)
            except pybreaker.CircuitBreakerError:
                logger.warning(
                    f"[CIRCUIT_BREAKER] {breaker.name} is OPEN - failing fast"
                )
                raise
        return wrapper
    return decorator
