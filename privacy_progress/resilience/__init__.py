"""Resilience patterns for remote mirror calls

Circuit breaker, retry with backoff and metrics that keep a flaky remote
service from ever blocking local progress updates.
"""

from privacy_progress.resilience.circuit_breaker import (
    REMOTE_BREAKER,
    call_with_breaker,
    with_circuit_breaker,
)
from privacy_progress.resilience.retry import retry_with_backoff, with_retry, is_retryable_error
from privacy_progress.resilience.metrics import (
    record_circuit_breaker_state,
    record_remote_call,
    record_remote_failure,
    record_retry,
)

__all__ = [
    # Circuit Breaker
    "REMOTE_BREAKER",
    "call_with_breaker",
    "with_circuit_breaker",
    # Retry
    "retry_with_backoff",
    "with_retry",
    "is_retryable_error",
    # Metrics
    "record_circuit_breaker_state",
    "record_remote_call",
    "record_remote_failure",
    "record_retry",
]
