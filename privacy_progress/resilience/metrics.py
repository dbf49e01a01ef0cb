"""Prometheus metrics for remote call resilience

Exposes metrics for the circuit breaker, remote calls and retries made by
the remote mirror client.
"""

import logging
from prometheus_client import Counter, Histogram, Enum

logger = logging.getLogger(__name__)

# Values: closed, open, half_open
circuit_breaker_state = Enum(
    'remote_circuit_breaker_state',
    'Current state of the remote circuit breaker',
    ['breaker'],
    states=['closed', 'open', 'half_open']
)

# Labels: operation (get_challenge/update_user_progress/...), status (success/failure)
remote_calls_total = Counter(
    'remote_calls_total',
    'Total number of remote mirror calls',
    ['operation', 'status']
)

remote_call_duration = Histogram(
    'remote_call_duration_seconds',
    'Duration of remote mirror calls in seconds',
    ['operation'],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float('inf'))
)

# Labels: breaker, error_type (TimeoutException/HTTPStatusError/...)
remote_failures_total = Counter(
    'remote_failures_total',
    'Total number of remote failures recorded by the breaker',
    ['breaker', 'error_type']
)

remote_retries_total = Counter(
    'remote_retries_total',
    'Total number of remote retry attempts',
    ['operation']
)


def record_circuit_breaker_state(breaker: str, state: str) -> None:
    """
    Record circuit breaker state change.

    Args:
        breaker: Breaker name
        state: New state (closed, open, half_open)
    """
    try:
        circuit_breaker_state.labels(breaker=breaker).state(state)
        logger.debug(f"[METRICS] Circuit breaker {breaker} state: {state}")
    except Exception as e:
        logger.error(f"Failed to record circuit breaker state: {e}")


def record_remote_call(operation: str, success: bool, duration: float) -> None:
    try:
        status = 'success' if success else 'failure'
        remote_calls_total.labels(operation=operation, status=status).inc()
        remote_call_duration.labels(operation=operation).observe(duration)
        logger.debug(f"[METRICS] Remote call {operation}: {status}, duration: {duration:.2f}s")
    except Exception as e:
        logger.error(f"Failed to record remote call metrics: {e}")


def record_remote_failure(breaker: str, error_type: str) -> None:
    try:
        remote_failures_total.labels(breaker=breaker, error_type=error_type).inc()
    except Exception as e:
        logger.error(f"Failed to record remote failure: {e}")


def record_retry(operation: str) -> None:
    try:
        remote_retries_total.labels(operation=operation).inc()
        logger.debug(f"[METRICS] Retry attempt for {operation}")
    except Exception as e:
        logger.error(f"Failed to record retry: {e}")
