"""
Standardized exception hierarchy for the progress engine
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class ProgressEngineError(Exception):
    """
    Base exception for all progress engine errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise ProgressEngineError(
            message="Failed to persist challenge",
            user_id="user-42",
            operation="complete_task",
            context={"task_id": "day-3-social-privacy-check"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "Something went wrong while updating your progress."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # 'message' is reserved by LogRecord
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for the UI layer"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Precondition Violations (caller bugs)
# ==========================================

class ValidationError(ProgressEngineError, ValueError):
    """
    Raised when a caller passes an argument the engine must reject

    Examples:
    - Negative point award
    - Assessment score outside 0..100
    - Empty action id
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


class RecordNotFoundError(ProgressEngineError):
    """Requested record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class TaskNotFoundError(RecordNotFoundError):
    """Task id is not part of the 30-day catalog"""

    def __init__(self, task_id: str, **kwargs):
        super().__init__(
            message=f"Unknown challenge task '{task_id}'",
            record_type="Task",
            record_id=task_id,
            **kwargs
        )


class ChallengeStateError(ProgressEngineError):
    """Operation is not valid in the challenge's current state"""

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        **kwargs
    ):
        self.current_status = current_status
        super().__init__(
            message=message,
            user_message="That isn't possible at this stage of your 30-day plan.",
            context={"current_status": current_status},
            **kwargs
        )


# ==========================================
# Local Storage Errors
# ==========================================

class StorageError(ProgressEngineError):
    """Base class for local storage errors"""
    pass


class CorruptStateError(StorageError):
    """Persisted blob could not be decoded or validated"""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        self.key = key
        super().__init__(
            message=message,
            user_message="Your saved progress could not be read and was reset.",
            context={"key": key},
            **kwargs
        )


# ==========================================
# Remote Mirror Errors
# ==========================================

class ExternalAPIError(ProgressEngineError):
    """
    Base class for remote service failures
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        kwargs.setdefault(
            "user_message",
            f"We're having trouble reaching {service or 'the sync service'}. Your progress is saved on this device."
        )
        super().__init__(
            message=message,
            context={"service": service, "status_code": status_code},
            **kwargs
        )


class RemoteSyncError(ExternalAPIError):
    """Remote progress mirror call failed"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("service", "progress sync")
        super().__init__(message=message, **kwargs)


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(ProgressEngineError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The progress engine is not properly configured.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> ProgressEngineError:
    """
    Wrap httpx exceptions raised by the remote client into our hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate ProgressEngineError subclass

    Example:
        try:
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise wrap_external_exception(e, operation="get_challenge", user_id=user_id)
    """
    import httpx

    if isinstance(error, ProgressEngineError):
        return error

    if isinstance(error, httpx.TimeoutException):
        return RemoteSyncError(
            message=f"Remote request timed out: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPStatusError):
        return RemoteSyncError(
            message=f"Remote returned error: {error.response.status_code}",
            status_code=error.response.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPError):
        return RemoteSyncError(
            message=f"Remote request failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    return ProgressEngineError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
