"""Unit tests for custom exception hierarchy"""
import httpx
import pytest
from datetime import datetime

from privacy_progress.exceptions import (
    ChallengeStateError,
    ConfigurationError,
    CorruptStateError,
    ExternalAPIError,
    ProgressEngineError,
    RecordNotFoundError,
    RemoteSyncError,
    StorageError,
    TaskNotFoundError,
    ValidationError,
    wrap_external_exception,
)


class TestProgressEngineError:
    """Test base exception class"""

    def test_basic_exception(self):
        error = ProgressEngineError("Test error")

        assert error.message == "Test error"
        assert error.user_message == "Something went wrong while updating your progress."
        assert error.request_id is not None
        assert isinstance(error.timestamp, datetime)

    def test_exception_with_context(self):
        cause = RuntimeError("disk full")
        error = ProgressEngineError(
            "Failed to persist",
            user_id="user-123",
            operation="complete_task",
            context={"task_id": "day-1-password-audit"},
            cause=cause,
        )

        assert error.user_id == "user-123"
        assert error.operation == "complete_task"
        assert error.context["task_id"] == "day-1-password-audit"
        assert error.cause is cause

    def test_to_dict(self):
        error = ProgressEngineError("Test error", request_id="req-1")

        data = error.to_dict()

        assert data["error"] == "ProgressEngineError"
        assert data["request_id"] == "req-1"
        assert "timestamp" in data

    def test_auto_logs_on_creation(self, caplog):
        with caplog.at_level("ERROR"):
            ProgressEngineError("logged error")

        assert "ProgressEngineError: logged error" in caplog.text


class TestPreconditionErrors:
    """Test caller-bug exceptions"""

    def test_validation_error_is_value_error(self):
        error = ValidationError("Points cannot be negative", field="points", value=-5)

        assert isinstance(error, ValueError)
        assert error.field == "points"
        assert error.value == -5
        assert error.user_message == "Invalid points: Points cannot be negative"

    def test_task_not_found(self):
        error = TaskNotFoundError("day-99")

        assert isinstance(error, RecordNotFoundError)
        assert error.record_id == "day-99"
        assert "day-99" in error.message

    def test_challenge_state_error(self):
        error = ChallengeStateError("Already active", current_status="active")

        assert error.current_status == "active"
        assert error.context == {"current_status": "active"}


class TestStorageAndRemoteErrors:
    """Test storage and remote failure exceptions"""

    def test_corrupt_state_is_storage_error(self):
        error = CorruptStateError("bad blob", key="progress")

        assert isinstance(error, StorageError)
        assert error.key == "progress"

    def test_remote_sync_error_defaults_service(self):
        error = RemoteSyncError("mirror down", status_code=503)

        assert isinstance(error, ExternalAPIError)
        assert error.service == "progress sync"
        assert error.status_code == 503
        assert "saved on this device" in error.user_message

    def test_configuration_error(self):
        error = ConfigurationError("missing", config_key="SUPABASE_URL")

        assert error.config_key == "SUPABASE_URL"


class TestWrapExternalException:
    """Test mapping of httpx errors"""

    def test_passthrough_for_own_errors(self):
        error = RemoteSyncError("already wrapped")

        assert wrap_external_exception(error, operation="get_challenge") is error

    def test_timeout(self):
        wrapped = wrap_external_exception(httpx.ReadTimeout("slow"), operation="get_challenge")

        assert isinstance(wrapped, RemoteSyncError)
        assert "timed out" in wrapped.message

    def test_http_status(self):
        request = httpx.Request("GET", "https://example.supabase.co/rest/v1/x")
        response = httpx.Response(503, request=request)
        error = httpx.HTTPStatusError("unavailable", request=request, response=response)

        wrapped = wrap_external_exception(error, operation="get_challenge", user_id="user-123")

        assert isinstance(wrapped, RemoteSyncError)
        assert wrapped.status_code == 503
        assert wrapped.user_id == "user-123"

    def test_transport_error(self):
        wrapped = wrap_external_exception(httpx.ConnectError("refused"), operation="get_challenge")

        assert isinstance(wrapped, RemoteSyncError)

    def test_generic_fallback(self):
        wrapped = wrap_external_exception(KeyError("x"), operation="parse")

        assert type(wrapped) is ProgressEngineError
        assert wrapped.operation == "parse"
