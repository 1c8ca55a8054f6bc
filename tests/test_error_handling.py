"""
Tests for error handling, exceptions, and retry logic.
"""

from unittest.mock import Mock, patch

import pytest
from pyVmomi import vmodl

from affinity_reconcile.exceptions import (
    AffinityReconcileError,
    DivisionUndefined,
    InvalidConfigError,
    InvalidPlanShape,
    LookupFailure,
    PlatformError,
    PlatformNotAvailableError,
    RelocationInFlightError,
    ResolutionFailure,
    RetryableError,
    Unclassifiable,
    WorkspaceNotFoundError,
    format_error_for_cli,
)
from affinity_reconcile.util.retry import (
    Backoff,
    RetryStrategy,
    is_retryable_error,
    log_retry,
    retry_with_backoff,
)


class TestCustomExceptions:
    """Tests for custom exception classes."""

    def test_base_error(self):
        """Test base exception."""
        error = AffinityReconcileError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.suggestion is None

    def test_base_error_with_suggestion(self):
        """Test exception with suggestion."""
        error = AffinityReconcileError("Test error", "Try this fix")
        assert "Test error" in str(error)
        assert "Try this fix" in str(error)

    def test_workspace_not_found_error(self):
        error = WorkspaceNotFoundError()
        assert "workspace" in str(error).lower()
        assert "init" in str(error).lower()

    def test_workspace_not_found_error_with_path(self):
        error = WorkspaceNotFoundError("/some/path")
        assert "/some/path" in str(error)

    def test_invalid_config_error(self):
        error = InvalidConfigError("platform is a required property")
        assert "platform is a required property" in error.message
        assert "affinity-reconcile init" in error.suggestion

    def test_platform_not_available_error(self):
        error = PlatformNotAvailableError("vsphere", "VC_PASSWORD")
        assert "vsphere" in str(error)
        assert "VC_PASSWORD" in str(error)
        assert isinstance(error, PlatformError)

    def test_lookup_failure(self):
        """Test that lookup failures name the kind and the missing resource."""
        error = LookupFailure("storage pool", "alpha_pod09")
        assert error.message == "Storage pool not found: alpha_pod09"
        assert error.kind == "storage pool"
        assert error.name == "alpha_pod09"

    def test_resolution_failure(self):
        error = ResolutionFailure("web05", "alpha_pod01", "no proposals")
        assert "web05" in error.message
        assert "alpha_pod01" in error.message
        assert "No relocation was submitted" in error.suggestion

    def test_division_undefined(self):
        assert DivisionUndefined("no hosts").domain is None
        error = DivisionUndefined("no hosts", domain="alpha")
        assert "'alpha'" in error.message

    def test_invalid_plan_shape(self):
        error = InvalidPlanShape("web02", expected=2, actual=1)
        assert "1 disk destination(s)" in error.message
        assert "2 disk(s)" in error.message

    def test_unclassifiable(self):
        error = Unclassifiable("rogue09", ["gamma_ds01", "shared_nfs01"])
        assert "gamma_ds01, shared_nfs01" in error.message
        assert Unclassifiable("rogue10", []).message.endswith("(inspected: no storage)")

    def test_relocation_in_flight(self):
        error = RelocationInFlightError("web02", "task-3")
        assert "task-3" in error.message

    def test_retryable_error(self):
        error = RetryableError(ConnectionError("reset"), 4, 4)
        assert "attempt 4/4" in error.message
        assert "reset" in error.message


class TestErrorFormatting:
    """Tests for CLI error formatting."""

    def test_format_custom_error(self):
        error = AffinityReconcileError("Something went wrong")
        formatted = format_error_for_cli(error)

        assert "Error:" in formatted
        assert "Something went wrong" in formatted

    def test_format_custom_error_with_suggestion(self):
        error = AffinityReconcileError("Something went wrong", "Try this")
        formatted = format_error_for_cli(error)

        assert "Something went wrong" in formatted
        assert "Try this" in formatted

    def test_format_generic_error(self):
        formatted = format_error_for_cli(ValueError("Invalid value"))

        assert "Error:" in formatted
        assert "Invalid value" in formatted


FAST = Backoff(max_attempts=3, initial_delay=0.01)


class TestBackoff:
    def test_delays(self):
        backoff = Backoff(max_attempts=4, initial_delay=1.0, factor=3.0, max_delay=5.0)
        assert list(backoff.delays()) == [1.0, 3.0, 5.0]

    def test_single_attempt_has_no_delays(self):
        assert list(Backoff(max_attempts=1).delays()) == []


class TestRetryLogic:
    """Tests for retry mechanisms."""

    def test_retry_with_backoff_success_first_try(self):
        """Test successful operation on first try."""
        mock_func = Mock(return_value="success")

        @retry_with_backoff(FAST)
        def operation():
            return mock_func()

        assert operation() == "success"
        assert mock_func.call_count == 1

    def test_retry_with_backoff_success_after_failures(self):
        """Test success after some transient failures."""
        mock_func = Mock(side_effect=[ConnectionError("reset"), TimeoutError("timed out"), "success"])

        @retry_with_backoff(FAST)
        def operation():
            return mock_func()

        assert operation() == "success"
        assert mock_func.call_count == 3

    def test_retry_with_backoff_all_failures(self):
        """Test all attempts failing."""
        mock_func = Mock(side_effect=ConnectionError("connection refused"))

        @retry_with_backoff(FAST)
        def operation():
            return mock_func()

        with pytest.raises(RetryableError) as exc_info:
            operation()

        assert mock_func.call_count == 3
        assert isinstance(exc_info.value.original_error, ConnectionError)
        assert exc_info.value.attempt == 3

    def test_sleeps_follow_schedule(self):
        mock_func = Mock(side_effect=ConnectionError("reset"))

        @retry_with_backoff(Backoff(max_attempts=4, initial_delay=1.0, factor=3.0, max_delay=5.0))
        def operation():
            return mock_func()

        with patch("affinity_reconcile.util.retry.time.sleep") as sleep:
            with pytest.raises(RetryableError):
                operation()

        assert [call.args[0] for call in sleep.call_args_list] == [1.0, 3.0, 5.0]

    def test_non_transient_error_not_retried(self):
        """Test that a retryable type with a permanent cause propagates at once."""
        mock_func = Mock(side_effect=OSError("permission denied"))

        @retry_with_backoff(FAST, retryable_exceptions=(OSError,))
        def operation():
            return mock_func()

        with pytest.raises(OSError):
            operation()

        assert mock_func.call_count == 1

    def test_retry_with_custom_exceptions(self):
        """Test retry only on specific exceptions."""
        mock_func = Mock(side_effect=ValueError("connection string malformed"))

        @retry_with_backoff(FAST, retryable_exceptions=(ConnectionError,))
        def operation():
            return mock_func()

        with pytest.raises(ValueError):
            operation()

        assert mock_func.call_count == 1

    def test_retry_with_callback(self):
        """Test retry callback is called."""
        callback_calls = []

        def on_retry(error, attempt, max_attempts):
            callback_calls.append((error, attempt, max_attempts))

        mock_func = Mock(side_effect=[ConnectionError("e1"), ConnectionError("e2"), "success"])

        @retry_with_backoff(FAST, on_retry=on_retry)
        def operation():
            return mock_func()

        assert operation() == "success"
        assert [call[1] for call in callback_calls] == [1, 2]
        assert callback_calls[0][2] == 3

    def test_log_retry(self, caplog):
        with caplog.at_level("WARNING", logger="affinity_reconcile.util.retry"):
            log_retry(ConnectionError("reset"), 1, 4)
        assert "Attempt 1/4 failed" in caplog.text


class TestRetryableErrorDetection:
    """Tests for retryable error detection."""

    def test_connection_error(self):
        assert is_retryable_error(ConnectionError("Connection refused"))

    def test_timeout_error(self):
        assert is_retryable_error(TimeoutError("Request timed out"))

    def test_gateway_error(self):
        assert is_retryable_error(Exception("503 Service Unavailable"))

    def test_busy_vcenter(self):
        assert is_retryable_error(Exception("vCenter is busy"))

    def test_host_communication_fault(self):
        assert is_retryable_error(vmodl.fault.HostCommunication())

    def test_validation_error(self):
        assert not is_retryable_error(ValueError("Invalid input"))

    def test_login_failure(self):
        assert not is_retryable_error(
            Exception("Cannot complete login due to an incorrect user name or password")
        )

    def test_other_method_fault(self):
        assert not is_retryable_error(vmodl.fault.InvalidArgument(msg="A specified parameter was not correct"))


class TestRetryStrategies:
    """Tests for predefined retry strategies."""

    def test_platform_api_strategy(self):
        strategy = RetryStrategy.get("PLATFORM_API")
        assert strategy.max_attempts == 4
        assert strategy.max_delay == 20.0

    def test_conservative_strategy(self):
        assert RetryStrategy.get("conservative").initial_delay == 2.0

    def test_unknown_strategy_falls_back(self):
        assert RetryStrategy.get("NOPE") is RetryStrategy.MODERATE

    def test_non_preset_attribute_falls_back(self):
        assert RetryStrategy.get("get") is RetryStrategy.MODERATE
