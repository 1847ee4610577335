"""Tests for retry and polling helpers."""

from unittest.mock import Mock, patch

import pytest
import requests

from layout_translator.core.cancellation import CancellationToken, OperationCancelled
from layout_translator.core.retry import (
    PollingTimeout,
    call_with_retry,
    is_retryable_error,
    is_retryable_status,
    poll_until,
)


def _http_error(status: int) -> requests.HTTPError:
    response = Mock()
    response.status_code = status
    return requests.HTTPError(f"HTTP {status}", response=response)


class TestRetryClassification:
    """Test suite for retryable error detection."""

    @pytest.mark.parametrize("status,expected", [
        (429, True), (500, True), (503, True), (599, True),
        (400, False), (401, False), (404, False), (None, False),
    ])
    def test_status_codes(self, status, expected) -> None:
        """Test which HTTP statuses are retried."""
        assert is_retryable_status(status) is expected

    def test_connection_errors_retryable(self) -> None:
        """Test connection problems and timeouts are retried."""
        assert is_retryable_error(requests.ConnectionError("down"))
        assert is_retryable_error(requests.Timeout("slow"))

    def test_http_errors(self) -> None:
        """Test HTTP errors are classified by status."""
        assert is_retryable_error(_http_error(503))
        assert not is_retryable_error(_http_error(400))

    def test_other_errors_not_retryable(self) -> None:
        """Test programming errors are never retried."""
        assert not is_retryable_error(ValueError("bad"))


class TestCallWithRetry:
    """Test suite for call_with_retry."""

    @patch("layout_translator.core.retry.time.sleep")
    def test_retry_then_success(self, mock_sleep) -> None:
        """Test transient failures are retried with exponential backoff."""
        func = Mock(side_effect=[requests.ConnectionError("x"), _http_error(429), "ok"])

        result = call_with_retry(func, max_attempts=3, backoff_base=2.0)

        assert result == "ok"
        assert func.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch("layout_translator.core.retry.time.sleep")
    def test_non_retryable_raises_immediately(self, mock_sleep) -> None:
        """Test a 4xx error is raised without retry."""
        func = Mock(side_effect=_http_error(401))

        with pytest.raises(requests.HTTPError):
            call_with_retry(func, max_attempts=3, backoff_base=1.5)

        assert func.call_count == 1
        mock_sleep.assert_not_called()

    @patch("layout_translator.core.retry.time.sleep")
    def test_attempts_exhausted(self, mock_sleep) -> None:
        """Test the last exception is raised when attempts run out."""
        func = Mock(side_effect=requests.ConnectionError("down"))

        with pytest.raises(requests.ConnectionError):
            call_with_retry(func, max_attempts=3, backoff_base=1.5)

        assert func.call_count == 3
        assert mock_sleep.call_count == 2

    def test_cancelled_before_attempt(self) -> None:
        """Test a cancelled token prevents the call."""
        token = CancellationToken()
        token.cancel()
        func = Mock(return_value="ok")

        with pytest.raises(OperationCancelled):
            call_with_retry(func, max_attempts=3, backoff_base=1.5, cancel_token=token)

        func.assert_not_called()

    def test_backoff_uses_token_wait(self) -> None:
        """Test backoff sleeps through the token so cancel wakes it."""
        token = Mock(spec=CancellationToken)
        token.cancelled = False
        func = Mock(side_effect=[requests.Timeout("slow"), "ok"])

        assert call_with_retry(func, max_attempts=2, backoff_base=1.5, cancel_token=token) == "ok"
        token.wait.assert_called_once_with(1.0)


class TestPollUntil:
    """Test suite for poll_until."""

    def test_returns_first_done_result(self) -> None:
        """Test polling stops at the first final state."""
        func = Mock(side_effect=[{"status": "running"}, {"status": "running"}, {"status": "succeeded"}])

        result = poll_until(func, is_done=lambda r: r["status"] == "succeeded", max_attempts=5, interval_s=0)

        assert result == {"status": "succeeded"}
        assert func.call_count == 3

    def test_timeout(self) -> None:
        """Test PollingTimeout after max_attempts."""
        func = Mock(return_value=False)

        with pytest.raises(PollingTimeout):
            poll_until(func, is_done=bool, max_attempts=3, interval_s=0)

        assert func.call_count == 3
