"""Bounded retry and polling helpers for external calls.

Retry policy: retry on HTTP 429, 500-599 and connection/timeout errors,
sleeping backoff_base ** (attempt - 1) seconds between attempts.
"""

import logging
import time
from typing import Any, Callable, Optional, TypeVar

import requests

from .cancellation import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollingTimeout(RuntimeError):
    """Raised when poll_until runs out of attempts."""


def is_retryable_status(status: Optional[int]) -> bool:
    """True for rate limit (429) and server errors (500-599)."""
    if status is None:
        return False
    return status == 429 or 500 <= status < 600


def is_retryable_error(exc: BaseException) -> bool:
    """Decide whether a requests exception is worth another attempt."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError):
        response = getattr(exc, "response", None)
        return response is not None and is_retryable_status(response.status_code)
    return False


def _sleep(seconds: float, cancel_token: Optional[CancellationToken]) -> None:
    if cancel_token is None:
        time.sleep(seconds)
    else:
        cancel_token.wait(seconds)


def call_with_retry(
    func: Callable[[], T],
    *,
    max_attempts: int,
    backoff_base: float,
    description: str = "request",
    should_retry: Callable[[BaseException], bool] = is_retryable_error,
    cancel_token: Optional[CancellationToken] = None,
) -> T:
    """Call `func` until it succeeds or attempts run out.

    Args:
        func: Zero-argument callable performing the request
        max_attempts: Total number of attempts (>= 1)
        backoff_base: Base for exponential backoff calculation
        description: Label used in log messages
        should_retry: Predicate deciding whether an exception is transient
        cancel_token: Optional token checked before every attempt

    Returns:
        Whatever `func` returns

    Raises:
        The last exception raised by `func` once attempts are exhausted or
        the exception is not retryable; OperationCancelled on cancel.
    """
    attempts = max(1, max_attempts)

    for attempt in range(1, attempts + 1):
        check_cancelled(cancel_token, description)
        try:
            return func()
        except Exception as exc:
            if attempt >= attempts or not should_retry(exc):
                logger.error(f"{description} failed after {attempt} attempt(s): {exc}")
                raise

            sleep_s = backoff_base ** (attempt - 1)
            logger.warning(
                f"{description} attempt {attempt}/{attempts} failed, "
                f"retry after {sleep_s:.1f}s: {str(exc)[:200]}"
            )
            _sleep(sleep_s, cancel_token)

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{description}: retry loop exited unexpectedly")


def poll_until(
    func: Callable[[], Any],
    *,
    is_done: Callable[[Any], bool],
    max_attempts: int,
    interval_s: float,
    description: str = "poll",
    cancel_token: Optional[CancellationToken] = None,
) -> Any:
    """Call `func` with a fixed delay until `is_done(result)` holds.

    Returns:
        The first result for which is_done() is True

    Raises:
        PollingTimeout: If max_attempts polls did not reach a final state
    """
    for attempt in range(1, max(1, max_attempts) + 1):
        check_cancelled(cancel_token, description)
        result = func()
        if is_done(result):
            logger.debug(f"{description} finished after {attempt} poll(s)")
            return result
        _sleep(interval_s, cancel_token)

    raise PollingTimeout(f"{description} did not complete after {max_attempts} polls")
