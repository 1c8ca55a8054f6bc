"""
Retry with exponential backoff for platform read calls.

Only idempotent inventory queries are retried. Relocation submissions and
group edits are never wrapped here: a retried mutation could be applied twice.
"""

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from functools import wraps
from typing import TypeVar

from pyVmomi import vmodl

from affinity_reconcile.exceptions import RetryableError

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Faults vCenter raises when it, or a host behind it, is briefly unreachable.
TRANSIENT_FAULTS = (vmodl.fault.HostCommunication, vmodl.fault.SystemError)

TRANSIENT_MARKERS = (
    "connection",
    "timed out",
    "timeout",
    "unreachable",
    "broken pipe",
    "503",
    "502",
    "504",
    "busy",
)


@dataclass(frozen=True)
class Backoff:
    """Attempt budget and delay schedule for one retried call."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    factor: float = 2.0
    max_delay: float = 30.0

    def delays(self) -> Iterator[float]:
        """Delay before each retry, one fewer than ``max_attempts``."""
        delay = self.initial_delay
        for _ in range(self.max_attempts - 1):
            yield min(delay, self.max_delay)
            delay *= self.factor


class RetryStrategy:
    """Named Backoff presets."""

    MODERATE = Backoff(max_attempts=3, initial_delay=1.0, factor=2.0, max_delay=30.0)
    CONSERVATIVE = Backoff(max_attempts=2, initial_delay=2.0, factor=3.0, max_delay=60.0)
    PLATFORM_API = Backoff(max_attempts=4, initial_delay=1.0, factor=2.0, max_delay=20.0)

    @staticmethod
    def get(name: str = "MODERATE") -> Backoff:
        """Preset by name; unknown names get MODERATE."""
        preset = getattr(RetryStrategy, name.upper(), None)
        return preset if isinstance(preset, Backoff) else RetryStrategy.MODERATE


def is_retryable_error(error: Exception) -> bool:
    """
    Whether ``error`` looks like a transient transport or vCenter fault.

    Connection resets, timeouts, gateway errors and a busy vCenter are
    transient. Login failures, lookups and validation errors are not.
    """
    if isinstance(error, (ConnectionError, TimeoutError, *TRANSIENT_FAULTS)):
        return True

    text = (getattr(error, "msg", None) or str(error)).lower()
    return any(marker in text for marker in TRANSIENT_MARKERS)


def log_retry(error: Exception, attempt: int, max_attempts: int) -> None:
    """``on_retry`` callback that reports each failed attempt to the log."""
    logger.warning(f"Attempt {attempt}/{max_attempts} failed: {error}. Retrying...")


def retry_with_backoff(
    backoff: Backoff = RetryStrategy.MODERATE,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[Exception, int, int], None] | None = None,
):
    """
    Decorator that retries transient failures on the ``backoff`` schedule.

    Exceptions outside ``retryable_exceptions``, and those that
    ``is_retryable_error`` rejects, propagate on the first occurrence.

    Raises:
        RetryableError: When every attempt failed
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delays = backoff.delays()
            attempt = 0
            while True:
                attempt += 1
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    if not is_retryable_error(e):
                        raise
                    delay = next(delays, None)
                    if delay is None:
                        raise RetryableError(e, attempt, backoff.max_attempts) from e
                    if on_retry is not None:
                        on_retry(e, attempt, backoff.max_attempts)
                    time.sleep(delay)

        return wrapper

    return decorator
