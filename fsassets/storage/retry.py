"""Retry policy for transient read failures.

Files can be locked briefly by backup agents, antivirus scanners or a writer
finishing a rename. Opening them again a few tens of milliseconds later
usually succeeds, so the raw open-for-read step is retried with exponential
backoff and jitter. Missing files fail immediately.

Examples:
    >>> policy = ReadRetryPolicy(max_retries=3, base_delay=0.05)
    >>> stream = policy.call(open, "/srv/assets/report.pdf", "rb")
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 0.05

# permanent conditions; retrying cannot help
NON_TRANSIENT_ERRORS = (FileNotFoundError, NotADirectoryError, IsADirectoryError)


def is_transient_io_error(exception: BaseException) -> bool:
    """Check whether an exception is an I/O failure worth retrying.

    Args:
        exception: The exception to check.

    Returns:
        True for any OSError other than the not-found family.
    """
    return isinstance(exception, OSError) and not isinstance(exception, NON_TRANSIENT_ERRORS)


def log_retry_attempt(retry_state: RetryCallState) -> None:
    """Emit one warning per retry with attempt, delay and failure."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    delay_ms = retry_state.next_action.sleep * 1000 if retry_state.next_action else 0.0
    exception_type = type(exception).__name__ if exception else None

    logger.warning(
        f"Retry attempt {retry_state.attempt_number} after {delay_ms:.0f}ms "
        f"due to {exception_type}: {exception}",
        extra={
            "retry_attempt": retry_state.attempt_number,
            "retry_delay_ms": delay_ms,
            "exception_type": exception_type,
        },
    )


class ReadRetryPolicy:
    """Bounded exponential-backoff retry around a blocking call.

    Attributes:
        max_retries: Attempts allowed after the first failure.
        base_delay: First delay in seconds, doubled on every retry.
        jitter: Upper bound of the random delay added to each wait.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        jitter: float | None = None,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.jitter = base_delay if jitter is None else jitter

    def wait_strategy(self):
        """Doubling delay from ``base_delay`` plus up to ``jitter`` seconds of noise."""
        return wait_exponential(multiplier=self.base_delay, exp_base=2) + wait_random(0, self.jitter)

    def _options(self) -> dict:
        return {
            "stop": stop_after_attempt(self.max_retries + 1),
            "wait": self.wait_strategy(),
            "retry": retry_if_exception(is_transient_io_error),
            "before_sleep": log_retry_attempt,
            "reraise": True,
        }

    def call(self, fn: Callable[..., T], *args, **kwargs) -> T:
        """Run ``fn`` with retries, sleeping in the calling thread."""
        retrying = Retrying(**self._options())
        return retrying(fn, *args, **kwargs)

    async def call_async(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Await ``fn`` with retries, sleeping on the event loop."""
        retrying = AsyncRetrying(**self._options())
        return await retrying(fn, *args, **kwargs)
