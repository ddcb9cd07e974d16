"""Retry logic with fixed or exponential backoff.

This module provides:
- RetryPolicy: Injectable attempts/delay/jitter policy with a pluggable sleep
- retry_with_backoff: Exponential backoff retry on exceptions
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default retry configuration
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_BACKOFF = 1.0  # seconds
DEFAULT_MAX_BACKOFF = 60.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0

# Local file creation: 3 attempts, 100ms apart
DEFAULT_CREATE_ATTEMPTS = 3
DEFAULT_CREATE_DELAY = 0.1  # seconds


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try an operation and how long to wait in between.

    The sleep function is part of the policy so callers (and tests) can run
    retries without real time delays.

    Attributes:
        attempts: Total number of attempts, including the first one.
        delay: Delay before the second attempt, in seconds.
        jitter: Upper bound of a random delay added to every wait.
        backoff_multiplier: Factor applied to the delay after each attempt.
        max_delay: Cap on a single wait, before jitter.
        sleep: Function used to wait.
    """

    attempts: int = DEFAULT_CREATE_ATTEMPTS
    delay: float = DEFAULT_CREATE_DELAY
    jitter: float = 0.0
    backoff_multiplier: float = 1.0
    max_delay: float = DEFAULT_MAX_BACKOFF
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.delay < 0 or self.jitter < 0:
            raise ValueError("delay and jitter must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Get the wait after a failed attempt.

        Args:
            attempt: 1-based number of the attempt that just failed.

        Returns:
            Seconds to wait before the next attempt.
        """
        wait = min(self.delay * self.backoff_multiplier ** (attempt - 1), self.max_delay)
        if self.jitter:
            wait += random.uniform(0, self.jitter)
        return wait

    def call_until_value(
        self,
        func: Callable[[], T | None],
        description: str = "operation",
    ) -> T | None:
        """Call func until it returns something other than None.

        Args:
            func: Operation signalling failure by returning None.
            description: Label used in log messages.

        Returns:
            The first non-None result, or None once all attempts are used.
        """
        for attempt in range(1, self.attempts + 1):
            result = func()
            if result is not None:
                return result
            logger.warning(f"{description} failed, attempt {attempt}/{self.attempts}")
            if attempt < self.attempts:
                self.sleep(self.delay_for(attempt))
        return None


def retry_with_backoff(
    func: Callable[[], Any],
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    max_backoff: float = DEFAULT_MAX_BACKOFF,
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Any:
    """Execute a function with exponential backoff retry.

    Args:
        func: Function to execute.
        max_retries: Maximum number of retry attempts.
        initial_backoff: Initial backoff time in seconds.
        max_backoff: Maximum backoff time in seconds.
        backoff_multiplier: Multiplier for each retry.
        retryable_exceptions: Tuple of exception types to retry on.

    Returns:
        Result of the function.

    Raises:
        The last exception if all retries fail.
    """
    backoff = initial_backoff

    for attempt in range(max_retries + 1):
        try:
            return func()
        except retryable_exceptions as e:
            if attempt == max_retries:
                logger.error(f"All {max_retries} retries failed: {e}")
                raise

            logger.warning(
                f"Attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                f"Retrying in {backoff:.1f}s..."
            )
            time.sleep(backoff)
            backoff = min(backoff * backoff_multiplier, max_backoff)

    raise RuntimeError("Unexpected retry loop exit")
