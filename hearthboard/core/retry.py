"""Reusable async retry policy.

A ``RetryPolicy`` is a value describing how many attempts an operation gets,
how long to wait between them, how long each attempt may run and which
errors are worth retrying. ``policy.run()`` applies it to any coroutine
factory, so call sites never hand-roll retry loops.

Example:
    policy = RetryPolicy(max_attempts=3, backoff=linear_backoff(1.0), attempt_timeout=15.0)
    text = await policy.run(lambda: client_get_text(url), description="feed #1")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

BackoffFn = Callable[[int], float]
AttemptCallback = Callable[[int, Optional[BaseException]], None]


class RetryExhaustedError(Exception):
    """All attempts of a retried operation failed."""

    def __init__(self, description: str, attempts: int, last_error: BaseException):
        self.description = description
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{description}: failed after {attempts} attempts: {describe_error(last_error)}"
        )


def describe_error(error: BaseException) -> str:
    """Return a readable one-line description of an exception."""
    if isinstance(error, asyncio.TimeoutError):
        return "timed out"
    message = str(error).strip()
    return message or type(error).__name__


def linear_backoff(base_seconds: float = 1.0) -> BackoffFn:
    """Delay of ``attempt * base_seconds`` after the given failed attempt (1-based)."""

    def _delay(attempt: int) -> float:
        return max(0.0, attempt * base_seconds)

    return _delay


def exponential_backoff(
    base_seconds: float = 1.0, factor: float = 2.0, max_seconds: float = 30.0
) -> BackoffFn:
    """Capped geometric delay: ``base * factor ** (attempt - 1)``."""

    def _delay(attempt: int) -> float:
        return min(max_seconds, base_seconds * factor ** max(0, attempt - 1))

    return _delay


def _always_retry(_error: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings applied uniformly to async operations.

    Attributes:
        max_attempts: Total attempts including the first one
        backoff: Maps a failed attempt number (1-based) to seconds to wait
        attempt_timeout: Per-attempt limit in seconds; a timeout is an ordinary failure
        is_retryable: Returns False for errors that must propagate immediately
        sleep: Awaitable sleep function, injectable for tests
    """

    max_attempts: int = 3
    backoff: BackoffFn = field(default_factory=linear_backoff)
    attempt_timeout: Optional[float] = None
    is_retryable: Callable[[BaseException], bool] = _always_retry
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    async def _attempt(self, operation: Callable[[], Awaitable[T]]) -> T:
        if self.attempt_timeout is None:
            return await operation()
        return await asyncio.wait_for(operation(), timeout=self.attempt_timeout)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str = "operation",
        on_attempt: Optional[AttemptCallback] = None,
    ) -> T:
        """Run ``operation`` until it succeeds or attempts are exhausted.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            description: Label used in logs and in the exhaustion error
            on_attempt: Called after every attempt with (attempt, error or None)

        Returns:
            The value of the first successful attempt

        Raises:
            RetryExhaustedError: When every attempt failed
            Exception: Any error for which ``is_retryable`` returns False
        """
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await self._attempt(operation)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = e
                if on_attempt is not None:
                    on_attempt(attempt, e)
                if not self.is_retryable(e):
                    logger.debug("%s: non-retryable error on attempt %d: %s", description, attempt, e)
                    raise
                if attempt < self.max_attempts:
                    delay = self.backoff(attempt)
                    logger.debug(
                        "%s: attempt %d/%d failed, retrying in %.1fs: %s",
                        description,
                        attempt,
                        self.max_attempts,
                        delay,
                        describe_error(e),
                    )
                    await self.sleep(delay)
                continue

            if on_attempt is not None:
                on_attempt(attempt, None)
            return result

        assert last_error is not None
        raise RetryExhaustedError(description, self.max_attempts, last_error)
