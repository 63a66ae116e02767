"""Retry policy for workflow steps.

A step's ``retryConfig`` grants ``maxRetries`` extra attempts after the
first one, separated by a linear backoff: ``backoffMs * attempt`` where
``attempt`` is 1 for the first retry. Every handler error is retried the
same way; there is no transient/permanent distinction.

Usage:
    strategy = RetryStrategy.from_config(step.retry_config)
    output = await execute_with_retry(attempt, strategy, on_retry=log_retry, sleep=control.sleep)
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from core.exceptions import ExecutionCancelledError, ExecutionTimeoutError
from workflow.models import RetryConfig

DEFAULT_BACKOFF_MS = 1000

# Raised by the engine's cancellation/deadline guard. Never retried.
NON_RETRYABLE = (ExecutionCancelledError, ExecutionTimeoutError, asyncio.CancelledError)


@dataclass
class RetryStrategy:
    """Attempt-count based retry with linear backoff."""
    max_retries: int = 0
    backoff_ms: float = DEFAULT_BACKOFF_MS

    @classmethod
    def none(cls) -> "RetryStrategy":
        """No retries: fail on the first error."""
        return cls(max_retries=0)

    @classmethod
    def from_config(
        cls,
        config: Optional[RetryConfig],
        default_backoff_ms: float = DEFAULT_BACKOFF_MS,
    ) -> "RetryStrategy":
        """Create a strategy from a step's retry config (None = no retries)."""
        if config is None:
            return cls.none()
        return cls(
            max_retries=config.max_retries,
            backoff_ms=config.backoff_ms if config.backoff_ms is not None else default_backoff_ms,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def compute_delay(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (1-based)."""
        if attempt <= 0:
            return 0.0
        return (self.backoff_ms * attempt) / 1000.0

    def should_retry(self, attempt: int) -> bool:
        """Whether retry number ``attempt`` (1-based) is allowed."""
        return 1 <= attempt <= self.max_retries


async def execute_with_retry(
    func: Callable[..., Awaitable],
    strategy: RetryStrategy,
    *args,
    on_retry: Optional[Callable] = None,
    sleep: Callable[[float], Awaitable] = asyncio.sleep,
    **kwargs,
):
    """Execute ``func`` with the given retry strategy.

    Args:
        func: Async callable to execute.
        strategy: RetryStrategy instance.
        on_retry: Optional callback(attempt, error, delay) called before each retry.
        sleep: Awaitable used for the backoff delay, so callers can make it
            cancellable.

    Returns:
        The result of func(*args, **kwargs).

    Raises:
        The last exception once all retries are exhausted. Cancellation and
        deadline errors are re-raised immediately.
    """
    attempt = 0

    while True:
        try:
            return await func(*args, **kwargs)
        except NON_RETRYABLE:
            raise
        except Exception as e:
            attempt += 1
            if not strategy.should_retry(attempt):
                raise

            delay = strategy.compute_delay(attempt)
            if on_retry:
                on_retry(attempt, e, delay)
            await sleep(delay)
