"""Retry utilities with exponential backoff for upstream event queries.

Retry policy belongs to whoever owns the upstream call (the HTTP client),
never to the query batcher, which fails a whole cycle on the first error.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import wraps
from typing import ParamSpec, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from eventpulse.core.logging import get_logger

logger = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including the initial one).
        initial_delay: Initial delay in seconds before first retry.
        max_delay: Maximum delay between retries.
        jitter_max: Maximum jitter in seconds to add to delays.
        retry_exceptions: Exception types that trigger retries.
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    jitter_max: float = 1.0
    retry_exceptions: tuple[type[Exception], ...] = (Exception,)


def retry_with_backoff(
    config: RetryConfig | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator for adding retry with exponential backoff to a coroutine function.

    Args:
        config: Retry configuration.

    Returns:
        Decorated function with retry behavior. The last exception is
        re-raised once attempts are exhausted.
    """
    config = config or RetryConfig()

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(config.max_attempts),
                    wait=wait_exponential_jitter(
                        initial=config.initial_delay,
                        max=config.max_delay,
                        jitter=config.jitter_max,
                    ),
                    retry=retry_if_exception_type(config.retry_exceptions),
                ):
                    with attempt:
                        logger.debug(
                            "retry_attempt",
                            function=func.__name__,
                            attempt=attempt.retry_state.attempt_number,
                            max_attempts=config.max_attempts,
                        )
                        return await func(*args, **kwargs)
            except RetryError as e:
                logger.error(
                    "retry_exhausted",
                    function=func.__name__,
                    attempts=config.max_attempts,
                    last_exception=str(e.last_attempt.exception()),
                )
                e.reraise()

            # This should never be reached, but satisfies type checker
            raise RuntimeError("Retry loop exited unexpectedly")

        return wrapper

    return decorator
