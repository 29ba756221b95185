"""
Retry utilities with exponential backoff for handling rate limits and transient errors.
"""

import time
import logging
from typing import Callable, Optional, Tuple, Type, TypeVar
from functools import wraps
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RateLimitExceeded(Exception):
    """Raised when GitHub API rate limit is exceeded."""
    def __init__(self, reset_at: datetime):
        self.reset_at = reset_at
        super().__init__(f"Rate limit exceeded. Resets at {reset_at}")


def _seconds_until(moment: datetime) -> float:
    return (moment - datetime.now(timezone.utc)).total_seconds()


def exponential_backoff(
    max_retries: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    retry_on: Tuple[Type[Exception], ...] = (Exception,),
) -> Callable:
    """
    Decorator for exponential backoff retry logic.

    Rate limit errors wait until the limit resets and do not count as an attempt.
    Exceptions outside `retry_on` propagate immediately.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries
        exponential_base: Multiplier for exponential growth
        retry_on: Exception types considered transient
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            attempt = 0

            while True:
                try:
                    return func(*args, **kwargs)
                except RateLimitExceeded as e:
                    wait_time = _seconds_until(e.reset_at)
                    if wait_time > 0:
                        logger.warning(
                            f"Rate limit exceeded. Waiting {wait_time:.1f}s until reset"
                        )
                        time.sleep(wait_time + 1)  # Add 1s buffer
                        continue

                    # Reset time already passed; count it as a regular failure
                    if attempt >= max_retries:
                        raise
                    attempt += 1
                    time.sleep(base_delay)
                except retry_on as e:
                    if attempt >= max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) reached for {func.__name__}"
                        )
                        raise

                    delay = min(
                        base_delay * (exponential_base ** attempt),
                        max_delay
                    )
                    attempt += 1

                    logger.warning(
                        f"Attempt {attempt}/{max_retries} failed for "
                        f"{func.__name__}: {str(e)}. Retrying in {delay:.1f}s..."
                    )
                    time.sleep(delay)

        return wrapper
    return decorator


class RateLimiter:
    """
    Rate limiter to ensure we don't exceed GitHub API limits.
    Pauses until the reset time when few requests remain.
    """

    def __init__(self, threshold: int = 10):
        """
        Args:
            threshold: Remaining request count below which we wait for the reset
        """
        self.threshold = threshold
        self.remaining: Optional[int] = None
        self.reset_at: Optional[datetime] = None

    def update_from_headers(self, headers) -> None:
        """
        Update rate limiter state from GitHub `X-RateLimit-*` response headers.

        Args:
            headers: Response headers mapping
        """
        remaining = headers.get("X-RateLimit-Remaining")
        reset = headers.get("X-RateLimit-Reset")

        if remaining is not None:
            self.remaining = int(remaining)
        if reset is not None:
            self.reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)

        if self.remaining is not None and self.remaining < 500:
            logger.info(f"Rate limit status: {self.remaining} requests remaining")

    def is_exhausted(self) -> bool:
        return self.remaining is not None and self.remaining == 0

    def wait_if_needed(self) -> None:
        """Sleep until the reset time when close to the limit."""
        if self.remaining is None or self.remaining >= self.threshold:
            return
        if self.reset_at is None:
            return

        wait_time = _seconds_until(self.reset_at)
        if wait_time > 0:
            logger.warning(
                f"Approaching rate limit ({self.remaining} remaining). "
                f"Waiting {wait_time:.1f}s"
            )
            time.sleep(wait_time + 1)
            self.remaining = None
