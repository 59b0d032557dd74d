import random
import time
from collections.abc import Callable
from typing import TypeVar

from app.exceptions import ExtractionError
from app.logging.logger import Log

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    base_delay_seconds: float,
    jitter: Callable[[float, float], float],
    max_jitter_seconds: float,
) -> float:
    """Exponential back-off for a zero-based attempt number, plus random jitter."""
    return base_delay_seconds * (2**attempt) + jitter(0.0, max_jitter_seconds)


def with_retry(
    operation: Callable[[], T],
    *,
    max_retries: int = 3,
    base_delay_seconds: float = 1.0,
    max_jitter_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    jitter: Callable[[float, float], float] = random.uniform,
) -> T:
    """Run ``operation`` retrying retryable extraction errors with back-off.

    Terminal errors (``retryable`` is False) and unexpected exceptions are
    raised immediately. After ``max_retries`` retries the last error is raised
    unchanged.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except ExtractionError as exc:
            if not exc.retryable or attempt >= max_retries:
                raise
            delay = backoff_delay(attempt, base_delay_seconds, jitter, max_jitter_seconds)
            Log.warning(
                f"Retry attempt {attempt + 1}/{max_retries} after {delay:.2f}s "
                f"({exc.code.value}: {exc})"
            )
            sleep(delay)
            attempt += 1
