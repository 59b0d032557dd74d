import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar

from app.exceptions import DeadlineExceededError

T = TypeVar("T")

# how often an abandoned-call wait re-checks cancellation
_WAIT_SLICE_SECONDS = 0.05


class Deadline:
    """Caller-supplied deadline and cancellation signal for one request.

    Every suspension point of the pipeline (poll sleeps, retry back-off,
    HTTP calls) consults the deadline so a request never blocks its caller
    past the configured time or after ``cancel()``.
    """

    def __init__(
        self,
        timeout_seconds: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._expires_at = None if timeout_seconds is None else clock() + timeout_seconds
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left before expiry, or None when there is no time limit."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return self.cancelled or (remaining is not None and remaining <= 0)

    def check(self) -> None:
        if self.cancelled:
            raise DeadlineExceededError("Extraction was cancelled")
        if self.expired:
            raise DeadlineExceededError()

    def bound(self, timeout_seconds: float) -> float:
        """Cap a network timeout by the time left on the deadline."""
        self.check()
        remaining = self.remaining()
        if remaining is None:
            return timeout_seconds
        return min(timeout_seconds, remaining)

    def sleep(self, seconds: float) -> None:
        """Sleep up to ``seconds``, waking early (and raising) on cancellation."""
        wait = self.bound(seconds)
        if self._cancelled.wait(wait):
            raise DeadlineExceededError("Extraction was cancelled")
        if wait < seconds:
            raise DeadlineExceededError()

    def run(self, operation: Callable[[], T]) -> T:
        """Run a blocking call on a worker thread and wait for it within the deadline.

        On expiry or ``cancel()`` the caller gets DeadlineExceededError right
        away; the worker is abandoned and its late result discarded.
        """
        self.check()
        outcome: dict[str, Any] = {}
        done = threading.Event()

        def target() -> None:
            try:
                outcome["value"] = operation()
            except BaseException as exc:
                outcome["error"] = exc
            finally:
                done.set()

        threading.Thread(target=target, name="deadline-call", daemon=True).start()
        while True:
            remaining = self.remaining()
            wait = _WAIT_SLICE_SECONDS if remaining is None else min(_WAIT_SLICE_SECONDS, remaining)
            if done.wait(wait):
                break
            self.check()
        self.check()
        if "error" in outcome:
            raise outcome["error"]
        return outcome["value"]
