import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

from app.config.settings import Settings
from app.exceptions import CircuitOpenError, DeadlineExceededError, ExtractionError
from app.logging.logger import Log

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Fast-fails calls to the document service after repeated failures.

    One instance is shared by every request in the process. A failure is any
    exception other than a terminal ExtractionError: a terminal error means
    the service answered, which says nothing bad about its health.

    Outcomes only count for the state a call was admitted under: a slow call
    let through before the circuit opened cannot close it or restart its
    cooldown. A call abandoned on its deadline counts neither way.
    """

    def __init__(
        self,
        threshold: int = 5,
        cooldown_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._threshold = threshold
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = 0.0
        self._probe_in_flight = False
        self._generation = 0

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    def call(self, operation: Callable[[], T]) -> T:
        generation, probe = self._before_call()
        settled = False
        try:
            result = operation()
        except DeadlineExceededError:
            raise
        except ExtractionError as exc:
            if exc.retryable:
                self._on_failure(generation, probe)
            else:
                self._on_success(generation, probe)
            settled = True
            raise
        except Exception:
            self._on_failure(generation, probe)
            settled = True
            raise
        else:
            self._on_success(generation, probe)
            settled = True
            return result
        finally:
            if probe and not settled:
                self._release_probe()

    def _before_call(self) -> tuple[int, bool]:
        """Admit a call; returns the admitting generation and whether it is the probe."""
        with self._lock:
            if self._state is CircuitState.CLOSED:
                return self._generation, False
            if self._state is CircuitState.OPEN:
                if self._clock() - self._opened_at < self._cooldown_seconds:
                    raise CircuitOpenError()
                self._state = CircuitState.HALF_OPEN
                Log.info("Circuit breaker half-open, letting one probe call through")
            if self._probe_in_flight:
                raise CircuitOpenError("Document service circuit is half-open, probe in flight")
            self._probe_in_flight = True
            return self._generation, True

    def _on_success(self, generation: int, probe: bool) -> None:
        with self._lock:
            if probe:
                Log.info("Circuit breaker closed after successful probe")
                self._state = CircuitState.CLOSED
                self._generation += 1
                self._probe_in_flight = False
                self._failure_count = 0
            elif self._is_current(generation):
                self._failure_count = 0

    def _on_failure(self, generation: int, probe: bool) -> None:
        with self._lock:
            if probe:
                self._trip("probe call failed")
            elif self._is_current(generation):
                self._failure_count += 1
                if self._failure_count >= self._threshold:
                    self._trip(f"{self._failure_count} consecutive failures")

    def _release_probe(self) -> None:
        with self._lock:
            self._probe_in_flight = False

    def _is_current(self, generation: int) -> bool:
        return self._state is CircuitState.CLOSED and generation == self._generation

    def _trip(self, reason: str) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._generation += 1
        self._failure_count = 0
        self._probe_in_flight = False
        Log.warning(f"Circuit breaker opened: {reason}")


def build_circuit_breaker(settings: Settings) -> CircuitBreaker:
    """Build the process-wide breaker guarding the document service."""
    return CircuitBreaker(
        threshold=settings.circuit_breaker_threshold,
        cooldown_seconds=settings.circuit_breaker_cooldown_seconds,
    )
