import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable


class CircuitState(Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass
class CircuitBreaker:
    """
    Per-host breaker for outbound webhook calls.

    `failure_threshold` consecutive failures open the circuit, and calls to the
    host are refused for `reset_timeout_seconds`. The calls after that are trial
    calls: `half_open_max_calls` successful trial calls close the circuit again,
    a single failed trial call reopens it.
    """

    name: str
    failure_threshold: int = 5
    reset_timeout_seconds: float = 60
    half_open_max_calls: int = 2
    clock: Callable[[], float] = time.monotonic
    state: CircuitState = CircuitState.CLOSED
    consecutive_failures: int = 0
    trial_successes: int = 0
    opened_at: float | None = None

    def can_execute(self) -> bool:
        if self.state == CircuitState.OPEN and self.retry_in() == 0:
            self.state = CircuitState.HALF_OPEN
            self.trial_successes = 0
        return self.state != CircuitState.OPEN

    def retry_in(self) -> float:
        """Seconds until an open circuit lets a trial call through."""
        if self.state != CircuitState.OPEN or self.opened_at is None:
            return 0.0
        return max(self.opened_at + self.reset_timeout_seconds - self.clock(), 0.0)

    def record_success(self) -> None:
        self.consecutive_failures = 0
        if self.state == CircuitState.HALF_OPEN:
            self.trial_successes += 1
            if self.trial_successes >= self.half_open_max_calls:
                self.state = CircuitState.CLOSED
                self.opened_at = None

    def record_failure(self) -> bool:
        """Returns True when this failure tripped the circuit open."""
        self.consecutive_failures += 1
        tripped = self.state == CircuitState.HALF_OPEN or (
            self.state == CircuitState.CLOSED
            and self.consecutive_failures >= self.failure_threshold
        )
        if tripped:
            self.state = CircuitState.OPEN
            self.opened_at = self.clock()
            self.consecutive_failures = 0
        return tripped
