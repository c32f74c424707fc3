"""
Circuit Breaker for the GitHub API - Stops hammering GitHub once it throttles us.

Pattern:
- Count consecutive rate-limit / network failures, open after N
- A rate-limit response that says when the window resets opens the circuit
  at once, until that reset
- After the open period, let a few probe calls through before closing
"""

import time
from enum import Enum
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from cicd_checker.config import settings
from cicd_checker.logger import logger


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Throttled, reject requests
    HALF_OPEN = "half_open"  # Probing whether the budget is back


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker configuration."""
    failure_threshold: int = 5  # Open after N consecutive failures
    cooldown_seconds: int = 60  # Open period when GitHub gives no reset time
    half_open_max_calls: int = 3  # Probe calls allowed in half-open state


class RateLimitCircuitBreaker:
    """Circuit breaker guarding GitHub API calls."""

    def __init__(self, config: Optional[CircuitBreakerConfig] = None):
        self.config = config or CircuitBreakerConfig()
        self.state = CircuitState.CLOSED
        self.consecutive_failures = 0
        self.last_failure_time = 0.0
        self.open_until = 0.0
        self.half_open_calls = 0
        self._lock = Lock()

    def can_call(self) -> tuple[bool, str]:
        """Check if a GitHub call is allowed.

        Returns:
            Tuple of (allowed, reason)
        """
        with self._lock:
            if self.state == CircuitState.CLOSED:
                return True, "circuit_closed"

            if self.state == CircuitState.OPEN:
                now = time.time()
                if now < self.open_until:
                    return False, f"circuit_open_cooldown_{int(self.open_until - now) + 1}s"
                logger.info("Circuit breaker: transitioning to HALF_OPEN")
                self.state = CircuitState.HALF_OPEN
                self.half_open_calls = 1
                return True, "circuit_half_open"

            if self.half_open_calls < self.config.half_open_max_calls:
                self.half_open_calls += 1
                return True, "circuit_half_open_testing"
            return False, "circuit_half_open_max_calls"

    def record_success(self):
        """Record a GitHub call that was not throttled."""
        with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.info("Circuit breaker: recovered, transitioning to CLOSED")
                self.state = CircuitState.CLOSED
                self.half_open_calls = 0
            elif self.consecutive_failures > 0:
                logger.debug(f"Circuit breaker: reset failure count (was {self.consecutive_failures})")
            self.consecutive_failures = 0

    def record_failure(self, reset_in: Optional[int] = None):
        """Record a throttled or unreachable GitHub call.

        Args:
            reset_in: seconds until GitHub's rate-limit window reopens, when the
                response said so. Opens the circuit immediately for that long.
        """
        with self._lock:
            now = time.time()
            self.consecutive_failures += 1
            self.last_failure_time = now

            if reset_in is not None:
                if self.state != CircuitState.OPEN:
                    logger.error(f"Circuit breaker: OPENED by GitHub rate limit (resets in {reset_in}s)")
                self._open(now + max(reset_in, 0))
            elif self.state == CircuitState.HALF_OPEN:
                logger.warning("Circuit breaker: failed in HALF_OPEN, reopening circuit")
                self._open(now + self.config.cooldown_seconds)
            elif self.state == CircuitState.CLOSED:
                if self.consecutive_failures >= self.config.failure_threshold:
                    logger.error(
                        f"Circuit breaker: OPENED after {self.consecutive_failures} failures "
                        f"(cooldown: {self.config.cooldown_seconds}s)"
                    )
                    self._open(now + self.config.cooldown_seconds)
                else:
                    logger.warning(
                        f"Circuit breaker: failure {self.consecutive_failures}/{self.config.failure_threshold}"
                    )

    def _open(self, until: float):
        self.state = CircuitState.OPEN
        self.open_until = until
        self.half_open_calls = 0

    def get_status(self) -> dict:
        """Get circuit breaker status."""
        with self._lock:
            now = time.time()
            retry_in = None
            if self.state == CircuitState.OPEN:
                retry_in = max(int(self.open_until - now), 0)
            return {
                "state": self.state.value,
                "consecutive_failures": self.consecutive_failures,
                "failure_threshold": self.config.failure_threshold,
                "cooldown_seconds": self.config.cooldown_seconds,
                "retry_in_seconds": retry_in,
                "time_since_last_failure": int(now - self.last_failure_time) if self.last_failure_time > 0 else None
            }


# Global circuit breaker instance
_circuit_breaker: RateLimitCircuitBreaker | None = None


def get_circuit_breaker() -> RateLimitCircuitBreaker:
    """Get global circuit breaker instance (singleton)."""
    global _circuit_breaker
    if _circuit_breaker is None:
        _circuit_breaker = RateLimitCircuitBreaker(CircuitBreakerConfig(
            failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD,
            cooldown_seconds=settings.CIRCUIT_COOLDOWN_SECONDS,
        ))
    return _circuit_breaker
