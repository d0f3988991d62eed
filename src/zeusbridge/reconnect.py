"""Exponential backoff for bus reconnection."""

from __future__ import annotations

from dataclasses import dataclass

from zeusbridge._constants import DEFAULT_RECONNECT_BASE_DELAY, DEFAULT_RECONNECT_MAX_ATTEMPTS
from zeusbridge.config import BridgeConfig


@dataclass(frozen=True)
class ReconnectPolicy:
    """Pure backoff calculator.

    Attempts are numbered from 1.  Attempt *n* waits
    ``base_delay * 2 ** (n - 1)`` seconds; attempts beyond
    ``max_attempts`` are not made.
    """

    base_delay: float = DEFAULT_RECONNECT_BASE_DELAY
    max_attempts: int = DEFAULT_RECONNECT_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.base_delay <= 0:
            raise ValueError(f"base_delay must be positive, got {self.base_delay}")
        if self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {self.max_attempts}")

    @classmethod
    def from_config(cls, config: BridgeConfig) -> ReconnectPolicy:
        return cls(base_delay=config.reconnect_base_delay, max_attempts=config.reconnect_max_attempts)

    def next_delay(self, attempt: int) -> float:
        """Seconds to wait before reconnection *attempt*."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        return self.base_delay * 2 ** (attempt - 1)

    def should_retry(self, attempt: int) -> bool:
        """Whether reconnection *attempt* is still within budget."""
        return attempt <= self.max_attempts

    def delays(self) -> list[float]:
        """The full retry schedule, in order."""
        return [self.next_delay(attempt) for attempt in range(1, self.max_attempts + 1)]
