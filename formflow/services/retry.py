from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded sequential polling: no concurrent attempts, no re-queueing."""

    max_attempts: int = 1
    delay_seconds: float = 0.0
    backoff_factor: float = 1.0

    def delay_before(self, attempt: int) -> float:
        # attempt is 1-based; there is never a delay before the first one.
        if attempt <= 1:
            return 0.0
        factor = max(float(self.backoff_factor), 1.0) ** (attempt - 2)
        return max(float(self.delay_seconds), 0.0) * factor


@dataclass
class PollOutcome:
    value: object | None
    attempts: int

    @property
    def found(self) -> bool:
        return self.value is not None


def poll_until_found(
    fetch: Callable[[], T | None],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], None] = time.sleep,
    on_miss: Callable[[int], None] | None = None,
) -> PollOutcome:
    attempts = max(int(policy.max_attempts), 1)
    for attempt in range(1, attempts + 1):
        delay = policy.delay_before(attempt)
        if delay > 0:
            sleep(delay)
        value = fetch()
        if value is not None:
            return PollOutcome(value=value, attempts=attempt)
        if on_miss is not None:
            on_miss(attempt)
    return PollOutcome(value=None, attempts=attempts)
