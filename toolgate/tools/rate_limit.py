"""
Tool Rate Limiting

Per-tool, per-caller sliding window admission control.

Design decisions:
- True sliding window recomputed on every check (no fixed buckets)
- Timestamps pruned lazily on the caller's own next call
- Explicit sweep for callers that never come back
- Synchronous and non-yielding, so safe under cooperative concurrency
"""

from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Quota for one tool: at most `max_calls` within `window_ms`."""

    max_calls: int
    window_ms: int

    @property
    def is_valid(self) -> bool:
        return (
            isinstance(self.max_calls, int)
            and isinstance(self.window_ms, int)
            and not isinstance(self.max_calls, bool)
            and not isinstance(self.window_ms, bool)
            and self.max_calls > 0
            and self.window_ms > 0
        )


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check."""

    allowed: bool
    retry_after_ms: float | None = None


class SlidingWindowLimiter:
    """
    Tracks recent invocation timestamps for each caller of one tool.

    States per caller: no history -> under quota -> at quota ->
    (window elapses) no recent history. There is no background timer;
    transitions happen when `check` compares timestamps against `now`.
    """

    def __init__(self, config: RateLimitConfig):
        self.config = config
        self._windows: dict[str, deque[float]] = {}

    def check(self, caller_id: str, now: float) -> RateLimitDecision:
        """
        Prune the caller's window, then admit or reject.

        Admission appends `now` to the window.
        """
        window = self._windows.get(caller_id)
        if window is None:
            window = deque()
            self._windows[caller_id] = window

        self._prune(window, now)

        if len(window) >= self.config.max_calls:
            oldest = window[0]
            retry_after = self.config.window_ms - (now - oldest)
            return RateLimitDecision(allowed=False, retry_after_ms=max(0.0, retry_after))

        window.append(now)
        return RateLimitDecision(allowed=True)

    def _prune(self, window: deque[float], now: float) -> None:
        while window and now - window[0] >= self.config.window_ms:
            window.popleft()

    def timestamps(self, caller_id: str) -> list[float]:
        """Recorded timestamps for a caller, oldest first."""
        return list(self._windows.get(caller_id, ()))

    def sweep(self, now: float) -> int:
        """
        Drop callers with no timestamps left inside the window.

        Returns the number of caller entries removed.
        """
        stale = []
        for caller_id, window in self._windows.items():
            self._prune(window, now)
            if not window:
                stale.append(caller_id)

        for caller_id in stale:
            del self._windows[caller_id]

        return len(stale)

    def reset(self, caller_id: str | None = None) -> None:
        """Clear rate limit state for one caller, or for everyone."""
        if caller_id:
            self._windows.pop(caller_id, None)
        else:
            self._windows.clear()

    @property
    def tracked_callers(self) -> int:
        return len(self._windows)
