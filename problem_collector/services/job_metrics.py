"""In-memory per-item metrics for collection jobs.

One instance is created by the application lifespan and handed to every
runner; the admin metrics endpoint reads it back over a sliding window.
Thread-safe, since the status endpoints and job tasks may share it.
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass


@dataclass(frozen=True)
class ItemEvent:
    kind: str
    outcome: str
    duration_seconds: float
    at: float  # time.time()


class JobMetrics:
    """Bounded event log with windowed aggregation."""

    def __init__(self, max_events: int = 50_000) -> None:
        self._lock = threading.Lock()
        self._events: deque[ItemEvent] = deque(maxlen=max_events)

    def record(self, event: ItemEvent) -> None:
        with self._lock:
            self._events.append(event)

    def query(self, window_seconds: int, now: float | None = None) -> dict[str, dict]:
        """Outcome counts and mean item duration per kind over the window."""
        cutoff = (now if now is not None else time.time()) - window_seconds
        with self._lock:
            events = [e for e in self._events if e.at >= cutoff]

        outcomes: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        durations: dict[str, list[float]] = defaultdict(list)
        for event in events:
            outcomes[event.kind][event.outcome] += 1
            durations[event.kind].append(event.duration_seconds)

        return {
            kind: {
                "outcomes": dict(counts),
                "avg_item_seconds": round(sum(durations[kind]) / len(durations[kind]), 3),
            }
            for kind, counts in outcomes.items()
        }
