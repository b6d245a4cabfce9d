import time
from collections import Counter, deque
from typing import Deque, Optional

from ..models import GestureEvent, GestureKind


class ProcessingStatistics:
    """Rolling per-sample processing time (seconds) over the last `window` samples."""

    def __init__(self, window: int = 100):
        self._times: Deque[float] = deque(maxlen=window)
        self.average_processing_time: float = 0.0
        self.max_processing_time: float = 0.0
        self.total_processed_samples: int = 0

    def add_processing_time(self, elapsed: float) -> None:
        self._times.append(elapsed)
        self.total_processed_samples += 1
        self.average_processing_time = sum(self._times) / len(self._times)
        self.max_processing_time = max(self.max_processing_time, elapsed)

    def resize(self, window: int) -> None:
        """Keeps the newest timings that fit in the new window."""
        if self._times.maxlen != window:
            self._times = deque(self._times, maxlen=window)
            if self._times:
                self.average_processing_time = sum(self._times) / len(self._times)

    def reset(self) -> None:
        self._times.clear()
        self.average_processing_time = 0.0
        self.max_processing_time = 0.0
        self.total_processed_samples = 0

    @property
    def formatted_average_time(self) -> str:
        return f"{self.average_processing_time * 1000:.2f} ms"

    @property
    def formatted_max_time(self) -> str:
        return f"{self.max_processing_time * 1000:.2f} ms"


class SessionStatistics:
    """
    Counts samples and gestures for one recording session and tracks the
    observed update rate over the last 100 arrivals.
    """

    def __init__(self, window: int = 100, clock=time.monotonic):
        self._clock = clock
        self._intervals: Deque[float] = deque(maxlen=window)
        self._last_update: Optional[float] = None
        self._start: Optional[float] = None

        self.duration: float = 0.0
        self.total_samples: int = 0
        self.average_update_rate: float = 0.0
        self.total_events: int = 0
        self.event_counts: Counter[GestureKind] = Counter()

    @property
    def is_running(self) -> bool:
        return self._start is not None

    def start_session(self) -> None:
        self.reset()
        self._start = self._clock()

    def end_session(self) -> None:
        if self._start is not None:
            self.duration = self._clock() - self._start
            self._start = None

    def add_sample(self) -> None:
        self.total_samples += 1
        now = self._clock()
        if self._last_update is not None:
            self._intervals.append(now - self._last_update)
            mean_interval = sum(self._intervals) / len(self._intervals)
            self.average_update_rate = 1.0 / mean_interval if mean_interval > 0 else 0.0
        self._last_update = now

    def add_event(self, event: GestureEvent) -> None:
        self.total_events += 1
        self.event_counts[event.kind] += 1

    def reset(self) -> None:
        self._intervals.clear()
        self._last_update = None
        self.duration = 0.0
        self.total_samples = 0
        self.average_update_rate = 0.0
        self.total_events = 0
        self.event_counts.clear()
