import logging
import math
from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Optional

from ..configs import ProcessorSettings
from ..models import GestureEvent, GestureKind, MotionSample

logger = logging.getLogger(__name__)

# Samples inspected by the oscillation rules (shake / nod).
PATTERN_WINDOW = 10

HEAD_NOD_THRESHOLD_DPS = 90.0
HEAD_SHAKE_MIN_ALTERNATIONS = 3
HEAD_NOD_MIN_ALTERNATIONS = 2


class EventDetector:
    """
    Recognizes head gestures from a rolling history of filtered samples.

    Threshold rules look at the newest sample only. Oscillation rules look
    at the last `PATTERN_WINDOW` samples and count sign reversals of one
    rotation-rate axis. Every candidate then goes through a per-kind
    cooldown gate keyed on the time of the last emission.
    """

    def __init__(self, settings: ProcessorSettings):
        self.settings = settings
        self._history: Deque[MotionSample] = deque(maxlen=settings.history_size)
        self._last_emitted: Dict[GestureKind, float] = {}

    @property
    def history(self) -> List[MotionSample]:
        return list(self._history)

    def update_settings(self, settings: ProcessorSettings) -> None:
        """Swaps thresholds and resizes the history, keeping the newest samples."""
        self.settings = settings
        if self._history.maxlen != settings.history_size:
            self._history = deque(self._history, maxlen=settings.history_size)

    def append(self, sample: MotionSample) -> None:
        self._history.append(sample)

    def reset(self) -> None:
        self._history = deque(maxlen=self.settings.history_size)
        self._last_emitted.clear()

    def detect(self, sample: MotionSample) -> List[GestureEvent]:
        """
        Runs every rule against `sample` and the current history.

        `sample` must already be filtered and calibrated, and should be the
        one most recently appended to the history.
        """
        candidates = [
            self._detect_looking_down(sample),
            self._detect_looking_up(sample),
            self._detect_sudden_movement(sample),
            self._detect_head_shake(),
            self._detect_head_nod(),
        ]
        return [
            event for event in candidates
            if event is not None and self._can_emit(event.kind, sample.timestamp)
        ]

    # --- Threshold rules ---

    def _detect_looking_down(self, sample: MotionSample) -> Optional[GestureEvent]:
        threshold = self.settings.looking_down_threshold_deg
        pitch = sample.attitude.pitch_degrees
        if pitch >= threshold:
            return None
        confidence = min(abs(pitch - threshold) / abs(threshold), 1.0)
        return GestureEvent(GestureKind.LOOKING_DOWN, sample.timestamp, confidence, sample)

    def _detect_looking_up(self, sample: MotionSample) -> Optional[GestureEvent]:
        threshold = self.settings.looking_up_threshold_deg
        pitch = sample.attitude.pitch_degrees
        if pitch <= threshold:
            return None
        confidence = min(pitch / threshold, 1.0)
        return GestureEvent(GestureKind.LOOKING_UP, sample.timestamp, confidence, sample)

    def _detect_sudden_movement(self, sample: MotionSample) -> Optional[GestureEvent]:
        threshold = self.settings.rapid_motion_threshold_dps
        magnitude = sample.rotation_rate.magnitude_degrees
        if magnitude <= threshold:
            return None
        confidence = min(magnitude / (threshold * 2.0), 1.0)
        return GestureEvent(GestureKind.SUDDEN_MOVEMENT, sample.timestamp, confidence, sample)

    # --- Oscillation rules ---

    def _detect_head_shake(self) -> Optional[GestureEvent]:
        threshold = self.settings.head_shake_threshold_dps
        return self._detect_oscillation(
            kind=GestureKind.HEAD_SHAKE,
            rate_of=lambda s: s.rotation_rate.z,
            threshold_dps=threshold,
            min_alternations=HEAD_SHAKE_MIN_ALTERNATIONS,
            full_confidence_dps=threshold * 2.0,
        )

    def _detect_head_nod(self) -> Optional[GestureEvent]:
        return self._detect_oscillation(
            kind=GestureKind.HEAD_NOD,
            rate_of=lambda s: s.rotation_rate.x,
            threshold_dps=HEAD_NOD_THRESHOLD_DPS,
            min_alternations=HEAD_NOD_MIN_ALTERNATIONS,
            full_confidence_dps=HEAD_NOD_THRESHOLD_DPS * 2.0,
        )

    def _detect_oscillation(
        self,
        kind: GestureKind,
        rate_of: Callable[[MotionSample], float],
        threshold_dps: float,
        min_alternations: int,
        full_confidence_dps: float,
    ) -> Optional[GestureEvent]:
        if len(self._history) < PATTERN_WINDOW:
            return None

        recent = list(self._history)[-PATTERN_WINDOW:]
        peak_rate, alternations = summarize_oscillation(rate_of(s) for s in recent)
        peak_dps = math.degrees(peak_rate)

        if peak_dps > threshold_dps and alternations >= min_alternations:
            newest = recent[-1]
            confidence = min(peak_dps / full_confidence_dps, 1.0)
            return GestureEvent(kind, newest.timestamp, confidence, newest)
        return None

    # --- Debounce ---

    def _can_emit(self, kind: GestureKind, timestamp: float) -> bool:
        last = self._last_emitted.get(kind)
        if last is not None and timestamp - last < self.settings.event_cooldown_s:
            return False
        self._last_emitted[kind] = timestamp
        return True


def summarize_oscillation(rates: Iterable[float]) -> tuple[float, int]:
    """
    Returns (peak absolute rate, number of sign alternations).

    A rate of exactly zero counts as negative. The first value has no
    predecessor and never counts as an alternation.
    """
    peak = 0.0
    alternations = 0
    last_sign = 0
    for rate in rates:
        peak = max(peak, abs(rate))
        sign = 1 if rate > 0 else -1
        if last_sign != 0 and sign != last_sign:
            alternations += 1
        last_sign = sign
    return peak, alternations
