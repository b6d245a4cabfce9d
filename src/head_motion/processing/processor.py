import logging
import time
from typing import List, Optional, Tuple

from ..configs import ProcessorSettings
from ..models import Acceleration, Attitude, GestureEvent, MotionSample, RotationRate
from .calibration import CalibrationOffset
from .detector import EventDetector
from .filters import LowPassFilter, MedianFilter
from .statistics import ProcessingStatistics

logger = logging.getLogger(__name__)


class MotionDataProcessor:
    """
    Per-sample pipeline: calibration -> filtering -> history -> gesture detection.

    Filter, history and cooldown state are mutated in place, so a processor
    must only ever be fed from one task, in timestamp order.
    """

    def __init__(self, settings: Optional[ProcessorSettings] = None):
        self.settings: ProcessorSettings = settings or ProcessorSettings()
        self.calibration = CalibrationOffset()
        self.detector = EventDetector(self.settings)
        self.stats = ProcessingStatistics(window=self.settings.stats_window)
        self._build_filters()

    def _build_filters(self) -> None:
        cfg = self.settings
        self._attitude_filters = tuple(
            LowPassFilter(cfg.attitude_lpf_cutoff_hz, cfg.sample_rate_hz) for _ in range(3)
        )
        self._rotation_filters = tuple(MedianFilter(cfg.rotation_median_window) for _ in range(3))
        self._acceleration_filters = tuple(MedianFilter(cfg.acceleration_median_window) for _ in range(3))

    @property
    def filtering_enabled(self) -> bool:
        return self.settings.filtering_enabled

    def process(self, sample: MotionSample) -> Tuple[MotionSample, List[GestureEvent]]:
        """
        Runs one raw sample through the pipeline.

        Returns the filtered sample and the gestures emitted for it (possibly none).
        """
        start = time.perf_counter()

        calibrated = self.calibration.apply(sample)
        filtered = self._apply_filters(calibrated) if self.filtering_enabled else calibrated

        self.detector.append(filtered)
        events = self.detector.detect(filtered)

        self.stats.add_processing_time(time.perf_counter() - start)

        for event in events:
            logger.debug("Gesture %s at t=%.3f (confidence %.2f)", event.kind.name, event.timestamp, event.confidence)
        return filtered, events

    def _apply_filters(self, sample: MotionSample) -> MotionSample:
        roll_f, pitch_f, yaw_f = self._attitude_filters
        rx_f, ry_f, rz_f = self._rotation_filters
        ax_f, ay_f, az_f = self._acceleration_filters

        att, rot, acc = sample.attitude, sample.rotation_rate, sample.user_acceleration

        return sample.with_changes(
            attitude=Attitude(roll_f.apply(att.roll), pitch_f.apply(att.pitch), yaw_f.apply(att.yaw)),
            rotation_rate=RotationRate(rx_f.apply(rot.x), ry_f.apply(rot.y), rz_f.apply(rot.z)),
            user_acceleration=Acceleration(ax_f.apply(acc.x), ay_f.apply(acc.y), az_f.apply(acc.z)),
        )

    # --- Configuration ---

    def update_filter_settings(self, settings: Optional[ProcessorSettings] = None) -> None:
        """
        Rebuilds every filter from the current settings.

        Filter memory is lost, so the next few outputs show a transient.
        The gesture history and timing window are resized to the new
        settings; cooldowns survive.
        """
        if settings is not None:
            self.settings = settings
            self.detector.update_settings(settings)
            self.stats.resize(settings.stats_window)
        self._build_filters()
        logger.info(
            "Filters rebuilt: LPF %.1f Hz, rotation median %d, acceleration median %d",
            self.settings.attitude_lpf_cutoff_hz,
            self.settings.rotation_median_window,
            self.settings.acceleration_median_window,
        )

    def reset_filters(self) -> None:
        """Clears filter memory, history, cooldowns and statistics for a new session."""
        for f in (*self._attitude_filters, *self._rotation_filters, *self._acceleration_filters):
            f.reset()
        self.detector.reset()
        self.stats.reset()

    # --- Calibration ---

    def calibrate(self, attitude: Attitude) -> None:
        self.calibration.capture(attitude)

    def clear_calibration(self) -> None:
        self.calibration.clear()
