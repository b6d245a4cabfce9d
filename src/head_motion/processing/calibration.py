import logging
from typing import Optional

from ..models import Attitude, MotionSample

logger = logging.getLogger(__name__)


class CalibrationOffset:
    """
    Holds the reference attitude that defines the "zero" head pose.

    Only roll, pitch and yaw are corrected. Rotation rate, acceleration and
    gravity pass through untouched.
    """

    def __init__(self) -> None:
        self._offset: Optional[Attitude] = None

    @property
    def offset(self) -> Optional[Attitude]:
        return self._offset

    @property
    def is_set(self) -> bool:
        return self._offset is not None

    def capture(self, attitude: Attitude) -> None:
        self._offset = attitude
        logger.info(
            "Calibration offset set: roll=%.1f pitch=%.1f yaw=%.1f deg",
            attitude.roll_degrees, attitude.pitch_degrees, attitude.yaw_degrees,
        )

    def clear(self) -> None:
        if self._offset is not None:
            logger.info("Calibration offset cleared.")
        self._offset = None

    def apply(self, sample: MotionSample) -> MotionSample:
        if self._offset is None:
            return sample
        return sample.with_changes(attitude=sample.attitude.offset_by(self._offset))
