from .calibration import CalibrationOffset
from .detector import EventDetector
from .filters import LowPassFilter, MedianFilter
from .processor import MotionDataProcessor
from .statistics import ProcessingStatistics, SessionStatistics

__all__ = [
    "CalibrationOffset",
    "EventDetector",
    "LowPassFilter",
    "MedianFilter",
    "MotionDataProcessor",
    "ProcessingStatistics",
    "SessionStatistics",
]
