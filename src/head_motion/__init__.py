"""Head motion signal conditioning and gesture detection."""
from .core.manager import HeadMotionManager
from .models import GestureEvent, GestureKind, MotionSample
from .processing import MotionDataProcessor

__all__ = [
    "GestureEvent",
    "GestureKind",
    "HeadMotionManager",
    "MotionDataProcessor",
    "MotionSample",
]
