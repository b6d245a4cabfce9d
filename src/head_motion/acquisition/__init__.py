from .base import MotionSource, SourceUpdate
from .replay import ReplayMotionSource
from .simulated import SimulatedMotionSource, head_gesture_profile

__all__ = [
    "MotionSource",
    "ReplayMotionSource",
    "SimulatedMotionSource",
    "SourceUpdate",
    "head_gesture_profile",
]
