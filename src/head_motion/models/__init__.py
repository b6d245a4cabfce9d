from .motion import (
    Acceleration,
    Attitude,
    GestureEvent,
    GestureKind,
    MotionSample,
    RotationRate,
)

__all__ = [
    "Acceleration",
    "Attitude",
    "GestureEvent",
    "GestureKind",
    "MotionSample",
    "RotationRate",
]
