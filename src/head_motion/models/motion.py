import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


@dataclass(slots=True, frozen=True)
class Attitude:
    """Head orientation in radians."""
    roll: float
    pitch: float
    yaw: float

    @property
    def roll_degrees(self) -> float:
        return math.degrees(self.roll)

    @property
    def pitch_degrees(self) -> float:
        return math.degrees(self.pitch)

    @property
    def yaw_degrees(self) -> float:
        return math.degrees(self.yaw)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.roll ** 2 + self.pitch ** 2 + self.yaw ** 2)

    def offset_by(self, reference: "Attitude") -> "Attitude":
        """Returns this attitude expressed relative to `reference`."""
        return Attitude(
            roll=self.roll - reference.roll,
            pitch=self.pitch - reference.pitch,
            yaw=self.yaw - reference.yaw,
        )


@dataclass(slots=True, frozen=True)
class RotationRate:
    """Angular velocity in rad/s. x: pitch axis, y: roll axis, z: yaw axis."""
    x: float
    y: float
    z: float

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2)

    @property
    def magnitude_degrees(self) -> float:
        return math.degrees(self.magnitude)


@dataclass(slots=True, frozen=True)
class Acceleration:
    """Acceleration vector in g."""
    x: float
    y: float
    z: float

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2)


@dataclass(slots=True, frozen=True)
class MotionSample:
    """
    A standardized, immutable container for a single head motion sample.

    Every stage of the pipeline (calibration, filtering) produces a new
    instance instead of mutating the one it received.
    """
    timestamp: float
    attitude: Attitude
    rotation_rate: RotationRate
    user_acceleration: Acceleration
    gravity: Acceleration
    received_at: datetime
    delta_time: Optional[float] = None

    def with_changes(self, **changes) -> "MotionSample":
        return replace(self, **changes)

    @classmethod
    def from_values(
        cls,
        timestamp: float,
        attitude: tuple[float, float, float] = (0.0, 0.0, 0.0),
        rotation_rate: tuple[float, float, float] = (0.0, 0.0, 0.0),
        user_acceleration: tuple[float, float, float] = (0.0, 0.0, 0.0),
        gravity: tuple[float, float, float] = (0.0, 0.0, -1.0),
        received_at: Optional[datetime] = None,
        delta_time: Optional[float] = None,
    ) -> "MotionSample":
        """Builds a sample from plain tuples, e.g. when reading a recording."""
        return cls(
            timestamp=timestamp,
            attitude=Attitude(*attitude),
            rotation_rate=RotationRate(*rotation_rate),
            user_acceleration=Acceleration(*user_acceleration),
            gravity=Acceleration(*gravity),
            received_at=received_at or datetime.now(timezone.utc),
            delta_time=delta_time,
        )


class GestureKind(Enum):
    LOOKING_DOWN = "looking_down"
    LOOKING_UP = "looking_up"
    HEAD_SHAKE = "head_shake"
    HEAD_NOD = "head_nod"
    SUDDEN_MOVEMENT = "sudden_movement"

    @property
    def description(self) -> str:
        return self.value.replace("_", " ").capitalize()


@dataclass(slots=True, frozen=True)
class GestureEvent:
    """A recognized head gesture. Only the EventDetector creates these."""
    kind: GestureKind
    timestamp: float
    confidence: float
    sample: MotionSample
