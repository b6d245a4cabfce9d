from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from ..models import GestureKind


class AuthorizationState(Enum):
    """Permission to read the sensor's motion stream."""
    NOT_DETERMINED = auto()
    AUTHORIZED = auto()
    DENIED = auto()


class ConnectionState(Enum):
    """
    Presence of a head-worn device on the current route.
    """
    DISCONNECTED = auto() # No compatible device present.
    CONNECTED = auto() # Device present, capability not known yet.
    CONNECTED_UNSUPPORTED = auto() # Device present but cannot deliver motion.
    CONNECTED_MOTION_AVAILABLE = auto() # Device present and streaming is possible.

    @property
    def is_motion_available(self) -> bool:
        return self is ConnectionState.CONNECTED_MOTION_AVAILABLE


class UpdateState(Enum):
    """Lifecycle of the motion update stream."""
    STOPPED = auto()
    STARTING = auto()
    ACTIVE = auto()
    ERROR = auto() # Details in SessionError.


class ErrorKind(Enum):
    NOT_AVAILABLE = "Head motion is not available."
    PERMISSION_DENIED = "Motion permission was denied."
    START_FAILED = "Motion updates failed to start."
    NO_DATA = "The sensor delivered neither data nor an error."
    CONNECTION_LOST = "The connection to the device was lost."

    @property
    def is_retryable(self) -> bool:
        return self is not ErrorKind.PERMISSION_DENIED


@dataclass(slots=True, frozen=True)
class SessionError:
    kind: ErrorKind
    message: str

    @classmethod
    def of(cls, kind: ErrorKind, detail: Optional[str] = None) -> "SessionError":
        message = kind.value if not detail else f"{kind.value} ({detail})"
        return cls(kind, message)


@dataclass(slots=True, frozen=True)
class SessionSnapshot:
    """Read-only view of the session, published on every state change."""
    authorization: AuthorizationState
    connection: ConnectionState
    update_state: UpdateState
    error: Optional[SessionError] = None
    retry_count: int = 0
    is_calibrating: bool = False
    is_calibrated: bool = False
    average_processing_time: float = 0.0
    max_processing_time: float = 0.0
    total_samples: int = 0
    average_update_rate: float = 0.0
    event_counts: dict[GestureKind, int] = field(default_factory=dict)
