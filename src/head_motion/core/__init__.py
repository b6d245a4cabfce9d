from .runner import MotionRunner
from .state import (
    AuthorizationState,
    ConnectionState,
    ErrorKind,
    SessionError,
    SessionSnapshot,
    UpdateState,
)

__all__ = [
    "AuthorizationState",
    "ConnectionState",
    "ErrorKind",
    "MotionRunner",
    "SessionError",
    "SessionSnapshot",
    "UpdateState",
]
