import logging
from abc import ABC, abstractmethod
from typing import Callable, List

from ..acquisition import MotionSource
from ..core.state import AuthorizationState

logger = logging.getLogger(__name__)

RouteListener = Callable[[], None]


class MotionDeviceController(ABC):
    """
    Abstract Hardware Manager.
    AUTHORITY on: Permission, Device presence, and Stream creation.
    """
    def __init__(self):
        self._route_listeners: List[RouteListener] = []

    @abstractmethod
    def authorization_status(self) -> AuthorizationState:
        """Snapshot of the motion permission. Cheap, never prompts."""
        ...

    async def request_authorization(self) -> AuthorizationState:
        """Prompts for permission where the platform supports it."""
        return self.authorization_status()

    @property
    @abstractmethod
    def device_connected(self) -> bool:
        """True if a head-worn device is present on the current route."""
        ...

    @property
    @abstractmethod
    def device_motion_capable(self) -> bool:
        """True if the connected device is expected to deliver motion."""
        ...

    @property
    @abstractmethod
    def is_device_motion_available(self) -> bool:
        """True if the local motion service can stream right now."""
        ...

    @property
    def device_name(self) -> str:
        return "N/A"

    @abstractmethod
    def create_source(self) -> MotionSource:
        """Factory: Returns a fresh MotionSource for a session."""
        ...

    @abstractmethod
    def shutdown(self) -> None:
        """Cleanup hardware resources."""
        ...

    # --- Route change notifications ---

    def add_route_listener(self, listener: RouteListener) -> Callable[[], None]:
        """Registers a callback fired when the device route changes. Returns an unsubscribe function."""
        self._route_listeners.append(listener)

        def _remove() -> None:
            if listener in self._route_listeners:
                self._route_listeners.remove(listener)

        return _remove

    def _notify_route_change(self) -> None:
        for listener in list(self._route_listeners):
            try:
                listener()
            except Exception:
                logger.exception("Route listener %r failed.", listener)
