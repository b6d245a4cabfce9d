import asyncio
import logging
from typing import Callable, Literal, Optional

from .base import MotionDeviceController
from ..acquisition import MotionSource, SimulatedMotionSource
from ..configs import SimulatorSettings
from ..core.state import AuthorizationState

logger = logging.getLogger(__name__)

class SimulatedDeviceController(MotionDeviceController):
    """
    Stands in for a real headset. Every hardware signal can be flipped from
    code, which is how failure paths are exercised.
    """
    def __init__(
        self,
        settings: Optional[SimulatorSettings] = None,
        source_factory: Optional[Callable[[], MotionSource]] = None,
    ):
        super().__init__()
        self.settings = settings or SimulatorSettings()
        self._source_factory = source_factory
        self._authorization = AuthorizationState.NOT_DETERMINED
        self._connected = self.settings.device_connected
        self._motion_capable = self.settings.motion_capable
        self._motion_service_available = True

        self._pending_start_failures = 0
        self._pending_fault: Optional[tuple[int, str]] = None
        self.sources_created = 0

    def authorization_status(self) -> AuthorizationState:
        return self._authorization

    async def request_authorization(self) -> AuthorizationState:
        await asyncio.sleep(0) # Simulate the permission prompt
        if self._authorization is AuthorizationState.NOT_DETERMINED:
            self._authorization = (
                AuthorizationState.AUTHORIZED if self.settings.authorized else AuthorizationState.DENIED
            )
            logger.info("Simulated permission prompt answered: %s", self._authorization.name)
        return self._authorization

    @property
    def device_connected(self) -> bool:
        return self._connected

    @property
    def device_motion_capable(self) -> bool:
        return self._motion_capable

    @property
    def is_device_motion_available(self) -> bool:
        return self._motion_service_available

    @property
    def device_name(self) -> str:
        return "SIMU-HEADSET" if self._connected else "N/A"

    def create_source(self) -> MotionSource:
        self.sources_created += 1
        if self._source_factory is not None:
            return self._source_factory()

        fail_to_start = self._pending_start_failures > 0
        if fail_to_start:
            self._pending_start_failures -= 1

        fault_after, fault = None, "error"
        if self._pending_fault is not None and not fail_to_start:
            fault_after, fault = self._pending_fault
            self._pending_fault = None

        return SimulatedMotionSource(
            frequency=self.settings.frequency_hz,
            noise=self.settings.noise_rad,
            seed=self.settings.seed,
            fail_to_start=fail_to_start,
            fault_after=fault_after,
            fault=fault,
        )

    def shutdown(self) -> None:
        self._route_listeners.clear()

    # --- Simulation controls ---

    def set_authorization(self, state: AuthorizationState) -> None:
        self._authorization = state

    def set_route(self, connected: bool, motion_capable: Optional[bool] = None) -> None:
        """Simulates plugging / unplugging a headset; listeners are notified."""
        self._connected = connected
        if motion_capable is not None:
            self._motion_capable = motion_capable
        logger.info("Simulated route change: connected=%s motion_capable=%s", connected, self._motion_capable)
        self._notify_route_change()

    def set_motion_service_available(self, available: bool) -> None:
        self._motion_service_available = available

    def fail_next_starts(self, count: int) -> None:
        """The next `count` sources never report active."""
        self._pending_start_failures = count

    def fault_next_session(self, after_samples: int, fault: Literal["error", "empty"] = "error") -> None:
        """The next started source delivers a read fault after `after_samples` samples."""
        self._pending_fault = (after_samples, fault)
