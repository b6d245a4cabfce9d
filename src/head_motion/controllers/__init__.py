from .base import MotionDeviceController
from .simulated import SimulatedDeviceController

__all__ = ["MotionDeviceController", "SimulatedDeviceController"]
