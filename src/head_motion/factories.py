from typing import List

from .configs import AppSettings
from .controllers import MotionDeviceController, SimulatedDeviceController
from .core.manager import HeadMotionManager
from .processing import MotionDataProcessor
from .sinks import MotionSink, ZMQSink


def create_session_sinks(settings: AppSettings) -> List[MotionSink]:
    """
    Creates fresh sink instances for a new session.
    """
    sinks: List[MotionSink] = []

    # ZMQ
    if settings.zmq.enabled:
        sinks.append(ZMQSink(host=settings.zmq.host))

    return sinks


def create_manager(settings: AppSettings, controller: MotionDeviceController | None = None) -> HeadMotionManager:
    """Wires a manager to `controller`, or to a simulated headset if none is given."""
    if controller is None:
        controller = SimulatedDeviceController(settings.simulator)
    processor = MotionDataProcessor(settings.processor)
    return HeadMotionManager(controller, settings.session, processor)
