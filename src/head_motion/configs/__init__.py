from .app import (
    AppSettings,
    ProcessorSettings,
    SessionSettings,
    SimulatorSettings,
    ZmqSinkConfig,
)
from .utils import LoggingConfig

__all__ = [
    "AppSettings",
    "LoggingConfig",
    "ProcessorSettings",
    "SessionSettings",
    "SimulatorSettings",
    "ZmqSinkConfig",
]
