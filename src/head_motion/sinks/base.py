from abc import ABC, abstractmethod
from typing import Union

from ..models import GestureEvent, MotionSample

SinkItem = Union[MotionSample, GestureEvent]


class MotionSink(ABC):
    """
    Abstract Base Class for all outputs of the pipeline.

    A sink receives filtered samples and gesture events, in the order the
    manager produced them, and forwards them to a final destination (a
    socket, a file, ...). Sinks only observe: they never feed anything back
    into the pipeline.
    """

    async def start(self) -> None:
        """Acquires the sink's resources. Called once before the first `send`."""

    @abstractmethod
    async def send(self, item: SinkItem) -> None:
        """
        Delivers one item. Must not block the event loop for long; slow
        destinations should buffer internally.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Releases the sink's resources."""
