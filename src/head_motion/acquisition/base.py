from abc import ABC, abstractmethod
from asyncio import Queue, Event
from dataclasses import dataclass
from typing import Optional, Union, final

from head_motion.models import MotionSample
from head_motion.utils.types import EndToken, _END


@dataclass(slots=True, frozen=True)
class SourceUpdate:
    """
    One callback from the sensor: a sample, an error, or (contradictorily) neither.
    """
    sample: Optional[MotionSample] = None
    error: Optional[Exception] = None


class MotionSource(ABC):
    """
    Abstract Base Class for all head motion sources.

    A MotionSource is a runnable component that acquires motion samples from a
    specific origin (e.g., a headset, a recording) and puts `SourceUpdate`
    objects into an output queue for the session runner. Once `run` returns
    the queue receives `_END`.
    """

    def __init__(
        self,
        output_queue: Optional[Queue[Union[SourceUpdate, EndToken]]] = None,
        stop_event: Optional[Event] = None,
    ):
        self._output_queue = output_queue if output_queue is not None else Queue(maxsize=1000)
        self._stop_event = stop_event if stop_event is not None else Event()
        self._active = False

    @property
    def output_queue(self) -> Queue[Union[SourceUpdate, EndToken]]:
        return self._output_queue

    @property
    def is_active(self) -> bool:
        """True while the source is delivering updates."""
        return self._active

    @final
    async def run(self) -> None:
        """
        Runs the acquisition until the stop event is set, then closes the stream.
        """
        try:
            await self._stream()
        finally:
            self._active = False
            await self._output_queue.put(_END)

    @abstractmethod
    async def _stream(self) -> None:
        """
        Acquires data and places it into the output queue until the
        `stop_event` is set. Implementations set `self._active` once the
        device reports that it is streaming.
        """
        raise NotImplementedError

    @final
    async def stop(self) -> None:
        """
        Signals the source to stop acquiring data.

        This is a final method and should not be overridden. Subclasses can
        perform cleanup in their `_stream` method's finally block.
        """
        self._stop_event.set()
