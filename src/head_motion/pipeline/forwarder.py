import asyncio
import logging
from asyncio import Queue
from typing import Callable, List, Sequence, Union

from .distributor import Distributor
from ..sinks import MotionSink, SinkItem
from ..utils.logging import ThrottledLogger
from ..utils.types import EndToken, _END

logger = logging.getLogger(__name__)


class SinkForwarder:
    """
    Feeds pipeline outputs to a set of sinks.

    Items are queued by the subscription callbacks (never blocking the
    sample path) and drained by `run()`, which hands each one to every sink.
    `stop()` lets the queue drain before the sinks are closed.
    """

    def __init__(self, sinks: Sequence[MotionSink], queue_size: int = 1000):
        self.sinks = list(sinks)
        self._queue: Queue[Union[SinkItem, EndToken]] = asyncio.Queue(maxsize=queue_size)
        self._unsubscribers: List[Callable[[], None]] = []
        self._drop_logger = ThrottledLogger(logger, interval_sec=5.0)
        self.dropped = 0

    def attach(self, distributor: Distributor) -> None:
        """Forwards every future item of `distributor`."""
        self._unsubscribers.append(distributor.subscribe(self._enqueue))

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _enqueue(self, item: SinkItem) -> None:
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            self.dropped += 1
            self._drop_logger.warning("Sink queue full; %d items dropped so far.", self.dropped)

    async def run(self) -> None:
        """Starts the sinks and forwards items until `stop()` is called."""
        await asyncio.gather(*(s.start() for s in self.sinks))
        logger.info(f"SinkForwarder active with {len(self.sinks)} sinks.")

        try:
            while True:
                item = await self._queue.get()

                if item is _END:
                    break

                await asyncio.gather(*(s.send(item) for s in self.sinks))

        except asyncio.CancelledError:
            logger.info("SinkForwarder cancelled.")
            raise

        finally:
            await asyncio.gather(*(s.close() for s in self.sinks))
            logger.info("SinkForwarder stopped.")

    async def stop(self) -> None:
        """Stops accepting items and ends `run()` once the backlog is sent."""
        self.detach()
        await self._queue.put(_END)
