import asyncio
import logging
from asyncio import Queue
from typing import Callable, Generic, List, TypeVar

from ..utils.logging import ThrottledLogger

T = TypeVar("T")  # Generic type for the data being distributed
logger = logging.getLogger(__name__)


class Distributor(Generic[T]):
    """
    One-to-many notification channel.

    Every published item is handed to each callback subscriber and put on
    each subscriber queue. Publishing never blocks the producer: a full
    queue drops the item. Subscribers only observe; they must not mutate
    pipeline state.
    """

    def __init__(self, name: str):
        self.name = name
        self._callbacks: List[Callable[[T], None]] = []
        self._output_queues: List[Queue[T]] = []
        self._drop_logger = ThrottledLogger(logger, interval_sec=5.0)

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks) + len(self._output_queues)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Registers a callback. Returns a function that unsubscribes it."""
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unsubscribe

    def open_queue(self, maxsize: int = 1000) -> Queue[T]:
        """Creates a bounded queue that receives every future item."""
        queue: Queue[T] = asyncio.Queue(maxsize=maxsize)
        self._output_queues.append(queue)
        logger.debug(f"Distributor '{self.name}' now fans out to {len(self._output_queues)} queues.")
        return queue

    def close_queue(self, queue: Queue[T]) -> None:
        if queue in self._output_queues:
            self._output_queues.remove(queue)

    def publish(self, item: T) -> None:
        for callback in list(self._callbacks):
            try:
                callback(item)
            except Exception:
                logger.exception(f"Subscriber of '{self.name}' raised while handling an item.")

        for q in self._output_queues:
            try:
                q.put_nowait(item)
            except asyncio.QueueFull:
                self._drop_logger.warning("Distributor '%s' dropped an item: subscriber queue full.", self.name)
