import asyncio
import logging
from typing import Callable, Optional

from ..acquisition import MotionSource, SourceUpdate
from ..utils.types import _END

logger = logging.getLogger(__name__)

UpdateHandler = Callable[[SourceUpdate], None]


class MotionRunner:
    """
    Drives one acquisition session: runs the source and hands every update,
    in arrival order, to a single handler.
    Created fresh for every start attempt.
    """
    def __init__(self, source: MotionSource, handler: UpdateHandler):
        self.source = source
        self.handler = handler
        self._running = False
        self._dispatch_task: Optional[asyncio.Task] = None
        self._acquire_task: Optional[asyncio.Task] = None
        self.dispatched = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_active(self) -> bool:
        """True once the source reports that it is streaming."""
        return self._running and self.source.is_active

    async def start(self) -> None:
        if self._running:
            logger.debug("MotionRunner already started.")
            return

        self._running = True
        self._acquire_task = asyncio.create_task(self.source.run())
        self._dispatch_task = asyncio.create_task(self._dispatch())
        logger.info(f"MotionRunner started ({type(self.source).__name__}).")

    async def stop(self) -> None:
        """Stops the source and waits until its remaining updates are discarded."""
        if not self._running:
            return

        self._running = False
        await self.source.stop()

        # The source emits _END once it returns, which ends the dispatch loop
        for task in (self._acquire_task, self._dispatch_task):
            if task is not None:
                await task

        logger.info(f"MotionRunner stopped after {self.dispatched} updates.")

    async def _dispatch(self) -> None:
        queue = self.source.output_queue

        try:
            while True:
                update = await queue.get()
                if update is _END:
                    break

                # Updates still queued after stop() belong to a finished session
                if not self._running:
                    continue

                self.dispatched += 1
                try:
                    self.handler(update)
                except Exception:
                    logger.exception("Motion update handler failed; update skipped.")

        except asyncio.CancelledError:
            logger.info("Runner dispatch cancelled unexpectedly.")
