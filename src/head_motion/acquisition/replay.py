import asyncio
import logging
from typing import Iterable, List

from head_motion.models import MotionSample
from .base import MotionSource, SourceUpdate

logger = logging.getLogger(__name__)


class ReplayMotionSource(MotionSource):
    """
    A MotionSource that replays previously recorded samples.

    With `realtime=True` the gaps between sample timestamps are reproduced,
    otherwise samples are delivered as fast as the consumer takes them. After
    the last sample the source stays active until it is stopped.
    """

    def __init__(self, samples: Iterable[MotionSample], *args, realtime: bool = False, **kwargs):
        super().__init__(*args, **kwargs)
        self._samples: List[MotionSample] = list(samples)
        self._realtime = realtime

    async def _stream(self) -> None:
        self._active = True
        logger.info(f"Replaying {len(self._samples)} samples (realtime={self._realtime}).")

        previous_ts = None
        for sample in self._samples:
            if self._stop_event.is_set():
                break
            if self._realtime and previous_ts is not None:
                await asyncio.sleep(max(sample.timestamp - previous_ts, 0.0))
            await self._output_queue.put(SourceUpdate(sample=sample))
            previous_ts = sample.timestamp
            await asyncio.sleep(0)

        await self._stop_event.wait()
        logger.info("ReplayMotionSource has stopped.")
