"""Shared helpers for the unit tests."""

import asyncio
import math
from typing import Callable, List, Optional

from head_motion.models import MotionSample


def sample(
    t: float,
    pitch_deg: float = 0.0,
    roll_deg: float = 0.0,
    yaw_deg: float = 0.0,
    rate_x: float = 0.0,
    rate_z: float = 0.0,
) -> MotionSample:
    """Builds a sample from degrees (attitude) and rad/s (rotation rate)."""
    return MotionSample.from_values(
        timestamp=t,
        attitude=(math.radians(roll_deg), math.radians(pitch_deg), math.radians(yaw_deg)),
        rotation_rate=(rate_x, 0.0, rate_z),
    )


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Polls `predicate` on the running loop until it holds or `timeout` expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met in time.")
        await asyncio.sleep(0.005)


class FakeSleep:
    """
    Stand-in for asyncio.sleep that records every requested delay.

    Delays return after a few loop iterations instead of real time. Delays of
    at least `block_at` never return (until cancelled).
    """

    def __init__(self, block_at: Optional[float] = None):
        self.calls: List[float] = []
        self._block_at = block_at

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        if self._block_at is not None and delay >= self._block_at:
            await asyncio.Event().wait()
        for _ in range(3):
            await asyncio.sleep(0)

    def delays_at_least(self, minimum: float) -> List[float]:
        return [d for d in self.calls if d >= minimum]
