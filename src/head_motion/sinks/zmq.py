import logging
import math
import struct
from typing import Final

import zmq
import zmq.asyncio

from .base import MotionSink, SinkItem
from ..models import GestureEvent, GestureKind, MotionSample

logger = logging.getLogger(__name__)

_GESTURE_CODES: Final[dict[GestureKind, int]] = {kind: i for i, kind in enumerate(GestureKind)}


class ZMQSink(MotionSink):
    """
    Real-time broadcast sink using ZMQ PUB/SUB.

    Motion frame (6 byte topic + 112 bytes):
    - Topic: 'motion'
    - Device TS: float64 (s)
    - Roll, Pitch, Yaw: float64 (rad)
    - Rotation rate X, Y, Z: float64 (rad/s)
    - User acceleration X, Y, Z: float64 (g)
    - Gravity X, Y, Z: float64 (g)
    - Delta time: float64 (s), NaN for the first sample of a session

    Gesture frame (7 byte topic + 17 bytes):
    - Topic: 'gesture'
    - Kind: uint8 (declaration order of GestureKind)
    - Device TS: float64 (s)
    - Confidence: float64
    """

    # ! = Network (Big Endian)
    _MOTION_PACKER: Final[struct.Struct] = struct.Struct("!14d")
    _GESTURE_PACKER: Final[struct.Struct] = struct.Struct("!Bdd")
    MOTION_TOPIC: Final[bytes] = b"motion"
    GESTURE_TOPIC: Final[bytes] = b"gesture"

    def __init__(self, host: str = "tcp://*:5556"):
        """
        Args:
            host: The ZMQ binding address. Default binds to all interfaces on port 5556.
        """
        self.host = host

        # Async ZMQ setup
        self._ctx = zmq.asyncio.Context()
        self._sock = self._ctx.socket(zmq.PUB)

        # Buffer of 10 seconds at 30Hz (samples plus the occasional gesture)
        self._sock.setsockopt(zmq.SNDHWM, 30 * 10 * 2)

    @classmethod
    def pack_sample(cls, sample: MotionSample) -> bytes:
        a, r, u, g = sample.attitude, sample.rotation_rate, sample.user_acceleration, sample.gravity
        delta_time = math.nan if sample.delta_time is None else sample.delta_time
        return cls.MOTION_TOPIC + cls._MOTION_PACKER.pack(
            sample.timestamp,
            a.roll, a.pitch, a.yaw,
            r.x, r.y, r.z,
            u.x, u.y, u.z,
            g.x, g.y, g.z,
            delta_time,
        )

    @classmethod
    def pack_event(cls, event: GestureEvent) -> bytes:
        return cls.GESTURE_TOPIC + cls._GESTURE_PACKER.pack(
            _GESTURE_CODES[event.kind],
            event.timestamp,
            event.confidence,
        )

    async def start(self) -> None:
        """Bind the publisher socket."""
        try:
            self._sock.bind(self.host)
            logger.info(f"ZMQSink bound to {self.host}")
        except zmq.ZMQError as e:
            logger.error(f"Failed to bind ZMQSink to {self.host}: {e}")
            raise

    async def send(self, item: SinkItem) -> None:
        """
        Serializes and broadcasts a sample or a gesture.
        This is a non-blocking operation (ZMQ hands off to internal buffer).
        """
        if isinstance(item, GestureEvent):
            payload = self.pack_event(item)
        else:
            payload = self.pack_sample(item)

        try:
            await self._sock.send(payload)
        except zmq.ZMQError as e:
            # A broken subscriber link must not stall the sample path.
            logger.error(f"ZMQ broadcast failed: {e}")

    async def close(self) -> None:
        """Shut down the ZMQ context."""
        logger.info("Closing ZMQSink...")
        # Close immediately, don't wait for unsent messages
        self._sock.close(linger=0)
        self._ctx.term()
