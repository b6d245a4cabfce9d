from .base import MotionSink, SinkItem
from .zmq import ZMQSink

__all__ = ["MotionSink", "SinkItem", "ZMQSink"]
