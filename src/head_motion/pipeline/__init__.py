from .distributor import Distributor
from .forwarder import SinkForwarder

__all__ = ["Distributor", "SinkForwarder"]
