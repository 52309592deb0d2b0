"""Connection and room fan-out."""

from fitchat.transport.base import Transport
from fitchat.transport.memory import Delivery, InMemoryTransport
from fitchat.transport.sio import SocketIOTransport

__all__ = ["Delivery", "InMemoryTransport", "SocketIOTransport", "Transport"]
