"""
Message vocabulary and transport adapter for the game server.
"""

from .events import *
from .transport import SocketIOTransport, Transport, TransportFactory, socketio_transport_factory

__all__ = ["SocketIOTransport", "Transport", "TransportFactory", "socketio_transport_factory"]
