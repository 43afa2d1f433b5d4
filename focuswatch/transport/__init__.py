"""Transport to the remote classification service."""

from .options import TransportOptions, DEFAULT_BACKEND_URL, SUPPORTED_TRANSPORTS
from .socketio_transport import SocketIOTransport, CLASSIFICATION_EVENTS

__all__ = [
    "TransportOptions",
    "DEFAULT_BACKEND_URL",
    "SUPPORTED_TRANSPORTS",
    "SocketIOTransport",
    "CLASSIFICATION_EVENTS",
]
