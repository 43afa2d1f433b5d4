"""Connection lifecycle event models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ConnectionStatus(Enum):
    """State of the duplex connection owned by the transport."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionEventKind(Enum):
    """Lifecycle notifications delivered to the session controller."""
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    RECONNECTING = "reconnecting"
    FATAL = "fatal"  # Reconnection budget exhausted


@dataclass
class ConnectionEvent:
    """Connection lifecycle event with a human-readable message."""
    kind: ConnectionEventKind
    message: str
    attempt: Optional[int] = None  # Reconnection attempt number, if any
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_link_down(self) -> bool:
        return self.kind in (
            ConnectionEventKind.DISCONNECTED,
            ConnectionEventKind.ERROR,
            ConnectionEventKind.FATAL,
        )
