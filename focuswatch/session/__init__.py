"""Focus session state and snapshot publishing."""

from .controller import FocusSessionController, IDLE_MESSAGE, SERVICE_ERROR_MESSAGE
from .publisher import SnapshotPublisher, DEFAULT_SNAPSHOT_TOPIC

__all__ = [
    "FocusSessionController",
    "IDLE_MESSAGE",
    "SERVICE_ERROR_MESSAGE",
    "SnapshotPublisher",
    "DEFAULT_SNAPSHOT_TOPIC",
]
