"""Data models for the FocusWatch application."""

from .session import (
    SessionState,
    FocusLabel,
    FocusSample,
    TimeAccumulators,
    SessionSnapshot,
)
from .events import ConnectionStatus, ConnectionEventKind, ConnectionEvent
from .messages import FrameMessage, StatusMessage, ErrorMessage

__all__ = [
    "SessionState",
    "FocusLabel",
    "FocusSample",
    "TimeAccumulators",
    "SessionSnapshot",
    # Transport models
    "ConnectionStatus",
    "ConnectionEventKind",
    "ConnectionEvent",
    "FrameMessage",
    "StatusMessage",
    "ErrorMessage",
]
