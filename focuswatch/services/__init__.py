"""Services layer for FocusWatch application logic."""

from .session_runner import SessionRunner

__all__ = [
    "SessionRunner",
]
