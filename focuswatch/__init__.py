"""FocusWatch: webcam focus/distraction time tracking against a remote classifier."""

__version__ = "0.1.0"
