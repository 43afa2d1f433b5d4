"""Terminal presentation of session state."""

from .status_screen import StatusScreen, summary_table

__all__ = ["StatusScreen", "summary_table"]
