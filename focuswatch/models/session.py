"""Session-related data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


DISTRACTED_STATUS = "Distracted"


class SessionState(Enum):
    """Lifecycle state of a tracking session."""
    IDLE = "idle"
    RUNNING = "running"


class FocusLabel(Enum):
    """Which accumulator elapsed time is attributed to."""
    FOCUSED = "focused"
    DISTRACTED = "distracted"

    @classmethod
    def from_status(cls, status: str) -> "FocusLabel":
        """Map a raw service status string to a label.

        Only the exact "Distracted" status counts as distracted; every other
        label, including descriptive ones, is treated as focused.
        """
        if status == DISTRACTED_STATUS:
            return cls.DISTRACTED
        return cls.FOCUSED


@dataclass
class FocusSample:
    """A classification result received from the service."""
    label: FocusLabel
    status_text: str
    received_at: float  # Clock reading when the event was handled

    @classmethod
    def from_status(cls, status: str, received_at: float) -> "FocusSample":
        return cls(
            label=FocusLabel.from_status(status),
            status_text=status,
            received_at=received_at,
        )


@dataclass
class TimeAccumulators:
    """Elapsed seconds attributed to each label."""
    focused_seconds: float = 0.0
    distracted_seconds: float = 0.0

    def add(self, label: FocusLabel, seconds: float) -> None:
        if seconds <= 0:
            return
        if label is FocusLabel.DISTRACTED:
            self.distracted_seconds += seconds
        else:
            self.focused_seconds += seconds

    def reset(self) -> None:
        self.focused_seconds = 0.0
        self.distracted_seconds = 0.0

    @property
    def total_seconds(self) -> float:
        return self.focused_seconds + self.distracted_seconds


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the controller handed to presentation consumers."""
    state: SessionState
    status: str
    is_distracted: bool
    connected: bool
    focused_seconds: float
    distracted_seconds: float
    elapsed_seconds: float = 0.0
    last_error: Optional[str] = None
    frames_sent: int = 0
    frames_dropped: int = 0

    @property
    def is_running(self) -> bool:
        return self.state is SessionState.RUNNING

    @property
    def focus_ratio(self) -> float:
        total = self.focused_seconds + self.distracted_seconds
        if total <= 0:
            return 0.0
        return self.focused_seconds / total
