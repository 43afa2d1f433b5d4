"""Focus session controller: lifecycle and time accumulation.

The controller is a pure state reducer. It performs no I/O; the transport
feeds it classification and connection events, and an integration timer
feeds it ticks. Elapsed time is always flushed into the label that was in
effect during the interval before the label is switched.
"""

import time
import logging
from typing import Callable, Optional, Union

from ..models.events import ConnectionEvent, ConnectionEventKind
from ..models.session import (
    FocusLabel,
    FocusSample,
    SessionSnapshot,
    SessionState,
    TimeAccumulators,
)

logger = logging.getLogger(__name__)

IDLE_MESSAGE = "Click start to begin inferences"
STARTED_MESSAGE = "Session started"
SERVICE_ERROR_MESSAGE = "Error processing frame"


class FocusSessionController:
    """Owns the session lifecycle and the focused/distracted accumulators."""

    def __init__(self,
                 clock: Callable[[], float] = time.monotonic,
                 idle_message: str = IDLE_MESSAGE,
                 stop_on_fatal: bool = True):
        """Initialize controller.

        Args:
            clock: Monotonic clock returning seconds
            idle_message: Status shown while no session is running
            stop_on_fatal: Return to idle when the transport gives up reconnecting
        """
        self._clock = clock
        self.idle_message = idle_message
        self.stop_on_fatal = stop_on_fatal

        self._state = SessionState.IDLE
        self.started_at: Optional[float] = None  # Base of the current integration window
        self.session_started_at: Optional[float] = None
        self.session_stopped_at: Optional[float] = None
        self.accumulators = TimeAccumulators()
        self._label = FocusLabel.FOCUSED
        self._status = idle_message

        # Connection view, mirrored from transport events
        self._connected = False
        self._link_down = False  # Set by a link-down event, cleared by CONNECTED
        self._suspended = False
        self._last_error: Optional[str] = None

    # Commands

    def start(self) -> None:
        """Start (or restart) a session with zeroed accumulators."""
        now = self._clock()
        self.accumulators.reset()
        self.started_at = now
        self.session_started_at = now
        self.session_stopped_at = None
        self._label = FocusLabel.FOCUSED
        # Restarting during an outage accrues nothing until the link is back
        self._suspended = self._link_down
        self._state = SessionState.RUNNING
        self._status = STARTED_MESSAGE
        logger.info("Focus session started")

    def stop(self) -> None:
        """Stop the session, keeping the accumulated values."""
        if self._state is SessionState.IDLE:
            return
        self._flush(self._clock())
        self._enter_idle()
        self._status = self.idle_message
        logger.info(f"Focus session stopped: focused={self.focused_seconds:.2f}s, "
                    f"distracted={self.distracted_seconds:.2f}s")

    # Event handlers

    def on_classification(self, status: Union[str, FocusLabel]) -> None:
        """Apply a classification result from the service."""
        if self._state is SessionState.IDLE:
            logger.debug(f"Ignoring classification while idle: {status}")
            return

        now = self._clock()
        if isinstance(status, FocusLabel):
            sample = FocusSample(label=status,
                                 status_text=_label_text(status),
                                 received_at=now)
        else:
            sample = FocusSample.from_status(status, now)

        # Interval since the last event belongs to the label that was in effect
        self._flush(now)
        if sample.label is not self._label:
            logger.debug(f"Focus label changed: {self._label.value} -> {sample.label.value}")
        self._label = sample.label
        self._status = sample.status_text

    def tick(self) -> None:
        """Integration tick: accrue elapsed time to the current label."""
        if self._state is SessionState.IDLE:
            return
        self._flush(self._clock())

    def on_connection_event(self, event: ConnectionEvent) -> None:
        """Reflect a transport lifecycle event in the exposed status."""
        now = self._clock()
        kind = event.kind

        if kind is ConnectionEventKind.CONNECTED:
            self._connected = True
            self._link_down = False
            self._last_error = None
            if self._suspended:
                # Resume accrual from the moment the link came back
                self.started_at = now
                self._suspended = False
        elif event.is_link_down:
            self._connected = False
            self._link_down = True
            if kind is not ConnectionEventKind.DISCONNECTED:
                self._last_error = event.message
            if self._state is SessionState.RUNNING and not self._suspended:
                self._flush(now)
                self._suspended = True

        if self._state is SessionState.IDLE and kind is ConnectionEventKind.DISCONNECTED:
            # Closing the link after stop() keeps the idle message visible
            return

        self._status = event.message

        if kind is ConnectionEventKind.FATAL:
            logger.error(f"Transport gave up: {event.message}")
            if self.stop_on_fatal and self._state is SessionState.RUNNING:
                self._enter_idle()

    def on_service_error(self, message: str) -> None:
        """Show a frame-processing failure for this cycle only."""
        logger.warning(f"Service reported processing error: {message}")
        self._last_error = message
        self._status = SERVICE_ERROR_MESSAGE

    def on_device_error(self, message: str) -> None:
        """Show that the video source is unavailable. Not fatal."""
        logger.warning(f"Video source unavailable: {message}")
        self._last_error = message
        self._status = message

    # Internal helpers

    def _flush(self, now: float) -> None:
        if self.started_at is None:
            return
        if not self._suspended:
            self.accumulators.add(self._label, now - self.started_at)
        self.started_at = now

    def _enter_idle(self) -> None:
        self._state = SessionState.IDLE
        self.started_at = None
        self.session_stopped_at = self._clock()
        self._suspended = False

    # Observable state

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SessionState.RUNNING

    @property
    def status(self) -> str:
        return self._status

    @property
    def current_label(self) -> FocusLabel:
        return self._label

    @property
    def is_distracted(self) -> bool:
        return self._label is FocusLabel.DISTRACTED

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def focused_seconds(self) -> float:
        return self.accumulators.focused_seconds

    @property
    def distracted_seconds(self) -> float:
        return self.accumulators.distracted_seconds

    @property
    def elapsed_seconds(self) -> float:
        """Wall-clock time since start(), up to stop() once idle."""
        if self.session_started_at is None:
            return 0.0
        end = self.session_stopped_at if self.session_stopped_at is not None else self._clock()
        return max(0.0, end - self.session_started_at)

    def snapshot(self, frames_sent: int = 0, frames_dropped: int = 0) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            status=self._status,
            is_distracted=self.is_distracted,
            connected=self._connected,
            focused_seconds=self.focused_seconds,
            distracted_seconds=self.distracted_seconds,
            elapsed_seconds=self.elapsed_seconds,
            last_error=self._last_error,
            frames_sent=frames_sent,
            frames_dropped=frames_dropped,
        )


def _label_text(label: FocusLabel) -> str:
    return "Distracted" if label is FocusLabel.DISTRACTED else "Focused"
