"""Session runner that wires sampler, transport and controller on one event loop."""

import asyncio
import logging
from typing import Callable, List, Optional

from ..config import FocusWatchConfig
from ..models.events import ConnectionEvent, ConnectionEventKind
from ..models.session import SessionSnapshot
from ..session.controller import FocusSessionController
from ..session.publisher import SnapshotPublisher
from ..transport.options import TransportOptions
from ..transport.socketio_transport import SocketIOTransport
from ..video.sampler import DEFAULT_SAMPLE_INTERVAL, FrameSampler
from ..video.source import CameraSource, VideoSource

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.01  # seconds


class SessionRunner:
    """Runs one focus session at a time.

    The integration timer, the sampling timer and the transport connection
    form a single resource group: they are acquired by start() and released
    together by stop(), by a fatal transport error, or by leaving the
    `async with` block.
    """

    def __init__(self,
                 controller: FocusSessionController,
                 transport_options: TransportOptions,
                 source: VideoSource,
                 sample_interval: float = DEFAULT_SAMPLE_INTERVAL,
                 tick_interval: float = DEFAULT_TICK_INTERVAL,
                 jpeg_quality: int = 80,
                 snapshot_callback: Optional[Callable[[SessionSnapshot], None]] = None,
                 transport_factory: Callable[..., SocketIOTransport] = SocketIOTransport):
        """Initialize session runner.

        Args:
            controller: Session state reducer
            transport_options: Connection settings for the classification service
            source: Live video source
            sample_interval: Seconds between sampled frames
            tick_interval: Seconds between integration ticks
            jpeg_quality: JPEG quality for encoded frames
            snapshot_callback: Receives a snapshot after every state change
            transport_factory: Builds the transport (swappable for tests)
        """
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        self.controller = controller
        self.source = source
        self.tick_interval = tick_interval
        self.snapshot_callback = snapshot_callback

        self.transport = transport_factory(
            transport_options,
            classification_callback=self._on_classification,
            connection_callback=self._on_connection_event,
            error_callback=self._on_service_error,
        )
        self.sampler = FrameSampler(
            source=source,
            frame_callback=self.transport.send_frame,
            interval_seconds=sample_interval,
            jpeg_quality=jpeg_quality,
            device_error_callback=self._on_device_error,
        )

        self._timers: List[asyncio.Task] = []
        self._timers_released: List[asyncio.Task] = []
        self._connect_task: Optional[asyncio.Task] = None
        self._disconnect_task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls,
                    config: FocusWatchConfig,
                    source: Optional[VideoSource] = None,
                    snapshot_callback: Optional[Callable[[SessionSnapshot], None]] = None,
                    **kwargs) -> "SessionRunner":
        """Build a runner from the loaded configuration."""
        controller = FocusSessionController(
            idle_message=config.get('session.idle_message', "Click start to begin inferences"),
            stop_on_fatal=config.get('session.stop_on_fatal', True),
        )
        if source is None:
            source = CameraSource(
                device=config.get_capture_device(),
                width=config.get('capture.width'),
                height=config.get('capture.height'),
            )
        if snapshot_callback is None:
            topic = config.get('session.snapshot_topic', "focuswatch.session")
            snapshot_callback = SnapshotPublisher(topic).get_callback()

        return cls(
            controller=controller,
            transport_options=config.transport_options(),
            source=source,
            sample_interval=config.get('capture.interval_seconds', DEFAULT_SAMPLE_INTERVAL),
            tick_interval=config.get('session.tick_interval_seconds', DEFAULT_TICK_INTERVAL),
            jpeg_quality=config.get('capture.jpeg_quality', 80),
            snapshot_callback=snapshot_callback,
            **kwargs,
        )

    @property
    def is_running(self) -> bool:
        return self.controller.is_running

    @property
    def timers_armed(self) -> bool:
        return any(not task.done() for task in self._timers)

    # Commands

    def start(self) -> None:
        """Start a session. Must be called from the running event loop."""
        loop = asyncio.get_running_loop()
        if self.controller.is_running:
            logger.info("Restarting running session")
            self._cancel_timers()

        self.controller.start()
        self._connect_task = loop.create_task(self._connect())
        self._timers = [
            loop.create_task(self._integrate(), name="focuswatch-integration"),
            loop.create_task(self.sampler.run(), name="focuswatch-sampler"),
        ]
        self._publish()

    def stop(self) -> None:
        """Stop the session: cancel both timers and request disconnection now."""
        if not self.controller.is_running and not self._timers:
            return
        self._release()
        self.controller.stop()
        self._publish()

    async def aclose(self) -> None:
        """Stop if running and wait until the connection is closed."""
        if self.controller.is_running or self._timers:
            self.stop()
        elif self._disconnect_task is None:
            self._disconnect_task = self.transport.request_disconnect()

        pending = [t for t in self._timers_released if not t.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if self._disconnect_task is not None:
            await self._disconnect_task
        self.source.release()

    async def run(self, duration: Optional[float] = None) -> SessionSnapshot:
        """Run one session for `duration` seconds (or until cancelled)."""
        async with self:
            self.start()
            try:
                if duration:
                    await asyncio.sleep(duration)
                else:
                    await asyncio.Event().wait()
            finally:
                self.stop()
        return self.snapshot()

    async def __aenter__(self) -> "SessionRunner":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def snapshot(self) -> SessionSnapshot:
        return self.controller.snapshot(frames_sent=self.transport.frames_sent,
                                        frames_dropped=self.transport.frames_dropped)

    # Resource group

    def _cancel_timers(self) -> None:
        for task in self._timers:
            task.cancel()
        self._timers_released = list(self._timers)
        self._timers = []

    def _release(self) -> None:
        self._cancel_timers()
        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()
        self._connect_task = None
        self._disconnect_task = self.transport.request_disconnect()

    async def _connect(self) -> None:
        # A previous session's socket must be closed before reconnecting
        if self._disconnect_task is not None:
            await self._disconnect_task
            self._disconnect_task = None
        await self.transport.connect()

    async def _integrate(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            self.controller.tick()
            self._publish()

    # Transport and sampler callbacks

    def _on_classification(self, status: str) -> None:
        self.controller.on_classification(status)
        self._publish()

    def _on_connection_event(self, event: ConnectionEvent) -> None:
        self.controller.on_connection_event(event)
        if event.kind is ConnectionEventKind.FATAL and not self.controller.is_running:
            logger.error("Session stopped after fatal connectivity error")
            self._release()
        self._publish()

    def _on_service_error(self, message: str) -> None:
        self.controller.on_service_error(message)
        self._publish()

    def _on_device_error(self, message: str) -> None:
        self.controller.on_device_error(message)
        self._publish()

    def _publish(self) -> None:
        if self.snapshot_callback:
            self.snapshot_callback(self.snapshot())
