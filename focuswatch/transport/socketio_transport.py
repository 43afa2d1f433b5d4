"""Socket.IO transport to the remote classification service."""

import asyncio
import logging
from typing import Callable, Optional, Set

import socketio
from pydantic import ValidationError

from ..models.events import ConnectionEvent, ConnectionEventKind, ConnectionStatus
from ..models.messages import ErrorMessage, FrameMessage, StatusMessage
from .options import TransportOptions

logger = logging.getLogger(__name__)

# The service has used both names for classification results
CLASSIFICATION_EVENTS = ("focus_status", "status")
FRAME_EVENT = "frame"
ERROR_EVENT = "error"

# A failed attempt: refused, timed out, or engine.io still holding a previous
# handshake ("Client is not in a disconnected state")
CONNECT_FAILURES = (socketio.exceptions.ConnectionError, asyncio.TimeoutError, ValueError)

# python-socketio enforces wait_timeout on the namespace handshake itself. The
# outer deadline only bounds a stalled engine.io handshake.
CONNECT_DEADLINE_FACTOR = 2


class SocketIOTransport:
    """Owns one Socket.IO connection and its reconnection policy.

    Inbound messages and lifecycle changes are forwarded to the callbacks
    given at construction. The client's built-in reconnection is disabled so
    that attempts and exhaustion can be reported to the session.
    """

    def __init__(self,
                 options: TransportOptions,
                 classification_callback: Callable[[str], None],
                 connection_callback: Callable[[ConnectionEvent], None],
                 error_callback: Optional[Callable[[str], None]] = None,
                 client_factory: Callable[..., socketio.AsyncClient] = socketio.AsyncClient):
        """Initialize transport.

        Args:
            options: Endpoint and reconnection settings
            classification_callback: Receives the raw status string of each result
            connection_callback: Receives connection lifecycle events
            error_callback: Receives service-reported processing errors
            client_factory: Builds the underlying Socket.IO client
        """
        self.options = options
        self.classification_callback = classification_callback
        self.connection_callback = connection_callback
        self.error_callback = error_callback
        self._client_factory = client_factory

        self.status = ConnectionStatus.DISCONNECTED
        self.last_error: Optional[str] = None
        self.frames_sent = 0
        self.frames_dropped = 0

        self._client: Optional[socketio.AsyncClient] = None
        self._closing = False
        self._reconnect_task: Optional[asyncio.Task] = None
        self._pending_sends: Set[asyncio.Task] = set()

    @property
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    def _create_client(self) -> socketio.AsyncClient:
        client = self._client_factory(reconnection=False,
                                      logger=False,
                                      engineio_logger=False)
        namespace = self.options.namespace
        client.on("connect", self._on_connect, namespace=namespace)
        client.on("connect_error", self._on_connect_error, namespace=namespace)
        client.on("disconnect", self._on_disconnect, namespace=namespace)
        for event in CLASSIFICATION_EVENTS:
            client.on(event, self._on_classification, namespace=namespace)
        client.on(ERROR_EVENT, self._on_service_error, namespace=namespace)
        return client

    # Lifecycle

    async def connect(self) -> None:
        """Open the connection, falling back to the reconnection policy on failure."""
        if self.status is not ConnectionStatus.DISCONNECTED or self._reconnect_task:
            logger.debug(f"connect() ignored, transport is {self.status.value}")
            return

        self._closing = False
        if self._client is None:
            self._client = self._create_client()

        self.status = ConnectionStatus.CONNECTING
        self._notify(ConnectionEventKind.CONNECTING,
                     f"Connecting to {self.options.endpoint}")
        try:
            await self._open()
        except CONNECT_FAILURES as e:
            self._record_failure(e)
            self._notify(ConnectionEventKind.ERROR, f"Connection failed: {self.last_error}")
            self._schedule_reconnect()

    async def _open(self) -> None:
        logger.info(f"Connecting to classification service at {self.options.endpoint} "
                    f"(transports={self.options.transports})")
        client = self._client
        try:
            await asyncio.wait_for(
                client.connect(
                    self.options.endpoint,
                    headers=dict(self.options.headers),
                    transports=list(self.options.transports),
                    namespaces=[self.options.namespace],
                    socketio_path=self.options.socketio_path,
                    wait_timeout=self.options.connect_timeout,
                ),
                timeout=self.options.connect_timeout * CONNECT_DEADLINE_FACTOR,
            )
        except CONNECT_FAILURES:
            await self._abort_attempt(client)
            raise

    async def _abort_attempt(self, client: socketio.AsyncClient) -> None:
        # Close whatever the failed attempt left open so the next one starts clean
        try:
            await client.disconnect()
        except socketio.exceptions.SocketIOError as e:
            logger.debug(f"Cleanup after failed connect raised: {e}")

    def _record_failure(self, error: BaseException) -> None:
        message = str(error) or type(error).__name__
        self.last_error = message
        self.status = ConnectionStatus.DISCONNECTED
        logger.warning(f"Connection attempt failed: {message}")

    def request_disconnect(self) -> asyncio.Task:
        """Cancel timers and pending sends now, and close the socket in a task.

        Must be called from the event loop. The returned task completes once
        the socket is closed.
        """
        self._closing = True
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            self._reconnect_task = None
        for task in list(self._pending_sends):
            task.cancel()
        return asyncio.get_running_loop().create_task(self._close())

    async def disconnect(self) -> None:
        """Tear down the connection. Safe to call on any exit path."""
        await self.request_disconnect()

    async def _close(self) -> None:
        client = self._client
        self._client = None
        try:
            # Also closes an engine.io session left over from an abandoned handshake
            if client is not None:
                await client.disconnect()
        finally:
            if self.status is not ConnectionStatus.DISCONNECTED:
                logger.info("Disconnected from classification service")
            self.status = ConnectionStatus.DISCONNECTED

    async def __aenter__(self) -> "SocketIOTransport":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    # Reconnection policy

    def _schedule_reconnect(self) -> None:
        if self._closing:
            return
        if not self.options.reconnection or self.options.max_reconnect_attempts == 0:
            self._give_up()
            return
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect_loop())

    async def _reconnect_loop(self) -> None:
        attempts = self.options.max_reconnect_attempts
        try:
            for attempt in range(1, attempts + 1):
                await asyncio.sleep(self.options.reconnect_delay)
                if self._closing:
                    return
                self.status = ConnectionStatus.CONNECTING
                self._notify(ConnectionEventKind.RECONNECTING,
                             f"Reconnecting to server (attempt {attempt}/{attempts})",
                             attempt=attempt)
                try:
                    await self._open()
                    return
                except CONNECT_FAILURES as e:
                    self._record_failure(e)
            self._reconnect_task = None
            self._give_up()
        finally:
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None

    def _give_up(self) -> None:
        self.status = ConnectionStatus.DISCONNECTED
        attempts = self.options.max_reconnect_attempts if self.options.reconnection else 0
        message = f"Unable to reach server after {attempts} reconnection attempts"
        if self.last_error:
            message = f"{message}: {self.last_error}"
        self._notify(ConnectionEventKind.FATAL, message)

    # Outbound

    def send_frame(self, payload: bytes) -> bool:
        """Send one encoded frame without waiting. Dropped unless connected."""
        if not self.is_connected or self._client is None:
            self.frames_dropped += 1
            logger.debug(f"Dropping frame ({len(payload)} bytes), transport is {self.status.value}")
            return False

        message = FrameMessage.from_jpeg(payload)
        task = asyncio.get_running_loop().create_task(self._emit_frame(self._client, message))
        self._pending_sends.add(task)
        task.add_done_callback(self._pending_sends.discard)
        return True

    async def _emit_frame(self, client: socketio.AsyncClient, message: FrameMessage) -> None:
        try:
            await client.emit(FRAME_EVENT, message.model_dump(), namespace=self.options.namespace)
            self.frames_sent += 1
        except socketio.exceptions.SocketIOError as e:
            # Link went down between the status check and the emit
            self.frames_dropped += 1
            logger.debug(f"Frame emit failed: {e}")

    # Inbound handlers

    def _on_connect(self) -> None:
        self.status = ConnectionStatus.CONNECTED
        self.last_error = None
        logger.info("Connected to classification service")
        self._notify(ConnectionEventKind.CONNECTED, "Connected to server")

    def _on_connect_error(self, data=None) -> None:
        self.last_error = str(data) if data else "connection refused"
        logger.warning(f"Connection error from server: {self.last_error}")

    def _on_disconnect(self, reason=None) -> None:
        if self._closing or self.status is not ConnectionStatus.CONNECTED:
            return
        self.status = ConnectionStatus.DISCONNECTED
        logger.warning(f"Unexpectedly disconnected from server (reason={reason})")
        self._notify(ConnectionEventKind.DISCONNECTED, "Disconnected from server")
        self._schedule_reconnect()

    def _on_classification(self, data=None) -> None:
        try:
            message = StatusMessage.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed classification payload {data!r}: {e}")
            return
        logger.debug(f"Classification received: {message.status}")
        self.classification_callback(message.status)

    def _on_service_error(self, data=None) -> None:
        try:
            message = ErrorMessage.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed error payload {data!r}: {e}")
            return
        logger.error(f"Error from server: {message.error}")
        if self.error_callback:
            self.error_callback(message.error)

    def _notify(self, kind: ConnectionEventKind, message: str, attempt: Optional[int] = None) -> None:
        self.connection_callback(ConnectionEvent(kind=kind, message=message, attempt=attempt))
