"""Pytest configuration and fixtures for FocusWatch tests."""

import asyncio
import pytest
import tempfile
import logging
import threading
import time
from typing import Dict, List, Optional

import numpy as np
import socketio


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "integration: tests wiring several components together")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def set(self, value: float) -> None:
        self.now = value


class FakeSocketClient:
    """Stands in for socketio.AsyncClient, driven by the test."""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.handlers: Dict[str, object] = {}
        self.connected = False
        self.emitted: List[tuple] = []
        self.connect_calls: List[tuple] = []
        self.disconnect_calls = 0
        self.fail_connects = 0  # Number of upcoming connect attempts that fail
        self.hang_connects = 0  # Upcoming attempts that stall after the engine.io handshake
        self.handshake_open = False  # engine.io session held by the client

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler
        return handler

    async def connect(self, url, **kwargs):
        self.connect_calls.append((url, kwargs))
        if self.handshake_open:
            raise ValueError("Client is not in a disconnected state")
        if self.fail_connects:
            self.fail_connects -= 1
            self.trigger("connect_error", "Connection refused by the server")
            raise socketio.exceptions.ConnectionError("Connection refused by the server")
        self.handshake_open = True
        if self.hang_connects:
            self.hang_connects -= 1
            await asyncio.sleep(3600)  # Namespace ack never arrives
        self.connected = True
        self.trigger("connect")

    async def emit(self, event, data=None, namespace=None):
        if not self.connected:
            raise socketio.exceptions.BadNamespaceError(f"{namespace} is not a connected namespace.")
        self.emitted.append((event, data))

    async def disconnect(self):
        was_connected = self.connected
        self.connected = False
        self.handshake_open = False
        self.disconnect_calls += 1
        if was_connected:
            self.trigger("disconnect", "client disconnect")

    def drop(self):
        """Simulate the server going away."""
        self.connected = False
        self.handshake_open = False
        self.trigger("disconnect", "transport close")

    def trigger(self, event, *args):
        handler = self.handlers.get(event)
        if handler is not None:
            return handler(*args)


class FakeVideoSource:
    """Video source producing a fixed synthetic frame."""

    def __init__(self, frame: Optional[np.ndarray] = None, opens: bool = True):
        self.frame = frame if frame is not None else make_frame()
        self.opens = opens
        self.opened = False
        self.open_calls = 0
        self.reads = 0
        self.released = False
        self.fail_reads = False
        self.open_delay = 0.0  # Seconds a call to open() blocks
        self.history: List[str] = []
        self.lock = threading.Lock()

    def open(self) -> bool:
        self.open_calls += 1
        if self.open_delay:
            time.sleep(self.open_delay)
        self.opened = self.opens
        self.history.append("open")
        return self.opened

    def is_ready(self) -> bool:
        return self.opened

    def read(self):
        with self.lock:
            self.reads += 1
        if self.fail_reads:
            return None
        return self.frame

    def release(self) -> None:
        self.released = True
        self.opened = False
        self.history.append("release")

    def describe(self) -> str:
        return "fake source"


def make_frame(width: int = 64, height: int = 48) -> np.ndarray:
    """Generate a BGR gradient image."""
    x = np.linspace(0, 255, width, dtype=np.uint8)
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :, 0] = x
    frame[:, :, 1] = x[::-1]
    frame[:, :, 2] = 128
    return frame


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_client():
    return FakeSocketClient()


@pytest.fixture
def client_factory(fake_client):
    """Factory handing the same fake client to the transport."""
    def factory(**kwargs):
        fake_client.kwargs = kwargs
        return fake_client
    return factory


@pytest.fixture
def sample_frame():
    return make_frame()


@pytest.fixture
def video_source():
    return FakeVideoSource()
