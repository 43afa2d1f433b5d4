"""Unit tests for the status screen, summary table and logging setup."""

import io
import logging
from pathlib import Path

import pytest
from pubsub import pub
from rich.console import Console

from focuswatch.config import FocusWatchConfig
from focuswatch.main import setup_logging
from focuswatch.models.session import SessionSnapshot, SessionState
from focuswatch.session.publisher import SnapshotPublisher
from focuswatch.ui.status_screen import StatusScreen, format_seconds, summary_table


def make_snapshot(**overrides) -> SessionSnapshot:
    values = dict(
        state=SessionState.RUNNING,
        status="Distracted",
        is_distracted=True,
        connected=True,
        focused_seconds=2.0,
        distracted_seconds=3.0,
        frames_sent=7,
        frames_dropped=1,
    )
    values.update(overrides)
    return SessionSnapshot(**values)


def render_text(renderable) -> str:
    console = Console(file=io.StringIO(), width=100, record=True)
    console.print(renderable)
    return console.export_text()


@pytest.fixture
def screen():
    topic = "focuswatch.test_status_screen"
    status_screen = StatusScreen(topic, console=Console(file=io.StringIO()))
    yield status_screen
    status_screen.stop()


@pytest.mark.unit
class TestStatusScreen:

    def test_waiting_before_first_snapshot(self, screen):
        assert "Waiting for session" in render_text(screen.render())

    def test_renders_published_snapshot(self, screen):
        SnapshotPublisher(screen.topic).publish_snapshot(make_snapshot(last_error="Error processing frame"))

        text = render_text(screen.render())

        assert screen.latest is not None
        assert "Distracted" in text
        assert "Running" in text
        assert "Connected" in text
        assert "2.00 seconds" in text
        assert "3.00 seconds" in text
        assert "7 sent, 1 dropped" in text
        assert "Error processing frame" in text

    def test_idle_disconnected_snapshot(self, screen):
        snapshot = make_snapshot(state=SessionState.IDLE, status="Click start to begin inferences",
                                 is_distracted=False, connected=False)
        screen._on_snapshot(snapshot)

        text = render_text(screen.render())

        assert "Idle" in text
        assert "Disconnected" in text
        assert "Last Error" not in text

    def test_stop_unsubscribes(self):
        topic = "focuswatch.test_status_screen_stop"
        status_screen = StatusScreen(topic, console=Console(file=io.StringIO()))
        status_screen.stop()

        pub.sendMessage(topic, snapshot=make_snapshot())
        assert status_screen.latest is None

    def test_summary_table(self):
        text = render_text(summary_table(make_snapshot(status="Focused")))

        assert "Session Summary" in text
        assert "40.0%" in text
        assert "Focused" in text
        assert "7" in text

    def test_format_seconds(self):
        assert format_seconds(0) == "0.00 seconds"
        assert format_seconds(12.345) == "12.35 seconds"


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestSetupLogging:

    def test_file_and_console_handlers(self, temp_dir, restore_root_logger):
        config = FocusWatchConfig()
        log_path = Path(temp_dir) / "logs" / "focuswatch.log"
        config.set('logging.file_path', str(log_path))

        setup_logging(config, "debug")

        root = restore_root_logger
        assert root.level == logging.DEBUG
        file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
        stream_handlers = [h for h in root.handlers if not isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert stream_handlers[0].level == logging.WARNING
        assert log_path.exists()
        assert logging.getLogger("engineio").level == logging.WARNING

        file_handlers[0].flush()
        assert "FocusWatch starting up" in log_path.read_text()

    def test_console_output_disabled(self, temp_dir, restore_root_logger):
        config = FocusWatchConfig()
        config.set('logging.file_path', str(Path(temp_dir) / "app.log"))
        config.set('logging.console_output', False)

        setup_logging(config)

        assert all(isinstance(h, logging.FileHandler) for h in restore_root_logger.handlers)
