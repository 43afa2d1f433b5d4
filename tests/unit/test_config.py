"""Unit tests for FocusWatchConfig."""

from pathlib import Path

import pytest

from focuswatch.config import FocusWatchConfig, BACKEND_URL_ENV
from focuswatch.transport.options import DEFAULT_BACKEND_URL


def write_config(directory: str, text: str) -> str:
    path = Path(directory) / "focuswatch.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


@pytest.fixture(autouse=True)
def clear_backend_env(monkeypatch):
    monkeypatch.delenv(BACKEND_URL_ENV, raising=False)


@pytest.mark.unit
class TestFocusWatchConfig:

    def test_defaults_without_file(self):
        config = FocusWatchConfig()
        assert config.get('server.url') == DEFAULT_BACKEND_URL
        assert config.get('capture.interval_seconds') == 0.7
        assert config.get('session.tick_interval_seconds') == 0.01
        assert config.get('missing.key', 'fallback') == 'fallback'

    def test_file_overrides_defaults(self, temp_dir):
        path = write_config(temp_dir, """
server:
  url: "http://classifier.local:8000"
  reconnection_attempts: 2
capture:
  interval_seconds: 0.5
""")
        config = FocusWatchConfig(path)

        assert config.get('server.url') == "http://classifier.local:8000"
        assert config.get('server.reconnection_attempts') == 2
        assert config.get('server.transports') == ["websocket"]
        assert config.get('capture.interval_seconds') == 0.5
        assert config.get('capture.jpeg_quality') == 80

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            FocusWatchConfig(str(Path(temp_dir) / "nope.yaml"))

    def test_empty_file(self, temp_dir):
        path = write_config(temp_dir, "")
        with pytest.raises(ValueError):
            FocusWatchConfig(path)

    def test_invalid_yaml(self, temp_dir):
        path = write_config(temp_dir, "server: [unclosed")
        with pytest.raises(ValueError):
            FocusWatchConfig(path)

    def test_relative_log_path_resolved(self, temp_dir):
        path = write_config(temp_dir, "logging:\n  file_path: logs/app.log\n")
        config = FocusWatchConfig(path)
        assert config.get('logging.file_path') == str(Path(temp_dir) / "logs/app.log")

    def test_set_creates_nested_keys(self):
        config = FocusWatchConfig()
        config.set('server.headers.Authorization', 'Bearer token')
        assert config.get('server.headers') == {'Authorization': 'Bearer token'}

    def test_environment_overrides_url(self, monkeypatch):
        monkeypatch.setenv(BACKEND_URL_ENV, "https://focus.example.com")
        config = FocusWatchConfig()
        assert config.get('server.url') == "https://focus.example.com"

    def test_transport_options(self, temp_dir):
        path = write_config(temp_dir, """
server:
  url: "http://classifier.local:8000"
  transports: ["polling", "websocket"]
  reconnection_attempts: 3
  reconnection_delay_seconds: 0.5
  connect_timeout_seconds: 2
  headers:
    Origin: "http://localhost:5173"
""")
        options = FocusWatchConfig(path).transport_options()

        assert options.endpoint == "http://classifier.local:8000"
        assert options.transports == ["polling", "websocket"]
        assert options.max_reconnect_attempts == 3
        assert options.reconnect_delay == 0.5
        assert options.connect_timeout == 2
        assert options.headers == {"Origin": "http://localhost:5173"}

    def test_invalid_transport_options(self, temp_dir):
        path = write_config(temp_dir, "server:\n  transports: [carrier-pigeon]\n")
        config = FocusWatchConfig(path)
        with pytest.raises(ValueError):
            config.transport_options()

    def test_capture_device_string_index(self):
        config = FocusWatchConfig()
        config.set('capture.device_index', "1")
        assert config.get_capture_device() == 1
        config.set('capture.device_index', "rtsp://camera/stream")
        assert config.get_capture_device() == "rtsp://camera/stream"
