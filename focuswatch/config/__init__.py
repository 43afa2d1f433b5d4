"""Simple YAML configuration loader for FocusWatch."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..transport.options import TransportOptions, DEFAULT_BACKEND_URL

logger = logging.getLogger(__name__)

BACKEND_URL_ENV = "FOCUSWATCH_BACKEND_URL"

DEFAULT_CONFIG: Dict[str, Any] = {
    "server": {
        "url": DEFAULT_BACKEND_URL,
        "transports": ["websocket"],
        "reconnection": True,
        "reconnection_attempts": 5,
        "reconnection_delay_seconds": 1.0,
        "connect_timeout_seconds": 5.0,
        "headers": {},
        "namespace": "/",
    },
    "capture": {
        "device_index": 0,
        "interval_seconds": 0.7,
        "jpeg_quality": 80,
        "width": None,
        "height": None,
    },
    "session": {
        "tick_interval_seconds": 0.01,
        "stop_on_fatal": True,
        "idle_message": "Click start to begin inferences",
        "snapshot_topic": "focuswatch.session",
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/focuswatch.log",
        "console_output": True,
    },
}


class FocusWatchConfig:
    """FocusWatch configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used. Values from the file override the defaults.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is not None and not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        self.config = self._load_config()
        self._apply_environment()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file over the defaults."""
        config = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            return config

        logger.info(f"Loading configuration from: {self.config_file}")
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        _deep_merge(config, loaded)

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        if 'logging' in config and config['logging'].get('file_path'):
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def _apply_environment(self) -> None:
        url = os.environ.get(BACKEND_URL_ENV)
        if url:
            logger.info(f"Backend URL overridden by {BACKEND_URL_ENV}: {url}")
            self.set('server.url', url)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'server.url').

        Args:
            key_path: Dot-separated key path (e.g., 'capture.interval_seconds')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'server.url')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def transport_options(self) -> TransportOptions:
        """Build validated transport options from the `server` section."""
        try:
            return TransportOptions(
                endpoint=self.get('server.url', DEFAULT_BACKEND_URL),
                transports=self.get('server.transports', ["websocket"]),
                reconnection=self.get('server.reconnection', True),
                max_reconnect_attempts=self.get('server.reconnection_attempts', 5),
                reconnect_delay=self.get('server.reconnection_delay_seconds', 1.0),
                connect_timeout=self.get('server.connect_timeout_seconds', 5.0),
                headers=self.get('server.headers') or {},
                namespace=self.get('server.namespace', '/'),
            )
        except ValueError as e:
            # pydantic's ValidationError is a ValueError
            raise ValueError(f"Invalid server configuration: {e}")

    def get_capture_device(self):
        """Camera index, or a path/URL when configured as a string."""
        device = self.get('capture.device_index', 0)
        if isinstance(device, str) and device.isdigit():
            return int(device)
        return device


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
