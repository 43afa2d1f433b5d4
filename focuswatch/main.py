"""Main application entry point for FocusWatch."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console

from focuswatch.models.session import SessionSnapshot
from focuswatch.services.session_runner import SessionRunner
from focuswatch.ui.status_screen import StatusScreen, summary_table

from . import __version__
from .config import FocusWatchConfig

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = FocusWatchConfig(config_path)
        # Set up logging (override config with command line if specified)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.console = Console()
        self.runner: Optional[SessionRunner] = None
        self.screen: Optional[StatusScreen] = None

    def init(self, show_screen: bool = True):
        logger.info("Initializing services...")
        logger.info(f"Classification service: {self.config.get('server.url')}")
        logger.info(f"Capture: device={self.config.get_capture_device()}, "
                    f"every {self.config.get('capture.interval_seconds')}s")

        self.runner = SessionRunner.from_config(self.config)
        if show_screen:
            self.screen = StatusScreen(self.config.get('session.snapshot_topic'), console=self.console)

    def run(self, duration: Optional[float]) -> SessionSnapshot:
        if self.screen:
            self.screen.start()
        try:
            return asyncio.run(self.runner.run(duration))
        finally:
            self.cleanup()

    def cleanup(self):
        if self.screen:
            self.screen.stop()
            self.screen = None


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/focuswatch.log')
    console_output = config.get('logging.console_output', True)

    handlers = []

    # File handler
    if log_file_path:
        log_dir = Path(log_file_path).parent
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    # Socket.IO and engine.io are chatty at INFO
    for noisy in ("socketio", "engineio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("=" * 50)
    logger.info("FocusWatch starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for FocusWatch."""
    parser = argparse.ArgumentParser(
        description="FocusWatch - webcam focus tracking against a remote classifier",
        epilog="Press Ctrl-C to stop the session"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )

    parser.add_argument(
        "--url",
        type=str,
        help="Classification service URL (overrides config and FOCUSWATCH_BACKEND_URL)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--duration",
        type=float,
        help="Stop the session after this many seconds (default: run until Ctrl-C)"
    )

    parser.add_argument(
        "--no-screen",
        action="store_true",
        help="Do not render the live status screen"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"FocusWatch v{__version__}"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.url:
        server.config.set('server.url', args.url)

    try:
        server.init(show_screen=not args.no_screen)
        snapshot = server.run(args.duration)
        server.console.print(summary_table(snapshot))
    except KeyboardInterrupt:
        server.cleanup()
        server.console.print("\nSession interrupted")
        if server.runner is not None:
            server.console.print(summary_table(server.runner.snapshot()))
    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        server.console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
