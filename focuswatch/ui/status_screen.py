"""Terminal status view that renders session snapshots."""

import logging
from typing import Optional

from pubsub import pub
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.session import SessionSnapshot
from ..session.publisher import DEFAULT_SNAPSHOT_TOPIC

logger = logging.getLogger(__name__)


def format_seconds(seconds: float) -> str:
    return f"{seconds:.2f} seconds"


class StatusScreen:
    """Read-only consumer of the session snapshot topic."""

    def __init__(self, topic: str = DEFAULT_SNAPSHOT_TOPIC, console: Optional[Console] = None):
        """Initialize status screen.

        Args:
            topic: Pub/sub topic carrying SessionSnapshot messages
            console: Rich console to render on
        """
        self.topic = topic
        self.console = console or Console()
        self.latest: Optional[SessionSnapshot] = None
        self.live: Optional[Live] = None

        pub.subscribe(self._on_snapshot, topic)
        logger.info(f"StatusScreen subscribed to {topic}")

    def _on_snapshot(self, snapshot: SessionSnapshot) -> None:
        self.latest = snapshot

    def render(self):
        snapshot = self.latest
        if snapshot is None:
            return Panel(Text("Waiting for session...", style="dim"), title="FocusWatch")

        status_style = "bold red" if snapshot.is_distracted else "bold green"
        status = Text(snapshot.status, style=status_style)

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Session", "Running" if snapshot.is_running else "Idle")
        table.add_row("Server", "Connected" if snapshot.connected else "Disconnected")
        table.add_row("Focused Time", format_seconds(snapshot.focused_seconds))
        table.add_row("Distracted Time", format_seconds(snapshot.distracted_seconds))
        table.add_row("Frames", f"{snapshot.frames_sent} sent, {snapshot.frames_dropped} dropped")
        if snapshot.last_error:
            table.add_row("Last Error", Text(snapshot.last_error, style="yellow"))

        return Panel(Group(status, table), title="FocusWatch - Distraction Detection")

    def start(self) -> None:
        self.live = Live(get_renderable=self.render, console=self.console, refresh_per_second=4)
        self.live.start()

    def stop(self) -> None:
        if self.live is not None:
            self.live.stop()
            self.live = None
        try:
            pub.unsubscribe(self._on_snapshot, self.topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")


def summary_table(snapshot: SessionSnapshot) -> Table:
    """Final accumulator summary printed after a session."""
    table = Table(title="Session Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Focused Time", format_seconds(snapshot.focused_seconds))
    table.add_row("Distracted Time", format_seconds(snapshot.distracted_seconds))
    table.add_row("Focus Ratio", f"{snapshot.focus_ratio:.1%}")
    table.add_row("Frames Sent", str(snapshot.frames_sent))
    table.add_row("Frames Dropped", str(snapshot.frames_dropped))
    table.add_row("Last Status", snapshot.status)
    return table
