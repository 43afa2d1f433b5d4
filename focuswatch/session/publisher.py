"""Session snapshot publisher for pub/sub consumers."""

import logging
from typing import Callable
from pubsub import pub
from ..models.session import SessionSnapshot

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_TOPIC = "focuswatch.session"


class SnapshotPublisher:
    """Publishes controller snapshots using pubsub.pub."""

    def __init__(self, topic: str = DEFAULT_SNAPSHOT_TOPIC):
        """Initialize snapshot publisher.

        Args:
            topic: Pub/sub topic name for session snapshots
        """
        self.topic = topic
        logger.info(f"SnapshotPublisher initialized with topic: {topic}")

    def publish_snapshot(self, snapshot: SessionSnapshot) -> None:
        """Publish a session snapshot to the pub/sub topic."""
        pub.sendMessage(self.topic, snapshot=snapshot)

    def get_callback(self) -> Callable[[SessionSnapshot], None]:
        """Get callback function for the session runner to use."""
        return self.publish_snapshot
