"""
Live channel hub - the set of open client channels and broadcast to them.

The hub is the single owner of the membership set. Only the front-door's
accept/close handlers call join/leave; the write path only gets broadcast.
All calls happen on the event loop, so no locking is needed.
"""
import json
import logging
from typing import Any, Dict, Protocol, Set, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class LiveChannel(Protocol):
    """Opaque bidirectional channel handle"""

    @property
    def is_open(self) -> bool:
        ...

    def send_text(self, frame: str) -> None:
        """Enqueue a text frame on the channel's send path without suspending."""
        ...


class LiveChannelHub:
    def __init__(self) -> None:
        self._members: Set[LiveChannel] = set()

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, channel: object) -> bool:
        return channel in self._members

    def join(self, channel: LiveChannel) -> None:
        """Add a channel once its handshake is complete"""
        self._members.add(channel)
        logger.info("Live channel joined (%d open)", len(self._members))

    def leave(self, channel: LiveChannel) -> None:
        """Remove a channel on close. Idempotent."""
        if channel in self._members:
            self._members.discard(channel)
            logger.info("Live channel left (%d open)", len(self._members))

    def broadcast(self, frame: str) -> int:
        """
        Hand `frame` to every open member's send path.

        Does not suspend and does not wait for delivery. Closed members and
        members whose send fails are skipped; they are removed by their own
        close event, not here.

        Returns:
            Number of members the frame was handed to
        """
        delivered = 0
        # Snapshot: a send may trigger a close callback that calls leave()
        for channel in list(self._members):
            if not channel.is_open:
                continue
            try:
                channel.send_text(frame)
            except Exception as exc:
                logger.warning("Failed to broadcast frame to live channel: %s", exc)
                continue
            delivered += 1
        return delivered

    def broadcast_json(self, payload: Dict[str, Any]) -> int:
        return self.broadcast(json.dumps(payload, ensure_ascii=False))
