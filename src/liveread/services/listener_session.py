import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import WebSocket

from liveread.services.speech.channel import ChannelClosedError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ListenerSession:
    """Tracks one attached speech persona client."""

    client_id: str
    websocket: WebSocket
    connected_at: datetime = field(default_factory=_utcnow)
    last_activity: datetime = field(default_factory=_utcnow)
    utterances_sent: int = 0

    def update_activity(self):
        """Update the last activity timestamp."""
        self.last_activity = _utcnow()


class ListenerConnectionManager:
    """Manages attached speech clients and speaks to them as one channel."""

    def __init__(self):
        self.active_connections: Dict[str, ListenerSession] = {}

    @property
    def is_connected(self) -> bool:
        return bool(self.active_connections)

    async def connect(self, websocket: WebSocket, client_id: str) -> bool:
        """Accept a listener. Returns True if it is the first one attached."""
        await websocket.accept()
        first = not self.active_connections
        self.active_connections[client_id] = ListenerSession(
            client_id=client_id, websocket=websocket
        )
        logger.info(f"Listener connected: {client_id}")
        return first

    def disconnect(self, client_id: str, websocket: Optional[WebSocket] = None) -> bool:
        """Remove a listener. Returns True if no listeners remain.

        With ``websocket`` given, the entry is only removed while it still
        belongs to that socket. A client that reconnected under the same id
        keeps its new session when the stale handler cleans up.
        """
        session = self.active_connections.get(client_id)
        if session is not None and (websocket is None or session.websocket is websocket):
            del self.active_connections[client_id]
            logger.info(f"Listener disconnected: {client_id}")
        return not self.active_connections

    def get_session(self, client_id: str) -> Optional[ListenerSession]:
        return self.active_connections.get(client_id)

    async def send_message(self, client_id: str, message: dict[str, Any]) -> bool:
        """Send a JSON message to one listener, dropping it on failure."""
        session = self.active_connections.get(client_id)
        if session is None:
            return False
        try:
            await session.websocket.send_json(message)
        except Exception as e:
            logger.warning(f"Error sending to {client_id}: {e}")
            self.disconnect(client_id, session.websocket)
            return False
        session.update_activity()
        return True

    async def publish(self, message: dict[str, Any]) -> int:
        """Broadcast a message to all listeners. Returns how many received it."""
        delivered = 0
        for client_id in list(self.active_connections.keys()):
            if await self.send_message(client_id, message):
                delivered += 1
        return delivered

    async def send(self, text: str) -> None:
        """Speak one complete utterance on every attached listener."""
        if not self.active_connections:
            raise ChannelClosedError("No listener attached")
        delivered = 0
        for client_id in list(self.active_connections.keys()):
            if await self.send_message(client_id, {"type": "utterance", "text": text}):
                self.active_connections[client_id].utterances_sent += 1
                delivered += 1
        if delivered == 0:
            raise ChannelClosedError("Utterance was not delivered to any listener")
