import json
import uuid
from typing import Optional, Protocol

from fastapi import WebSocket


class ConnectionHandle(Protocol):
    """Sendable endpoint for one client's transport session.

    Handles are compared and hashed by identity; the registry never owns them.
    """

    connection_id: str

    async def send(self, message: dict) -> None:
        ...


class WebSocketConnection:
    """ConnectionHandle backed by an accepted FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or str(uuid.uuid4())

    async def send(self, message: dict) -> None:
        await self.websocket.send_text(json.dumps(message))

    def __repr__(self):
        return f"WebSocketConnection({self.connection_id[:8]})"
