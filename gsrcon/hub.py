"""
WebSocket hub relaying RCON session events to browser clients.
"""

from __future__ import annotations

from asyncio import Lock
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket

from .defs import EVENT_CONNECT, EVENT_DISCONNECT, EVENT_MESSAGE, EVENT_ERROR


class WebSocketHub:
    """Tracks subscribed sockets and broadcasts JSON session events."""

    def __init__(self):
        self._connections: set[WebSocket] = set()
        self._lock = Lock()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._connections.discard(websocket)

    async def broadcast(self, event_type: str, data: Any = None):
        message = {
            "event_type": event_type,
            "data": data,
            "ts": datetime.now(timezone.utc).isoformat(),
        }
        async with self._lock:
            targets = list(self._connections)

        stale: list[WebSocket] = []
        for ws in targets:
            try:
                await ws.send_json(message)
            except Exception:
                stale.append(ws)

        if stale:
            async with self._lock:
                for ws in stale:
                    self._connections.discard(ws)

    def attach(self, client):
        """Subscribe to every event of an RconClient."""

        async def on_connect():
            await self.broadcast(EVENT_CONNECT, {"host": client.host, "port": client.port})

        async def on_disconnect():
            await self.broadcast(EVENT_DISCONNECT, {"host": client.host, "port": client.port})

        async def on_message(response):
            if response.log:
                await self.broadcast(EVENT_MESSAGE, response.model_dump(mode="json"))

        async def on_error(err):
            await self.broadcast(EVENT_ERROR, {"error": str(err)})

        client.on(EVENT_CONNECT, on_connect)
        client.on(EVENT_DISCONNECT, on_disconnect)
        client.on(EVENT_MESSAGE, on_message)
        client.on(EVENT_ERROR, on_error)
