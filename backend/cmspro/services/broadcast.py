"""
System Status Broadcast

Pushes system-mode changes to every connected WebSocket client:
- ``BroadcastChannel`` is what services depend on
- ``WebSocketBroadcaster`` is the production implementation, owned by the app

Messages are ``{"event": <name>, "data": <payload>}``. Delivery is at most
once; a client that misses a message is not sent it again.
"""

import asyncio
from typing import Any, List, Protocol, Set

from fastapi import WebSocket

from cmspro.core.logging_config import logger

SYSTEM_STATUS_EVENT = "systemStatusUpdate"


class BroadcastChannel(Protocol):
    """Anything a service can publish events on"""

    async def publish(self, event: str, payload: Any) -> None:
        ...


class WebSocketBroadcaster:
    """Manages WebSocket connections and fans events out to all of them"""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self.active_connections.add(websocket)
        logger.info(f"[Broadcast] Client connected ({len(self.active_connections)} active)")

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self.active_connections.discard(websocket)
        logger.info(f"[Broadcast] Client disconnected ({len(self.active_connections)} active)")

    @property
    def connection_count(self) -> int:
        return len(self.active_connections)

    async def publish(self, event: str, payload: Any) -> None:
        message = {"event": event, "data": payload}

        # Send to a snapshot so connects/disconnects during the fan-out are safe
        async with self._lock:
            targets: List[WebSocket] = list(self.active_connections)

        disconnected = []
        for connection in targets:
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.warning(f"[Broadcast] Dropping connection after failed send: {e}")
                disconnected.append(connection)

        if disconnected:
            async with self._lock:
                for connection in disconnected:
                    self.active_connections.discard(connection)

        logger.debug(
            f"[Broadcast] {event} sent to {len(targets) - len(disconnected)}/{len(targets)} clients"
        )
