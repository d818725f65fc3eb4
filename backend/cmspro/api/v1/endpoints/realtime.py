"""
WebSocket endpoint for live system status updates.

Clients connect to ``/ws`` and receive ``{"event": "systemStatusUpdate",
"data": <bool>}`` whenever an administrator toggles the system. Nothing is
sent on connect; clients read ``/system/status`` for the current value.
"""
from fastapi import APIRouter, WebSocket

from cmspro.services.broadcast import WebSocketBroadcaster

router = APIRouter()


@router.websocket("/ws")
async def system_status_socket(websocket: WebSocket):
    broadcaster: WebSocketBroadcaster = websocket.app.state.broadcaster
    await broadcaster.connect(websocket)
    try:
        # Inbound frames (text or binary) are ignored; the loop only waits for the close
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        await broadcaster.disconnect(websocket)
