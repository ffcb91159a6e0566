"""
WebSocket API - Real-time event streaming.
"""

import asyncio
import json
from datetime import datetime

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..core.events import AgentEvent


router = APIRouter()


class ConnectionManager:
    """
    Manages WebSocket connections.

    Each connection gets its own outgoing queue; ``publish`` is synchronous
    so it can be registered directly as an agent event listener.
    """

    def __init__(self):
        self.active_connections: dict[WebSocket, asyncio.Queue] = {}

    async def connect(self, websocket: WebSocket) -> asyncio.Queue:
        """Accept new connection."""
        await websocket.accept()
        queue: asyncio.Queue = asyncio.Queue()
        self.active_connections[websocket] = queue
        return queue

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove connection."""
        self.active_connections.pop(websocket, None)

    def publish(self, event: AgentEvent) -> None:
        """Queue an agent event for every connection."""
        message = json.dumps(event.model_dump(mode="json"))
        for queue in self.active_connections.values():
            queue.put_nowait(message)


@router.websocket("/events")
async def websocket_endpoint(websocket: WebSocket):
    """
    Read-only stream of agent events.

    Every message is one event serialized as JSON, tagged by ``type``.
    A ``ping`` is sent after 30 seconds without events.
    """
    manager: ConnectionManager = websocket.app.state.connections
    queue = await manager.connect(websocket)

    try:
        await websocket.send_json({
            "type": "connected",
            "timestamp": datetime.now().isoformat()
        })

        while True:
            try:
                message = await asyncio.wait_for(queue.get(), timeout=30.0)
                await websocket.send_text(message)
            except asyncio.TimeoutError:
                # Keep-alive
                await websocket.send_json({"type": "ping"})

    except WebSocketDisconnect:
        manager.disconnect(websocket)
    except Exception as e:
        print(f"WebSocket error: {e}")
        manager.disconnect(websocket)
