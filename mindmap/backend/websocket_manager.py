"""
WebSocket Manager - Tells canvas clients when to re-render.

Every graph mutation is announced as a `mindmap_updated` event; clients
fetch the new state via GET /api/diagram. A successful save is announced
as `mindmap_saved` so open clients can refresh their saved-diagram list.
"""
import asyncio
import json
import logging
from typing import Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)

PONG = json.dumps({"type": "pong"})


class WebSocketManager:
    """Registry of connected canvas clients."""

    def __init__(self):
        self._clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        async with self._lock:
            self._clients.add(websocket)
        logger.info("Canvas client connected (%d open)", len(self._clients))

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._clients.discard(websocket)
        logger.info("Canvas client disconnected (%d open)", len(self._clients))

    async def handle_message(self, websocket: WebSocket, text: str):
        """Answer keep-alive pings; anything else from a client is ignored."""
        if text == "ping":
            await websocket.send_text(PONG)
        else:
            logger.debug("Ignoring client message: %r", text[:80])

    async def _send(self, websocket: WebSocket, text: str) -> Optional[WebSocket]:
        try:
            await websocket.send_text(text)
        except Exception as e:
            logger.debug("Dropping client after failed send: %s", e)
            return websocket
        return None

    async def broadcast(self, event: dict):
        """Send one event to every client, dropping the ones that fail."""
        async with self._lock:
            if not self._clients:
                return
            text = json.dumps(event)
            results = await asyncio.gather(*(self._send(ws, text) for ws in self._clients))
            self._clients.difference_update(ws for ws in results if ws is not None)

    async def notify_mindmap_updated(self, diagram_id: Optional[str] = None):
        await self.broadcast({"type": "mindmap_updated", "diagram_id": diagram_id})

    async def notify_mindmap_saved(self, diagram_id: str, name: str):
        await self.broadcast({"type": "mindmap_saved", "diagram_id": diagram_id, "name": name})

    @property
    def connection_count(self) -> int:
        return len(self._clients)


ws_manager = WebSocketManager()
