import asyncio
import time
import weakref

from fastapi import WebSocket
from loguru import logger

from trackdrop.domain.importing import ImportEvent, ImportEventBus, event_to_dict


class EventStream:
    """Forwards import events to every connected WebSocket client.

    The bus publishes synchronously from the event loop, so each event is
    scheduled as a broadcast task rather than awaited in the publisher.
    """

    def __init__(self):
        self.connections: list[WebSocket] = []
        self._attached: weakref.WeakSet[ImportEventBus] = weakref.WeakSet()
        self._pending: set[asyncio.Task] = set()

    async def connect(self, ws: WebSocket) -> None:
        """Accept and store a new WebSocket connection."""
        await ws.accept()
        self.connections.append(ws)

    def disconnect(self, ws: WebSocket) -> None:
        """Remove a WebSocket connection."""
        if ws in self.connections:
            self.connections.remove(ws)

    def attach(self, bus: ImportEventBus) -> None:
        """Subscribe to ``bus`` once; repeated calls are no-ops."""
        if bus in self._attached:
            return
        self._attached.add(bus)
        bus.subscribe(self.forward)

    def forward(self, event: ImportEvent) -> None:
        if not self.connections:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop, dropping import event for WebSocket clients")
            return
        message = event_to_dict(event)
        task = loop.create_task(self.broadcast(message["type"], message["data"]))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def broadcast(self, event_type: str, data: dict) -> None:
        """Send a message to all connected clients."""
        message = {
            "type": event_type,
            "data": data,
            "ts": time.time(),
        }
        dead_connections: list[WebSocket] = []

        for conn in list(self.connections):
            try:
                await conn.send_json(message)
            except Exception:
                dead_connections.append(conn)

        for conn in dead_connections:
            self.disconnect(conn)


# Singleton instance
event_stream = EventStream()
