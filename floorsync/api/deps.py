"""API dependencies for dependency injection."""

import asyncio
import json
import logging
from typing import Optional, Callable

from fastapi.requests import HTTPConnection

from ..config import Settings
from ..core import FloorCoordinator, StatusSyncBus
from ..models import StatusUpdateEvent

logger = logging.getLogger(__name__)


class ConnectionManager:
    """WebSocket connection manager for real-time updates."""

    RELAY_LISTENER_ID = "websocket-relay"

    def __init__(self):
        self.active_connections: list = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._outbox: Optional[asyncio.Queue] = None
        self._sender: Optional[asyncio.Task] = None

    async def connect(self, websocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: dict):
        """Broadcast message to all connected clients."""
        for connection in list(self.active_connections):
            try:
                await connection.send_text(json.dumps(message))
            except Exception:
                logger.warning("Dropping websocket client after failed send")
                self.disconnect(connection)

    async def send_personal(self, message: dict, websocket):
        """Send message to specific client."""
        try:
            await websocket.send_text(json.dumps(message))
        except Exception:
            logger.warning("Dropping websocket client after failed send")
            self.disconnect(websocket)

    def attach(self, bus: StatusSyncBus, loop: asyncio.AbstractEventLoop):
        """
        Relay every bus event to connected clients on ``loop``.

        Must be called from ``loop``. Messages go through one outbox drained
        by a single sender task, so clients see events in publish order.
        """
        outbox = self._outbox = asyncio.Queue()
        self._sender = loop.create_task(self._drain_outbox(outbox))

        def relay(event: StatusUpdateEvent):
            message = {"type": "status_update", "data": event.to_dict()}
            if _running_loop() is loop:
                outbox.put_nowait(message)
            else:
                loop.call_soon_threadsafe(outbox.put_nowait, message)

        self._unsubscribe = bus.subscribe(self.RELAY_LISTENER_ID, relay)

    async def _drain_outbox(self, outbox: asyncio.Queue):
        while True:
            message = await outbox.get()
            try:
                await self.broadcast(message)
            except Exception:
                logger.exception("Websocket relay failed")
            finally:
                outbox.task_done()

    async def flush(self):
        """Wait until every relayed message has been sent."""
        if self._outbox is not None:
            await self._outbox.join()

    def detach(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._sender is not None:
            self._sender.cancel()
            self._sender = None
        self._outbox = None


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def get_coordinator(conn: HTTPConnection) -> FloorCoordinator:
    """Get the application's floor coordinator."""
    return conn.app.state.coordinator


def get_connection_manager(conn: HTTPConnection) -> ConnectionManager:
    """Get connection manager dependency."""
    return conn.app.state.connection_manager


def get_app_settings(conn: HTTPConnection) -> Settings:
    """Get the settings the application was built with."""
    return conn.app.state.settings
