"""WebSocket routes for real-time status updates."""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends

from ...core import FloorCoordinator
from ..deps import get_connection_manager, get_coordinator, ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    manager: ConnectionManager = Depends(get_connection_manager),
    coordinator: FloorCoordinator = Depends(get_coordinator),
):
    """Main WebSocket endpoint; bus events are relayed as ``status_update``."""
    await manager.connect(websocket)

    try:
        await manager.send_personal(
            {"type": "initial_state", "data": coordinator.get_dashboard_data()},
            websocket,
        )

        while True:
            data = await websocket.receive_text()
            message = json.loads(data)
            await handle_client_message(message, websocket, manager, coordinator)

    except WebSocketDisconnect:
        manager.disconnect(websocket)
    except Exception:
        logger.exception("WebSocket error")
        manager.disconnect(websocket)


async def handle_client_message(
    message: dict,
    websocket: WebSocket,
    manager: ConnectionManager,
    coordinator: FloorCoordinator,
):
    """Handle incoming WebSocket messages from clients."""
    msg_type = message.get("type")

    if msg_type == "ping":
        await manager.send_personal({"type": "pong"}, websocket)

    elif msg_type == "request_state":
        await manager.send_personal(
            {"type": "state_update", "data": coordinator.get_dashboard_data()},
            websocket,
        )

    elif msg_type == "request_table":
        table_id = message.get("table_id")
        table = coordinator.get_table(table_id)
        if table is None:
            await manager.send_personal(
                {"type": "error", "message": f"Unknown table: {table_id}"}, websocket
            )
            return

        await manager.send_personal(
            {
                "type": "table_state",
                "data": {
                    "table": table.to_dict(),
                    "availability": coordinator.get_table_availability(table_id).to_dict(),
                    "pending_updates": [
                        e.to_dict() for e in coordinator.bus.get_pending_updates(table_id)
                    ],
                },
            },
            websocket,
        )

    else:
        await manager.send_personal(
            {"type": "error", "message": f"Unknown message type: {msg_type}"}, websocket
        )
