"""Table status sync API routes: origin entry points and pending logs."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...config import Settings
from ...core import FloorCoordinator
from ...models import StatusOrigin, TableStatus
from ..deps import get_app_settings, get_coordinator

router = APIRouter(prefix="/status", tags=["status"])


class StatusUpdateIn(BaseModel):
    """Schema for a status change reported by an origin subsystem."""

    order_id: str
    table_id: str
    new_status: str
    previous_status: Optional[str] = None
    metadata: Dict[str, Any] = {}


class StatusEventResponse(BaseModel):
    order_id: str
    table_id: str
    previous_status: Optional[str]
    new_status: str
    origin: str
    timestamp: str
    metadata: Dict[str, Any]


def _validate_status(value: Optional[str]):
    if value is None:
        return
    try:
        TableStatus(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid status: {value}")


@router.post("/{origin}", response_model=StatusEventResponse)
async def publish_status_update(
    origin: StatusOrigin,
    update: StatusUpdateIn,
    coordinator: FloorCoordinator = Depends(get_coordinator),
):
    """Publish a status change on behalf of ``origin``."""
    _validate_status(update.new_status)
    _validate_status(update.previous_status)

    entry_points = {
        StatusOrigin.ORDER_ENTRY: coordinator.bus.update_from_order_entry,
        StatusOrigin.KITCHEN_DISPLAY: coordinator.bus.update_from_kitchen_display,
        StatusOrigin.FLOOR_MANAGEMENT: coordinator.bus.update_from_floor_management,
        StatusOrigin.AUTOMATIC: coordinator.bus.update_from_automatic,
    }
    event = entry_points[origin](
        update.order_id,
        update.table_id,
        update.new_status,
        metadata=update.metadata,
        previous_status=update.previous_status,
    )
    return StatusEventResponse(**event.to_dict())


@router.get("/{table_id}/pending", response_model=List[StatusEventResponse])
async def get_pending_updates(
    table_id: str, coordinator: FloorCoordinator = Depends(get_coordinator)
):
    """Events published for a table since its log was last cleared."""
    return [
        StatusEventResponse(**e.to_dict())
        for e in coordinator.bus.get_pending_updates(table_id)
    ]


@router.delete("/{table_id}/pending")
async def clear_pending_updates(
    table_id: str, coordinator: FloorCoordinator = Depends(get_coordinator)
):
    """Reset a table's pending log after a consumer has caught up."""
    coordinator.bus.clear_pending_updates(table_id)
    return {"message": f"Pending updates for {table_id} cleared"}


@router.get("/{table_id}/sync")
async def get_sync_state(
    table_id: str,
    threshold_seconds: Optional[float] = None,
    coordinator: FloorCoordinator = Depends(get_coordinator),
    settings: Settings = Depends(get_app_settings),
):
    """Last sync time and whether the table is due for a resync."""
    if threshold_seconds is None:
        threshold_seconds = settings.sync_threshold_seconds
    last_sync = coordinator.bus.get_last_sync_time(table_id)
    return {
        "table_id": table_id,
        "last_sync_time": last_sync.isoformat() if last_sync else None,
        "known_status": coordinator.bus.get_known_status(table_id),
        "needs_sync": coordinator.bus.needs_sync(table_id, threshold_seconds),
    }
