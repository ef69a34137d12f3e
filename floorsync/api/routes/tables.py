"""Table snapshot API routes."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...core import FloorCoordinator
from ...models import Table, TableStatus, ServicePriorityClass, naive_utc
from ..deps import get_coordinator

router = APIRouter(prefix="/tables", tags=["tables"])


class TableIn(BaseModel):
    """Schema for a table record pushed by floor management."""

    capacity: int = Field(ge=1)
    status: TableStatus = TableStatus.AVAILABLE
    zone: str = "main"
    service_priority: ServicePriorityClass = ServicePriorityClass.NORMAL
    reserved_at: Optional[datetime] = None
    dining_start_time: Optional[datetime] = None
    current_party_size: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    table_number: Optional[str] = None
    current_order_id: Optional[str] = None


class TableResponse(BaseModel):
    """Schema for table response."""

    id: str
    table_number: str
    capacity: int
    status: str
    zone: str
    service_priority: str
    reserved_at: Optional[str]
    dining_start_time: Optional[str]
    current_party_size: Optional[int]
    notes: Optional[str]
    current_order_id: Optional[str]


class AvailabilityResponse(BaseModel):
    is_available: bool
    reason: Optional[str] = None
    estimated_wait_time: Optional[float] = None


def _require_table(coordinator: FloorCoordinator, table_id: str) -> Table:
    table = coordinator.get_table(table_id)
    if table is None:
        raise HTTPException(status_code=404, detail="Table not found")
    return table


@router.get("", response_model=List[TableResponse])
async def get_tables(
    status: Optional[str] = None,
    zone: Optional[str] = None,
    coordinator: FloorCoordinator = Depends(get_coordinator),
):
    """Get all tables, optionally filtered by status or zone."""
    tables = list(coordinator.tables.values())

    if status:
        try:
            wanted = TableStatus(status)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
        tables = [t for t in tables if t.status == wanted]

    if zone:
        tables = [t for t in tables if t.zone == zone]

    return [TableResponse(**t.to_dict()) for t in tables]


@router.get("/{table_id}", response_model=TableResponse)
async def get_table(table_id: str, coordinator: FloorCoordinator = Depends(get_coordinator)):
    """Get a specific table by ID."""
    return TableResponse(**_require_table(coordinator, table_id).to_dict())


@router.put("/{table_id}", response_model=TableResponse)
async def put_table(
    table_id: str,
    table_data: TableIn,
    coordinator: FloorCoordinator = Depends(get_coordinator),
):
    """Create or replace a table in the snapshot."""
    table = Table(id=table_id, **table_data.model_dump())
    coordinator.upsert_table(table)
    return TableResponse(**table.to_dict())


@router.delete("/{table_id}")
async def delete_table(table_id: str, coordinator: FloorCoordinator = Depends(get_coordinator)):
    """Remove a table from the snapshot."""
    if coordinator.remove_table(table_id) is None:
        raise HTTPException(status_code=404, detail="Table not found")
    return {"message": f"Table {table_id} removed"}


@router.get("/{table_id}/availability", response_model=AvailabilityResponse)
async def get_table_availability(
    table_id: str, coordinator: FloorCoordinator = Depends(get_coordinator)
):
    """Real-time availability; unknown tables report as not available."""
    return AvailabilityResponse(**coordinator.get_table_availability(table_id).to_dict())


@router.get("/{table_id}/reservation-conflict")
async def check_reservation_conflict(
    table_id: str,
    requested_time: datetime,
    coordinator: FloorCoordinator = Depends(get_coordinator),
):
    """Check a requested reservation time against the table's existing booking."""
    conflict = coordinator.predictor.validate_reservation_conflict_by_id(
        table_id, naive_utc(requested_time)
    )
    return {"table_id": table_id, "conflict": conflict}
