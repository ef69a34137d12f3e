"""Order snapshot and service priority API routes."""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...core import FloorCoordinator
from ...models import Order, OrderItem
from ..deps import get_coordinator

router = APIRouter(prefix="/orders", tags=["orders"])


class OrderItemIn(BaseModel):
    name: str
    quantity: int = Field(default=1, ge=1)
    notes: str = ""


class OrderIn(BaseModel):
    """Schema for an order pushed by order entry."""

    created_at: datetime
    table_id: Optional[str] = None
    items: List[OrderItemIn] = []
    notes: str = ""
    party_size: Optional[int] = Field(default=None, ge=1)


class PriorityResponse(BaseModel):
    score: int
    level: str
    factors: Dict[str, float]
    reasons: List[str]
    wait_minutes: int


class OrderPriorityResponse(BaseModel):
    order: dict
    priority: PriorityResponse


@router.put("/{order_id}")
async def put_order(
    order_id: str,
    order_data: OrderIn,
    coordinator: FloorCoordinator = Depends(get_coordinator),
):
    """Create or replace an order in the snapshot."""
    order = Order(
        id=order_id,
        created_at=order_data.created_at,
        table_id=order_data.table_id,
        items=[OrderItem(**item.model_dump()) for item in order_data.items],
        notes=order_data.notes,
        party_size=order_data.party_size,
    )
    coordinator.upsert_order(order)
    return order.to_dict()


@router.delete("/{order_id}")
async def delete_order(order_id: str, coordinator: FloorCoordinator = Depends(get_coordinator)):
    """Remove a finished order."""
    if coordinator.remove_order(order_id) is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"message": f"Order {order_id} removed"}


@router.get("/priorities", response_model=List[OrderPriorityResponse])
async def get_order_priorities(coordinator: FloorCoordinator = Depends(get_coordinator)):
    """All active orders, most urgent first."""
    return [
        OrderPriorityResponse(order=order.to_dict(), priority=score.to_dict())
        for order, score in coordinator.get_order_priorities()
    ]


@router.get("/{order_id}/priority", response_model=PriorityResponse)
async def get_order_priority(
    order_id: str, coordinator: FloorCoordinator = Depends(get_coordinator)
):
    """Service priority for a single order."""
    score = coordinator.get_order_priority(order_id)
    if score is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return PriorityResponse(**score.to_dict())
