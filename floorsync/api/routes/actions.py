"""Service action API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ...core import FloorCoordinator
from ..deps import get_coordinator

router = APIRouter(prefix="/actions", tags=["actions"])


@router.get("")
async def get_pending_actions(
    table_id: Optional[str] = None,
    limit: int = 50,
    coordinator: FloorCoordinator = Depends(get_coordinator),
):
    """Pending floor actions, most urgent first."""
    return [a.to_dict() for a in coordinator.action_queue.get_pending(table_id, limit)]


@router.get("/stats")
async def get_action_stats(coordinator: FloorCoordinator = Depends(get_coordinator)):
    return coordinator.action_queue.get_stats()


@router.post("/{action_id}/complete")
async def complete_action(action_id: str, coordinator: FloorCoordinator = Depends(get_coordinator)):
    """Mark an action as done."""
    if not coordinator.action_queue.complete(action_id):
        raise HTTPException(status_code=404, detail="Action not found")
    return {"message": f"Action {action_id} completed"}
