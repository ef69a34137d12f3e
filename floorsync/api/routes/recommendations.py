"""Seating recommendation API routes."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...core import FloorCoordinator, SeatingPreferences
from ..deps import get_coordinator

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


class RecommendationRequest(BaseModel):
    """Schema for a seating request."""

    party_size: int = Field(ge=1)
    zone: Optional[str] = None
    max_wait_time: Optional[float] = Field(default=None, ge=0)
    service_level: Optional[str] = None


@router.post("")
async def get_recommendations(
    request: RecommendationRequest,
    coordinator: FloorCoordinator = Depends(get_coordinator),
):
    """Ranked tables for the party with wait estimate and suggested actions."""
    preferences = SeatingPreferences(
        zone=request.zone,
        max_wait_time=request.max_wait_time,
        service_level=request.service_level,
    )
    return coordinator.recommend(request.party_size, preferences).to_dict()
