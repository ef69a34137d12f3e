"""Core floor-operations engine modules."""

from .sync_bus import StatusSyncBus, StatusListener
from .priority import PriorityScorer, PriorityScore, PriorityLevel, PriorityConfig
from .availability import AvailabilityPredictor, TableAvailability
from .recommendation import (
    RecommendationRanker,
    Recommendation,
    RecommendationResult,
    SeatingPreferences,
    Suitability,
)
from .service_queue import ServiceActionQueue, ServiceAction, ActionType
from .coordinator import FloorCoordinator

__all__ = [
    "StatusSyncBus",
    "StatusListener",
    "PriorityScorer",
    "PriorityScore",
    "PriorityLevel",
    "PriorityConfig",
    "AvailabilityPredictor",
    "TableAvailability",
    "RecommendationRanker",
    "Recommendation",
    "RecommendationResult",
    "SeatingPreferences",
    "Suitability",
    "ServiceActionQueue",
    "ServiceAction",
    "ActionType",
    "FloorCoordinator",
]
