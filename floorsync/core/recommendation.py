"""Smart table recommendations for an arriving party."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Iterable

from ..models import Table, TableStatus, naive_utc
from .availability import AvailabilityPredictor


class Suitability(str, Enum):
    """Coarse suitability bucket for a recommendation."""

    PERFECT = "perfect"
    GOOD = "good"
    ACCEPTABLE = "acceptable"


@dataclass
class SeatingPreferences:
    """Soft preferences for a seating request."""

    zone: Optional[str] = None
    max_wait_time: Optional[float] = None
    service_level: Optional[str] = None


@dataclass
class Recommendation:
    """A ranked table suggestion."""

    table: Table
    score: float
    suitability: Suitability
    estimated_wait_time: float
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "table": self.table.to_dict(),
            "score": self.score,
            "suitability": self.suitability.value,
            "estimated_wait_time": self.estimated_wait_time,
            "reasons": list(self.reasons),
        }


@dataclass
class RecommendationResult:
    """Shortlist plus overall wait estimate and advice for the host."""

    available_tables: List[Table]
    recommendations: List[Recommendation]
    wait_time: float
    suggested_actions: List[str]

    def to_dict(self) -> dict:
        return {
            "available_tables": [t.to_dict() for t in self.available_tables],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "wait_time": self.wait_time,
            "suggested_actions": list(self.suggested_actions),
        }


class RecommendationRanker:
    """
    Ranks candidate tables for a party.

    Score weights:
    - Capacity fit (40%)
    - Status readiness (30%)
    - Zone preference (15%)
    - Predicted wait (10%)
    - Service level match (5%)
    """

    CAPACITY_WEIGHT = 0.4
    STATUS_WEIGHT = 0.3
    ZONE_WEIGHT = 0.15
    WAIT_WEIGHT = 0.1
    SERVICE_LEVEL_WEIGHT = 0.05

    DEFAULT_MAX_WAIT_MINUTES = 15
    DEFAULT_LIMIT = 5
    OVERSIZED_RATIO = 1.5

    STATUS_SCORES = {
        TableStatus.AVAILABLE: 1.0,
        TableStatus.CLEANING: 0.8,
        TableStatus.NEEDS_SERVICE: 0.6,
        TableStatus.DINING: 0.4,
        TableStatus.WAITING_FOOD: 0.3,
        TableStatus.ORDERED: 0.2,
        TableStatus.SEATED: 0.1,
        TableStatus.RESERVED: 0.0,
    }

    # Ordinal service scale. Guest-facing names map onto table priority classes.
    SERVICE_LEVELS = {
        "normal": 1,
        "standard": 1,
        "high": 2,
        "priority": 2,
        "urgent": 3,
        "vip": 3,
    }

    def __init__(
        self,
        tables: Optional[Iterable[Table]] = None,
        predictor: Optional[AvailabilityPredictor] = None,
        limit: int = DEFAULT_LIMIT,
        default_max_wait: float = DEFAULT_MAX_WAIT_MINUTES,
    ):
        self.predictor = predictor or AvailabilityPredictor()
        if tables is not None:
            self.predictor.update_tables(tables)
        self.limit = limit
        self.default_max_wait = default_max_wait

    def update_tables(self, tables: Iterable[Table]):
        self.predictor.update_tables(tables)

    def get_smart_recommendations(
        self,
        party_size: int,
        preferences: Optional[SeatingPreferences] = None,
        now: Optional[datetime] = None,
    ) -> RecommendationResult:
        """
        Rank tables for ``party_size``.

        Candidates are tables available now plus tables predicted free within
        the maximum wait, restricted to those large enough for the party.
        """
        preferences = preferences or SeatingPreferences()
        now = naive_utc(now) or datetime.utcnow()
        max_wait = (
            preferences.max_wait_time
            if preferences.max_wait_time is not None
            else self.default_max_wait
        )

        available = self.predictor.get_available_tables()
        soon_available = self.predictor.get_soon_available_tables(max_wait, now)
        candidates = [t for t in available + soon_available if t.capacity >= party_size]

        recommendations = [
            self._create_recommendation(table, party_size, preferences, now)
            for table in candidates
        ]
        recommendations.sort(key=lambda r: r.score, reverse=True)

        wait_time = self.predictor.calculate_wait_time(party_size, now=now)
        suggested_actions = self._generate_suggested_actions(
            recommendations, party_size, wait_time
        )

        return RecommendationResult(
            available_tables=[t for t in available if t.capacity >= party_size],
            recommendations=recommendations[: self.limit],
            wait_time=wait_time,
            suggested_actions=suggested_actions,
        )

    def get_quick_recommendation(
        self, party_size: int, now: Optional[datetime] = None
    ) -> Optional[Table]:
        """Best single table for ``party_size``, or None."""
        result = self.get_smart_recommendations(party_size, now=now)
        if not result.recommendations:
            return None
        return result.recommendations[0].table

    # ==================== Scoring ====================

    def _create_recommendation(
        self,
        table: Table,
        party_size: int,
        preferences: SeatingPreferences,
        now: datetime,
    ) -> Recommendation:
        wait = self.predictor.predict_availability_time(table, now)
        score = self.calculate_score(table, party_size, preferences, wait)
        return Recommendation(
            table=table,
            score=score,
            suitability=self.determine_suitability(score),
            estimated_wait_time=wait,
            reasons=self._generate_reasons(table, party_size, preferences, wait),
        )

    def calculate_score(
        self,
        table: Table,
        party_size: int,
        preferences: SeatingPreferences,
        predicted_wait: float,
    ) -> float:
        score = (
            self.get_capacity_score(table.capacity, party_size) * self.CAPACITY_WEIGHT
            + self.get_status_score(table.status) * self.STATUS_WEIGHT
            + self.get_zone_score(table.zone, preferences.zone) * self.ZONE_WEIGHT
            + self.get_wait_time_score(predicted_wait) * self.WAIT_WEIGHT
            + self.get_service_level_score(
                table.service_priority.value, preferences.service_level
            )
            * self.SERVICE_LEVEL_WEIGHT
        )
        return round(score, 2)

    @staticmethod
    def get_capacity_score(capacity: int, party_size: int) -> float:
        if capacity < party_size:
            return 0.0

        ratio = party_size / capacity
        if ratio >= 0.8:
            return 1.0
        if ratio >= 0.6:
            return 0.9
        if ratio >= 0.4:
            return 0.7
        if ratio >= 0.25:
            return 0.5
        return 0.3

    @classmethod
    def get_status_score(cls, status: TableStatus) -> float:
        return cls.STATUS_SCORES.get(status, 0.0)

    @staticmethod
    def get_zone_score(table_zone: str, preferred_zone: Optional[str]) -> float:
        if not preferred_zone:
            return 0.7
        return 1.0 if table_zone == preferred_zone else 0.3

    @staticmethod
    def get_wait_time_score(wait_minutes: float) -> float:
        if wait_minutes == 0:
            return 1.0
        if wait_minutes <= 5:
            return 0.9
        if wait_minutes <= 10:
            return 0.7
        if wait_minutes <= 15:
            return 0.5
        if wait_minutes <= 30:
            return 0.3
        return 0.1

    @classmethod
    def get_service_level_score(
        cls, table_priority: str, preferred_level: Optional[str]
    ) -> float:
        if not preferred_level:
            return 0.7
        table_level = cls.SERVICE_LEVELS.get(table_priority, 1)
        wanted_level = cls.SERVICE_LEVELS.get(preferred_level.lower(), 1)
        return 1.0 if table_level >= wanted_level else 0.5

    @staticmethod
    def determine_suitability(score: float) -> Suitability:
        if score >= 0.8:
            return Suitability.PERFECT
        if score >= 0.6:
            return Suitability.GOOD
        return Suitability.ACCEPTABLE

    # ==================== Explanations ====================

    def _generate_reasons(
        self,
        table: Table,
        party_size: int,
        preferences: SeatingPreferences,
        wait_minutes: float,
    ) -> List[str]:
        reasons = []

        ratio = party_size / table.capacity
        if ratio >= 0.8:
            reasons.append("Table size is a perfect match")
        elif ratio >= 0.6:
            reasons.append("Table size fits well")
        elif ratio <= 0.5:
            reasons.append("Roomier table for extra comfort")

        if table.status == TableStatus.AVAILABLE:
            reasons.append("Available now")
        elif wait_minutes <= 10:
            reasons.append(f"Free in about {round(wait_minutes)} minutes")
        else:
            reasons.append(f"Estimated wait about {round(wait_minutes)} minutes")

        if preferences.zone and table.zone == preferences.zone:
            reasons.append(f"In preferred zone ({table.zone})")

        if table.is_high_priority:
            reasons.append("Priority service table")

        if table.notes:
            reasons.append(f"Note: {table.notes}")

        return reasons

    def _generate_suggested_actions(
        self,
        recommendations: List[Recommendation],
        party_size: int,
        wait_time: float,
    ) -> List[str]:
        if not recommendations:
            return [
                "No suitable table right now",
                "Suggest takeaway or a reservation",
            ]

        actions = []

        if any(r.estimated_wait_time == 0 for r in recommendations):
            actions.append("Table available now, seat the party immediately")
        elif wait_time <= 10:
            actions.append(f"Ask the party to wait about {round(wait_time)} minutes")
        elif wait_time <= 30:
            actions.append("Offer a queue number or a reservation")
        else:
            actions.append("Suggest reserving a later time slot")

        perfect = [r for r in recommendations if r.suitability == Suitability.PERFECT]
        if perfect:
            actions.append(f"Found {len(perfect)} perfect match(es)")

        oversized = [
            r for r in recommendations if r.table.capacity > party_size * self.OVERSIZED_RATIO
        ]
        if oversized and len(recommendations) > len(oversized):
            actions.append("Better-sized tables are available than the larger ones listed")

        return actions
