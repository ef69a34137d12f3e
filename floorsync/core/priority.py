"""Service priority scoring for active orders."""

import math
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Tuple, Iterable

from ..models import Order, Table, naive_utc


class PriorityLevel(str, Enum):
    """Service priority levels."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


# Keyword variants per special-needs category, matched case-folded against
# the order and line-item notes. ASCII keywords must match whole words;
# the others match as substrings.
SPECIAL_NEEDS_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "allergy_alert": (
        "allergy", "allergic", "intolerant", "intolerance", "no nuts", "gluten free",
        "過敏", "不吃", "忌", "敏感",
    ),
    "special_diet": (
        "vegetarian", "vegan", "halal", "kosher", "sugar free", "low salt", "low sodium",
        "素食", "清真", "無糖", "低鹽", "養生",
    ),
    "celebration": (
        "birthday", "anniversary", "celebration", "celebrate", "proposal",
        "生日", "慶祝", "紀念", "慶生", "週年",
    ),
    "business_dining": (
        "business", "meeting", "corporate",
        "商務", "會議", "討論", "商談",
    ),
    "explicit_urgent": (
        "urgent", "asap", "in a hurry", "rush", "quickly",
        "急", "趕時間", "快點", "特急",
    ),
}

SPECIAL_NEEDS_POINTS: Dict[str, float] = {
    "allergy_alert": 10,
    "special_diet": 8,
    "celebration": 12,
    "business_dining": 15,
    "explicit_urgent": 20,
}


@dataclass(frozen=True)
class WaitThresholds:
    """Wait-time thresholds in minutes."""

    low: int = 5
    normal: int = 10
    high: int = 15
    urgent: int = 20


@dataclass(frozen=True)
class PriorityConfig:
    """Scoring weights and tuning constants. Weights sum to 100."""

    wait_time_weight: float = 30
    table_type_weight: float = 20
    party_size_weight: float = 20
    special_needs_weight: float = 15
    vip_status_weight: float = 15

    wait_thresholds: WaitThresholds = field(default_factory=WaitThresholds)
    vip_multiplier: float = 1.5
    capacity_bonus: float = 0.1
    large_table_capacity: int = 8
    large_party_threshold: int = 6
    large_party_bonus: float = 0.2
    default_party_size: int = 2

    special_needs_points: Dict[str, float] = field(
        default_factory=lambda: dict(SPECIAL_NEEDS_POINTS)
    )
    special_needs_keywords: Dict[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(SPECIAL_NEEDS_KEYWORDS)
    )


@dataclass
class PriorityFactors:
    """Per-factor score breakdown."""

    wait_time: float = 0.0
    table_type: float = 0.0
    party_size: float = 0.0
    special_needs: float = 0.0
    vip_status: float = 0.0

    def total(self) -> float:
        return (
            self.wait_time
            + self.table_type
            + self.party_size
            + self.special_needs
            + self.vip_status
        )

    def to_dict(self) -> dict:
        return {
            "waitTime": self.wait_time,
            "tableType": self.table_type,
            "partySize": self.party_size,
            "specialNeeds": self.special_needs,
            "vipStatus": self.vip_status,
        }


@dataclass
class PriorityScore:
    """Explainable service priority for one order."""

    factors: PriorityFactors
    score: int
    level: PriorityLevel
    reasons: List[str]
    wait_minutes: int = 0

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "level": self.level.value,
            "factors": self.factors.to_dict(),
            "reasons": list(self.reasons),
            "wait_minutes": self.wait_minutes,
        }


class PriorityScorer:
    """
    Scores orders 0-100 for service urgency.

    Combines:
    - Wait time since the order was created
    - Table type (VIP zone, large table, priority class)
    - Party size
    - Special needs found in free-text notes
    - VIP status

    Holds no mutable state; the same (order, table, now) always yields the
    same score.
    """

    def __init__(self, config: Optional[PriorityConfig] = None):
        self._config = config or PriorityConfig()

    def get_config(self) -> PriorityConfig:
        return replace(
            self._config,
            special_needs_points=dict(self._config.special_needs_points),
            special_needs_keywords=dict(self._config.special_needs_keywords),
        )

    def update_config(self, **overrides) -> "PriorityScorer":
        """Return a new scorer with the given config fields replaced."""
        return PriorityScorer(replace(self._config, **overrides))

    # ==================== Scoring ====================

    def calculate_service_priority(
        self,
        order: Order,
        table: Optional[Table] = None,
        now: Optional[datetime] = None,
    ) -> PriorityScore:
        """
        Calculate the service priority of ``order``.

        Args:
            order: Order snapshot
            table: Table the order belongs to, if known
            now: Evaluation time (defaults to current UTC time)

        Returns:
            Fresh PriorityScore with factor breakdown, level and reasons
        """
        now = naive_utc(now) or datetime.utcnow()
        wait_minutes = self.get_wait_minutes(order, now)
        party_size = self._resolve_party_size(order, table)

        factors = PriorityFactors(
            wait_time=self.calculate_wait_time_score(wait_minutes),
            table_type=self.calculate_table_type_score(table),
            party_size=self.calculate_party_size_score(party_size),
            special_needs=self.calculate_special_needs_score(order),
            vip_status=self.calculate_vip_score(table),
        )

        score = int(min(100, max(0, round(factors.total()))))
        level = self.determine_priority_level(score, wait_minutes)
        reasons = self._generate_reasons(factors, wait_minutes, party_size, table)

        return PriorityScore(
            factors=factors,
            score=score,
            level=level,
            reasons=reasons,
            wait_minutes=wait_minutes,
        )

    def calculate_batch_priority(
        self,
        orders: Iterable[Order],
        tables: Optional[Iterable[Table]] = None,
        now: Optional[datetime] = None,
    ) -> List[Tuple[Order, PriorityScore]]:
        """Score each order against its table; unmatched orders score without table info."""
        now = naive_utc(now) or datetime.utcnow()
        by_id = {t.id: t for t in (tables or [])}
        return [
            (order, self.calculate_service_priority(order, by_id.get(order.table_id), now))
            for order in orders
        ]

    @classmethod
    def sort_by_priority(
        cls, scored: Iterable[Tuple[Order, PriorityScore]]
    ) -> List[Tuple[Order, PriorityScore]]:
        """Highest score first; ties go to the older order."""
        return sorted(scored, key=lambda pair: (-pair[1].score, pair[0].created_at))

    # ==================== Factors ====================

    @staticmethod
    def get_wait_minutes(order: Order, now: datetime) -> int:
        elapsed = (now - order.created_at).total_seconds() / 60
        return max(0, math.floor(elapsed))

    def _resolve_party_size(self, order: Order, table: Optional[Table]) -> int:
        if order.party_size:
            return order.party_size
        if table is not None and table.current_party_size:
            return table.current_party_size
        return self._config.default_party_size

    def calculate_wait_time_score(self, wait_minutes: float) -> float:
        weight = self._config.wait_time_weight
        thresholds = self._config.wait_thresholds

        if wait_minutes >= thresholds.urgent:
            return weight
        if wait_minutes >= thresholds.high:
            return weight * 0.8
        if wait_minutes >= thresholds.normal:
            return weight * 0.5
        if wait_minutes >= thresholds.low:
            return weight * 0.2
        return 0.0

    def calculate_table_type_score(self, table: Optional[Table]) -> float:
        if table is None:
            return 0.0

        config = self._config
        weight = config.table_type_weight
        score = 0.0

        if table.is_vip_zone:
            score += weight * 0.6 * config.vip_multiplier
        if table.capacity >= config.large_table_capacity:
            score += weight * config.capacity_bonus * table.capacity
        if table.is_high_priority:
            score += weight * 0.2

        return min(weight, score)

    def calculate_party_size_score(self, party_size: int) -> float:
        config = self._config
        weight = config.party_size_weight

        if party_size >= config.large_party_threshold:
            raw = weight * (
                1 + config.large_party_bonus * (party_size - config.large_party_threshold + 1)
            )
        else:
            raw = weight * 0.1 * party_size

        return min(weight, max(0.0, raw))

    def detect_special_needs(self, order: Order) -> List[str]:
        """Categories whose keywords appear in the order's notes."""
        text = order.all_notes()
        return [
            category
            for category, keywords in self._config.special_needs_keywords.items()
            if any(_mentions(text, keyword) for keyword in keywords)
        ]

    def calculate_special_needs_score(self, order: Order) -> float:
        points = self._config.special_needs_points
        score = sum(points.get(category, 0) for category in self.detect_special_needs(order))
        return min(self._config.special_needs_weight, score)

    def calculate_vip_score(self, table: Optional[Table]) -> float:
        if table is None:
            return 0.0

        weight = self._config.vip_status_weight
        score = 0.0
        if table.is_vip_zone:
            score += weight * 0.7
        if table.is_high_priority:
            score += weight * 0.3
        return min(weight, score)

    def determine_priority_level(self, score: float, wait_minutes: float) -> PriorityLevel:
        thresholds = self._config.wait_thresholds

        # Long waits override the score
        if wait_minutes >= thresholds.urgent:
            return PriorityLevel.URGENT
        if wait_minutes >= thresholds.high:
            return PriorityLevel.HIGH

        if score >= 80:
            return PriorityLevel.URGENT
        if score >= 60:
            return PriorityLevel.HIGH
        if score >= 30:
            return PriorityLevel.NORMAL
        return PriorityLevel.LOW

    def _generate_reasons(
        self,
        factors: PriorityFactors,
        wait_minutes: int,
        party_size: int,
        table: Optional[Table],
    ) -> List[str]:
        config = self._config
        reasons = []

        if wait_minutes >= config.wait_thresholds.high:
            reasons.append(f"Waiting {wait_minutes} minutes already")
        elif wait_minutes >= config.wait_thresholds.normal:
            reasons.append(f"Waiting {wait_minutes} minutes")

        if table is not None and table.is_vip_zone:
            reasons.append(f"VIP table ({table.zone})")
        if table is not None and table.capacity >= config.large_table_capacity:
            reasons.append(f"Large table ({table.capacity} seats)")

        if party_size >= config.large_party_threshold:
            reasons.append(f"Large party ({party_size} guests)")

        if factors.special_needs > 0:
            reasons.append("Special needs")

        return reasons


def _mentions(text: str, keyword: str) -> bool:
    keyword = keyword.casefold()
    if keyword.isascii():
        return re.search(r"\b" + re.escape(keyword) + r"\b", text) is not None
    return keyword in text
