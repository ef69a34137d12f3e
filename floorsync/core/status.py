"""Table status catalogue: expected transitions and suggested staff actions."""

from typing import Optional, List, Dict, Union

from ..models import TableStatus


# Expected floor flow. Not enforced: the bus accepts any transition and
# only flags the ones missing here.
#
# AVAILABLE → SEATED / RESERVED
# RESERVED → SEATED / AVAILABLE
# SEATED → ORDERED
# ORDERED → WAITING_FOOD
# WAITING_FOOD → DINING
# DINING → NEEDS_SERVICE / CLEANING
# NEEDS_SERVICE → DINING / CLEANING
# CLEANING → AVAILABLE
EXPECTED_TRANSITIONS: Dict[TableStatus, List[TableStatus]] = {
    TableStatus.AVAILABLE: [TableStatus.SEATED, TableStatus.RESERVED],
    TableStatus.RESERVED: [TableStatus.SEATED, TableStatus.AVAILABLE],
    TableStatus.SEATED: [TableStatus.ORDERED, TableStatus.NEEDS_SERVICE],
    TableStatus.ORDERED: [TableStatus.WAITING_FOOD, TableStatus.NEEDS_SERVICE],
    TableStatus.WAITING_FOOD: [TableStatus.DINING, TableStatus.NEEDS_SERVICE],
    TableStatus.DINING: [TableStatus.NEEDS_SERVICE, TableStatus.ORDERED, TableStatus.CLEANING],
    TableStatus.NEEDS_SERVICE: [
        TableStatus.SEATED,
        TableStatus.ORDERED,
        TableStatus.WAITING_FOOD,
        TableStatus.DINING,
        TableStatus.CLEANING,
    ],
    TableStatus.CLEANING: [TableStatus.AVAILABLE],
}

# Typical staff follow-ups for a table sitting in each status
SUGGESTED_ACTIONS: Dict[TableStatus, List[str]] = {
    TableStatus.AVAILABLE: [],
    TableStatus.RESERVED: ["confirm_reservation", "prepare_table"],
    TableStatus.SEATED: ["greet_customers", "offer_drinks", "take_order"],
    TableStatus.ORDERED: ["send_to_kitchen", "refill_drinks"],
    TableStatus.WAITING_FOOD: ["check_order_status", "serve_food", "update_customer"],
    TableStatus.DINING: ["check_satisfaction", "offer_dessert", "clear_plates"],
    TableStatus.NEEDS_SERVICE: ["check_needs"],
    TableStatus.CLEANING: ["clean_table", "reset_settings"],
}


def parse_status(value: Union[str, TableStatus, None]) -> Optional[TableStatus]:
    """Return the matching TableStatus, or None for unknown values."""
    if value is None:
        return None
    try:
        return TableStatus(value)
    except ValueError:
        return None


def is_expected_transition(
    from_status: Union[str, TableStatus, None],
    to_status: Union[str, TableStatus],
) -> bool:
    """
    Check a transition against the expected floor flow.

    Unknown previous status and self-transitions are always expected;
    values outside the enum never are.
    """
    target = parse_status(to_status)
    if target is None:
        return False
    if from_status is None:
        return True

    source = parse_status(from_status)
    if source is None:
        return False
    if source == target:
        return True

    # A party can leave from any state
    if target == TableStatus.CLEANING:
        return True

    return target in EXPECTED_TRANSITIONS.get(source, [])


def get_suggested_actions(status: Union[str, TableStatus]) -> List[str]:
    """Get suggested staff actions for a table in ``status``."""
    parsed = parse_status(status)
    if parsed is None:
        return []
    return list(SUGGESTED_ACTIONS.get(parsed, []))
