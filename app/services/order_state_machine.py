"""
Legal order status transitions and the timestamp each one stamps.

Pure decision logic, no persistence. Unknown states fail closed.
"""
from typing import Dict, List, Optional, Tuple, Union

from app.models.order import OrderStatus

StatusLike = Union[OrderStatus, str]

VALID_TRANSITIONS: Dict[OrderStatus, Tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    OrderStatus.CONFIRMED: (OrderStatus.PREPARING, OrderStatus.CANCELLED),
    OrderStatus.PREPARING: (OrderStatus.READY, OrderStatus.CANCELLED),
    OrderStatus.READY: (OrderStatus.COMPLETED,),
    OrderStatus.COMPLETED: (),
    OrderStatus.CANCELLED: (),
}

TIMESTAMP_FIELDS: Dict[OrderStatus, str] = {
    OrderStatus.READY: "prepared_at",
    OrderStatus.COMPLETED: "completed_at",
}


def _coerce(status: StatusLike) -> Optional[OrderStatus]:
    try:
        return OrderStatus(status)
    except ValueError:
        return None


def allowed_transitions(current: StatusLike) -> List[OrderStatus]:
    """Next states reachable from `current`; empty for terminal or unknown states."""
    state = _coerce(current)
    if state is None:
        return []
    return list(VALID_TRANSITIONS.get(state, ()))


def can_transition(current: StatusLike, new: StatusLike) -> bool:
    target = _coerce(new)
    if target is None:
        return False
    return target in allowed_transitions(current)


def timestamp_field(new: StatusLike) -> Optional[str]:
    """Name of the Order field the caller must stamp with "now" on entering `new`."""
    state = _coerce(new)
    if state is None:
        return None
    return TIMESTAMP_FIELDS.get(state)
