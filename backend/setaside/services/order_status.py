# Overview: Order status transition policy (pure, no database access).

"""
Order Status Policy

STATE MACHINE:
    pending -> preparing -> ready -> picked_up

    pending:    Customer may still edit the order and its items
    preparing:  Staff is working on the order
    ready:      Waiting at the counter
    picked_up:  Terminal

RULES:
1. Cannot skip states (pending -> ready is forbidden)
2. Cannot reverse states (ready -> preparing is forbidden)
3. picked_up is terminal
4. A same-state request is not a transition and is rejected
"""

from __future__ import annotations
from typing import Literal

from setaside.errors import ValidationError


PENDING = "pending"
PREPARING = "preparing"
READY = "ready"
PICKED_UP = "picked_up"

# Valid statuses in flow order (must match the orders.status check constraint)
VALID_STATUSES = (PENDING, PREPARING, READY, PICKED_UP)
OrderStatus = Literal["pending", "preparing", "ready", "picked_up"]

ORDER_STATUS_TRANSITIONS: dict[str, tuple[str, ...]] = {
    PENDING: (PREPARING,),
    PREPARING: (READY,),
    READY: (PICKED_UP,),
    PICKED_UP: (),
}


def validate_status(status) -> str:
    """
    Validate that a status value is one of the allowed states.

    Raises:
        ValidationError: If status is not in VALID_STATUSES
    """
    if status not in VALID_STATUSES:
        raise ValidationError(
            f"Invalid order status '{status}'. Must be one of: {', '.join(VALID_STATUSES)}"
        )
    return status


def is_valid_transition(current: str, requested: str) -> bool:
    """
    Check if a status change is allowed by the transition table.

    Unknown statuses and same-state requests are never valid.
    """
    return requested in ORDER_STATUS_TRANSITIONS.get(current, ())
