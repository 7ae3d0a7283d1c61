# Overview: Authorization checks for acting on a single order.

"""
Order Access Guard

Staff (cashier, admin) may read and act on any order. Customers may only act
on orders they own. The optional pending requirement guards edits that are
only allowed while the order is still pending.

Pure check: authorize_order() never writes to the database.
"""

from ..extensions import db
from ..models import Order, User, ROLE_CUSTOMER
from setaside.errors import ForbiddenError, InvalidStateError, NotFoundError
from .order_status import PENDING


def authorize_order(order: Order, actor: User, require_pending: bool = False) -> Order:
    """
    Authorize `actor` against an already-loaded order.

    Raises:
        ForbiddenError: Customer acting on someone else's order
        InvalidStateError: require_pending is set and the order is not pending
    """
    if actor.role == ROLE_CUSTOMER and order.customer_id != actor.id:
        raise ForbiddenError("You can only access your own orders")

    if require_pending and order.status != PENDING:
        raise InvalidStateError("This action is only allowed for pending orders")

    return order


def get_accessible_order(order_id: str, actor: User, require_pending: bool = False) -> Order:
    """Load an order by id and authorize it; NotFoundError if absent."""
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return authorize_order(order, actor, require_pending=require_pending)
