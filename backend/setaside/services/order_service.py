# Overview: Service-layer operations for orders; creation, role-scoped reads, edits and status flow.

"""
Order Service

ROLE RULES:
- Customers see and edit only their own orders, and edit only while pending
- Staff (cashier, admin) see every order and edit notes/pickup time at any status
- Only staff move an order through the status flow
- Only pending orders can be deleted, whoever asks

Order creation is not atomic with its items: the order row is
committed first, then each requested item is added and committed on its own.
A failing item is logged and skipped; the order is returned with whatever
items succeeded.
"""

from flask import current_app

from ..extensions import db
from ..models import Order, User, ROLE_CUSTOMER
from setaside.errors import (
    ForbiddenError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ServiceError,
)
from .order_access import authorize_order, get_accessible_order
from .order_item_service import add_item_to_new_order
from .order_status import PENDING, is_valid_transition, validate_status
from .user_service import page_meta

ORDER_MUTABLE_FIELDS = {"notes", "pickup_time"}


def _load_order(order_id: str) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def create_order(
    actor: User,
    notes: str | None = None,
    pickup_time=None,
    items: list[dict] | None = None,
) -> dict:
    """
    Create a pending order owned by `actor`, optionally with items.

    `items` must already be validated order-item payloads.

    Returns:
        The order detail view (customer, items with product, preparer)
    """
    order = Order(customer_id=actor.id, status=PENDING, notes=notes, pickup_time=pickup_time)
    db.session.add(order)
    db.session.commit()

    current_app.logger.info("Order created: %s by user %s", order.id, actor.id)

    for patch in items or []:
        try:
            add_item_to_new_order(order, patch)
        except ServiceError as e:
            db.session.rollback()
            current_app.logger.error("Failed to add item to order %s: %s", order.id, e.message)
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Unexpected error adding item to order %s", order.id)

    return get_order(order.id, actor)


def list_orders(
    actor: User,
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    customer_id: str | None = None,
) -> dict:
    """
    Role-scoped order listing, newest first.

    Customers always get their own orders; customer_id is ignored for them.
    """
    query = db.session.query(Order)

    if actor.role == ROLE_CUSTOMER:
        query = query.filter(Order.customer_id == actor.id)
    elif customer_id:
        query = query.filter(Order.customer_id == customer_id)

    if status:
        query = query.filter(Order.status == validate_status(status))

    total = query.count()
    orders = (
        query.order_by(Order.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "data": [o.to_detail_dict(include_preparer=False) for o in orders],
        "meta": page_meta(total, page, limit),
    }


def get_order(order_id: str, actor: User) -> dict:
    order = get_accessible_order(order_id, actor)
    return order.to_detail_dict()


def update_order(order_id: str, actor: User, patch: dict) -> Order:
    """
    Edit notes and/or pickup time.

    Customers need ownership and a pending order; staff may edit at any status.
    """
    order = get_accessible_order(order_id, actor, require_pending=actor.role == ROLE_CUSTOMER)

    for k, v in patch.items():
        if k in ORDER_MUTABLE_FIELDS:
            setattr(order, k, v)

    db.session.commit()
    current_app.logger.info("Order updated: %s", order_id)
    return order


def update_status(order_id: str, actor: User, new_status) -> Order:
    """
    Move an order one step along the status flow (staff only).

    Records the acting staff member in prepared_by.

    Raises:
        NotFoundError: Order doesn't exist
        ForbiddenError: Actor is a customer
        ValidationError: Unknown status value
        InvalidTransitionError: Not the next step in the flow
    """
    order = _load_order(order_id)

    if actor.role == ROLE_CUSTOMER:
        raise ForbiddenError("Only staff can update order status")

    new_status = validate_status(new_status)
    if not is_valid_transition(order.status, new_status):
        raise InvalidTransitionError(
            f"Invalid status transition from '{order.status}' to '{new_status}'"
        )

    order.status = new_status
    order.prepared_by = actor.id
    db.session.commit()

    current_app.logger.info("Order status updated: %s to %s", order_id, new_status)
    return order


def delete_order(order_id: str, actor: User) -> None:
    """
    Delete a pending order and its items.

    The pending rule applies to staff as well as customers.
    """
    order = authorize_order(_load_order(order_id), actor)

    if order.status != PENDING:
        raise InvalidStateError("Only pending orders can be deleted")

    db.session.delete(order)
    db.session.commit()
    current_app.logger.info("Order deleted: %s", order_id)
