# Overview: Service-layer operations for order line items; owns the order total recompute.

"""
Order Item Service

Line items can only change while their order is pending.

ENTRY POINTS:
- add_item():               client request; ownership + pending enforced
- add_item_to_new_order():  order creation only; the caller just created
                            the order, so the guard is not consulted

INVARIANTS:
1. At most one row per (order, product); a repeat add merges quantities
2. unit_price is pinned when the row is first created
3. subtotal == quantity * unit_price (set by OrderItem.set_quantity)
4. orders.total_amount == SUM(order_items.subtotal), recomputed by a single
   UPDATE in the same transaction as every item insert/update/delete
"""

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Order, OrderItem, Product, User
from ..validation import MAX_ITEM_QUANTITY, MAX_MONEY_AMOUNT
from setaside.errors import InvalidStateError, NotFoundError, ValidationError
from setaside.time_utils import utcnow
from .order_access import get_accessible_order


class OrderItemMismatchError(ValidationError):
    """Item exists but belongs to a different order than the one in the path."""


def recalculate_order_total(order_id: str) -> None:
    """
    Recompute orders.total_amount from its items in one statement.

    Must run after pending item changes are flushed and before commit.
    """
    items_total = (
        db.select(db.func.coalesce(db.func.sum(OrderItem.subtotal), 0))
        .where(OrderItem.order_id == order_id)
        .scalar_subquery()
    )
    db.session.execute(
        db.update(Order)
        .where(Order.id == order_id)
        .values(total_amount=items_total, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )


def _check_line_amounts(order_id: str, unit_price, quantity: int, exclude_item_id: str | None = None) -> None:
    """Reject a line whose amounts would overflow the order_items or orders columns."""
    if quantity > MAX_ITEM_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_ITEM_QUANTITY}")

    subtotal = Decimal(quantity) * Decimal(unit_price)
    if subtotal > MAX_MONEY_AMOUNT:
        raise ValidationError("Order item subtotal is too large")

    others = db.select(db.func.coalesce(db.func.sum(OrderItem.subtotal), 0)).where(OrderItem.order_id == order_id)
    if exclude_item_id is not None:
        others = others.where(OrderItem.id != exclude_item_id)
    if Decimal(db.session.scalar(others)) + subtotal > MAX_MONEY_AMOUNT:
        raise ValidationError("Order total is too large")


def _commit_with_total(order_id: str) -> None:
    db.session.flush()
    recalculate_order_total(order_id)
    db.session.commit()


def _get_item_in_order(order_id: str, item_id: str) -> OrderItem:
    item = db.session.get(OrderItem, item_id)
    if item is None:
        raise NotFoundError("Order item not found")
    if item.order_id != order_id:
        raise OrderItemMismatchError("Order item does not belong to this order")
    return item


def list_items(order_id: str, actor: User) -> list[OrderItem]:
    """Items of a visible order (any status), oldest first."""
    get_accessible_order(order_id, actor)
    return (
        db.session.query(OrderItem)
        .filter(OrderItem.order_id == order_id)
        .order_by(OrderItem.created_at.asc())
        .all()
    )


def _add_item(order: Order, patch: dict) -> OrderItem:
    product_id = patch["product_id"]
    quantity = patch["quantity"]

    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    if not product.is_available:
        raise InvalidStateError("Product is not available")

    if not product.has_stock_for(quantity):
        raise InvalidStateError("Insufficient stock")

    instructions = patch.get("special_instructions")

    existing = (
        db.session.query(OrderItem)
        .filter(OrderItem.order_id == order.id, OrderItem.product_id == product_id)
        .first()
    )

    if existing is not None:
        # Merge into the existing line; unit price stays pinned
        _check_line_amounts(order.id, existing.unit_price, existing.quantity + quantity, exclude_item_id=existing.id)
        existing.set_quantity(existing.quantity + quantity)
        if instructions:
            existing.special_instructions = instructions
        _commit_with_total(order.id)
        current_app.logger.info("Order item quantity updated: %s", existing.id)
        return existing

    _check_line_amounts(order.id, product.price, quantity)

    item = OrderItem(
        order_id=order.id,
        product_id=product_id,
        unit_price=product.price,
        special_instructions=instructions or None,
    )
    item.set_quantity(quantity)
    db.session.add(item)
    _commit_with_total(order.id)

    current_app.logger.info("Order item created: %s", item.id)
    return item


def add_item(order_id: str, actor: User, patch: dict) -> OrderItem:
    """
    Add a product line to a pending order the actor may act on.

    Raises:
        NotFoundError: Order or product doesn't exist
        ForbiddenError: Customer adding to someone else's order
        InvalidStateError: Order not pending, product unavailable or out of stock
    """
    order = get_accessible_order(order_id, actor, require_pending=True)
    return _add_item(order, patch)


def add_item_to_new_order(order: Order, patch: dict) -> OrderItem:
    """Add a line to an order created by the current request."""
    return _add_item(order, patch)


def update_item(order_id: str, item_id: str, actor: User, patch: dict) -> OrderItem:
    """
    Change quantity and/or special instructions of a line.

    Quantity is checked against the product's current stock; the subtotal is
    recomputed from the pinned unit price, not the live product price.
    """
    get_accessible_order(order_id, actor, require_pending=True)
    item = _get_item_in_order(order_id, item_id)

    if "quantity" in patch:
        quantity = patch["quantity"]
        if not item.product.has_stock_for(quantity):
            raise InvalidStateError("Insufficient stock")
        _check_line_amounts(order_id, item.unit_price, quantity, exclude_item_id=item.id)
        item.set_quantity(quantity)

    if "special_instructions" in patch:
        item.special_instructions = patch["special_instructions"]

    _commit_with_total(order_id)

    current_app.logger.info("Order item updated: %s", item_id)
    return item


def remove_item(order_id: str, item_id: str, actor: User) -> None:
    get_accessible_order(order_id, actor, require_pending=True)
    item = _get_item_in_order(order_id, item_id)

    db.session.delete(item)
    _commit_with_total(order_id)

    current_app.logger.info("Order item deleted: %s", item_id)
