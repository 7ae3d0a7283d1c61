# Overview: Flask API routes for orders; parses input and returns JSON responses.

# backend/setaside/routes/orders.py
"""
Order routes.

All routes require authentication. Visibility and edit rights are decided in
the service layer:
- Customers only see and change their own orders
- PATCH /orders/<id>/status is staff-only
- DELETE only succeeds while the order is pending
"""

from flask import Blueprint, request, jsonify, g

from ..models import Order, OrderItem, STAFF_ROLES
from ..services import order_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_order_item,
    parse_pagination,
    require_uuid,
)
from ..errors import ValidationError
from ..decorators import require_auth, require_roles

ORDER_POLICY = ModelValidationPolicy(
    writable_fields={"notes", "pickup_time"},
)

ORDER_ITEM_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "special_instructions"},
    required_on_create={"product_id", "quantity"},
)

orders_bp = Blueprint("orders", __name__, url_prefix="/orders")


def validate_item_payload(payload) -> dict:
    """Validate one add-item payload (shared with the order item routes)."""
    patch = validate_payload(model=OrderItem, payload=payload, policy=ORDER_ITEM_CREATE_POLICY, partial=False)
    patch["product_id"] = require_uuid(patch["product_id"], "product_id")
    enforce_rules_order_item(patch)
    return patch


@orders_bp.post("")
@require_auth
def create_order_route():
    """
    Create a pending order for the caller.

    Body: {notes?, pickup_time?, items?: [{product_id, quantity, special_instructions?}]}

    Items that cannot be added (unknown product, unavailable, out of stock)
    are skipped; the order is still created.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    order_fields = {k: v for k, v in payload.items() if k != "items"}
    raw_items = payload.get("items")

    try:
        patch = validate_payload(model=Order, payload=order_fields, policy=ORDER_POLICY, partial=False)
        if raw_items is None:
            raw_items = []
        elif not isinstance(raw_items, list):
            raise ValidationError("items must be a list")
        items = [validate_item_payload(item) for item in raw_items]
    except ValidationError as e:
        return {"error": str(e)}, 400

    created = order_service.create_order(
        g.current_user,
        notes=patch.get("notes"),
        pickup_time=patch.get("pickup_time"),
        items=items,
    )
    return jsonify(created), 201


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    List orders, newest first.

    Query params:
    - page, limit: pagination (defaults 1 / 10, limit max 100)
    - status: pending | preparing | ready | picked_up
    - customer_id: staff only; ignored for customers
    """
    page, limit = parse_pagination(request.args)

    result = order_service.list_orders(
        g.current_user,
        page=page,
        limit=limit,
        status=request.args.get("status") or None,
        customer_id=request.args.get("customer_id") or None,
    )
    return jsonify(result)


@orders_bp.get("/<order_id>")
@require_auth
def get_order_route(order_id: str):
    return jsonify(order_service.get_order(order_id, g.current_user))


@orders_bp.patch("/<order_id>")
@require_auth
def update_order_route(order_id: str):
    """Edit notes / pickup_time."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    order = order_service.update_order(order_id, g.current_user, patch)
    return jsonify(order.to_dict())


@orders_bp.patch("/<order_id>/status")
@require_auth
@require_roles(*STAFF_ROLES)
def update_order_status_route(order_id: str):
    """
    Advance the order status.

    Body: {status}. Only the next step of pending -> preparing -> ready ->
    picked_up is accepted.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict) or "status" not in payload:
        return {"error": "Missing required fields: status"}, 400

    order = order_service.update_status(order_id, g.current_user, payload["status"])
    return jsonify(order.to_dict())


@orders_bp.delete("/<order_id>")
@require_auth
def delete_order_route(order_id: str):
    order_service.delete_order(order_id, g.current_user)
    return "", 204
