# Overview: Flask API routes for order line items; parses input and returns JSON responses.

# backend/setaside/routes/order_items.py
"""
Order item routes, nested under /orders/<order_id>/items.

Reads are allowed at any status for anyone who can see the order. Adds,
edits and removals need the order to be pending.
"""

from flask import Blueprint, request, jsonify, g

from ..models import OrderItem
from ..services import order_item_service
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_order_item
from ..errors import ValidationError
from ..decorators import require_auth
from .orders import validate_item_payload

ORDER_ITEM_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"quantity", "special_instructions"},
)

order_items_bp = Blueprint("order_items", __name__, url_prefix="/orders/<order_id>/items")


@order_items_bp.get("")
@require_auth
def list_items_route(order_id: str):
    items = order_item_service.list_items(order_id, g.current_user)
    return jsonify([item.to_dict(include_product=True) for item in items])


@order_items_bp.post("")
@require_auth
def add_item_route(order_id: str):
    """
    Add a product to the order.

    Adding a product already in the order increases that line's quantity.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_item_payload(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    item = order_item_service.add_item(order_id, g.current_user, patch)
    return jsonify(item.to_dict(include_product=True)), 201


@order_items_bp.patch("/<item_id>")
@require_auth
def update_item_route(order_id: str, item_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=OrderItem, payload=payload, policy=ORDER_ITEM_UPDATE_POLICY, partial=True)
        enforce_rules_order_item(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    item = order_item_service.update_item(order_id, item_id, g.current_user, patch)
    return jsonify(item.to_dict(include_product=True))


@order_items_bp.delete("/<item_id>")
@require_auth
def remove_item_route(order_id: str, item_id: str):
    order_item_service.remove_item(order_id, item_id, g.current_user)
    return "", 204
