# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/setaside/routes/products.py
"""
Product catalog routes.

SECURITY:
- Reads (list, categories, detail, images) are public
- Writes (create, update, delete, image upload) require a staff role
"""
from flask import Blueprint, request, jsonify, g, send_from_directory

from ..services import products_service
from ..models import Product, STAFF_ROLES
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    parse_pagination,
    parse_bool_arg,
)
from ..errors import ValidationError
from ..decorators import require_auth, require_roles

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "description", "price", "image_url", "category", "is_available", "stock_quantity",
    },
    required_on_create={"name", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/products")


@products_bp.get("")
def list_products():
    """
    List products with optional filters.

    Query params:
    - page, limit: pagination (defaults 1 / 10, limit max 100)
    - category: exact category match
    - is_available: true | false
    - search: case-insensitive substring of the name
    """
    page, limit = parse_pagination(request.args)
    is_available = parse_bool_arg(request.args.get("is_available"), "is_available")

    result = products_service.list_products(
        page=page,
        limit=limit,
        category=request.args.get("category") or None,
        is_available=is_available,
        search=(request.args.get("search") or "").strip() or None,
    )
    return jsonify(result)


@products_bp.get("/categories")
def list_categories():
    return jsonify(products_service.get_categories())


@products_bp.get("/images/<path:filename>")
def get_product_image(filename: str):
    return send_from_directory(products_service.upload_folder(), filename)


@products_bp.get("/<product_id>")
def get_product(product_id: str):
    return jsonify(products_service.get_product(product_id).to_dict())


@products_bp.post("")
@require_auth
@require_roles(*STAFF_ROLES)
def create_product_route():
    """Create a new product (staff only)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    created = products_service.create_product(patch=patch, creator=g.current_user)
    return jsonify(created.to_dict()), 201


@products_bp.patch("/<product_id>")
@require_auth
@require_roles(*STAFF_ROLES)
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    updated = products_service.update_product(product_id=product_id, patch=patch)
    return jsonify(updated.to_dict())


@products_bp.delete("/<product_id>")
@require_auth
@require_roles(*STAFF_ROLES)
def delete_product_route(product_id: str):
    """
    Delete a product.

    Returns 409 while any order item still references it.
    """
    products_service.delete_product(product_id=product_id)
    return "", 204


@products_bp.post("/<product_id>/image")
@require_auth
@require_roles(*STAFF_ROLES)
def upload_product_image(product_id: str):
    """Upload a product image (multipart form field `file`)."""
    image_url = products_service.upload_image(product_id, request.files.get("file"))
    return jsonify({"image_url": image_url})
