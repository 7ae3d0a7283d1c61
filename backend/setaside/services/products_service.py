# backend/setaside/services/products_service.py
"""
Products Service

Catalog reads are public; writes are staff-only (enforced at the route).
- list_products supports category / availability / name search filters
- delete_product is refused while any order item references the product
- product images live on local disk under UPLOAD_FOLDER
"""
from __future__ import annotations

import os
import time

from flask import current_app, url_for
from werkzeug.utils import secure_filename

from ..extensions import db
from ..models import Product, OrderItem, User
from setaside.errors import ConflictError, NotFoundError, ValidationError
from .user_service import page_meta

PRODUCT_MUTABLE_FIELDS = {
    "name", "description", "price", "image_url", "category", "is_available", "stock_quantity",
}

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_product(product_id: str) -> Product:
    p = db.session.get(Product, product_id)
    if p is None:
        raise NotFoundError("Product not found")
    return p


def list_products(
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
    is_available: bool | None = None,
    search: str | None = None,
) -> dict:
    """
    Public catalog listing, newest first.

    Returns:
        Dict with 'data' and pagination 'meta'.
    """
    query = db.session.query(Product)

    if category:
        query = query.filter(Product.category == category)

    if is_available is not None:
        query = query.filter(Product.is_available.is_(is_available))

    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))

    total = query.count()
    products = (
        query.order_by(Product.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "data": [p.to_dict() for p in products],
        "meta": page_meta(total, page, limit),
    }


def get_categories() -> list[str]:
    rows = (
        db.session.query(Product.category)
        .filter(Product.category.isnot(None), Product.category != "")
        .distinct()
        .order_by(Product.category.asc())
        .all()
    )
    return [row[0] for row in rows]


def create_product(*, patch: dict, creator: User) -> Product:
    """
    Create product using a validated patch dict.

    Omitted is_available defaults to True and omitted stock_quantity to 0.
    """
    p = Product(created_by=creator.id, is_available=True, stock_quantity=0)
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.commit()

    current_app.logger.info("Product created: %s by user %s", p.id, creator.id)
    return p


def update_product(*, product_id: str, patch: dict) -> Product:
    p = get_product(product_id)
    apply_product_patch(p, patch)
    db.session.commit()
    current_app.logger.info("Product updated: %s", product_id)
    return p


def delete_product(*, product_id: str) -> None:
    """
    Hard-delete a product.

    Raises:
        NotFoundError: If product doesn't exist
        ConflictError: If any order item still references the product
    """
    p = get_product(product_id)

    referenced = (
        db.session.query(OrderItem.id)
        .filter(OrderItem.product_id == product_id)
        .first()
    )
    if referenced:
        raise ConflictError("Product is referenced by existing orders and cannot be deleted")

    image_url = p.image_url
    db.session.delete(p)
    db.session.commit()

    if image_url:
        _delete_image_file(product_id, image_url)

    current_app.logger.info("Product deleted: %s", product_id)


def upload_folder() -> str:
    folder = current_app.config.get("UPLOAD_FOLDER") or os.path.join(
        current_app.instance_path, "product-images"
    )
    os.makedirs(folder, exist_ok=True)
    return folder


def upload_image(product_id: str, file_storage) -> str:
    """
    Store an uploaded image for a product and point image_url at it.

    Any previous image file is removed. Returns the new public URL.
    """
    p = get_product(product_id)

    if file_storage is None or not file_storage.filename:
        raise ValidationError("Image file is required")

    original = secure_filename(file_storage.filename)
    ext = original.rsplit(".", 1)[-1].lower() if "." in original else ""
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationError(
            f"Unsupported image type. Allowed: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}"
        )

    if p.image_url:
        _delete_image_file(product_id, p.image_url)

    filename = f"{product_id}-{int(time.time() * 1000)}.{ext}"
    file_storage.save(os.path.join(upload_folder(), filename))

    p.image_url = url_for("products.get_product_image", filename=filename, _external=True)
    db.session.commit()

    current_app.logger.info("Image uploaded for product: %s", product_id)
    return p.image_url


def _delete_image_file(product_id: str, image_url: str) -> None:
    # Only files this service stored; external URLs are left alone
    filename = secure_filename(image_url.rsplit("/", 1)[-1])
    if not filename.startswith(f"{product_id}-"):
        return
    path = os.path.join(upload_folder(), filename)
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        current_app.logger.warning("Failed to delete image: %s", image_url)
