from __future__ import annotations

from ..extensions import db
from .users import new_uuid
from setaside.time_utils import to_utc_z, utcnow


def money(value) -> float | None:
    """Numeric column value -> JSON number."""
    if value is None:
        return None
    return float(value)


class Product(db.Model):
    """
    Sellable catalog item.

    stock_quantity NULL means unlimited stock. Products referenced by any
    order item cannot be deleted (RESTRICT).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_products_price_nonnegative"),
        db.CheckConstraint(
            "stock_quantity IS NULL OR stock_quantity >= 0",
            name="ck_products_stock_nonnegative",
        ),
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_is_available", "is_available"),
        db.Index("ix_products_name", "name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.String(1000), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    image_url = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(100), nullable=True)
    is_available = db.Column(db.Boolean, nullable=False, default=True)
    # NULL means unlimited; must not carry a column default
    stock_quantity = db.Column(db.Integer, nullable=True)

    created_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    creator = db.relationship("User", foreign_keys=[created_by])

    def has_stock_for(self, quantity: int) -> bool:
        if self.stock_quantity is None:
            return True
        return self.stock_quantity >= quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": money(self.price),
            "image_url": self.image_url,
            "category": self.category,
            "is_available": self.is_available,
            "stock_quantity": self.stock_quantity,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
