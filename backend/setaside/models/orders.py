from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from .users import new_uuid
from .products import money
from setaside.time_utils import to_utc_z, utcnow


class Order(db.Model):
    """
    Customer pickup order.

    Status follows pending -> preparing -> ready -> picked_up.
    total_amount is derived: it always equals the sum of its items' subtotals
    and is only written by the aggregate recompute in order_item_service.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint("total_amount >= 0", name="ck_orders_total_nonnegative"),
        db.CheckConstraint(
            "status IN ('pending', 'preparing', 'ready', 'picked_up')",
            name="ck_orders_status",
        ),
        db.Index("ix_orders_customer_id", "customer_id"),
        db.Index("ix_orders_status", "status"),
        db.Index("ix_orders_created_at", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    customer_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0"))
    notes = db.Column(db.Text, nullable=True)
    pickup_time = db.Column(db.DateTime(timezone=True), nullable=True)

    # Staff member who last moved the order through the status flow
    prepared_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("User", foreign_keys=[customer_id])
    preparer = db.relationship("User", foreign_keys=[prepared_by])
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.created_at",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "status": self.status,
            "total_amount": money(self.total_amount),
            "notes": self.notes,
            "pickup_time": to_utc_z(self.pickup_time),
            "prepared_by": self.prepared_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_detail_dict(self, include_preparer: bool = True) -> dict:
        """Order joined with customer, items (+ product) and preparer."""
        data = self.to_dict()
        data["customer"] = self.customer.to_summary() if self.customer else None
        data["items"] = [item.to_dict(include_product=True) for item in self.items]
        if include_preparer:
            data["preparer"] = self.preparer.to_summary() if self.preparer else None
        return data


class OrderItem(db.Model):
    """
    One product line within an order.

    At most one row per (order, product). unit_price is pinned when the row
    is first created; subtotal is always quantity * unit_price.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.UniqueConstraint("order_id", "product_id", name="uq_order_items_order_product"),
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        db.CheckConstraint("unit_price >= 0", name="ck_order_items_unit_price_nonnegative"),
        db.Index("ix_order_items_order_id", "order_id"),
        db.Index("ix_order_items_product_id", "product_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    special_instructions = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def set_quantity(self, quantity: int) -> None:
        """Set quantity and recompute subtotal from the pinned unit price."""
        self.quantity = quantity
        self.subtotal = Decimal(quantity) * Decimal(self.unit_price)

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": money(self.unit_price),
            "subtotal": money(self.subtotal),
            "special_instructions": self.special_instructions,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data
