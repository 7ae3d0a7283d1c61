from __future__ import annotations

import uuid

from ..extensions import db
from setaside.time_utils import to_utc_z, utcnow

ROLE_CUSTOMER = "customer"
ROLE_CASHIER = "cashier"
ROLE_ADMIN = "admin"

VALID_ROLES = (ROLE_CUSTOMER, ROLE_CASHIER, ROLE_ADMIN)
STAFF_ROLES = (ROLE_CASHIER, ROLE_ADMIN)


def new_uuid() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Email is unique and stored lower-cased. Users are never hard-deleted;
    deactivation (is_active=False) blocks login and invalidates tokens.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("role IN ('customer', 'cashier', 'admin')", name="ck_users_role"),
        db.Index("ix_users_role", "role"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.String(16), nullable=False, default=ROLE_CUSTOMER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def to_summary(self) -> dict:
        """Compact view embedded in order payloads."""
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
