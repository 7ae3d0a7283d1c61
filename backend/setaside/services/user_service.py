# Overview: Service-layer operations for user profiles and admin user management.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import User
from setaside.errors import NotFoundError

PROFILE_MUTABLE_FIELDS = {"full_name", "phone"}
ADMIN_MUTABLE_FIELDS = PROFILE_MUTABLE_FIELDS | {"role", "is_active"}


def page_meta(total: int, page: int, limit: int) -> dict:
    """Pagination block shared by every list endpoint."""
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": (total + limit - 1) // limit,
    }


def _apply_patch(user: User, patch: dict, allowed: set[str]) -> None:
    for k, v in patch.items():
        if k not in allowed:
            continue
        setattr(user, k, v)


def get_user(user_id: str) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_me(user_id: str, patch: dict) -> User:
    """Self-service profile edit (name and phone only)."""
    user = get_user(user_id)
    _apply_patch(user, patch, PROFILE_MUTABLE_FIELDS)
    db.session.commit()
    current_app.logger.info("User updated: %s", user_id)
    return user


def admin_update_user(user_id: str, patch: dict) -> User:
    """Admin edit: profile fields plus role and active flag."""
    user = get_user(user_id)
    _apply_patch(user, patch, ADMIN_MUTABLE_FIELDS)
    db.session.commit()
    current_app.logger.info("User updated by admin: %s", user_id)
    return user


def list_users(
    page: int = 1,
    limit: int = 10,
    role: str | None = None,
    search: str | None = None,
) -> dict:
    """
    Paginated user listing, newest first.

    search matches full name or email, case-insensitively.
    """
    query = db.session.query(User)

    if role:
        query = query.filter(User.role == role)

    if search:
        pattern = f"%{search}%"
        query = query.filter(db.or_(User.full_name.ilike(pattern), User.email.ilike(pattern)))

    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "data": [u.to_dict() for u in users],
        "meta": page_meta(total, page, limit),
    }
