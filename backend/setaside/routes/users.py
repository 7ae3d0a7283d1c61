# Overview: Flask API routes for user profiles and admin user management.

# backend/setaside/routes/users.py
"""
User routes.

- /users/me: any authenticated user; may edit only full_name and phone
- /users, /users/<id>: admin only; admins may also change role and is_active

Users are never deleted through the API; set is_active=false instead.
"""

from flask import Blueprint, request, jsonify, g

from ..models import User, ROLE_ADMIN, VALID_ROLES
from ..services import user_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_user_profile,
    parse_pagination,
)
from ..errors import ValidationError
from ..decorators import require_auth, require_roles

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"full_name", "phone"},
)

ADMIN_USER_POLICY = ModelValidationPolicy(
    writable_fields={"full_name", "phone", "role", "is_active"},
)

users_bp = Blueprint("users", __name__, url_prefix="/users")


@users_bp.get("/me")
@require_auth
def get_me():
    return jsonify(g.current_user.to_dict())


@users_bp.patch("/me")
@require_auth
def update_me():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=User, payload=payload, policy=PROFILE_POLICY, partial=True)
        enforce_rules_user_profile(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    user = user_service.update_me(g.current_user.id, patch)
    return jsonify(user.to_dict())


@users_bp.get("")
@require_auth
@require_roles(ROLE_ADMIN)
def list_users():
    """
    List users, newest first.

    Query params:
    - page, limit: pagination (defaults 1 / 10, limit max 100)
    - role: customer | cashier | admin
    - search: substring of full name or email
    """
    page, limit = parse_pagination(request.args)

    role = request.args.get("role") or None
    if role is not None and role not in VALID_ROLES:
        return {"error": f"role must be one of: {', '.join(VALID_ROLES)}"}, 400

    search = (request.args.get("search") or "").strip() or None

    return jsonify(user_service.list_users(page=page, limit=limit, role=role, search=search))


@users_bp.get("/<user_id>")
@require_auth
@require_roles(ROLE_ADMIN)
def get_user(user_id: str):
    return jsonify(user_service.get_user(user_id).to_dict())


@users_bp.patch("/<user_id>")
@require_auth
@require_roles(ROLE_ADMIN)
def update_user(user_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=User, payload=payload, policy=ADMIN_USER_POLICY, partial=True)
        enforce_rules_user_profile(patch)
        if "role" in patch and patch["role"] not in VALID_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")
    except ValidationError as e:
        return {"error": str(e)}, 400

    user = user_service.admin_update_user(user_id, patch)
    return jsonify(user.to_dict())
