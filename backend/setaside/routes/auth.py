# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/setaside/routes/auth.py
"""
Authentication API routes

- POST /auth/register: self-registration, always creates a customer
- POST /auth/login:    email + password, returns a bearer token
- GET  /auth/me:       the authenticated user's profile

Unknown email and wrong password produce the same 401 so the API does not
reveal which emails are registered.
"""

from flask import Blueprint, request, jsonify, g

from ..services import auth_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

REGISTER_FIELDS = {"email", "password", "full_name", "phone", "role"}


@auth_bp.post("/register")
def register_route():
    """
    Register a new customer account.

    Any `role` in the payload is ignored.

    Returns 201 with {access_token, token_type, expires_in, user}.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    unknown = sorted(k for k in data if k not in REGISTER_FIELDS)
    if unknown:
        return jsonify({"error": f"Field not allowed: {unknown[0]}"}), 400

    missing = sorted(k for k in ("email", "password", "full_name") if not data.get(k))
    if missing:
        return jsonify({"error": f"Missing required fields: {', '.join(missing)}"}), 400

    result = auth_service.register(
        email=data["email"],
        password=data["password"],
        full_name=data["full_name"],
        phone=data.get("phone"),
    )
    return jsonify(result), 201


@auth_bp.post("/login")
def login_route():
    """Authenticate with email and password and return a bearer token."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    return jsonify(auth_service.login(email, password))


@auth_bp.get("/me")
@require_auth
def me_route():
    """Return the authenticated user (never includes the password hash)."""
    return jsonify(g.current_user.to_dict())
