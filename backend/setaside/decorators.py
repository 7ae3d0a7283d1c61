# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import token_service
from .errors import AuthenticationError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user to the stored, active User the token belongs to.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, tampered or expired token
    - User missing or deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        try:
            user = token_service.resolve_user(token)
        except AuthenticationError as e:
            return jsonify({"error": e.message}), 401

        g.current_user = user

        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles: str):
    """
    Restrict a route to an explicit set of roles.

    Must be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.current_user.role not in roles:
                return jsonify({
                    "error": f"Access denied. Required roles: {', '.join(roles)}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
