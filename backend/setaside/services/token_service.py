# Overview: Service-layer operations for bearer tokens; issues and verifies signed JWTs.

"""
Bearer Token Service

Tokens are HS256 JWTs signed with JWT_SECRET and carry:
- sub:   user id
- email: user email at issue time
- role:  user role at issue time
- iat / exp

A token is only as good as the user behind it: resolve_user() reloads the
subject and rejects missing or deactivated accounts, so role changes and
deactivation take effect on the next request.
"""

import re
from dataclasses import dataclass
from datetime import timedelta

import jwt
from flask import current_app

from ..extensions import db
from ..models import User
from setaside.errors import AuthenticationError
from setaside.time_utils import utcnow

JWT_ALGORITHM = "HS256"
DEFAULT_EXPIRES_IN_SECONDS = 7 * 24 * 3600

_DURATION_UNITS = {"d": 86400, "h": 3600, "m": 60, "s": 1}


@dataclass
class IssuedToken:
    access_token: str
    expires_in: int
    token_type: str = "Bearer"


def parse_expires_in(value: str | None) -> int:
    """
    Parse a duration such as "7d", "24h", "60m" or "30s" into seconds.

    Anything unparsable falls back to 7 days.
    """
    match = re.fullmatch(r"(\d+)([dhms])", (value or "").strip())
    if not match:
        return DEFAULT_EXPIRES_IN_SECONDS
    return int(match.group(1)) * _DURATION_UNITS[match.group(2)]


def create_access_token(user: User) -> IssuedToken:
    """Sign a token for `user` using the configured secret and lifetime."""
    expires_in = parse_expires_in(current_app.config.get("JWT_EXPIRES_IN"))
    now = utcnow()
    payload = {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    token = jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=JWT_ALGORITHM)
    return IssuedToken(access_token=token, expires_in=expires_in)


def decode_token(token: str) -> dict:
    """
    Verify signature and expiry.

    Raises:
        AuthenticationError: If the token is malformed, tampered or expired
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid or expired token")
    return payload


def resolve_user(token: str) -> User:
    """
    Return the active user a bearer token belongs to.

    Raises:
        AuthenticationError: If the token is invalid or the user is missing/inactive
    """
    payload = decode_token(token)
    user = db.session.get(User, str(payload["sub"]))
    if user is None or not user.is_active:
        raise AuthenticationError("Invalid or expired token")
    return user
