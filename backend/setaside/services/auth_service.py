# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Passwords are hashed with bcrypt (cost factor BCRYPT_SALT_ROUNDS, default 10).
Self-registration always creates a customer; staff accounts come from the
admin API or the `flask users create` command.

SECURITY NOTES:
- Password: 8-50 characters with upper-case, lower-case and a digit
- Unknown email and wrong password produce the same error
- Deactivated accounts are reported only after the password checks out
"""

import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User, ROLE_CUSTOMER, VALID_ROLES
from ..validation import PHONE_PATTERN
from setaside.errors import AuthenticationError, ConflictError, ValidationError
from .token_service import create_access_token

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

INVALID_CREDENTIALS = "Invalid email or password"


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email) -> str:
    if not isinstance(email, str) or not EMAIL_PATTERN.match(email.strip()):
        raise ValidationError("Please provide a valid email address")
    if len(email.strip()) > 255:
        raise ValidationError("email exceeds max length 255")
    return normalize_email(email)


def validate_password_strength(password) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - 8 to 50 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str):
        raise PasswordValidationError("Password must be a string")

    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if len(password) > 50:
        raise PasswordValidationError("Password must not exceed 50 characters")

    if not (re.search(r'[A-Z]', password) and re.search(r'[a-z]', password) and re.search(r'\d', password)):
        raise PasswordValidationError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )


def validate_full_name(full_name) -> str:
    if not isinstance(full_name, str) or not full_name.strip():
        raise ValidationError("Full name is required")
    full_name = full_name.strip()
    if len(full_name) < 2:
        raise ValidationError("Full name must be at least 2 characters")
    if len(full_name) > 100:
        raise ValidationError("Full name must not exceed 100 characters")
    return full_name


def validate_phone(phone) -> str | None:
    if phone is None or phone == "":
        return None
    if not isinstance(phone, str) or not PHONE_PATTERN.match(phone.strip()):
        raise ValidationError("Please provide a valid phone number")
    return phone.strip()


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with the configured cost factor.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = int(current_app.config.get("BCRYPT_SALT_ROUNDS", 10))
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including
    malformed hashes).
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def build_auth_response(user: User) -> dict:
    token = create_access_token(user)
    return {
        "access_token": token.access_token,
        "token_type": token.token_type,
        "expires_in": token.expires_in,
        "user": {
            "id": user.id,
            "email": user.email,
            "full_name": user.full_name,
            "role": user.role,
        },
    }


def email_exists(email: str) -> bool:
    return db.session.query(User.id).filter(User.email == normalize_email(email)).first() is not None


def create_user(
    email: str,
    password: str,
    full_name: str,
    phone: str | None = None,
    role: str = ROLE_CUSTOMER,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: If any field fails validation
        ConflictError: If the email is already registered
    """
    email = validate_email(email)
    full_name = validate_full_name(full_name)
    phone = validate_phone(phone)
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid user role '{role}'")
    validate_password_strength(password)

    if email_exists(email):
        raise ConflictError("Email already registered")

    # Hash password with bcrypt
    password_hash = hash_password(password)

    user = User(
        email=email,
        password_hash=password_hash,
        full_name=full_name,
        phone=phone,
        role=role,
    )

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.session.rollback()
        raise ConflictError("Email already registered")
    return user


def register(email: str, password: str, full_name: str, phone: str | None = None) -> dict:
    """Self-registration: always a customer, returns a token payload."""
    user = create_user(email, password, full_name, phone=phone, role=ROLE_CUSTOMER)
    current_app.logger.info("New user registered: %s", user.email)
    return build_auth_response(user)


def authenticate(email: str, password: str) -> User:
    """
    Authenticate user with email and password.

    Raises:
        AuthenticationError: Invalid credentials, or a deactivated account
    """
    if not isinstance(email, str) or not isinstance(password, str):
        raise AuthenticationError(INVALID_CREDENTIALS)

    user = db.session.query(User).filter(User.email == normalize_email(email)).first()

    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return user


def login(email: str, password: str) -> dict:
    user = authenticate(email, password)
    current_app.logger.info("User logged in: %s", user.email)
    return build_auth_response(user)
