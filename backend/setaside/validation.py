# Overview: Request payload validation driven by model column metadata plus per-entity rules.

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text

from setaside.errors import ValidationError
from setaside.time_utils import as_naive_utc, parse_iso_datetime

DEFAULT_PAGE_SIZE = 10
MAX_INTEGER = 2_147_483_647
MAX_ITEM_QUANTITY = 9999
# Largest value a Numeric(10, 2) money column holds
MAX_MONEY_AMOUNT = Decimal("99999999.99")
MAX_PAGE_SIZE = 100

PHONE_PATTERN = re.compile(r"^[\+]?[(]?[0-9]{3}[)]?[-\s\.]?[0-9]{3}[-\s\.]?[0-9]{4,6}$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    What a client may send for one model on one route.

    writable_fields is the allowlist (anything else is rejected, so
    server-owned columns like status or total_amount can never be set);
    required_on_create only applies when validating with partial=False.
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _coerce_int(key: str, value: Any) -> int:
    # bool is an int subclass; JSON true/false is never a quantity
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
        return int(value.strip())
    raise ValidationError(f"{key} must be an integer")


def _coerce_decimal(key: str, value: Any, scale: int) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(f"{key} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    if amount.as_tuple().exponent < -scale:
        raise ValidationError(f"{key} must have at most {scale} decimal places")
    return amount


def _coerce_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean")
    return value


def _coerce_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return as_naive_utc(value)
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be an ISO-8601 datetime")
    try:
        parsed = parse_iso_datetime(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")
    return parsed


def _coerce_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip()


def _coercer_for(col) -> Callable[[str, Any], Any]:
    coltype = col.type
    if isinstance(coltype, Boolean):
        return _coerce_bool
    if isinstance(coltype, Integer):
        return _coerce_int
    if isinstance(coltype, Numeric):
        scale = coltype.scale or 0
        return lambda key, value: _coerce_decimal(key, value, scale)
    if isinstance(coltype, DateTime):
        return _coerce_datetime
    if isinstance(coltype, (String, Text)):
        return _coerce_str
    return lambda key, value: value


def validate_payload(
    *,
    model,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Turn a JSON body into a clean patch dict for `model`.

    Checks, in order: body is an object; required fields present (create
    only, partial=False); every key is on the allowlist and is a real column;
    each value matches its column (type, nullability, blank text, String
    length). Strings come back stripped, money as Decimal, datetimes as
    naive UTC.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(policy.required_on_create - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}

    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    patch: dict = {}
    for key, raw in payload.items():
        col = columns[key]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        value = _coercer_for(col)(key, raw)

        if isinstance(value, str):
            if value == "" and not col.nullable:
                raise ValidationError(f"{key} cannot be blank")
            max_length = getattr(col.type, "length", None)
            if max_length and len(value) > max_length:
                raise ValidationError(f"{key} exceeds max length {max_length}")

        patch[key] = value

    return patch


def require_uuid(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a UUID")
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise ValidationError(f"{field} must be a UUID")


def enforce_rules_product(patch: dict) -> None:
    """Catalog rules beyond column metadata: name length, non-negative price and stock."""
    if "name" in patch and patch["name"] is not None and len(patch["name"]) < 2:
        raise ValidationError("Name must be at least 2 characters")

    if "price" in patch and patch["price"] is not None and patch["price"] < 0:
        raise ValidationError("Price must be greater than or equal to 0")
    if "price" in patch and patch["price"] is not None and patch["price"] > MAX_MONEY_AMOUNT:
        raise ValidationError(f"Price cannot exceed {MAX_MONEY_AMOUNT}")

    # stock_quantity may be null (unlimited) but never negative
    if "stock_quantity" in patch and patch["stock_quantity"] is not None:
        if patch["stock_quantity"] < 0:
            raise ValidationError("Stock quantity must be greater than or equal to 0")
        if patch["stock_quantity"] > MAX_INTEGER:
            raise ValidationError(f"Stock quantity cannot exceed {MAX_INTEGER}")


def enforce_rules_order_item(patch: dict) -> None:
    if "quantity" in patch:
        if patch["quantity"] is None or patch["quantity"] < 1:
            raise ValidationError("quantity must be at least 1")
        if patch["quantity"] > MAX_ITEM_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_ITEM_QUANTITY}")


def enforce_rules_user_profile(patch: dict) -> None:
    if "full_name" in patch:
        name = patch["full_name"]
        if len(name) < 2:
            raise ValidationError("Full name must be at least 2 characters")
        if len(name) > 100:
            raise ValidationError("Full name must not exceed 100 characters")

    phone = patch.get("phone")
    if phone and not PHONE_PATTERN.match(phone):
        raise ValidationError("Please provide a valid phone number")


def parse_pagination(args) -> tuple[int, int]:
    """Read page/limit query params (defaults 1 / 10, limit capped at 100)."""
    page = _parse_positive_int(args.get("page"), "page", default=1)
    limit = _parse_positive_int(args.get("limit"), "limit", default=DEFAULT_PAGE_SIZE)
    if limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit cannot exceed {MAX_PAGE_SIZE}")
    return page, limit


def _parse_positive_int(raw: str | None, field: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{field} must be an integer")
    if value < 1:
        raise ValidationError(f"{field} must be >= 1")
    return value


def parse_bool_arg(raw: str | None, field: str) -> bool | None:
    if raw is None or raw == "":
        return None
    lowered = raw.strip().lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise ValidationError(f"{field} must be true or false")
