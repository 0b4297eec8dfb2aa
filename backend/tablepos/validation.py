from __future__ import annotations
from datetime import date, datetime
from tablepos.time_utils import parse_iso_datetime, parse_iso_date, parse_range_bound

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, Date, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999
MAX_LINE_QUANTITY = 10_000


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer, one per entity:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST

    The validated patch only contains keys the caller actually sent, so a
    missing key means "leave unchanged" and a key mapped to None means
    "set to null".
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # DateTime is checked before Date: both are distinct SQLAlchemy types
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            if d is None:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            return d
        raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_money(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        value = patch[field]
        if value < 0:
            raise ValidationError(f"{field} must be >= 0")
        if value > MAX_PRICE_CENTS:
            raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_money(patch, "price_cents")


def enforce_rules_stock(patch: dict) -> None:
    if "quantity" in patch and patch["quantity"] is not None and patch["quantity"] < 0:
        raise ValidationError("Quantity cannot be negative")
    if "alert_threshold" in patch and patch["alert_threshold"] is not None and patch["alert_threshold"] < 0:
        raise ValidationError("alert_threshold must be >= 0")
    _check_money(patch, "price_cents")


def enforce_rules_expense(patch: dict) -> None:
    if "amount_cents" in patch:
        if patch["amount_cents"] is None or patch["amount_cents"] <= 0:
            raise ValidationError("amount_cents must be > 0")
    _check_money(patch, "amount_cents")


def enforce_rules_order_item(patch: dict) -> None:
    if "quantity" in patch:
        validate_quantity(patch["quantity"])
    _check_money(patch, "unit_price_cents")


def validate_quantity(value: Any, field: str = "quantity") -> int:
    """Line quantities are positive integers."""
    if value is None:
        raise ValidationError(f"{field} is required")
    quantity = coerce_int(value, field)
    if quantity <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    if quantity > MAX_LINE_QUANTITY:
        raise ValidationError(f"{field} cannot exceed {MAX_LINE_QUANTITY}")
    return quantity


def validate_line_requests(payload: dict | None) -> list[dict]:
    """
    Validate a cart body {"items": [{"product_id": int, "quantity": int}, ...]}.

    Prices are never read from the request; they are resolved server-side.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if "product_id" not in item:
            raise ValidationError(f"items[{index}].product_id is required")
        lines.append({
            "product_id": coerce_int(item["product_id"], f"items[{index}].product_id"),
            "quantity": validate_quantity(item.get("quantity"), f"items[{index}].quantity"),
        })
    return lines


def parse_range_args(args) -> tuple[datetime | None, datetime | None]:
    """
    Read dateFrom/dateTo query params into UTC-naive bounds.

    A bare date covers the whole business-local day.
    """
    bounds = []
    for key, end in (("dateFrom", False), ("dateTo", True)):
        raw = args.get(key)
        try:
            bounds.append(parse_range_bound(raw, end=end))
        except ValueError:
            raise ValidationError(f"{key} must be an ISO-8601 date or datetime")
    return bounds[0], bounds[1]


def optional_int_arg(args, key: str) -> int | None:
    raw = args.get(key)
    if raw is None or raw == "":
        return None
    return coerce_int(raw, key)
