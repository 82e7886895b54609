from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Integer, Numeric, String, Text

from .errors import ConstraintViolation
from .models.inventory import INSTANCE_STATUSES, LOCATION_TYPES, PHOTO_OWNER_TYPES
from .models.tenancy import ROLES

# Integer columns are 32-bit on Postgres and MySQL; SQLite accepts a superset
INTEGER_MIN = -(2 ** 31)
INTEGER_MAX = 2 ** 31 - 1


def in_integer_range(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and INTEGER_MIN <= value <= INTEGER_MAX


def validate_filter_id(key: str, value: int | None) -> int | None:
    """Query-string ids (box_id, owner_id, ...) must fit a database integer."""
    if value is not None and not in_integer_range(value):
        raise ConstraintViolation(f"{key} is out of range")
    return value


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required on create
    - ignored_fields: accepted but dropped (server-owned values such as updated_at)
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()
    ignored_fields: frozenset[str] = field(default_factory=frozenset)


HOME_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name"}),
    required_on_create=frozenset({"name"}),
)

LOCATION_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"type", "parent_id", "name"}),
    required_on_create=frozenset({"type", "name"}),
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name"}),
    required_on_create=frozenset({"name"}),
)

BOX_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"location_id", "label", "scan_token", "notes"}),
    required_on_create=frozenset({"label"}),
)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "category_id"}),
    required_on_create=frozenset({"name"}),
)

ITEM_INSTANCE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"item_id", "box_id", "quantity", "status", "sale_price_estimated", "sale_notes"}),
    required_on_create=frozenset({"item_id", "box_id"}),
    # Caller-supplied timestamps are always ignored
    ignored_fields=frozenset({"updated_at"}),
)

PHOTO_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"owner_type", "owner_id", "storage_path"}),
    required_on_create=frozenset({"owner_type", "owner_id", "storage_path"}),
)


def _columns_by_key(model) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - reject floats, booleans, decimal strings and out-of-range values
    if isinstance(coltype, Integer):
        number = None
        if isinstance(value, int) and not isinstance(value, bool):
            number = value
        elif isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()):
            number = int(value.strip())
        if number is None:
            raise ConstraintViolation(f"{col.key} must be an integer")
        if not in_integer_range(number):
            raise ConstraintViolation(f"{col.key} is out of range")
        return number

    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ConstraintViolation(f"{col.key} must be a number")
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise ConstraintViolation(f"{col.key} must be a number")
        if not number.is_finite():
            raise ConstraintViolation(f"{col.key} must be a finite number")
        return number

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model,
    payload: dict | None,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes an incoming payload against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - the policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ConstraintViolation("Invalid payload")

    payload = {k: v for k, v in payload.items() if k not in policy.ignored_fields}

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ConstraintViolation(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ConstraintViolation(f"Field not allowed: {k}")
        if k not in cols:
            raise ConstraintViolation(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ConstraintViolation(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ConstraintViolation(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ConstraintViolation(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _require_choice(patch: dict, key: str, choices) -> None:
    if key in patch and patch[key] not in choices:
        raise ConstraintViolation(f"{key} must be one of: {', '.join(choices)}")


def enforce_rules_location(patch: dict) -> None:
    _require_choice(patch, "type", LOCATION_TYPES)


def enforce_rules_item_instance(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    quantity 0 is allowed (nothing left in the box); negative is not.
    """
    if "quantity" in patch and patch["quantity"] < 0:
        raise ConstraintViolation("quantity must be >= 0")
    _require_choice(patch, "status", INSTANCE_STATUSES)
    price = patch.get("sale_price_estimated")
    if price is not None and price < 0:
        raise ConstraintViolation("sale_price_estimated must be >= 0")


def enforce_rules_photo(patch: dict) -> None:
    _require_choice(patch, "owner_type", PHOTO_OWNER_TYPES)


def validate_role(role: Any) -> str:
    if role not in ROLES:
        raise ConstraintViolation(f"role must be one of: {', '.join(ROLES)}")
    return role
