# Overview: Audit interceptor; records before/after images of box and item-instance mutations.

"""
Audit Interceptor

Every insert, update and delete of an audited entity runs inside
``audited(...)``. The block captures the pre-image, lets the caller mutate,
flushes, captures the post-image and adds exactly one AuditRecord to the
same session. The record commits with the mutation or not at all.

RECORD SHAPE:
- action       "<OPERATION>_<entity_type>", e.g. "UPDATE_item_instances"
- before_json  prior row (UPDATE, DELETE), else NULL
- after_json   new row (INSERT, UPDATE), else NULL
- home_id      tenant resolved from the new row (old row on DELETE)

FAILURE SEMANTICS:
The interceptor never rejects a mutation. If the tenant cannot be resolved
(e.g. the referenced box is already gone) the record is still written, with
home_id NULL, and a warning is logged.

USAGE:
    with audited(identity, UPDATE, box):
        box.label = "BOX 014"
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any

from flask import current_app

from ..errors import ConstraintViolation, DanglingReference, NotFound
from ..extensions import db
from ..models import AuditRecord
from ..validation import validate_filter_id
from .authorization_service import Capability, require
from . import tenant_resolver


INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
OPERATIONS = (INSERT, UPDATE, DELETE)

AUDITED_ENTITY_TYPES = {"boxes", "item_instances"}


def action_label(operation: str, entity_type: str) -> str:
    return f"{operation}_{entity_type}"


def _snapshot(row) -> dict[str, Any]:
    return row.to_dict()


def _resolve_home(entity_type: str, before: dict | None, after: dict | None) -> int | None:
    state = after if after is not None else before
    try:
        return tenant_resolver.resolve_tenant_for_state(entity_type, state)
    except (DanglingReference, NotFound) as exc:
        current_app.logger.warning(
            "Audit tenant unresolved for %s id=%s: %s; recording with NULL home",
            entity_type, state.get("id"), exc,
        )
        return None


def record(
    *,
    identity: str | None,
    operation: str,
    entity_type: str,
    before: dict | None,
    after: dict | None,
) -> AuditRecord:
    """
    Add one audit record to the current session (no commit).

    The caller's unit of work decides whether it lands.
    """
    if operation not in OPERATIONS:
        raise ValueError(f"Unknown audit operation '{operation}'")

    state = after if after is not None else before
    entry = AuditRecord(
        home_id=_resolve_home(entity_type, before, after),
        identity=identity,
        action=action_label(operation, entity_type),
        entity_type=entity_type,
        entity_id=state.get("id") if state else None,
        before_json=before if operation in (UPDATE, DELETE) else None,
        after_json=after if operation in (INSERT, UPDATE) else None,
    )
    db.session.add(entry)
    return entry


@contextmanager
def audited(identity: str | None, operation: str, row):
    """
    Wrap one mutation of an audited row.

    INSERT: pass the new (already added) row; its post-image is taken after flush.
    UPDATE: pass the loaded row; mutate it inside the block.
    DELETE: pass the loaded row; delete it inside the block.
    """
    entity_type = row.__tablename__
    if entity_type not in AUDITED_ENTITY_TYPES:
        raise ValueError(f"{entity_type} is not an audited entity type")

    before = _snapshot(row) if operation in (UPDATE, DELETE) else None
    yield row
    # Flush so database defaults, generated ids and the timestamp
    # interceptor are reflected in the post-image.
    db.session.flush()
    after = _snapshot(row) if operation in (INSERT, UPDATE) else None
    record(identity=identity, operation=operation, entity_type=entity_type, before=before, after=after)


def list_audit_records(
    identity: str,
    home_id: int,
    *,
    entity_type: str | None = None,
    entity_id: int | None = None,
    limit: int | None = None,
) -> list[AuditRecord]:
    """
    Audit records of a home, newest first.

    Members may read; there is no write path besides the interceptor.
    """
    validate_filter_id("entity_id", entity_id)
    require(identity, home_id, Capability.READ)

    if limit is None:
        limit = current_app.config.get("AUDIT_DEFAULT_LIMIT", 100)
    max_limit = current_app.config.get("AUDIT_MAX_LIMIT", 500)
    if limit < 1 or limit > max_limit:
        raise ConstraintViolation(f"limit must be between 1 and {max_limit}")

    query = db.session.query(AuditRecord).filter_by(home_id=home_id)
    if entity_type is not None:
        query = query.filter_by(entity_type=entity_type)
    if entity_id is not None:
        query = query.filter_by(entity_id=entity_id)

    return query.order_by(AuditRecord.created_at.desc(), AuditRecord.id.desc()).limit(limit).all()
