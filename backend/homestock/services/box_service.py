# Overview: Service-layer operations for boxes; every write is audited.

from __future__ import annotations

import uuid

from ..errors import DuplicateKey, Unauthorized
from ..extensions import db
from ..models import Box, ItemInstance, Location, Photo
from ..validation import BOX_POLICY, validate_filter_id, validate_payload
from .audit_service import DELETE, INSERT, UPDATE, audited
from .authorization_service import Capability, require
from .concurrency import flush_unique, unit_of_work
from .tenant_service import load_for, require_in_home, scoped_query


SCAN_TOKEN_PREFIX = "box:"


def generate_scan_token() -> str:
    return f"{SCAN_TOKEN_PREFIX}{uuid.uuid4()}"


def _ensure_token_free(scan_token: str, box_id: int | None = None) -> None:
    # Global check: tokens are scanned without tenant context
    query = db.session.query(Box.id).filter(Box.scan_token == scan_token)
    if box_id is not None:
        query = query.filter(Box.id != box_id)
    if query.first() is not None:
        raise DuplicateKey(f"Scan token '{scan_token}' is already in use")


def _check_references(patch: dict, home_id: int) -> None:
    if patch.get("location_id") is not None:
        require_in_home(Location, patch["location_id"], home_id)


def create_box(identity: str, home_id: int, payload: dict) -> Box:
    patch = validate_payload(model=Box, payload=payload, policy=BOX_POLICY, partial=False)
    if not patch.get("scan_token"):
        patch["scan_token"] = generate_scan_token()

    with unit_of_work():
        require(identity, home_id, Capability.WRITE)
        _check_references(patch, home_id)
        _ensure_token_free(patch["scan_token"])

        box = Box(home_id=home_id, **patch)
        with audited(identity, INSERT, box):
            db.session.add(box)
            flush_unique(f"Scan token '{patch['scan_token']}' is already in use")

    return box


def get_box(identity: str, box_id: int, *, home_id: int | None = None) -> Box:
    box, _ = load_for(identity, Box, box_id, Capability.READ, home_id=home_id)
    return box


def list_boxes(identity: str, home_id: int, *, location_id: int | None = None) -> list[Box]:
    validate_filter_id("location_id", location_id)
    require(identity, home_id, Capability.READ)
    query = scoped_query(Box, home_id)
    if location_id is not None:
        query = query.filter(Box.location_id == location_id)
    return query.order_by(Box.label.asc(), Box.id.asc()).all()


def lookup_box_by_token(identity: str, scan_token: str) -> Box:
    """
    Find a box from its scanned token.

    SECURITY: the token carries no tenant. An unknown token and a token of a
    home the caller does not belong to are both Unauthorized.
    """
    box = db.session.query(Box).filter_by(scan_token=(scan_token or "").strip()).first()
    if box is None:
        raise Unauthorized("Permission denied: read")
    require(identity, box.home_id, Capability.READ)
    return box


def update_box(identity: str, box_id: int, payload: dict, *, home_id: int | None = None) -> Box:
    patch = validate_payload(model=Box, payload=payload, policy=BOX_POLICY, partial=True)

    with unit_of_work():
        box, home_id = load_for(identity, Box, box_id, Capability.WRITE, home_id=home_id, lock=True)
        _check_references(patch, home_id)
        if "scan_token" in patch:
            _ensure_token_free(patch["scan_token"], box_id=box.id)

        with audited(identity, UPDATE, box):
            for key, value in patch.items():
                setattr(box, key, value)
            flush_unique("Scan token is already in use")

    return box


def delete_box(identity: str, box_id: int, *, home_id: int | None = None) -> None:
    with unit_of_work():
        box, _ = load_for(identity, Box, box_id, Capability.WRITE, home_id=home_id, lock=True)
        remove_box(identity, box)


def remove_box(identity: str | None, box: Box) -> None:
    """
    Delete a loaded box with its contents, inside the caller's unit of work.

    Item instances are deleted one by one while the box still exists, so
    each leaves an audit record tagged with the box's home. Box photos go
    with the box.
    """
    instances = db.session.query(ItemInstance).filter_by(box_id=box.id).order_by(ItemInstance.id).all()
    for instance in instances:
        with audited(identity, DELETE, instance):
            db.session.delete(instance)

    db.session.query(Photo).filter_by(home_id=box.home_id, owner_type="box", owner_id=box.id).delete()

    with audited(identity, DELETE, box):
        db.session.delete(box)


def clear_location(identity: str | None, home_id: int, location_ids: list[int]) -> int:
    """Unset the location of boxes placed in removed locations; each change is audited."""
    if not location_ids:
        return 0
    boxes = (
        scoped_query(Box, home_id)
        .filter(Box.location_id.in_(location_ids))
        .order_by(Box.id)
        .all()
    )
    for box in boxes:
        with audited(identity, UPDATE, box):
            box.location_id = None
    return len(boxes)
