# Overview: Service-layer operations for photo locators; bytes live in external storage.

from __future__ import annotations

from ..extensions import db
from ..models import Box, Item, Photo
from ..validation import PHOTO_POLICY, enforce_rules_photo, validate_filter_id, validate_payload
from .authorization_service import Capability, require
from .concurrency import unit_of_work
from .tenant_service import load_for, require_in_home, scoped_query


# Owner types backed by a table in this home; invoices are external references.
OWNER_MODELS = {
    "item": Item,
    "box": Box,
}


def _check_owner(owner_type: str, owner_id: int, home_id: int) -> None:
    model = OWNER_MODELS.get(owner_type)
    if model is not None:
        require_in_home(model, owner_id, home_id)


def create_photo(identity: str, home_id: int, payload: dict) -> Photo:
    patch = validate_payload(model=Photo, payload=payload, policy=PHOTO_POLICY, partial=False)
    enforce_rules_photo(patch)

    with unit_of_work():
        require(identity, home_id, Capability.WRITE)
        _check_owner(patch["owner_type"], patch["owner_id"], home_id)
        photo = Photo(home_id=home_id, **patch)
        db.session.add(photo)

    return photo


def get_photo(identity: str, photo_id: int, *, home_id: int | None = None) -> Photo:
    photo, _ = load_for(identity, Photo, photo_id, Capability.READ, home_id=home_id)
    return photo


def list_photos(
    identity: str,
    home_id: int,
    *,
    owner_type: str | None = None,
    owner_id: int | None = None,
) -> list[Photo]:
    validate_filter_id("owner_id", owner_id)
    require(identity, home_id, Capability.READ)
    query = scoped_query(Photo, home_id)
    if owner_type is not None:
        enforce_rules_photo({"owner_type": owner_type})
        query = query.filter(Photo.owner_type == owner_type)
    if owner_id is not None:
        query = query.filter(Photo.owner_id == owner_id)
    return query.order_by(Photo.id.asc()).all()


def update_photo(identity: str, photo_id: int, payload: dict, *, home_id: int | None = None) -> Photo:
    patch = validate_payload(model=Photo, payload=payload, policy=PHOTO_POLICY, partial=True)
    enforce_rules_photo(patch)

    with unit_of_work():
        photo, home_id = load_for(identity, Photo, photo_id, Capability.WRITE, home_id=home_id, lock=True)
        if "owner_type" in patch or "owner_id" in patch:
            _check_owner(
                patch.get("owner_type", photo.owner_type),
                patch.get("owner_id", photo.owner_id),
                home_id,
            )
        for key, value in patch.items():
            setattr(photo, key, value)

    return photo


def delete_photo(identity: str, photo_id: int, *, home_id: int | None = None) -> None:
    with unit_of_work():
        photo, _ = load_for(identity, Photo, photo_id, Capability.WRITE, home_id=home_id, lock=True)
        db.session.delete(photo)
