# Overview: Service-layer operations for items (the concept of an object).

from __future__ import annotations

from ..errors import DuplicateKey
from ..extensions import db
from ..models import Category, Item, ItemInstance, Photo
from ..models.inventory import name_key
from ..validation import ITEM_POLICY, validate_filter_id, validate_payload
from .audit_service import DELETE, audited
from .authorization_service import Capability, require
from .concurrency import flush_unique, unit_of_work
from .tenant_service import load_for, require_in_home, scoped_query


def _ensure_name_free(home_id: int, key: str, item_id: int | None = None) -> None:
    query = scoped_query(Item, home_id).filter(Item.name_key == key)
    if item_id is not None:
        query = query.filter(Item.id != item_id)
    if query.first() is not None:
        raise DuplicateKey("An item with this name already exists")


def _check_references(patch: dict, home_id: int) -> None:
    if patch.get("category_id") is not None:
        require_in_home(Category, patch["category_id"], home_id)


def create_item(identity: str, home_id: int, payload: dict) -> Item:
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
    key = name_key(patch["name"])

    with unit_of_work():
        require(identity, home_id, Capability.WRITE)
        _check_references(patch, home_id)
        _ensure_name_free(home_id, key)
        item = Item(home_id=home_id, name_key=key, **patch)
        db.session.add(item)
        flush_unique("An item with this name already exists")

    return item


def get_item(identity: str, item_id: int, *, home_id: int | None = None) -> Item:
    item, _ = load_for(identity, Item, item_id, Capability.READ, home_id=home_id)
    return item


def list_items(identity: str, home_id: int, *, category_id: int | None = None) -> list[Item]:
    validate_filter_id("category_id", category_id)
    require(identity, home_id, Capability.READ)
    query = scoped_query(Item, home_id)
    if category_id is not None:
        query = query.filter(Item.category_id == category_id)
    return query.order_by(Item.name_key.asc()).all()


def update_item(identity: str, item_id: int, payload: dict, *, home_id: int | None = None) -> Item:
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)

    with unit_of_work():
        item, home_id = load_for(identity, Item, item_id, Capability.WRITE, home_id=home_id, lock=True)
        _check_references(patch, home_id)
        if "name" in patch:
            key = name_key(patch["name"])
            _ensure_name_free(home_id, key, item_id=item.id)
            item.name_key = key
        for field, value in patch.items():
            setattr(item, field, value)
        flush_unique("An item with this name already exists")

    return item


def delete_item(identity: str, item_id: int, *, home_id: int | None = None) -> None:
    with unit_of_work():
        item, _ = load_for(identity, Item, item_id, Capability.WRITE, home_id=home_id, lock=True)
        remove_item(identity, item)


def remove_item(identity: str | None, item: Item) -> None:
    """
    Delete a loaded item inside the caller's unit of work.

    Its instances are deleted first, each audited; item photos go with it.
    """
    instances = db.session.query(ItemInstance).filter_by(item_id=item.id).order_by(ItemInstance.id).all()
    for instance in instances:
        with audited(identity, DELETE, instance):
            db.session.delete(instance)

    db.session.query(Photo).filter_by(home_id=item.home_id, owner_type="item", owner_id=item.id).delete()
    db.session.delete(item)
