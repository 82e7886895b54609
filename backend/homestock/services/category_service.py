# Overview: Service-layer operations for categories.

from __future__ import annotations

from ..errors import DuplicateKey
from ..extensions import db
from ..models import Category, Item
from ..models.inventory import name_key
from ..validation import CATEGORY_POLICY, validate_payload
from .authorization_service import Capability, require
from .concurrency import flush_unique, unit_of_work
from .tenant_service import load_for, scoped_query


def _ensure_name_free(home_id: int, key: str, category_id: int | None = None) -> None:
    query = scoped_query(Category, home_id).filter(Category.name_key == key)
    if category_id is not None:
        query = query.filter(Category.id != category_id)
    if query.first() is not None:
        raise DuplicateKey("A category with this name already exists")


def create_category(identity: str, home_id: int, payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    key = name_key(patch["name"])

    with unit_of_work():
        require(identity, home_id, Capability.WRITE)
        _ensure_name_free(home_id, key)
        category = Category(home_id=home_id, name=patch["name"], name_key=key)
        db.session.add(category)
        flush_unique("A category with this name already exists")

    return category


def get_category(identity: str, category_id: int, *, home_id: int | None = None) -> Category:
    category, _ = load_for(identity, Category, category_id, Capability.READ, home_id=home_id)
    return category


def list_categories(identity: str, home_id: int) -> list[Category]:
    require(identity, home_id, Capability.READ)
    return scoped_query(Category, home_id).order_by(Category.name_key.asc()).all()


def update_category(identity: str, category_id: int, payload: dict, *, home_id: int | None = None) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)

    with unit_of_work():
        category, home_id = load_for(identity, Category, category_id, Capability.WRITE, home_id=home_id, lock=True)
        if "name" in patch:
            key = name_key(patch["name"])
            _ensure_name_free(home_id, key, category_id=category.id)
            category.name = patch["name"]
            category.name_key = key
        flush_unique("A category with this name already exists")

    return category


def delete_category(identity: str, category_id: int, *, home_id: int | None = None) -> None:
    """Delete a category; its items stay, uncategorized."""
    with unit_of_work():
        category, home_id = load_for(identity, Category, category_id, Capability.WRITE, home_id=home_id, lock=True)
        scoped_query(Item, home_id).filter(Item.category_id == category.id).update(
            {Item.category_id: None}
        )
        db.session.delete(category)
