# Overview: Derives the owning home of any entity, walking relations where no home_id is stored.

"""
Tenant Resolver

Every entity below the tenant root resolves to exactly one home. Entities
with a home_id column answer directly; others hop to a parent entity and
resolve that (an item instance resolves through its box).

INVARIANTS:
1. resolve_tenant("item_instances", i) == resolve_tenant("boxes", box_id(i)),
   always read from current rows, never cached
2. A new entity type attached below a home registers here, as a direct
   tenant column or as a hop to its parent, instead of duplicating home_id
3. A missing parent is a DanglingReference, even under FK integrity

USAGE:
    home_id = resolve_tenant("item_instances", instance_id)
    home_id = resolve_tenant_for_state("item_instances", {"box_id": 3, ...})
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..errors import DanglingReference, NotFound
from ..extensions import db
from ..models import Box, Category, Home, Item, ItemInstance, Location, Membership, Photo
from ..validation import in_integer_range


@dataclass(frozen=True)
class DirectTenant:
    """Entity stores its home in `column`."""
    model: Any
    column: str = "home_id"


@dataclass(frozen=True)
class ParentTenant:
    """Entity inherits its home from the entity referenced by `foreign_key`."""
    model: Any
    foreign_key: str
    parent_type: str


TENANT_RULES: dict[str, DirectTenant | ParentTenant] = {
    "homes": DirectTenant(Home, column="id"),
    "memberships": DirectTenant(Membership),
    "locations": DirectTenant(Location),
    "categories": DirectTenant(Category),
    "boxes": DirectTenant(Box),
    "items": DirectTenant(Item),
    "photos": DirectTenant(Photo),
    "item_instances": ParentTenant(ItemInstance, foreign_key="box_id", parent_type="boxes"),
}


def entity_type_of(model) -> str:
    return model.__tablename__


def _rule(entity_type: str) -> DirectTenant | ParentTenant:
    rule = TENANT_RULES.get(entity_type)
    if rule is None:
        raise ValueError(f"No tenant rule registered for entity type '{entity_type}'")
    return rule


def resolve_tenant(entity_type: str, entity_id: int | None) -> int:
    """
    Return the home id owning the given entity.

    Raises:
        NotFound if the entity itself does not exist
        DanglingReference if a parent needed for resolution does not exist
    """
    rule = _rule(entity_type)
    if not in_integer_range(entity_id):
        raise NotFound(f"{entity_type} not found")

    row = db.session.get(rule.model, entity_id)
    if row is None:
        raise NotFound(f"{entity_type} {entity_id} not found")

    if isinstance(rule, DirectTenant):
        return getattr(row, rule.column)
    return _resolve_parent(rule, getattr(row, rule.foreign_key))


def resolve_tenant_for_state(entity_type: str, state: dict) -> int:
    """
    Resolve the home from a row snapshot instead of a stored row.

    Used for rows that are about to disappear (deletes) or whose parent
    reference just changed: the snapshot's own references are followed.
    """
    rule = _rule(entity_type)
    if isinstance(rule, DirectTenant):
        home_id = state.get(rule.column)
        if home_id is None:
            raise DanglingReference(f"{entity_type} snapshot carries no {rule.column}")
        return home_id
    return _resolve_parent(rule, state.get(rule.foreign_key))


def _resolve_parent(rule: ParentTenant, parent_id: int | None) -> int:
    try:
        return resolve_tenant(rule.parent_type, parent_id)
    except NotFound as exc:
        raise DanglingReference(
            f"{rule.foreign_key}={parent_id} does not resolve to a {rule.parent_type} row"
        ) from exc
