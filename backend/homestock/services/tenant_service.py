"""
Multi-Tenant Service: Tenant Scoping Helpers

SECURITY INVARIANTS:
1. Every entity-addressed operation authorizes against the entity's derived home
2. IDs from client input (parent location, category, box, item, photo owner)
   are looked up inside the caller's home only
3. Lists are always filtered by home; item instances are filtered through
   their box, never through a stored home column
4. A foreign or missing reference inside an authorized home is NotFound;
   an unauthorized home is Unauthorized, whether it exists or not

USAGE:
    from homestock.services.tenant_service import load_for, require_in_home

    box, home_id = load_for(identity, Box, box_id, Capability.WRITE, lock=True)
    category = require_in_home(Category, category_id, home_id)
"""

from __future__ import annotations

from ..errors import NotFound
from ..extensions import db
from ..models import Box, ItemInstance
from ..validation import in_integer_range
from .authorization_service import Capability, require, require_for_entity
from .concurrency import lock_for_update
from .tenant_resolver import entity_type_of


def scoped_query(model, home_id: int):
    """
    Base query for a model restricted to one home.

    Models with a home_id column filter directly; item instances are
    joined through their box.
    """
    if model is ItemInstance:
        return (
            db.session.query(ItemInstance)
            .join(Box, Box.id == ItemInstance.box_id)
            .filter(Box.home_id == home_id)
        )
    return db.session.query(model).filter(model.home_id == home_id)


def require_in_home(model, entity_id: int, home_id: int, *, lock: bool = False):
    """
    Load an entity that must belong to the given home.

    SECURITY: rows of other homes are reported as missing; their existence
    is never revealed.

    Raises:
        NotFound if the row is absent or owned by another home
    """
    if not in_integer_range(entity_id):
        raise NotFound(f"{entity_type_of(model)} {entity_id} not found")
    query = scoped_query(model, home_id).filter(model.id == entity_id)
    if lock:
        query = lock_for_update(query)
    row = query.first()
    if row is None:
        raise NotFound(f"{entity_type_of(model)} {entity_id} not found")
    return row


def load_for(
    identity: str,
    model,
    entity_id: int,
    capability: Capability,
    *,
    home_id: int | None = None,
    lock: bool = False,
):
    """
    Authorize and load one entity; returns (row, home_id).

    With an explicit home_id the caller is checked on that home first, and a
    missing row is NotFound. Without it the home is derived from the entity
    itself (tenant_resolver) and an unresolvable entity is Unauthorized.
    """
    if home_id is None:
        home_id = require_for_entity(identity, entity_type_of(model), entity_id, capability)
    else:
        require(identity, home_id, capability)
    return require_in_home(model, entity_id, home_id, lock=lock), home_id
