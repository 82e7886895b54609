# Overview: Service-layer operations for locations; an acyclic forest per home.

from __future__ import annotations

from ..errors import ConstraintViolation
from ..extensions import db
from ..models import Location
from ..validation import LOCATION_POLICY, enforce_rules_location, validate_filter_id, validate_payload
from . import box_service
from .authorization_service import Capability, require
from .concurrency import unit_of_work
from .tenant_service import load_for, require_in_home, scoped_query


def _check_parent(parent_id: int | None, home_id: int, location_id: int | None = None) -> None:
    """
    Parent must live in the same home and must not be the location itself
    or one of its descendants.
    """
    if parent_id is None:
        return
    parent = require_in_home(Location, parent_id, home_id)
    if location_id is None:
        return

    node = parent
    seen: set[int] = set()
    while node is not None:
        if node.id == location_id:
            raise ConstraintViolation("A location cannot be placed inside itself or its descendants")
        if node.id in seen:
            raise ConstraintViolation("Location tree contains a cycle")
        seen.add(node.id)
        node = db.session.get(Location, node.parent_id) if node.parent_id is not None else None


def create_location(identity: str, home_id: int, payload: dict) -> Location:
    patch = validate_payload(model=Location, payload=payload, policy=LOCATION_POLICY, partial=False)
    enforce_rules_location(patch)

    with unit_of_work():
        require(identity, home_id, Capability.WRITE)
        _check_parent(patch.get("parent_id"), home_id)
        location = Location(home_id=home_id, **patch)
        db.session.add(location)

    return location


def get_location(identity: str, location_id: int, *, home_id: int | None = None) -> Location:
    location, _ = load_for(identity, Location, location_id, Capability.READ, home_id=home_id)
    return location


def list_locations(identity: str, home_id: int, *, parent_id: int | None = None) -> list[Location]:
    validate_filter_id("parent_id", parent_id)
    require(identity, home_id, Capability.READ)
    query = scoped_query(Location, home_id)
    if parent_id is not None:
        query = query.filter(Location.parent_id == parent_id)
    return query.order_by(Location.name.asc(), Location.id.asc()).all()


def get_location_tree(identity: str, home_id: int) -> list[dict]:
    """
    Nested forest of a home's locations:
    [{...location, "children": [...]}, ...] sorted by name at every level.
    """
    locations = list_locations(identity, home_id)
    nodes = {loc.id: {**loc.to_dict(), "children": []} for loc in locations}
    roots: list[dict] = []
    for loc in locations:
        node = nodes[loc.id]
        if loc.parent_id is not None and loc.parent_id in nodes:
            nodes[loc.parent_id]["children"].append(node)
        else:
            roots.append(node)
    return roots


def update_location(identity: str, location_id: int, payload: dict, *, home_id: int | None = None) -> Location:
    patch = validate_payload(model=Location, payload=payload, policy=LOCATION_POLICY, partial=True)
    enforce_rules_location(patch)

    with unit_of_work():
        location, home_id = load_for(identity, Location, location_id, Capability.WRITE, home_id=home_id, lock=True)
        if "parent_id" in patch:
            _check_parent(patch["parent_id"], home_id, location_id=location.id)
        for key, value in patch.items():
            setattr(location, key, value)

    return location


def _subtree_ids(home_id: int, root_id: int) -> list[int]:
    ids = [root_id]
    frontier = [root_id]
    while frontier:
        children = (
            db.session.query(Location.id)
            .filter(Location.home_id == home_id, Location.parent_id.in_(frontier))
            .all()
        )
        frontier = [row.id for row in children if row.id not in ids]
        ids.extend(frontier)
    return ids


def delete_location(identity: str, location_id: int, *, home_id: int | None = None) -> int:
    """
    Delete a location and its whole subtree.

    Boxes placed anywhere in the subtree stay, with their location cleared
    (audited as box updates). Returns the number of deleted locations.
    """
    with unit_of_work():
        location, home_id = load_for(identity, Location, location_id, Capability.WRITE, home_id=home_id, lock=True)
        ids = _subtree_ids(home_id, location.id)
        box_service.clear_location(identity, home_id, ids)
        db.session.query(Location).filter(
            Location.home_id == home_id, Location.id.in_(ids)
        ).delete()

    return len(ids)
