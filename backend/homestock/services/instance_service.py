# Overview: Service-layer operations for item instances; audited and timestamped.

"""
Item Instance Service

MULTI-TENANT: instances store no home. Every check derives the home from
the box (tenant_resolver), and the item must belong to that same home. An
instance can move between boxes of its home only.

AUDIT: inserts, updates and deletes each produce one audit record in the
same unit of work. updated_at is stamped by the timestamp interceptor;
values supplied by callers are dropped.
"""

from __future__ import annotations

from sqlalchemy.orm.attributes import flag_modified

from ..errors import ConstraintViolation
from ..extensions import db
from ..models import Box, Item, ItemInstance
from ..models.inventory import INSTANCE_STATUSES
from ..validation import ITEM_INSTANCE_POLICY, enforce_rules_item_instance, validate_filter_id, validate_payload
from .audit_service import DELETE, INSERT, UPDATE, audited
from .authorization_service import Capability, require, require_for_entity
from .concurrency import unit_of_work
from .tenant_service import load_for, require_in_home, scoped_query


def create_item_instance(identity: str, payload: dict, *, home_id: int | None = None) -> ItemInstance:
    patch = validate_payload(model=ItemInstance, payload=payload, policy=ITEM_INSTANCE_POLICY, partial=False)
    enforce_rules_item_instance(patch)

    with unit_of_work():
        if home_id is None:
            home_id = require_for_entity(identity, "boxes", patch["box_id"], Capability.WRITE)
        else:
            require(identity, home_id, Capability.WRITE)
        require_in_home(Box, patch["box_id"], home_id, lock=True)
        require_in_home(Item, patch["item_id"], home_id)

        instance = ItemInstance(**patch)
        with audited(identity, INSERT, instance):
            db.session.add(instance)

    return instance


def get_item_instance(identity: str, instance_id: int, *, home_id: int | None = None) -> ItemInstance:
    instance, _ = load_for(identity, ItemInstance, instance_id, Capability.READ, home_id=home_id)
    return instance


def list_item_instances(
    identity: str,
    home_id: int,
    *,
    box_id: int | None = None,
    item_id: int | None = None,
    status: str | None = None,
) -> list[ItemInstance]:
    validate_filter_id("box_id", box_id)
    validate_filter_id("item_id", item_id)
    require(identity, home_id, Capability.READ)
    if status is not None and status not in INSTANCE_STATUSES:
        raise ConstraintViolation(f"status must be one of: {', '.join(INSTANCE_STATUSES)}")

    query = scoped_query(ItemInstance, home_id)
    if box_id is not None:
        query = query.filter(ItemInstance.box_id == box_id)
    if item_id is not None:
        query = query.filter(ItemInstance.item_id == item_id)
    if status is not None:
        query = query.filter(ItemInstance.status == status)
    return query.order_by(ItemInstance.id.asc()).all()


def update_item_instance(
    identity: str,
    instance_id: int,
    payload: dict,
    *,
    home_id: int | None = None,
) -> ItemInstance:
    patch = validate_payload(model=ItemInstance, payload=payload, policy=ITEM_INSTANCE_POLICY, partial=True)
    enforce_rules_item_instance(patch)

    with unit_of_work():
        instance, home_id = load_for(
            identity, ItemInstance, instance_id, Capability.WRITE, home_id=home_id, lock=True
        )
        if "box_id" in patch:
            require_in_home(Box, patch["box_id"], home_id, lock=True)
        if "item_id" in patch:
            require_in_home(Item, patch["item_id"], home_id)

        with audited(identity, UPDATE, instance):
            for key, value in patch.items():
                setattr(instance, key, value)
            # An update without field changes still counts as a write
            flag_modified(instance, "updated_at")

    return instance


def delete_item_instance(identity: str, instance_id: int, *, home_id: int | None = None) -> None:
    with unit_of_work():
        instance, _ = load_for(
            identity, ItemInstance, instance_id, Capability.WRITE, home_id=home_id, lock=True
        )
        with audited(identity, DELETE, instance):
            db.session.delete(instance)
