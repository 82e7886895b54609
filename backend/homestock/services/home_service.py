# Overview: Service-layer operations for homes and memberships (the tenancy store).

"""
Tenancy Store

BOOTSTRAP: create_home inserts the home and an admin membership for the
creator in one unit of work, so a home is never left without an admin.

MEMBERSHIP RULES:
- Insert: only for oneself (self-service join). The joined role is member;
  admin is granted on join only when the home has no memberships at all.
- Update / delete: admin only.
- The last admin of a home can be neither demoted nor removed.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConstraintViolation, NotFound, Unauthorized
from ..extensions import db
from ..models import Box, Category, Home, Item, Location, Membership, Photo
from ..models.tenancy import ROLE_ADMIN, ROLE_MEMBER
from ..validation import HOME_POLICY, in_integer_range, validate_payload, validate_role
from . import box_service, item_service
from .authorization_service import (
    Capability,
    can_create_home,
    can_create_membership,
    require,
)
from .concurrency import flush_unique, lock_for_update, unit_of_work


def create_home(identity: str, name: str) -> Home:
    if not can_create_home(identity):
        raise Unauthorized("An identity is required to create a home")
    patch = validate_payload(model=Home, payload={"name": name}, policy=HOME_POLICY, partial=False)

    with unit_of_work():
        home = Home(**patch)
        db.session.add(home)
        db.session.flush()
        db.session.add(Membership(home_id=home.id, identity=identity, role=ROLE_ADMIN))

    current_app.logger.info("Home %s created by %r", home.id, identity)
    return home


def get_home(identity: str, home_id: int) -> Home:
    require(identity, home_id, Capability.READ)
    home = db.session.get(Home, home_id)
    if home is None:
        raise NotFound("Home not found")
    return home


def list_homes(identity: str) -> list[Home]:
    """Homes the identity is a member of."""
    return (
        db.session.query(Home)
        .join(Membership, Membership.home_id == Home.id)
        .filter(Membership.identity == identity)
        .order_by(Home.name.asc(), Home.id.asc())
        .all()
    )


def update_home(identity: str, home_id: int, payload: dict) -> Home:
    patch = validate_payload(model=Home, payload=payload, policy=HOME_POLICY, partial=True)
    with unit_of_work():
        require(identity, home_id, Capability.ADMIN)
        home = lock_for_update(db.session.query(Home).filter_by(id=home_id)).first()
        if home is None:
            raise NotFound("Home not found")
        for key, value in patch.items():
            setattr(home, key, value)
    return home


def delete_home(identity: str, home_id: int) -> None:
    """
    Delete a home and everything it owns.

    Boxes and items go through their services so every removed box and item
    instance leaves an audit record. Audit records themselves are retained.
    """
    with unit_of_work():
        require(identity, home_id, Capability.ADMIN)
        home = lock_for_update(db.session.query(Home).filter_by(id=home_id)).first()
        if home is None:
            raise NotFound("Home not found")

        for box in db.session.query(Box).filter_by(home_id=home_id).order_by(Box.id).all():
            box_service.remove_box(identity, box)
        for item in db.session.query(Item).filter_by(home_id=home_id).order_by(Item.id).all():
            item_service.remove_item(identity, item)

        db.session.query(Photo).filter_by(home_id=home_id).delete()
        db.session.query(Location).filter_by(home_id=home_id).delete()
        db.session.query(Category).filter_by(home_id=home_id).delete()
        db.session.query(Membership).filter_by(home_id=home_id).delete()
        db.session.delete(home)

    current_app.logger.info("Home %s deleted by %r", home_id, identity)


# -----------------------------------------------------------------------------
# Memberships
# -----------------------------------------------------------------------------

def _existing_membership(home_id: int, identity: str) -> Membership | None:
    return db.session.query(Membership).filter_by(home_id=home_id, identity=identity).first()


def add_membership(identity: str, home_id: int, member_identity: str, role: str = ROLE_MEMBER) -> Membership:
    """
    Insert a membership row. Only ever for the calling identity.

    SECURITY: the home's existence is not revealed to non-members; joining an
    unknown home is Unauthorized, like joining on behalf of someone else.
    """
    role = validate_role(role)
    if not can_create_membership(identity, member_identity):
        raise Unauthorized("Memberships can only be created for oneself")

    with unit_of_work():
        home = db.session.get(Home, home_id) if in_integer_range(home_id) else None
        if home is None:
            raise Unauthorized("Memberships can only be created for oneself")

        existing = _existing_membership(home_id, identity)
        if existing is not None:
            return existing

        if role == ROLE_ADMIN:
            has_members = db.session.query(Membership.id).filter_by(home_id=home_id).first() is not None
            if has_members:
                raise Unauthorized("Admin role cannot be self-assigned")

        membership = Membership(home_id=home_id, identity=identity, role=role)
        db.session.add(membership)
        # Concurrent joins of the same identity meet on uq_memberships_home_identity
        flush_unique("Membership already exists")

    return membership


def join_home(identity: str, home_id: int) -> Membership:
    return add_membership(identity, home_id, identity, ROLE_MEMBER)


def list_memberships(identity: str, home_id: int) -> list[Membership]:
    require(identity, home_id, Capability.READ)
    return (
        db.session.query(Membership)
        .filter_by(home_id=home_id)
        .order_by(Membership.created_at.asc(), Membership.id.asc())
        .all()
    )


def _load_membership(home_id: int, membership_id: int) -> Membership:
    if not in_integer_range(membership_id):
        raise NotFound("Membership not found")
    membership = lock_for_update(
        db.session.query(Membership).filter_by(id=membership_id, home_id=home_id)
    ).first()
    if membership is None:
        raise NotFound("Membership not found")
    return membership


def _ensure_other_admin(home_id: int, membership: Membership) -> None:
    if membership.role != ROLE_ADMIN:
        return
    other_admins = (
        db.session.query(Membership.id)
        .filter(
            Membership.home_id == home_id,
            Membership.role == ROLE_ADMIN,
            Membership.id != membership.id,
        )
        .count()
    )
    if other_admins == 0:
        raise ConstraintViolation("A home must keep at least one admin")


def update_membership_role(identity: str, home_id: int, membership_id: int, role: str) -> Membership:
    role = validate_role(role)
    with unit_of_work():
        require(identity, home_id, Capability.ADMIN)
        membership = _load_membership(home_id, membership_id)
        if role != ROLE_ADMIN:
            _ensure_other_admin(home_id, membership)
        membership.role = role
    return membership


def delete_membership(identity: str, home_id: int, membership_id: int) -> None:
    with unit_of_work():
        require(identity, home_id, Capability.ADMIN)
        membership = _load_membership(home_id, membership_id)
        _ensure_other_admin(home_id, membership)
        db.session.delete(membership)
