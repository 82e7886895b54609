# Overview: Service-layer operations for authorization; allow/deny decisions against current memberships.

"""
Authorization Evaluator with Multi-Tenant Support

authorize(identity, home_id, capability) answers ALLOW or DENY by reading the
caller's membership in that home, inside the caller's unit of work.

CAPABILITIES:
- READ / WRITE: any member of the home
- ADMIN: members whose role is admin

DESIGN PRINCIPLES:
- Fail closed: unknown identity, unknown home, or no membership -> DENY
- No caching: membership can change between calls, so every check re-reads
- Identity is an explicit argument; there is no ambient "current user"
- Log denials only

SPECIAL RULES (not a plain member/admin split):
- Home creation: any identity (can_create_home)
- Membership creation: only for oneself (can_create_membership)
- Membership update/delete, home update/delete: ADMIN
- Audit records: READ only; there is no write capability for them
- Item instances: checked against the home of their box (tenant_resolver)
"""

from __future__ import annotations

import enum

from flask import current_app

from ..errors import DanglingReference, NotFound, Unauthorized
from ..extensions import db
from ..models import Membership
from ..models.tenancy import ROLE_ADMIN
from ..validation import in_integer_range
from .concurrency import lock_for_update
from . import tenant_resolver


class Capability(enum.Enum):
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"

    def __bool__(self) -> bool:
        return self is Decision.ALLOW


def _valid_identity(identity: str | None) -> bool:
    return isinstance(identity, str) and bool(identity.strip())


def get_membership(identity: str, home_id: int, *, lock: bool = False) -> Membership | None:
    query = db.session.query(Membership).filter_by(home_id=home_id, identity=identity)
    if lock:
        # Shared lock: a concurrent revocation cannot land under a stale ALLOW
        query = lock_for_update(query, read=True)
    return query.first()


def authorize(identity: str | None, home_id: int | None, capability: Capability) -> Decision:
    """
    Evaluate one capability for one identity in one home.

    Write-class checks take a shared lock on the membership row so the
    decision holds until the surrounding unit of work ends.
    """
    if not _valid_identity(identity) or not in_integer_range(home_id):
        return Decision.DENY

    membership = get_membership(identity, home_id, lock=capability is not Capability.READ)
    if membership is None:
        return Decision.DENY

    if capability is Capability.ADMIN and membership.role != ROLE_ADMIN:
        return Decision.DENY

    return Decision.ALLOW


def require(identity: str | None, home_id: int | None, capability: Capability) -> None:
    """
    Require a capability, raise Unauthorized if it is denied.

    Usage:
        require(identity, home_id, Capability.WRITE)
    """
    if authorize(identity, home_id, capability) is Decision.DENY:
        _log_denial(identity, capability.value, f"home_id={home_id}")
        raise Unauthorized(f"Permission denied: {capability.value}")


def require_for_entity(identity: str | None, entity_type: str, entity_id: int, capability: Capability) -> int:
    """
    Derive the entity's home and require a capability there.

    SECURITY: an entity that does not exist, or whose tenant cannot be
    derived, is reported exactly like a foreign one so probing ids reveals
    nothing. Returns the resolved home id.
    """
    try:
        home_id = tenant_resolver.resolve_tenant(entity_type, entity_id)
    except (NotFound, DanglingReference):
        _log_denial(identity, capability.value, f"{entity_type} {entity_id} unresolved")
        raise Unauthorized(f"Permission denied: {capability.value}")

    require(identity, home_id, capability)
    return home_id


def can_create_home(identity: str | None) -> bool:
    """Any identified caller may create a home."""
    return _valid_identity(identity)


def can_create_membership(identity: str | None, member_identity: str | None) -> bool:
    """Self-service join only: a membership row may be inserted for oneself, never for another identity."""
    return _valid_identity(identity) and identity == member_identity


def _log_denial(identity: str | None, action: str, reason: str) -> None:
    current_app.logger.warning(
        "Authorization denied identity=%r action=%s %s", identity, action, reason
    )
