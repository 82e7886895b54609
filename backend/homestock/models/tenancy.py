from __future__ import annotations

from ..extensions import db
from homestock.time_utils import to_utc_z

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
ROLES = (ROLE_ADMIN, ROLE_MEMBER)


class Home(db.Model):
    """
    Multi-tenant root: every tenant is a Home.

    DESIGN:
    - Homes are the tenant boundary
    - Locations, categories, boxes, items and photos carry home_id directly
    - Item instances carry no home_id; their tenant is the tenant of their box
    - Audit records keep home_id as a plain value so they outlive the home
    """
    __tablename__ = "homes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Home id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class Membership(db.Model):
    """
    Grants an identity a role inside one home.

    Identities are opaque strings supplied by an upstream identity provider.
    One row per (home, identity).
    """
    __tablename__ = "memberships"
    __table_args__ = (
        db.UniqueConstraint("home_id", "identity", name="uq_memberships_home_identity"),
        db.CheckConstraint("role in ('admin', 'member')", name="ck_memberships_role"),
        db.Index("ix_memberships_identity", "identity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    home_id = db.Column(
        db.Integer,
        db.ForeignKey("homes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    identity = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=ROLE_MEMBER)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    home = db.relationship("Home", backref=db.backref("memberships", lazy=True, passive_deletes=True))

    def __repr__(self) -> str:
        return f"<Membership home_id={self.home_id} identity={self.identity!r} role={self.role}>"

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "home_id": self.home_id,
            "identity": self.identity,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
        }
