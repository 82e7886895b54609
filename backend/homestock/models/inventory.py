from __future__ import annotations

from ..extensions import db
from homestock.time_utils import to_utc_z, utcnow

LOCATION_TYPES = ("house", "room", "zone")

INSTANCE_STATUSES = ("ok", "to-repair", "to-give", "to-lend", "to-sell", "given-away")
DEFAULT_INSTANCE_STATUS = "ok"

PHOTO_OWNER_TYPES = ("item", "box", "invoice")


def name_key(name: str) -> str:
    """Case-insensitive comparison key for per-home unique names ("Câbles" == "câbles")."""
    return name.strip().casefold()


class Location(db.Model):
    """
    Physical place inside a home: house -> room -> zone.

    MULTI-TENANT: parent_id must point to a location of the same home.
    The parent chain is acyclic; deleting a location deletes its subtree.
    """
    __tablename__ = "locations"
    __table_args__ = (
        db.Index("ix_locations_home_parent", "home_id", "parent_id"),
        db.CheckConstraint("type in ('house', 'room', 'zone')", name="ck_locations_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    home_id = db.Column(db.Integer, db.ForeignKey("homes.id", ondelete="CASCADE"), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey("locations.id", ondelete="CASCADE"), nullable=True)
    name = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Location id={self.id} type={self.type} name={self.name!r} home_id={self.home_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "home_id": self.home_id,
            "type": self.type,
            "parent_id": self.parent_id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class Category(db.Model):
    """
    Item category. Names are unique per home, case-insensitively.

    name_key holds the case-folded name and carries the unique constraint,
    so the database closes duplicate-name races.
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("home_id", "name_key", name="uq_categories_home_name_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    home_id = db.Column(db.Integer, db.ForeignKey("homes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    name_key = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} home_id={self.home_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "home_id": self.home_id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class Box(db.Model):
    """
    Physical container, optionally placed at a location.

    SCAN TOKEN: scan_token is globally unique (not per home). It is printed
    on a label and scanned without any tenant context.
    """
    __tablename__ = "boxes"
    __table_args__ = (
        db.Index("ix_boxes_home_location", "home_id", "location_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    home_id = db.Column(db.Integer, db.ForeignKey("homes.id", ondelete="CASCADE"), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id", ondelete="SET NULL"), nullable=True)
    label = db.Column(db.String(255), nullable=False)
    scan_token = db.Column(db.String(255), nullable=False, unique=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Box id={self.id} label={self.label!r} home_id={self.home_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "home_id": self.home_id,
            "location_id": self.location_id,
            "label": self.label,
            "scan_token": self.scan_token,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class Item(db.Model):
    """
    The concept of an object ("HDMI cable"), independent of where copies sit.

    Names are unique per home, case-insensitively (see Category).
    """
    __tablename__ = "items"
    __table_args__ = (
        db.UniqueConstraint("home_id", "name_key", name="uq_items_home_name_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    home_id = db.Column(db.Integer, db.ForeignKey("homes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    name_key = db.Column(db.String(255), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} home_id={self.home_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "home_id": self.home_id,
            "name": self.name,
            "category_id": self.category_id,
            "created_at": to_utc_z(self.created_at),
        }


class ItemInstance(db.Model):
    """
    Physical placement of an item: where it is, how many, in what state.

    MULTI-TENANT: no home_id column. The tenant is always derived from the
    box (tenant_resolver), never stored here.

    updated_at is owned by the timestamp interceptor; writes to it from
    callers are overwritten on flush.
    """
    __tablename__ = "item_instances"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_item_instances_quantity"),
        db.Index("ix_item_instances_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    box_id = db.Column(db.Integer, db.ForeignKey("boxes.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    status = db.Column(db.String(16), nullable=False, default=DEFAULT_INSTANCE_STATUS)
    sale_price_estimated = db.Column(db.Numeric(12, 2), nullable=True)
    sale_notes = db.Column(db.Text, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<ItemInstance id={self.id} item_id={self.item_id} box_id={self.box_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "box_id": self.box_id,
            "quantity": self.quantity,
            "status": self.status,
            "sale_price_estimated": (
                str(self.sale_price_estimated) if self.sale_price_estimated is not None else None
            ),
            "sale_notes": self.sale_notes,
            "updated_at": to_utc_z(self.updated_at),
        }


class Photo(db.Model):
    """
    Locator for a photo stored elsewhere.

    owner_id is polymorphic (item, box or invoice) and therefore not a
    foreign key; box and item photos are removed with their owner.
    """
    __tablename__ = "photos"
    __table_args__ = (
        db.Index("ix_photos_owner", "home_id", "owner_type", "owner_id"),
        db.CheckConstraint("owner_type in ('item', 'box', 'invoice')", name="ck_photos_owner_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    home_id = db.Column(db.Integer, db.ForeignKey("homes.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_type = db.Column(db.String(16), nullable=False)
    owner_id = db.Column(db.Integer, nullable=False)
    storage_path = db.Column(db.String(1024), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "home_id": self.home_id,
            "owner_type": self.owner_type,
            "owner_id": self.owner_id,
            "storage_path": self.storage_path,
            "created_at": to_utc_z(self.created_at),
        }
