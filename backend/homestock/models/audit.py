from __future__ import annotations

from ..extensions import db
from homestock.time_utils import to_utc_z, utcnow


class AuditRecord(db.Model):
    """
    Before/after snapshot of one mutation on an audited entity.

    MULTI-TENANT: home_id is the tenant resolved at mutation time. It is a
    plain column (no foreign key) so records are retained after the home is
    deleted. NULL only when the tenant could not be resolved.

    IMMUTABLE: Never update or delete. Written only by audit_service.
    """
    __tablename__ = "audit_records"
    __table_args__ = (
        db.Index("ix_audit_records_home_created", "home_id", "created_at"),
        db.Index("ix_audit_records_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    home_id = db.Column(db.Integer, nullable=True)
    identity = db.Column(db.String(128), nullable=True)  # NULL for system-originated writes

    action = db.Column(db.String(64), nullable=False)       # e.g. "UPDATE_item_instances"
    entity_type = db.Column(db.String(64), nullable=False)  # table name
    entity_id = db.Column(db.Integer, nullable=True)

    before_json = db.Column(db.JSON, nullable=True)
    after_json = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<AuditRecord id={self.id} action={self.action} entity_id={self.entity_id} home_id={self.home_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "home_id": self.home_id,
            "identity": self.identity,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "before": self.before_json,
            "after": self.after_json,
            "created_at": to_utc_z(self.created_at),
        }
