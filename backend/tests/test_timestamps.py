"""
Timestamp interceptor tests.

updated_at on item instances is server-owned: every update sets it to the
current time, whatever the caller supplied.
"""

from datetime import datetime, timedelta

from homestock.extensions import db
from homestock.models import ItemInstance
from homestock.services import instance_service


class TestUpdatedAt:

    def test_set_on_insert(self, instance_a):
        assert instance_a.updated_at is not None

    def test_update_advances_timestamp(self, instance_a):
        first = instance_a.updated_at
        updated = instance_service.update_item_instance("alice", instance_a.id, {"quantity": 3})
        assert updated.updated_at > first

    def test_update_without_changes_still_stamps(self, instance_a):
        first = instance_a.updated_at
        updated = instance_service.update_item_instance("alice", instance_a.id, {})
        assert updated.updated_at > first

    def test_caller_supplied_value_is_ignored(self, instance_a):
        forged = "2001-01-01T00:00:00Z"
        updated = instance_service.update_item_instance(
            "alice", instance_a.id, {"quantity": 4, "updated_at": forged}
        )
        assert updated.updated_at.year != 2001
        assert updated.to_dict()["updated_at"] != forged

    def test_caller_supplied_value_ignored_on_create(self, box_a, item_a):
        instance = instance_service.create_item_instance(
            "alice",
            {"item_id": item_a.id, "box_id": box_a.id, "updated_at": "2001-01-01T00:00:00Z"},
        )
        assert instance.updated_at.year != 2001

    def test_direct_orm_assignment_is_overwritten(self, db_session, instance_a):
        instance = db_session.get(ItemInstance, instance_a.id)
        instance.quantity = 9
        instance.updated_at = datetime(2001, 1, 1)
        db_session.commit()

        db.session.expire_all()
        stored = db_session.get(ItemInstance, instance_a.id)
        assert stored.quantity == 9
        assert stored.updated_at > datetime(2001, 1, 1) + timedelta(days=365)
