"""
Entity graph tests: uniqueness, value rules, location forest and cascades.
"""

from decimal import Decimal

import pytest

from homestock.errors import ConstraintViolation, DuplicateKey, NotFound, Unauthorized
from homestock.extensions import db
from homestock.models import Box, Category, Home, Item, ItemInstance, Location, Membership, Photo
from homestock.services import (
    box_service,
    category_service,
    home_service,
    instance_service,
    item_service,
    location_service,
    photo_service,
)


# =============================================================================
# UNIQUENESS
# =============================================================================


class TestNames:

    def test_category_names_unique_case_insensitive(self, home_a):
        category_service.create_category("alice", home_a.id, {"name": "Câbles"})
        with pytest.raises(DuplicateKey):
            category_service.create_category("bob", home_a.id, {"name": "câbles"})

    def test_category_names_are_per_home(self, home_a, home_b):
        category_service.create_category("alice", home_a.id, {"name": "Câbles"})
        category = category_service.create_category("carol", home_b.id, {"name": "câbles"})
        assert category.name == "câbles"

    def test_category_rename_clash(self, home_a):
        category_service.create_category("alice", home_a.id, {"name": "Outils"})
        other = category_service.create_category("alice", home_a.id, {"name": "Jardin"})
        with pytest.raises(DuplicateKey):
            category_service.update_category("alice", other.id, {"name": " OUTILS "})

    def test_category_rename_same_name_other_case(self, home_a):
        category = category_service.create_category("alice", home_a.id, {"name": "outils"})
        assert category_service.update_category("alice", category.id, {"name": "Outils"}).name == "Outils"

    def test_item_names_unique_case_insensitive(self, home_a, item_a):
        with pytest.raises(DuplicateKey):
            item_service.create_item("alice", home_a.id, {"name": "câble hdmi"})


class TestScanTokens:

    def test_token_generated_when_missing(self, home_a):
        box = box_service.create_box("alice", home_a.id, {"label": "B2"})
        assert box.scan_token.startswith("box:")

    def test_tokens_are_globally_unique(self, home_b, box_a):
        with pytest.raises(DuplicateKey):
            box_service.create_box("carol", home_b.id, {"label": "copy", "scan_token": "box:1"})

    def test_token_change_clash(self, home_a, box_a):
        other = box_service.create_box("alice", home_a.id, {"label": "B2", "scan_token": "box:2"})
        with pytest.raises(DuplicateKey):
            box_service.update_box("alice", other.id, {"scan_token": "box:1"})


# =============================================================================
# VALUE RULES
# =============================================================================


class TestInstanceValues:

    def test_quantity_can_reach_zero(self, instance_a):
        instance_service.update_item_instance("alice", instance_a.id, {"quantity": 3})
        assert instance_service.update_item_instance("alice", instance_a.id, {"quantity": 0}).quantity == 0

    def test_negative_quantity_rejected(self, instance_a):
        with pytest.raises(ConstraintViolation):
            instance_service.update_item_instance("alice", instance_a.id, {"quantity": -1})

    @pytest.mark.parametrize("quantity", [1.5, "abc", True])
    def test_non_integer_quantity_rejected(self, instance_a, quantity):
        with pytest.raises(ConstraintViolation):
            instance_service.update_item_instance("alice", instance_a.id, {"quantity": quantity})

    def test_defaults(self, box_a, item_a):
        instance = instance_service.create_item_instance("bob", {"item_id": item_a.id, "box_id": box_a.id})
        assert instance.quantity == 1
        assert instance.status == "ok"

    @pytest.mark.parametrize("quantity", [2 ** 31, 2 ** 70, "99999999999999999999999"])
    def test_out_of_range_quantity_rejected(self, instance_a, quantity):
        with pytest.raises(ConstraintViolation):
            instance_service.update_item_instance("alice", instance_a.id, {"quantity": quantity})
        assert instance_service.get_item_instance("alice", instance_a.id).quantity == 5

    def test_out_of_range_box_reference_rejected(self, item_a):
        with pytest.raises(ConstraintViolation):
            instance_service.create_item_instance("alice", {"item_id": item_a.id, "box_id": 2 ** 70})

    def test_out_of_range_filter_rejected(self, home_a):
        with pytest.raises(ConstraintViolation):
            instance_service.list_item_instances("alice", home_a.id, box_id=2 ** 70)

    def test_unknown_status_rejected(self, instance_a):
        with pytest.raises(ConstraintViolation):
            instance_service.update_item_instance("alice", instance_a.id, {"status": "lost"})

    def test_sale_price(self, instance_a):
        updated = instance_service.update_item_instance(
            "alice", instance_a.id, {"status": "to-sell", "sale_price_estimated": "12.50"}
        )
        assert updated.sale_price_estimated == Decimal("12.50")
        assert updated.to_dict()["sale_price_estimated"] == "12.50"

    def test_negative_sale_price_rejected(self, instance_a):
        with pytest.raises(ConstraintViolation):
            instance_service.update_item_instance("alice", instance_a.id, {"sale_price_estimated": "-1"})

    def test_unknown_field_rejected(self, instance_a):
        with pytest.raises(ConstraintViolation):
            instance_service.update_item_instance("alice", instance_a.id, {"home_id": 1})

    def test_missing_required_fields(self, home_a, box_a):
        with pytest.raises(ConstraintViolation):
            instance_service.create_item_instance("alice", {"box_id": box_a.id})

    def test_filters(self, home_a, box_a, item_a, instance_a):
        instance_service.create_item_instance(
            "alice", {"item_id": item_a.id, "box_id": box_a.id, "status": "to-repair"}
        )
        repairs = instance_service.list_item_instances("bob", home_a.id, status="to-repair")
        assert len(repairs) == 1
        assert len(instance_service.list_item_instances("bob", home_a.id, box_id=box_a.id)) == 2


# =============================================================================
# LOCATIONS
# =============================================================================


class TestLocations:

    @pytest.fixture
    def tree(self, home_a):
        house = location_service.create_location("alice", home_a.id, {"type": "house", "name": "Maison"})
        room = location_service.create_location(
            "alice", home_a.id, {"type": "room", "name": "Garage", "parent_id": house.id}
        )
        zone = location_service.create_location(
            "alice", home_a.id, {"type": "zone", "name": "Étagère", "parent_id": room.id}
        )
        return house, room, zone

    def test_unknown_type_rejected(self, home_a):
        with pytest.raises(ConstraintViolation):
            location_service.create_location("alice", home_a.id, {"type": "floor", "name": "1er"})

    def test_cycle_rejected(self, tree):
        house, _, zone = tree
        with pytest.raises(ConstraintViolation):
            location_service.update_location("alice", house.id, {"parent_id": zone.id})

    def test_self_parent_rejected(self, tree):
        house, _, _ = tree
        with pytest.raises(ConstraintViolation):
            location_service.update_location("alice", house.id, {"parent_id": house.id})

    def test_parent_from_other_home_rejected(self, tree, home_b):
        house, _, _ = tree
        with pytest.raises(NotFound):
            location_service.create_location(
                "carol", home_b.id, {"type": "room", "name": "Cave", "parent_id": house.id}
            )

    def test_tree(self, home_a, tree):
        house, room, zone = tree
        forest = location_service.get_location_tree("bob", home_a.id)
        assert [n["id"] for n in forest] == [house.id]
        assert forest[0]["children"][0]["id"] == room.id
        assert forest[0]["children"][0]["children"][0]["id"] == zone.id

    def test_delete_subtree_keeps_boxes(self, home_a, tree, box_a):
        house, room, zone = tree
        box_service.update_box("alice", box_a.id, {"location_id": zone.id})

        assert location_service.delete_location("alice", room.id) == 2

        remaining = location_service.list_locations("alice", home_a.id)
        assert [loc.id for loc in remaining] == [house.id]
        assert box_service.get_box("alice", box_a.id).location_id is None

    def test_box_location_must_be_in_home(self, tree, home_b):
        house, _, _ = tree
        with pytest.raises(NotFound):
            box_service.create_box("carol", home_b.id, {"label": "X", "location_id": house.id})


# =============================================================================
# CASCADES
# =============================================================================


class TestCascades:

    def test_item_delete_removes_instances_and_photos(self, home_a, item_a, instance_a):
        photo_service.create_photo(
            "alice", home_a.id, {"owner_type": "item", "owner_id": item_a.id, "storage_path": "p/1.jpg"}
        )
        item_service.delete_item("alice", item_a.id)

        assert db.session.get(ItemInstance, instance_a.id) is None
        assert db.session.query(Photo).filter_by(owner_type="item", owner_id=item_a.id).count() == 0

    def test_category_delete_uncategorizes_items(self, home_a):
        category = category_service.create_category("alice", home_a.id, {"name": "Câbles"})
        item = item_service.create_item("alice", home_a.id, {"name": "USB-C", "category_id": category.id})

        category_service.delete_category("alice", category.id)

        assert db.session.get(Category, category.id) is None
        assert item_service.get_item("alice", item.id).category_id is None

    def test_box_delete_removes_box_photos(self, home_a, box_a):
        photo_service.create_photo(
            "alice", home_a.id, {"owner_type": "box", "owner_id": box_a.id, "storage_path": "p/b.jpg"}
        )
        box_service.delete_box("alice", box_a.id)
        assert db.session.query(Photo).filter_by(owner_type="box", owner_id=box_a.id).count() == 0

    def test_home_delete_removes_everything(self, home_a, home_b, box_a, box_b, instance_a):
        location_service.create_location("alice", home_a.id, {"type": "house", "name": "Maison"})
        category_service.create_category("alice", home_a.id, {"name": "Câbles"})
        photo_service.create_photo(
            "alice", home_a.id, {"owner_type": "invoice", "owner_id": 1, "storage_path": "p/i.pdf"}
        )
        home_id = home_a.id

        home_service.delete_home("alice", home_id)

        assert db.session.get(Home, home_id) is None
        for model in (Location, Category, Box, Item, Photo, Membership):
            assert db.session.query(model).filter_by(home_id=home_id).count() == 0
        assert db.session.query(ItemInstance).count() == 0
        assert box_service.get_box("carol", box_b.id).id == box_b.id

    def test_deleted_home_is_unauthorized(self, home_a):
        home_id = home_a.id
        home_service.delete_home("alice", home_id)
        with pytest.raises(Unauthorized):
            home_service.get_home("alice", home_id)


class TestPhotos:

    def test_owner_must_be_in_home(self, home_b, item_a):
        with pytest.raises(NotFound):
            photo_service.create_photo(
                "carol", home_b.id, {"owner_type": "item", "owner_id": item_a.id, "storage_path": "x.jpg"}
            )

    def test_unknown_owner_type(self, home_a):
        with pytest.raises(ConstraintViolation):
            photo_service.create_photo(
                "alice", home_a.id, {"owner_type": "room", "owner_id": 1, "storage_path": "x.jpg"}
            )

    def test_list_by_owner(self, home_a, item_a, box_a):
        photo_service.create_photo(
            "alice", home_a.id, {"owner_type": "item", "owner_id": item_a.id, "storage_path": "a.jpg"}
        )
        photo_service.create_photo(
            "alice", home_a.id, {"owner_type": "box", "owner_id": box_a.id, "storage_path": "b.jpg"}
        )
        photos = photo_service.list_photos("bob", home_a.id, owner_type="box")
        assert [p.storage_path for p in photos] == ["b.jpg"]
