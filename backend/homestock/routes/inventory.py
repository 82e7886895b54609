# Overview: Flask API routes for locations, categories, items and photos of one home.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_identity
from ..services import category_service, item_service, location_service, photo_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/homes/<int:home_id>")


def _payload() -> dict:
    return request.get_json(silent=True) or {}


# -----------------------------------------------------------------------------
# Locations
# -----------------------------------------------------------------------------

@inventory_bp.get("/locations")
@require_identity
def list_locations(home_id: int):
    locations = location_service.list_locations(
        g.identity, home_id, parent_id=request.args.get("parent_id", type=int)
    )
    return jsonify([loc.to_dict() for loc in locations]), 200


@inventory_bp.get("/locations/tree")
@require_identity
def get_location_tree(home_id: int):
    return jsonify(location_service.get_location_tree(g.identity, home_id)), 200


@inventory_bp.post("/locations")
@require_identity
def create_location(home_id: int):
    location = location_service.create_location(g.identity, home_id, _payload())
    return jsonify(location.to_dict()), 201


@inventory_bp.get("/locations/<int:location_id>")
@require_identity
def get_location(home_id: int, location_id: int):
    location = location_service.get_location(g.identity, location_id, home_id=home_id)
    return jsonify(location.to_dict()), 200


@inventory_bp.patch("/locations/<int:location_id>")
@require_identity
def update_location(home_id: int, location_id: int):
    location = location_service.update_location(g.identity, location_id, _payload(), home_id=home_id)
    return jsonify(location.to_dict()), 200


@inventory_bp.delete("/locations/<int:location_id>")
@require_identity
def delete_location(home_id: int, location_id: int):
    deleted = location_service.delete_location(g.identity, location_id, home_id=home_id)
    return jsonify({"deleted": deleted}), 200


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------

@inventory_bp.get("/categories")
@require_identity
def list_categories(home_id: int):
    categories = category_service.list_categories(g.identity, home_id)
    return jsonify([c.to_dict() for c in categories]), 200


@inventory_bp.post("/categories")
@require_identity
def create_category(home_id: int):
    category = category_service.create_category(g.identity, home_id, _payload())
    return jsonify(category.to_dict()), 201


@inventory_bp.patch("/categories/<int:category_id>")
@require_identity
def update_category(home_id: int, category_id: int):
    category = category_service.update_category(g.identity, category_id, _payload(), home_id=home_id)
    return jsonify(category.to_dict()), 200


@inventory_bp.delete("/categories/<int:category_id>")
@require_identity
def delete_category(home_id: int, category_id: int):
    category_service.delete_category(g.identity, category_id, home_id=home_id)
    return "", 204


# -----------------------------------------------------------------------------
# Items
# -----------------------------------------------------------------------------

@inventory_bp.get("/items")
@require_identity
def list_items(home_id: int):
    items = item_service.list_items(
        g.identity, home_id, category_id=request.args.get("category_id", type=int)
    )
    return jsonify([item.to_dict() for item in items]), 200


@inventory_bp.post("/items")
@require_identity
def create_item(home_id: int):
    item = item_service.create_item(g.identity, home_id, _payload())
    return jsonify(item.to_dict()), 201


@inventory_bp.get("/items/<int:item_id>")
@require_identity
def get_item(home_id: int, item_id: int):
    item = item_service.get_item(g.identity, item_id, home_id=home_id)
    return jsonify(item.to_dict()), 200


@inventory_bp.patch("/items/<int:item_id>")
@require_identity
def update_item(home_id: int, item_id: int):
    item = item_service.update_item(g.identity, item_id, _payload(), home_id=home_id)
    return jsonify(item.to_dict()), 200


@inventory_bp.delete("/items/<int:item_id>")
@require_identity
def delete_item(home_id: int, item_id: int):
    item_service.delete_item(g.identity, item_id, home_id=home_id)
    return "", 204


# -----------------------------------------------------------------------------
# Photos
# -----------------------------------------------------------------------------

@inventory_bp.get("/photos")
@require_identity
def list_photos(home_id: int):
    photos = photo_service.list_photos(
        g.identity,
        home_id,
        owner_type=request.args.get("owner_type"),
        owner_id=request.args.get("owner_id", type=int),
    )
    return jsonify([p.to_dict() for p in photos]), 200


@inventory_bp.post("/photos")
@require_identity
def create_photo(home_id: int):
    photo = photo_service.create_photo(g.identity, home_id, _payload())
    return jsonify(photo.to_dict()), 201


@inventory_bp.delete("/photos/<int:photo_id>")
@require_identity
def delete_photo(home_id: int, photo_id: int):
    photo_service.delete_photo(g.identity, photo_id, home_id=home_id)
    return "", 204
