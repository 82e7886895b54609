# Overview: Flask API routes for boxes, scan-token lookup and item instances.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_identity
from ..services import box_service, instance_service


boxes_bp = Blueprint("boxes", __name__, url_prefix="/api")


def _payload() -> dict:
    return request.get_json(silent=True) or {}


@boxes_bp.get("/scan")
@require_identity
def scan_box():
    """Resolve a scanned token (?token=box:...) to its box, across homes."""
    box = box_service.lookup_box_by_token(g.identity, request.args.get("token", ""))
    return jsonify(box.to_dict()), 200


@boxes_bp.get("/homes/<int:home_id>/boxes")
@require_identity
def list_boxes(home_id: int):
    boxes = box_service.list_boxes(
        g.identity, home_id, location_id=request.args.get("location_id", type=int)
    )
    return jsonify([box.to_dict() for box in boxes]), 200


@boxes_bp.post("/homes/<int:home_id>/boxes")
@require_identity
def create_box(home_id: int):
    box = box_service.create_box(g.identity, home_id, _payload())
    return jsonify(box.to_dict()), 201


@boxes_bp.get("/homes/<int:home_id>/boxes/<int:box_id>")
@require_identity
def get_box(home_id: int, box_id: int):
    box = box_service.get_box(g.identity, box_id, home_id=home_id)
    return jsonify(box.to_dict()), 200


@boxes_bp.patch("/homes/<int:home_id>/boxes/<int:box_id>")
@require_identity
def update_box(home_id: int, box_id: int):
    box = box_service.update_box(g.identity, box_id, _payload(), home_id=home_id)
    return jsonify(box.to_dict()), 200


@boxes_bp.delete("/homes/<int:home_id>/boxes/<int:box_id>")
@require_identity
def delete_box(home_id: int, box_id: int):
    box_service.delete_box(g.identity, box_id, home_id=home_id)
    return "", 204


@boxes_bp.get("/homes/<int:home_id>/instances")
@require_identity
def list_instances(home_id: int):
    instances = instance_service.list_item_instances(
        g.identity,
        home_id,
        box_id=request.args.get("box_id", type=int),
        item_id=request.args.get("item_id", type=int),
        status=request.args.get("status"),
    )
    return jsonify([i.to_dict() for i in instances]), 200


@boxes_bp.post("/homes/<int:home_id>/instances")
@require_identity
def create_instance(home_id: int):
    instance = instance_service.create_item_instance(g.identity, _payload(), home_id=home_id)
    return jsonify(instance.to_dict()), 201


@boxes_bp.get("/homes/<int:home_id>/instances/<int:instance_id>")
@require_identity
def get_instance(home_id: int, instance_id: int):
    instance = instance_service.get_item_instance(g.identity, instance_id, home_id=home_id)
    return jsonify(instance.to_dict()), 200


@boxes_bp.patch("/homes/<int:home_id>/instances/<int:instance_id>")
@require_identity
def update_instance(home_id: int, instance_id: int):
    instance = instance_service.update_item_instance(g.identity, instance_id, _payload(), home_id=home_id)
    return jsonify(instance.to_dict()), 200


@boxes_bp.delete("/homes/<int:home_id>/instances/<int:instance_id>")
@require_identity
def delete_instance(home_id: int, instance_id: int):
    instance_service.delete_item_instance(g.identity, instance_id, home_id=home_id)
    return "", 204
