# Overview: Flask API routes for homes, memberships and the audit trail.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_identity
from ..models.tenancy import ROLE_MEMBER
from ..services import audit_service, home_service


homes_bp = Blueprint("homes", __name__, url_prefix="/api/homes")


@homes_bp.get("")
@require_identity
def list_homes():
    homes = home_service.list_homes(g.identity)
    return jsonify([home.to_dict() for home in homes]), 200


@homes_bp.post("")
@require_identity
def create_home():
    data = request.get_json(silent=True) or {}
    home = home_service.create_home(g.identity, data.get("name"))
    return jsonify(home.to_dict()), 201


@homes_bp.get("/<int:home_id>")
@require_identity
def get_home(home_id: int):
    home = home_service.get_home(g.identity, home_id)
    return jsonify(home.to_dict()), 200


@homes_bp.patch("/<int:home_id>")
@require_identity
def update_home(home_id: int):
    home = home_service.update_home(g.identity, home_id, request.get_json(silent=True) or {})
    return jsonify(home.to_dict()), 200


@homes_bp.delete("/<int:home_id>")
@require_identity
def delete_home(home_id: int):
    home_service.delete_home(g.identity, home_id)
    return "", 204


@homes_bp.get("/<int:home_id>/memberships")
@require_identity
def list_memberships(home_id: int):
    memberships = home_service.list_memberships(g.identity, home_id)
    return jsonify([m.to_dict() for m in memberships]), 200


@homes_bp.post("/<int:home_id>/memberships")
@require_identity
def create_membership(home_id: int):
    """
    Self-service join. The body may name an identity, but only the caller's
    own identity is accepted.
    """
    data = request.get_json(silent=True) or {}
    membership = home_service.add_membership(
        g.identity,
        home_id,
        data.get("identity", g.identity),
        data.get("role", ROLE_MEMBER),
    )
    return jsonify(membership.to_dict()), 201


@homes_bp.patch("/<int:home_id>/memberships/<int:membership_id>")
@require_identity
def update_membership(home_id: int, membership_id: int):
    data = request.get_json(silent=True) or {}
    membership = home_service.update_membership_role(g.identity, home_id, membership_id, data.get("role"))
    return jsonify(membership.to_dict()), 200


@homes_bp.delete("/<int:home_id>/memberships/<int:membership_id>")
@require_identity
def delete_membership(home_id: int, membership_id: int):
    home_service.delete_membership(g.identity, home_id, membership_id)
    return "", 204


@homes_bp.get("/<int:home_id>/audit")
@require_identity
def list_audit_records(home_id: int):
    records = audit_service.list_audit_records(
        g.identity,
        home_id,
        entity_type=request.args.get("entity_type"),
        entity_id=request.args.get("entity_id", type=int),
        limit=request.args.get("limit", type=int),
    )
    current_app.logger.debug("Audit read home_id=%s count=%s", home_id, len(records))
    return jsonify([record.to_dict() for record in records]), 200
