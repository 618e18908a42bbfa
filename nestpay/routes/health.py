from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt, jwt_required
from sqlalchemy import text

from nestpay.extensions import db
from nestpay.models.user import ROLES
from nestpay.security.rbac import current_profile, current_user, require_role
from nestpay.services import profiles
from ._helpers import json_body

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    db.session.execute(text("SELECT 1"))
    return jsonify(status="ok"), 200


@bp.get("/me")
@jwt_required()
def me():
    user = current_user()
    profile = current_profile() if user.role in ROLES else None
    return jsonify(
        id=user.id,
        role=user.role,
        profile=profile.serialize() if profile else None,
    ), 200


@bp.route("/me", methods=["PUT", "PATCH"])
@require_role(*ROLES)
def update_me():
    """Profile settings: full name, phone and email."""
    profile = profiles.update_profile(current_user(), json_body(), get_jwt())
    return jsonify(profile.serialize()), 200
