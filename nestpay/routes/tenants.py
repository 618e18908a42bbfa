from flask import Blueprint, current_app, jsonify

from nestpay.models.user import ROLE_LANDLORD
from nestpay.security.rbac import current_user, require_role
from nestpay.services.standing import tenant_roster

bp = Blueprint("tenants", __name__)


@bp.get("/tenants")
@require_role(ROLE_LANDLORD)
def list_tenants():
    """Active tenants with their payment standing"""
    roster = tenant_roster(
        current_user().id,
        warning_days=current_app.config.get("PAYMENT_EXPIRY_WARNING_DAYS", 7),
    )
    return jsonify({"total": len(roster), "items": roster}), 200
