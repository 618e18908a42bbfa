from flask import Blueprint, jsonify

from nestpay.errors import PermissionDeniedError
from nestpay.models import OccupancyRecord, OccupancyStatus
from nestpay.models.user import ROLE_LANDLORD, ROLE_TENANT
from nestpay.security.rbac import current_user, require_role
from nestpay.services.lifecycle import list_records_for_landlord, list_records_for_tenant
from nestpay.utils.validators import validate_uuid
from ._helpers import get_or_404, json_body, lifecycle, status_filter

bp = Blueprint("join_requests", __name__)


def _owned_record(record_id):
    record = get_or_404(OccupancyRecord, record_id, "Join request")
    if record.property.owner_id != current_user().id:
        raise PermissionDeniedError("You do not own this property")
    return record


@bp.post("/join-requests")
@require_role(ROLE_TENANT)
def submit_join_request():
    """Tenant asks to join a property by its join code."""
    data = json_body()
    record = lifecycle().submit_join_request(
        current_user().id,
        data.get("join_code"),
        unit_id=validate_uuid(data["unit_id"], "unit ID") if data.get("unit_id") else None,
        message=data.get("message"),
    )
    return jsonify(record.serialize()), 201


@bp.get("/join-requests")
@require_role(ROLE_LANDLORD, ROLE_TENANT)
def list_join_requests():
    status = status_filter(OccupancyStatus.ALL)
    user = current_user()
    if user.role == ROLE_LANDLORD:
        records = list_records_for_landlord(user.id, status)
    else:
        records = list_records_for_tenant(user.id, status)
    return jsonify({"total": len(records), "items": [r.serialize() for r in records]}), 200


@bp.post("/join-requests/<string:record_id>/approve")
@require_role(ROLE_LANDLORD)
def approve(record_id):
    record = _owned_record(record_id)
    record = lifecycle().approve_request(record.id)
    return jsonify(record.serialize()), 200


@bp.post("/join-requests/<string:record_id>/reject")
@require_role(ROLE_LANDLORD)
def reject(record_id):
    record = _owned_record(record_id)
    record = lifecycle().reject_request(record.id)
    return jsonify(record.serialize()), 200


@bp.post("/join-requests/<string:record_id>/leave")
@require_role(ROLE_TENANT)
def leave(record_id):
    record = get_or_404(OccupancyRecord, record_id, "Join request")
    if record.tenant_id != current_user().id:
        raise PermissionDeniedError("This is not your tenancy")
    record = lifecycle().mark_inactive(record.id)
    return jsonify(record.serialize()), 200
