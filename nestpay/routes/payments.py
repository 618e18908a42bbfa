from flask import Blueprint, current_app, jsonify, request

from nestpay.errors import PermissionDeniedError, ValidationError
from nestpay.models import OccupancyRecord, OccupancyStatus, Payment, PaymentStatus
from nestpay.models.user import ROLE_LANDLORD, ROLE_TENANT
from nestpay.security.rbac import current_user, require_role
from nestpay.services import catalog, standing
from nestpay.services.lifecycle import list_payments_for_landlord, list_payments_for_tenant
from nestpay.utils.dates import parse_timestamp
from ._helpers import get_or_404, json_body, lifecycle, status_filter

bp = Blueprint("payments", __name__)


def _owned_payment(payment_id):
    payment = get_or_404(Payment, payment_id, "Payment")
    if payment.property.owner_id != current_user().id:
        raise PermissionDeniedError("You do not own this property")
    return payment


@bp.post("/payments")
@require_role(ROLE_TENANT)
def record_payment():
    """Tenant submits a rent payment; it stays pending until the landlord confirms."""
    data = json_body()
    user = current_user()
    if not data.get("property_id"):
        raise ValidationError("property_id is required")
    prop = catalog.get_property(data["property_id"])

    tenancy = OccupancyRecord.query.filter_by(
        tenant_id=user.id, property_id=prop.id, status=OccupancyStatus.ACTIVE
    ).first()
    if tenancy is None:
        raise PermissionDeniedError("You are not an active tenant of this property")

    payment = lifecycle().record_payment(
        user.id,
        prop.id,
        data.get("amount"),
        currency=data.get("currency") or prop.rent_currency,
        method=data.get("method", "manual"),
        provider=data.get("provider"),
        unit_id=data.get("unit_id") or tenancy.unit_id,
        duration_months=data.get("duration_months", 1),
    )
    return jsonify(payment.serialize()), 201


@bp.get("/payments")
@require_role(ROLE_LANDLORD, ROLE_TENANT)
def list_payments():
    status = status_filter(PaymentStatus.ALL)
    user = current_user()
    if user.role == ROLE_LANDLORD:
        payments = list_payments_for_landlord(user.id, status)
    else:
        payments = list_payments_for_tenant(user.id, status)
    return jsonify({"total": len(payments), "payments": [p.serialize() for p in payments]}), 200


@bp.post("/payments/<string:payment_id>/confirm")
@require_role(ROLE_LANDLORD)
def confirm_payment(payment_id):
    payment = _owned_payment(payment_id)
    data = json_body()
    try:
        paid_on = parse_timestamp(data.get("paid_on"))
    except (ValueError, OverflowError):
        raise ValidationError("paid_on must be an ISO-8601 timestamp")
    payment = lifecycle().confirm_payment(
        payment.id,
        paid_on=paid_on,
        provider_ref=data.get("provider_ref") or "manual",
        metadata=data.get("metadata"),
    )
    return jsonify(payment.serialize()), 200


@bp.post("/payments/<string:payment_id>/fail")
@require_role(ROLE_LANDLORD)
def fail_payment(payment_id):
    payment = _owned_payment(payment_id)
    payment = lifecycle().fail_payment(payment.id, json_body().get("reason"))
    return jsonify(payment.serialize()), 200


@bp.get("/payments/standing")
@require_role(ROLE_TENANT)
def my_standing():
    """Tenant's own payment standing for one property."""
    property_id = request.args.get("property_id")
    if not property_id:
        raise ValidationError("property_id is required")
    prop = catalog.get_property(property_id)
    latest = standing.latest_paid_payment(current_user().id, prop.id)
    result = standing.payment_standing(
        latest, warning_days=current_app.config.get("PAYMENT_EXPIRY_WARNING_DAYS", 7)
    )
    return jsonify({
        "property_id": prop.id,
        "status": result.status,
        "label": result.label,
        "days_until_expiry": result.days_until_expiry,
        "latest_payment": latest.serialize() if latest else None,
    }), 200
