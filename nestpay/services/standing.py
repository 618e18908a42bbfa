"""
Payment standing: whether a tenant's rent is currently covered.

Standing is derived from the latest paid payment every time it is read and
is never written back to the database.
"""

import logging
from collections import namedtuple

from sqlalchemy import func

from nestpay.extensions import db
from nestpay.models import OccupancyRecord, OccupancyStatus, Payment, PaymentStatus, Property
from nestpay.utils.dates import isoformat_or_none, utcnow

logger = logging.getLogger(__name__)

NEVER_PAID = "never_paid"
UNKNOWN = "unknown"
EXPIRED = "expired"
EXPIRING_SOON = "expiring_soon"
ACTIVE = "active"

Standing = namedtuple("Standing", ["status", "label", "days_until_expiry"])


def payment_standing(latest_paid, now=None, warning_days=7):
    """
    Classify a tenant by their most recent paid payment.

    Args:
        latest_paid: the latest Payment with status ``paid``, or None
        now: reference time (naive UTC); defaults to the current time
        warning_days: how close to expiry counts as "expiring soon"

    Returns:
        Standing(status, label, days_until_expiry)
    """
    now = now or utcnow()
    if latest_paid is None:
        return Standing(NEVER_PAID, "Never Paid", None)

    expires_at = latest_paid.payment_expires_at
    if expires_at is None:
        return Standing(UNKNOWN, "Status Unknown", None)

    if expires_at < now:
        return Standing(EXPIRED, "Payment Overdue", (expires_at - now).days)

    days = (expires_at - now).days
    if days <= warning_days:
        return Standing(EXPIRING_SOON, f"Expires in {days} days", days)
    return Standing(ACTIVE, "Paid", days)


def latest_paid_payment(tenant_id, property_id):
    return (
        Payment.query.filter_by(tenant_id=tenant_id, property_id=property_id, status=PaymentStatus.PAID)
        .order_by(Payment.paid_on.desc())
        .first()
    )


def tenant_roster(owner_id, now=None, warning_days=7):
    """Active tenants across a landlord's properties with their standing."""
    now = now or utcnow()
    records = (
        OccupancyRecord.query.join(Property, Property.id == OccupancyRecord.property_id)
        .filter(Property.owner_id == owner_id, OccupancyRecord.status == OccupancyStatus.ACTIVE)
        .order_by(OccupancyRecord.joined_at.desc())
        .all()
    )
    if not records:
        return []

    # latest paid payment per (tenant, property), newest first wins
    latest = {}
    paid = (
        Payment.query.filter(
            Payment.property_id.in_(list({r.property_id for r in records})),
            Payment.status == PaymentStatus.PAID,
        )
        .order_by(Payment.paid_on.desc())
        .all()
    )
    for payment in paid:
        latest.setdefault((payment.tenant_id, payment.property_id), payment)

    roster = []
    for record in records:
        payment = latest.get((record.tenant_id, record.property_id))
        standing = payment_standing(payment, now=now, warning_days=warning_days)
        entry = record.serialize()
        entry.update({
            "tenant_email": record.tenant.email if record.tenant else None,
            "tenant_phone": record.tenant.phone if record.tenant else None,
            "paid_on": isoformat_or_none(payment.paid_on) if payment else None,
            "payment_expires_at": isoformat_or_none(payment.payment_expires_at) if payment else None,
            "payment_status": standing.status,
            "payment_label": standing.label,
            "days_until_expiry": standing.days_until_expiry,
        })
        roster.append(entry)
    logger.debug("Built roster of %d tenant(s) for owner %s", len(roster), owner_id)
    return roster


def unit_occupancy(property_id):
    """Units of a property with their current tenant, if any."""
    rows = []
    prop = db.session.get(Property, property_id)
    if prop is None:
        return rows
    for unit in prop.units:
        entry = unit.serialize()
        active = None
        if unit.tenant_id:
            active = OccupancyRecord.query.filter_by(
                unit_id=unit.id, tenant_id=unit.tenant_id, status=OccupancyStatus.ACTIVE
            ).first()
        entry.update({
            "tenant_name": unit.tenant.display_name if unit.tenant else None,
            "tenant_phone": unit.tenant.phone if unit.tenant else None,
            "tenant_status": active.status if active else None,
            "joined_at": isoformat_or_none(active.joined_at) if active else None,
            "last_payment_date": isoformat_or_none(active.last_payment_date) if active else None,
        })
        rows.append(entry)
    return rows


def landlord_dashboard(owner_id):
    """Headline numbers for a landlord: properties, tenants and paid revenue."""
    owned = Property.query.filter_by(owner_id=owner_id)
    total = owned.count()
    active = owned.filter(Property.is_active.is_(True)).count()

    tenants = (
        OccupancyRecord.query.join(Property, Property.id == OccupancyRecord.property_id)
        .filter(Property.owner_id == owner_id, OccupancyRecord.status == OccupancyStatus.ACTIVE)
        .count()
    )
    pending = (
        OccupancyRecord.query.join(Property, Property.id == OccupancyRecord.property_id)
        .filter(Property.owner_id == owner_id, OccupancyRecord.status == OccupancyStatus.PENDING)
        .count()
    )
    revenue = (
        db.session.query(func.coalesce(func.sum(Payment.amount), 0))
        .join(Property, Property.id == Payment.property_id)
        .filter(Property.owner_id == owner_id, Payment.status == PaymentStatus.PAID)
        .scalar()
    )
    return {
        "total_properties": total,
        "active_properties": active,
        "active_tenants": tenants,
        "pending_requests": pending,
        "total_revenue": float(revenue or 0),
    }
