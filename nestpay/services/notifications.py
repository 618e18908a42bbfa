"""
Notification dispatcher.

Join requests produce an in-app notification for the landlord and, when
enabled, an email; decisions and confirmed payments notify the tenant in-app.
Delivery is best-effort: every failure is logged and swallowed so it can never undo the request that triggered it.
"""

import logging

from flask import current_app, render_template

from nestpay import signals
from nestpay.extensions import db
from nestpay.models import Notification, OccupancyStatus, UserProfile
from nestpay.utils.email import send_email

logger = logging.getLogger(__name__)

JOIN_REQUEST = "join_request"
JOIN_REQUEST_DECIDED = "join_request_decided"
PAYMENT_CONFIRMED = "payment_confirmed"


def notify_join_request(landlord_id, tenant_name, property_title, message=None, data=None):
    """Tell a landlord about a new join request. Returns True if anything was delivered."""
    delivered = False
    title = f"New Join Request for {property_title or 'Your Property'}"

    try:
        db.session.add(Notification(
            user_id=landlord_id,
            type=JOIN_REQUEST,
            title=title,
            message=f"{tenant_name or 'A tenant'} wants to join {property_title or 'your property'}",
            data=data,
        ))
        db.session.commit()
        delivered = True
    except Exception:
        db.session.rollback()
        logger.exception("Failed to store in-app notification for landlord %s", landlord_id)

    if not current_app.config.get("NOTIFY_EMAIL", True):
        return delivered

    try:
        landlord = db.session.get(UserProfile, landlord_id)
        if landlord is None or not landlord.email:
            logger.warning("Landlord %s has no email address; skipping join request email", landlord_id)
            return delivered
        context = dict(tenant_name=tenant_name, property_title=property_title, message=message)
        sent = send_email(
            landlord.email,
            title,
            render_template("email/join_request.txt", **context),
            html=render_template("email/join_request.html", **context),
        )
        delivered = delivered or sent
    except Exception:
        logger.exception("Error sending join request email to landlord %s", landlord_id)

    return delivered


@signals.join_requested.connect
def _on_join_requested(sender, record, **extra):
    prop = record.property
    notify_join_request(
        prop.owner_id,
        record.tenant.display_name if record.tenant else None,
        prop.title,
        record.invitation_message,
        data={"tenant_property_id": record.id, "property_id": prop.id, "tenant_id": record.tenant_id},
    )


def list_notifications(user_id, unread_only=False):
    query = Notification.query.filter_by(user_id=user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc()).all()


def mark_read(notification):
    notification.is_read = True
    db.session.commit()
    return notification


def _notify_tenant(user_id, type_, title, message, data=None):
    try:
        db.session.add(Notification(user_id=user_id, type=type_, title=title, message=message, data=data))
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Failed to store %s notification for tenant %s", type_, user_id)


@signals.join_request_decided.connect
def _on_join_request_decided(sender, record, **extra):
    title = record.property.title
    if record.status == OccupancyStatus.ACTIVE:
        text = f"Your request to join {title} was approved"
    else:
        text = f"Your request to join {title} was declined"
    _notify_tenant(record.tenant_id, JOIN_REQUEST_DECIDED, text, text,
                   data={"tenant_property_id": record.id, "status": record.status})


@signals.payment_confirmed.connect
def _on_payment_confirmed(sender, payment, **extra):
    _notify_tenant(
        payment.tenant_id,
        PAYMENT_CONFIRMED,
        "Payment confirmed",
        f"Your payment of {payment.amount:,.0f} {payment.currency} was confirmed",
        data={"payment_id": payment.id},
    )
