"""
Occupancy lifecycle: join request -> approval -> unit assignment -> payment.

Every state-changing operation runs as one transaction: it either commits
all of its row changes or rolls back and raises. Unit assignment is a single
conditional UPDATE so two approvals racing for one unit cannot both win.
Signals are sent after commit; receiver failures are logged and dropped.
"""

import logging

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from nestpay import signals
from nestpay.errors import ConflictError, NotFoundError, ValidationError
from nestpay.extensions import db
from nestpay.models import (
    OccupancyRecord,
    OccupancyStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Property,
    Unit,
    UserProfile,
)
from nestpay.services import catalog
from nestpay.utils.dates import utcnow
from nestpay.utils.validators import (
    validate_amount,
    validate_choice,
    validate_currency,
    validate_int_range,
    validate_text,
)

logger = logging.getLogger(__name__)

MAX_DURATION_MONTHS = 24


class OccupancyLifecycleManager:
    """
    Owns the tenant <-> property/unit relationship and the payment ledger.

    ``clock`` returns the current naive-UTC datetime; tests pass a fixed one.
    """

    def __init__(self, clock=None):
        self.clock = clock or utcnow

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _get_record(self, record_id, lock=False):
        record = db.session.get(OccupancyRecord, record_id, with_for_update=lock)
        if record is None:
            raise NotFoundError("Join request not found")
        return record

    def _get_payment(self, payment_id, lock=False):
        payment = db.session.get(Payment, payment_id, with_for_update=lock)
        if payment is None:
            raise NotFoundError("Payment not found")
        return payment

    def _emit(self, signal, **kwargs):
        try:
            signal.send(current_app._get_current_object(), **kwargs)
        except Exception:
            logger.exception("Receiver for %s failed; state change already committed", signal.name)

    # ------------------------------------------------------------------
    # join requests
    # ------------------------------------------------------------------

    def submit_join_request(self, tenant_id, join_code, unit_id=None, message=None):
        """Create a pending request for the property behind ``join_code``."""
        message = validate_text(message, "Message", 1000)
        if db.session.get(UserProfile, tenant_id) is None:
            raise NotFoundError("Tenant profile not found")

        prop = catalog.resolve_join_code(join_code)

        if unit_id:
            unit = catalog.get_unit(unit_id)
            if unit.property_id != prop.id:
                raise ConflictError("That unit belongs to a different property")
            if not unit.is_available:
                raise ConflictError("That unit is no longer available")

        existing = OccupancyRecord.query.filter(
            OccupancyRecord.tenant_id == tenant_id,
            OccupancyRecord.property_id == prop.id,
            OccupancyRecord.status.in_(OccupancyStatus.OPEN),
        ).first()
        if existing is not None:
            raise ConflictError(f"You already have a {existing.status} request for this property")

        record = OccupancyRecord(
            tenant_id=tenant_id,
            property_id=prop.id,
            unit_id=unit_id or None,
            status=OccupancyStatus.PENDING,
            invitation_message=message,
        )
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("You already have an open request for this property")

        logger.info("Join request %s: tenant %s -> property %s (unit %s)",
                    record.id, tenant_id, prop.id, unit_id)
        self._emit(signals.join_requested, record=record)
        return record

    def approve_request(self, record_id):
        """pending -> active; assigns the unit with a compare-and-set."""
        record = self._get_record(record_id, lock=True)
        try:
            record.transition_to(OccupancyStatus.ACTIVE)
            record.joined_at = self.clock()
            if record.unit_id:
                result = db.session.execute(
                    update(Unit)
                    .where(
                        Unit.id == record.unit_id,
                        Unit.tenant_id.is_(None),
                        Unit.is_available.is_(True),
                    )
                    .values(tenant_id=record.tenant_id, is_available=False)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise ConflictError("The unit was taken by another tenant, try again")
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        if record.unit is not None:
            db.session.refresh(record.unit)
        logger.info("Approved join request %s (unit %s)", record.id, record.unit_id)
        self._emit(signals.join_request_decided, record=record)
        return record

    def reject_request(self, record_id):
        """pending -> rejected. Units are untouched."""
        record = self._get_record(record_id, lock=True)
        try:
            record.transition_to(OccupancyStatus.REJECTED)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info("Rejected join request %s", record.id)
        self._emit(signals.join_request_decided, record=record)
        return record

    def mark_vacant(self, unit_id):
        """Free a unit and end every active tenancy on it. Safe to repeat."""
        unit = catalog.get_unit(unit_id)
        try:
            db.session.execute(
                update(Unit)
                .where(Unit.id == unit.id)
                .values(tenant_id=None, is_available=True)
                .execution_options(synchronize_session=False)
            )
            ended = db.session.execute(
                update(OccupancyRecord)
                .where(
                    OccupancyRecord.unit_id == unit.id,
                    OccupancyRecord.status == OccupancyStatus.ACTIVE,
                )
                .values(status=OccupancyStatus.INACTIVE)
                .execution_options(synchronize_session=False)
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        db.session.refresh(unit)
        if ended.rowcount:
            logger.info("Unit %s vacated, %d tenancy record(s) ended", unit.id, ended.rowcount)
        return unit

    def mark_inactive(self, record_id):
        """Tenant leaves: active -> inactive, releasing the unit they held."""
        record = self._get_record(record_id, lock=True)
        try:
            record.transition_to(OccupancyStatus.INACTIVE)
            if record.unit_id:
                db.session.execute(
                    update(Unit)
                    .where(Unit.id == record.unit_id, Unit.tenant_id == record.tenant_id)
                    .values(tenant_id=None, is_available=True)
                    .execution_options(synchronize_session=False)
                )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        if record.unit is not None:
            db.session.refresh(record.unit)
        logger.info("Tenant %s left property %s (record %s)", record.tenant_id, record.property_id, record.id)
        return record

    # ------------------------------------------------------------------
    # payments
    # ------------------------------------------------------------------

    def record_payment(self, tenant_id, property_id, amount, currency="UGX",
                       method=PaymentMethod.MANUAL, provider=None, unit_id=None,
                       duration_months=1):
        """Store a pending payment. Occupancy is not touched until confirmation."""
        amount = validate_amount(amount)
        currency = validate_currency(currency)
        method = validate_choice(method, "payment method", PaymentMethod.ALL)
        provider = provider.strip() if isinstance(provider, str) and provider.strip() else None
        if method == PaymentMethod.ONLINE and not provider:
            raise ValidationError("Please select a payment provider")
        if method == PaymentMethod.MANUAL and provider:
            raise ValidationError("A provider can only be set for online payments")
        duration_months = validate_int_range(duration_months, "Duration", 1, MAX_DURATION_MONTHS)

        if db.session.get(Property, property_id) is None:
            raise NotFoundError("Property not found")
        if unit_id:
            unit = catalog.get_unit(unit_id)
            if unit.property_id != property_id:
                raise ValidationError("That unit belongs to a different property")

        payment = Payment(
            tenant_id=tenant_id,
            property_id=property_id,
            unit_id=unit_id or None,
            amount=amount,
            currency=currency,
            method=method,
            provider=provider,
            status=PaymentStatus.PENDING,
            duration_months=duration_months,
        )
        db.session.add(payment)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info("Recorded %s payment %s: %s %s from tenant %s",
                    method, payment.id, amount, currency, tenant_id)
        return payment

    def _occupancy_for_payment(self, payment):
        candidates = OccupancyRecord.query.filter_by(
            tenant_id=payment.tenant_id, property_id=payment.property_id
        ).all()
        if not candidates:
            return None

        def rank(record):
            return (
                record.status == OccupancyStatus.ACTIVE,
                record.unit_id == payment.unit_id,
                record.created_at or payment.created_at,
            )

        return max(candidates, key=rank)

    def confirm_payment(self, payment_id, paid_on=None, provider_ref="manual", metadata=None):
        """pending -> paid; advances the tenant's last_payment_date."""
        payment = self._get_payment(payment_id, lock=True)
        paid_on = paid_on or self.clock()
        try:
            payment.mark_paid(paid_on, provider_ref or "manual", metadata)
            record = self._occupancy_for_payment(payment)
            if record is not None:
                record.advance_last_payment_date(paid_on)
            else:
                logger.warning("Payment %s confirmed with no occupancy record for tenant %s / property %s",
                               payment.id, payment.tenant_id, payment.property_id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info("Payment %s confirmed (paid_on=%s, expires=%s)",
                    payment.id, payment.paid_on, payment.payment_expires_at)
        self._emit(signals.payment_confirmed, payment=payment)
        return payment

    def fail_payment(self, payment_id, reason=None):
        payment = self._get_payment(payment_id, lock=True)
        try:
            payment.mark_failed(validate_text(reason, "Reason", 500))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info("Payment %s marked failed", payment.id)
        return payment


# ----------------------------------------------------------------------
# read side
# ----------------------------------------------------------------------

def _owned_property_ids(owner_id):
    return [pid for (pid,) in db.session.query(Property.id).filter(Property.owner_id == owner_id)]


def list_records_for_tenant(tenant_id, status=None):
    query = OccupancyRecord.query.filter_by(tenant_id=tenant_id)
    if status:
        query = query.filter(OccupancyRecord.status == status)
    return query.order_by(OccupancyRecord.created_at.desc()).all()


def list_records_for_landlord(owner_id, status=None):
    property_ids = _owned_property_ids(owner_id)
    if not property_ids:
        return []
    query = OccupancyRecord.query.filter(OccupancyRecord.property_id.in_(property_ids))
    if status:
        query = query.filter(OccupancyRecord.status == status)
    return query.order_by(OccupancyRecord.created_at.desc()).all()


def list_payments_for_tenant(tenant_id, status=None):
    query = Payment.query.filter_by(tenant_id=tenant_id)
    if status:
        query = query.filter(Payment.status == status)
    return query.order_by(Payment.created_at.desc()).all()


def list_payments_for_landlord(owner_id, status=None):
    property_ids = _owned_property_ids(owner_id)
    if not property_ids:
        return []
    query = Payment.query.filter(Payment.property_id.in_(property_ids))
    if status:
        query = query.filter(Payment.status == status)
    return query.order_by(Payment.created_at.desc()).all()
