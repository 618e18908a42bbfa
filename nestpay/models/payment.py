import uuid

from nestpay.errors import InvalidStateError
from nestpay.extensions import db
from nestpay.utils.dates import add_months, isoformat_or_none, utcnow


class PaymentStatus:
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

    ALL = (PENDING, PAID, FAILED)


class PaymentMethod:
    MANUAL = "manual"
    ONLINE = "online"

    ALL = (MANUAL, ONLINE)


class Payment(db.Model):
    __tablename__ = "payments"
    __table_args__ = (
        db.CheckConstraint("amount > 0 AND amount <= 100000000", name="ck_payments_amount_range"),
        db.CheckConstraint(
            "(method = 'online' AND provider IS NOT NULL) OR (method = 'manual' AND provider IS NULL)",
            name="ck_payments_provider_iff_online",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = db.Column(db.String(36), db.ForeignKey("user_profiles.id"), nullable=False, index=True)
    property_id = db.Column(db.String(36), db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id = db.Column(db.String(36), db.ForeignKey("units.id", ondelete="SET NULL"), nullable=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="UGX")
    method = db.Column(db.String(20), nullable=False)          # 'manual' | 'online'
    provider = db.Column(db.String(50), nullable=True)         # e.g. 'mtn_momo', 'airtel_money'
    provider_ref = db.Column(db.String(120), nullable=True)

    # Status tracking
    status = db.Column(db.String(20), nullable=False, default=PaymentStatus.PENDING, index=True)
    paid_on = db.Column(db.DateTime, nullable=True)
    payment_expires_at = db.Column(db.DateTime, nullable=True)
    duration_months = db.Column(db.Integer, nullable=True)
    meta = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    tenant = db.relationship("UserProfile", lazy=True)
    property = db.relationship("Property", lazy=True)

    def __repr__(self):
        return f"<Payment {self.id}: {self.amount} {self.currency} - {self.status}>"

    def mark_paid(self, paid_on, provider_ref, metadata=None):
        """Mark payment as paid and stamp its expiry."""
        if self.status != PaymentStatus.PENDING:
            raise InvalidStateError(f"Payment is already {self.status}")
        self.status = PaymentStatus.PAID
        self.paid_on = paid_on
        self.provider_ref = provider_ref
        if metadata is not None:
            self.meta = metadata
        if self.duration_months:
            self.payment_expires_at = add_months(paid_on, self.duration_months)

    def mark_failed(self, reason=None):
        """Mark payment as failed"""
        if self.status != PaymentStatus.PENDING:
            raise InvalidStateError(f"Payment is already {self.status}")
        self.status = PaymentStatus.FAILED
        if reason:
            self.meta = dict(self.meta or {}, failure_reason=reason)

    def serialize(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant.display_name if self.tenant else None,
            "property_id": self.property_id,
            "property_title": self.property.title if self.property else None,
            "unit_id": self.unit_id,
            "amount": float(self.amount),
            "currency": self.currency,
            "method": self.method,
            "provider": self.provider,
            "provider_ref": self.provider_ref,
            "status": self.status,
            "paid_on": isoformat_or_none(self.paid_on),
            "payment_expires_at": isoformat_or_none(self.payment_expires_at),
            "duration_months": self.duration_months,
            "metadata": self.meta,
            "created_at": isoformat_or_none(self.created_at),
        }
