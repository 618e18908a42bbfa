import logging
import uuid

from nestpay.errors import InvalidStateError
from nestpay.extensions import db
from nestpay.utils.dates import utcnow, isoformat_or_none

logger = logging.getLogger(__name__)


class OccupancyStatus:
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    INACTIVE = "inactive"

    ALL = (PENDING, ACTIVE, REJECTED, INACTIVE)
    OPEN = (PENDING, ACTIVE)

    # rejected and inactive are terminal; a tenant rejoins with a new record
    TRANSITIONS = {
        PENDING: (ACTIVE, REJECTED),
        ACTIVE: (INACTIVE,),
        REJECTED: (),
        INACTIVE: (),
    }

    @classmethod
    def can_transition(cls, current, target):
        return target in cls.TRANSITIONS.get(current, ())


class OccupancyRecord(db.Model):
    """A tenant's request for, or membership of, a property (optionally one unit)."""

    __tablename__ = "tenant_properties"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = db.Column(db.String(36), db.ForeignKey("user_profiles.id"), nullable=False, index=True)
    property_id = db.Column(db.String(36), db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id = db.Column(db.String(36), db.ForeignKey("units.id", ondelete="SET NULL"), nullable=True, index=True)

    status = db.Column(db.String(20), nullable=False, default=OccupancyStatus.PENDING, index=True)
    invitation_message = db.Column(db.String(1000), nullable=True)
    invited_by = db.Column(db.String(36), nullable=True)

    joined_at = db.Column(db.DateTime, nullable=True)
    last_payment_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    tenant = db.relationship("UserProfile", lazy=True)
    property = db.relationship("Property", lazy=True)
    unit = db.relationship("Unit", lazy=True)

    def __repr__(self):
        return f"<OccupancyRecord {self.id}: tenant={self.tenant_id} property={self.property_id} {self.status}>"

    def transition_to(self, target):
        """Move to ``target`` or raise InvalidStateError if the move is illegal."""
        if not OccupancyStatus.can_transition(self.status, target):
            logger.warning("Rejected transition %s -> %s for record %s", self.status, target, self.id)
            raise InvalidStateError(
                f"Cannot move a {self.status} request to {target}"
            )
        self.status = target

    def advance_last_payment_date(self, paid_on):
        """last_payment_date never moves backwards."""
        if self.last_payment_date is None or paid_on > self.last_payment_date:
            self.last_payment_date = paid_on

    def serialize(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant.display_name if self.tenant else None,
            "property_id": self.property_id,
            "property_title": self.property.title if self.property else None,
            "unit_id": self.unit_id,
            "unit_label": self.unit.label if self.unit else None,
            "status": self.status,
            "invitation_message": self.invitation_message,
            "invited_by": self.invited_by,
            "joined_at": isoformat_or_none(self.joined_at),
            "last_payment_date": isoformat_or_none(self.last_payment_date),
            "created_at": isoformat_or_none(self.created_at),
        }


# At most one pending-or-active record per tenant and property.
db.Index(
    "uq_tenant_properties_open",
    OccupancyRecord.tenant_id,
    OccupancyRecord.property_id,
    unique=True,
    sqlite_where=OccupancyRecord.status.in_(OccupancyStatus.OPEN),
    postgresql_where=OccupancyRecord.status.in_(OccupancyStatus.OPEN),
)
