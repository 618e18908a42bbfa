import secrets
import string
import uuid

from nestpay.extensions import db
from nestpay.utils.dates import utcnow, isoformat_or_none

JOIN_CODE_LETTERS = string.ascii_uppercase
JOIN_CODE_DIGITS = string.digits


def generate_join_code():
    """Landlord-distributed join code, e.g. ``ABCD-123456``."""
    letters = "".join(secrets.choice(JOIN_CODE_LETTERS) for _ in range(4))
    digits = "".join(secrets.choice(JOIN_CODE_DIGITS) for _ in range(6))
    return f"{letters}-{digits}"


class Property(db.Model):
    __tablename__ = "properties"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = db.Column(db.String(36), db.ForeignKey("user_profiles.id"), nullable=False, index=True)

    # Listing
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    address = db.Column(db.String(500), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    region = db.Column(db.String(100), nullable=True)
    country = db.Column(db.String(100), default="Uganda")

    # Rent terms
    rent_amount = db.Column(db.Numeric(12, 2), nullable=False)
    rent_currency = db.Column(db.String(3), default="UGX", nullable=False)
    rent_due_day = db.Column(db.Integer, nullable=True)

    join_code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    owner = db.relationship("UserProfile", backref="properties", lazy=True)
    units = db.relationship("Unit", backref="property", lazy=True, order_by="Unit.label")

    def __repr__(self):
        return f"<Property {self.id}: {self.title} [{self.join_code}]>"

    def serialize(self, include_units=False):
        data = {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "description": self.description,
            "address": self.address,
            "city": self.city,
            "region": self.region,
            "country": self.country,
            "rent_amount": float(self.rent_amount),
            "rent_currency": self.rent_currency,
            "rent_due_day": self.rent_due_day,
            "join_code": self.join_code,
            "is_active": self.is_active,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }
        if include_units:
            data["units"] = [u.serialize() for u in self.units]
        return data


class Unit(db.Model):
    __tablename__ = "units"
    __table_args__ = (
        # available <=> no tenant assigned
        db.CheckConstraint(
            "(is_available AND tenant_id IS NULL) OR (NOT is_available AND tenant_id IS NOT NULL)",
            name="ck_units_availability_matches_tenant",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    property_id = db.Column(db.String(36), db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    label = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    unit_type = db.Column(db.String(50), nullable=True)
    rent_amount = db.Column(db.Numeric(12, 2), nullable=True)  # overrides property rent
    is_available = db.Column(db.Boolean, default=True, nullable=False)
    tenant_id = db.Column(db.String(36), db.ForeignKey("user_profiles.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    tenant = db.relationship("UserProfile", lazy=True)

    def __repr__(self):
        return f"<Unit {self.id}: {self.label} available={self.is_available}>"

    @property
    def effective_rent(self):
        if self.rent_amount is not None:
            return self.rent_amount
        return self.property.rent_amount if self.property else None

    def serialize(self):
        rent = self.effective_rent
        return {
            "id": self.id,
            "property_id": self.property_id,
            "label": self.label,
            "description": self.description,
            "unit_type": self.unit_type,
            "rent_amount": float(self.rent_amount) if self.rent_amount is not None else None,
            "effective_rent": float(rent) if rent is not None else None,
            "is_available": self.is_available,
            "tenant_id": self.tenant_id,
            "created_at": isoformat_or_none(self.created_at),
        }
