import uuid

from nestpay.extensions import db
from nestpay.utils.dates import utcnow

ROLE_LANDLORD = "landlord"
ROLE_TENANT = "tenant"
ROLES = (ROLE_LANDLORD, ROLE_TENANT)


class UserProfile(db.Model):
    """Profile row mirrored from the identity provider; id is the token subject."""

    __tablename__ = "user_profiles"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = db.Column(db.String(200), nullable=True)
    email = db.Column(db.String(255), nullable=True, index=True)
    phone = db.Column(db.String(30), nullable=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_TENANT)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f"<UserProfile {self.id}: {self.full_name} ({self.role})>"

    @property
    def display_name(self):
        return self.full_name or self.email or "Unknown"

    def serialize(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
        }
