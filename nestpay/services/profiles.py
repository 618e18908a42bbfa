"""
User profiles mirrored from the identity provider.

The provider owns sign-in; this service keeps a local ``user_profiles`` row
per token subject so properties, requests and payments have something to
point at. The role always comes from the token.
"""

import logging

from sqlalchemy.exc import IntegrityError

from nestpay.errors import ValidationError
from nestpay.extensions import db
from nestpay.models import UserProfile
from nestpay.utils.validators import validate_email, validate_phone, validate_text

logger = logging.getLogger(__name__)

MAX_ID_LENGTH = 36


def ensure_profile(user, claims=None):
    """Return the profile for ``user``, creating it on first sight."""
    if not user.id or len(user.id) > MAX_ID_LENGTH:
        raise ValidationError("Unsupported account id")
    claims = claims or {}

    profile = db.session.get(UserProfile, user.id)
    if profile is not None:
        if profile.role != user.role:
            logger.info("Role for %s changed %s -> %s", user.id, profile.role, user.role)
            profile.role = user.role
            db.session.commit()
        return profile

    profile = UserProfile(
        id=user.id,
        role=user.role,
        full_name=_claim(claims, "full_name", "name"),
        email=_claim(claims, "email"),
    )
    db.session.add(profile)
    try:
        db.session.commit()
    except IntegrityError:
        # another request for the same subject got there first
        db.session.rollback()
        return db.session.get(UserProfile, user.id)
    logger.info("Created %s profile %s", user.role, user.id)
    return profile


def _claim(claims, *names):
    for name in names:
        value = claims.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def update_profile(user, data, claims=None):
    """Apply the settings form: full name, phone and email. Role cannot be changed here."""
    if "role" in data and data["role"] != user.role:
        raise ValidationError("Role is managed by your sign-in provider")

    fields = {}
    if "full_name" in data:
        fields["full_name"] = validate_text(data.get("full_name"), "Full name", 200)
    if "phone" in data:
        fields["phone"] = validate_phone(data.get("phone"))
    if "email" in data:
        fields["email"] = validate_email(data.get("email"))

    profile = ensure_profile(user, claims)
    for field, value in fields.items():
        setattr(profile, field, value)
    db.session.commit()
    logger.info("Updated profile %s (%s)", profile.id, ", ".join(sorted(fields)) or "no changes")
    return profile
