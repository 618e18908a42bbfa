"""
Property catalog: properties, units and join codes.

The lifecycle reads the catalog through ``resolve_join_code`` and ``get_unit``;
the landlord-facing write operations live here as well.
"""

import logging

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError

from nestpay.errors import ConflictError, NotFoundError, PermissionDeniedError
from nestpay.extensions import db
from nestpay.models import OccupancyRecord, Payment, Property, PropertyReview, Unit
from nestpay.models.property import generate_join_code
from nestpay.utils.validators import (
    validate_amount,
    validate_bool,
    validate_currency,
    validate_int_range,
    validate_join_code,
    validate_text,
)

logger = logging.getLogger(__name__)

JOIN_CODE_ATTEMPTS = 5

PROPERTY_TEXT_FIELDS = {
    # field: (label, max length)
    "description": ("Description", 2000),
    "address": ("Address", 500),
    "city": ("City", 100),
    "region": ("Region", 100),
    "country": ("Country", 100),
}


def resolve_join_code(code):
    """Return the active property for ``code`` or raise NotFoundError."""
    code = validate_join_code(code)
    prop = Property.query.filter_by(join_code=code, is_active=True).first()
    if prop is None:
        raise NotFoundError("No active property matches that join code")
    return prop


def get_property(property_id):
    prop = db.session.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property not found")
    return prop


def get_owned_property(property_id, owner_id):
    prop = get_property(property_id)
    if prop.owner_id != owner_id:
        raise PermissionDeniedError("You do not own this property")
    return prop


def get_unit(unit_id):
    unit = db.session.get(Unit, unit_id)
    if unit is None:
        raise NotFoundError("Unit not found")
    return unit


def _clean_property_fields(data, partial=False):
    cleaned = {}
    if not partial or "title" in data:
        cleaned["title"] = validate_text(data.get("title"), "Property title", 200, required=True)
    for field, (label, max_length) in PROPERTY_TEXT_FIELDS.items():
        if field in data:
            cleaned[field] = validate_text(data.get(field), label, max_length)
    if not partial or "rent_amount" in data:
        cleaned["rent_amount"] = validate_amount(data.get("rent_amount"), "Rent amount")
    if "rent_currency" in data:
        cleaned["rent_currency"] = validate_currency(data.get("rent_currency"))
    if "rent_due_day" in data:
        cleaned["rent_due_day"] = validate_int_range(data.get("rent_due_day"), "Due day", 1, 31)
    if "is_active" in data:
        cleaned["is_active"] = validate_bool(data.get("is_active"), "is_active")
    return cleaned


def create_property(owner_id, data, default_currency="UGX"):
    """Create a property with a freshly generated join code."""
    fields = _clean_property_fields(data)
    fields.setdefault("rent_currency", default_currency)
    if not fields.get("country"):
        fields["country"] = "Uganda"

    for _ in range(JOIN_CODE_ATTEMPTS):
        prop = Property(owner_id=owner_id, join_code=generate_join_code(), **fields)
        db.session.add(prop)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning("Join code collision, retrying")
            continue
        logger.info("Created property %s (%s) for owner %s", prop.id, prop.join_code, owner_id)
        return prop
    raise ConflictError("Could not allocate a unique join code, try again")


def update_property(prop, data):
    fields = _clean_property_fields(data, partial=True)
    for field, value in fields.items():
        setattr(prop, field, value)
    db.session.commit()
    return prop


def regenerate_join_code(prop):
    """Issue a new join code; the old one stops resolving immediately."""
    for _ in range(JOIN_CODE_ATTEMPTS):
        prop.join_code = generate_join_code()
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            continue
        logger.info("Regenerated join code for property %s", prop.id)
        return prop
    raise ConflictError("Could not allocate a unique join code, try again")


def create_unit(prop, data):
    label = validate_text(data.get("label"), "Unit label", 100, required=True)
    if Unit.query.filter_by(property_id=prop.id, label=label).first():
        raise ConflictError("Unit label already exists for this property")
    rent_amount = None
    if data.get("rent_amount") not in (None, ""):
        rent_amount = validate_amount(data.get("rent_amount"), "Rent amount")
    unit = Unit(
        property_id=prop.id,
        label=label,
        description=validate_text(data.get("description"), "Description", 500),
        unit_type=validate_text(data.get("unit_type"), "Unit type", 50),
        rent_amount=rent_amount,
        is_available=True,
    )
    db.session.add(unit)
    db.session.commit()
    logger.info("Created unit %s (%s) in property %s", unit.id, unit.label, prop.id)
    return unit


def available_units(property_id):
    return (
        Unit.query.filter_by(property_id=property_id, is_available=True)
        .order_by(Unit.label)
        .all()
    )


def delete_unit(unit):
    """
    Remove a vacant unit.

    Requests and payments that pointed at the unit keep their property but lose
    the unit reference. The delete only matches while nobody is assigned, so a
    concurrent approval either wins the unit or finds it gone.
    """
    unit_id, label, property_id = unit.id, unit.label, unit.property_id
    try:
        for model in (OccupancyRecord, Payment):
            db.session.execute(
                update(model)
                .where(model.unit_id == unit_id)
                .values(unit_id=None)
                .execution_options(synchronize_session=False)
            )
        result = db.session.execute(
            delete(Unit)
            .where(Unit.id == unit_id, Unit.tenant_id.is_(None))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("Mark the unit vacant before deleting it")
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    db.session.expunge(unit)
    logger.info("Deleted unit %s (%s) from property %s", unit_id, label, property_id)


def browse_properties(search=None):
    """Active properties for tenants to look through, newest first."""
    query = Property.query.filter(Property.is_active.is_(True))
    search = validate_text(search, "Search", 100)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Property.title.ilike(pattern),
            Property.address.ilike(pattern),
            Property.city.ilike(pattern),
            Property.region.ilike(pattern),
        ))
    results = []
    for prop in query.order_by(Property.created_at.desc()).all():
        data = prop.serialize()
        # tenants get the code from their landlord, not from the listing
        data.pop("join_code")
        data.update(PropertyReview.rating_summary(prop.id))
        data["available_units"] = Unit.query.filter_by(property_id=prop.id, is_available=True).count()
        results.append(data)
    return results
