import logging

from nestpay.errors import PermissionDeniedError
from nestpay.extensions import db
from nestpay.models import OccupancyRecord, OccupancyStatus, PropertyReview
from nestpay.utils.validators import validate_int_range, validate_text

logger = logging.getLogger(__name__)

# tenants who live or lived at the property may review it
REVIEWER_STATUSES = (OccupancyStatus.ACTIVE, OccupancyStatus.INACTIVE)


def submit_review(tenant_id, prop, rating, comment=None):
    """Create or update the tenant's single review of ``prop``."""
    rating = validate_int_range(rating, "Rating", 1, 5, required=True)
    comment = validate_text(comment, "Comment", 2000)

    lived_there = OccupancyRecord.query.filter(
        OccupancyRecord.tenant_id == tenant_id,
        OccupancyRecord.property_id == prop.id,
        OccupancyRecord.status.in_(REVIEWER_STATUSES),
    ).first()
    if lived_there is None:
        raise PermissionDeniedError("Only tenants of this property can review it")

    review = PropertyReview.query.filter_by(property_id=prop.id, tenant_id=tenant_id).first()
    if review is None:
        review = PropertyReview(property_id=prop.id, tenant_id=tenant_id)
        db.session.add(review)
    review.rating = rating
    review.comment = comment
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Tenant %s rated property %s: %d", tenant_id, prop.id, rating)
    return review


def reviews_for(property_id):
    return (
        PropertyReview.query.filter_by(property_id=property_id)
        .order_by(PropertyReview.created_at.desc())
        .all()
    )
