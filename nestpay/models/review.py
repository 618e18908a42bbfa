import uuid

from sqlalchemy import func

from nestpay.extensions import db
from nestpay.utils.dates import utcnow, isoformat_or_none


class PropertyReview(db.Model):
    __tablename__ = "property_reviews"
    __table_args__ = (
        db.UniqueConstraint("property_id", "tenant_id", name="uq_property_reviews_tenant"),
        db.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_property_reviews_rating"),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    property_id = db.Column(db.String(36), db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = db.Column(db.String(36), db.ForeignKey("user_profiles.id"), nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    tenant = db.relationship("UserProfile", lazy=True)

    @staticmethod
    def rating_summary(property_id):
        """Average rating and review count for a property."""
        avg, count = db.session.query(
            func.avg(PropertyReview.rating), func.count(PropertyReview.id)
        ).filter(PropertyReview.property_id == property_id).one()
        return {
            "property_id": property_id,
            "average_rating": round(float(avg), 2) if avg is not None else None,
            "review_count": count,
        }

    def serialize(self):
        return {
            "id": self.id,
            "property_id": self.property_id,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant.display_name if self.tenant else None,
            "rating": self.rating,
            "comment": self.comment,
            "created_at": isoformat_or_none(self.created_at),
        }
