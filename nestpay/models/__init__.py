from nestpay.extensions import db

# Core Models
from .user import UserProfile
from .property import Property, Unit
from .occupancy import OccupancyRecord, OccupancyStatus
from .payment import Payment, PaymentStatus, PaymentMethod

# Engagement
from .notification import Notification
from .review import PropertyReview

__all__ = [
    "db",
    "UserProfile",
    "Property",
    "Unit",
    "OccupancyRecord",
    "OccupancyStatus",
    "Payment",
    "PaymentStatus",
    "PaymentMethod",
    "Notification",
    "PropertyReview",
]
