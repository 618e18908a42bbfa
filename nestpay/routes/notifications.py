from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from nestpay.errors import PermissionDeniedError
from nestpay.models import Notification
from nestpay.security.rbac import current_user
from nestpay.services import notifications
from ._helpers import get_or_404

bp = Blueprint("notifications", __name__)


@bp.get("/notifications")
@jwt_required()
def list_notifications():
    unread = str(request.args.get("unread", "")).lower() in {"1", "true", "yes", "on"}
    items = notifications.list_notifications(current_user().id, unread_only=unread)
    return jsonify({"total": len(items), "items": [n.serialize() for n in items]}), 200


@bp.post("/notifications/<string:notification_id>/read")
@jwt_required()
def mark_read(notification_id):
    notification = get_or_404(Notification, notification_id, "Notification")
    if notification.user_id != current_user().id:
        raise PermissionDeniedError("Not your notification")
    notifications.mark_read(notification)
    return jsonify(notification.serialize()), 200
