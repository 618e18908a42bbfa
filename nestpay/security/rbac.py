from collections import namedtuple
from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required

from nestpay.models.user import ROLES

CurrentUser = namedtuple("CurrentUser", ["id", "role"])


def current_user():
    """
    The authenticated caller as supplied by the identity provider.

    Identity is the token subject (user id); the role travels as a ``role``
    claim. Must be called inside a request that passed ``jwt_required``.
    """
    claims = get_jwt()
    return CurrentUser(id=str(get_jwt_identity()), role=claims.get("role"))


def current_profile():
    """The caller's local profile, created from the token on first use."""
    from nestpay.services.profiles import ensure_profile

    return ensure_profile(current_user(), get_jwt())


def require_role(*allowed_roles):
    """Decorator to require specific roles"""
    def decorator(f):
        @wraps(f)
        @jwt_required()
        def decorated_function(*args, **kwargs):
            role = get_jwt().get("role")
            if role not in ROLES or role not in allowed_roles:
                return jsonify(error="forbidden", message="Insufficient permissions"), 403
            current_profile()
            return f(*args, **kwargs)
        return decorated_function
    return decorator
