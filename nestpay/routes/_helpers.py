from flask import current_app, request

from nestpay.errors import NotFoundError, ValidationError
from nestpay.extensions import db


def lifecycle():
    return current_app.extensions["nestpay.lifecycle"]


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def status_filter(choices):
    status = request.args.get("status")
    if status and status not in choices:
        raise ValidationError(f"status must be one of: {', '.join(choices)}")
    return status


def get_or_404(model, ident, what):
    obj = db.session.get(model, ident)
    if obj is None:
        raise NotFoundError(f"{what} not found")
    return obj
