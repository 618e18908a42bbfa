# nestpay/errors.py
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class NestPayError(Exception):
    """Base class for errors raised by the lifecycle and catalog services."""

    status_code = 400
    code = "error"

    def __init__(self, message=None):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self):
        return {"error": self.code, "message": self.message}


class ValidationError(NestPayError):
    status_code = 400
    code = "validation_error"


class PermissionDeniedError(NestPayError):
    status_code = 403
    code = "forbidden"


class NotFoundError(NestPayError):
    status_code = 404
    code = "not_found"


class InvalidStateError(NestPayError):
    """Operation attempted from a state that does not allow it."""

    status_code = 409
    code = "invalid_state"


class ConflictError(NestPayError):
    """Lost a race on a unit, or a uniqueness rule was hit. Retryable."""

    status_code = 409
    code = "conflict"


def register_error_handlers(app):
    @app.errorhandler(NestPayError)
    def nestpay_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(400)
    def bad_request(e): return jsonify(error="bad_request", message=e.description), 400

    @app.errorhandler(401)
    def unauthorized(e): return jsonify(error="unauthorized", message=e.description), 401

    @app.errorhandler(403)
    def forbidden(e): return jsonify(error="forbidden", message=e.description), 403

    @app.errorhandler(404)
    def not_found(e): return jsonify(error="not_found", message=e.description), 404

    @app.errorhandler(405)
    def method_not_allowed(e): return jsonify(error="method_not_allowed", message=e.description), 405

    @app.errorhandler(422)
    def unprocessable(e): return jsonify(error="unprocessable", message=e.description), 422

    @app.errorhandler(500)
    def server_error(e):
        original = getattr(e, "original_exception", None)
        if original is not None and not isinstance(original, HTTPException):
            logger.error("Unhandled error: %s", original, exc_info=original)
        return jsonify(error="server_error", message="Something went wrong, try again"), 500
