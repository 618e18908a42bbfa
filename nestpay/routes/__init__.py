from .health import bp as health_bp
from .properties import bp as properties_bp
from .join_requests import bp as join_requests_bp
from .payments import bp as payments_bp
from .tenants import bp as tenants_bp
from .notifications import bp as notifications_bp


def register_routes(app):
    for bp in (health_bp, properties_bp, join_requests_bp, payments_bp, tenants_bp, notifications_bp):
        app.register_blueprint(bp, url_prefix="/api")
