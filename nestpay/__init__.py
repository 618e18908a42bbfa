from flask import Flask
from flask_cors import CORS

from .extensions import db, init_extensions


def create_app(config_object="nestpay.config.Config"):
    app = Flask(__name__)
    app.config.from_object(config_object)

    from .logging_setup import configure_logging
    configure_logging(app)

    init_extensions(app)
    CORS(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", [])}},
         supports_credentials=True)

    from . import models  # noqa: F401  register tables
    from .services import notifications  # noqa: F401  connect signal receivers
    from .services.lifecycle import OccupancyLifecycleManager
    app.extensions["nestpay.lifecycle"] = OccupancyLifecycleManager()

    from .errors import register_error_handlers
    register_error_handlers(app)

    from .routes import register_routes
    register_routes(app)

    from .cli import register_commands
    register_commands(app)

    app.logger.info("NEST PAY app created (db=%s)", app.config.get("SQLALCHEMY_DATABASE_URI"))
    return app


__all__ = ["create_app", "db"]
