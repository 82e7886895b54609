# backend/homestock/__init__.py
import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import HomeStockError
from .extensions import db


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)

    # Import models so metadata is complete before create_all
    from . import models  # noqa: F401
    # Registers the ItemInstance before_update listener
    from .services import timestamps  # noqa: F401

    # Register blueprints
    from .routes.homes import homes_bp
    from .routes.inventory import inventory_bp
    from .routes.boxes import boxes_bp

    app.register_blueprint(homes_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(boxes_bp)

    @app.errorhandler(HomeStockError)
    def handle_homestock_error(exc: HomeStockError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        app.logger.exception("Unhandled error")
        return jsonify({"error": "internal_error", "message": "Internal server error"}), 500

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
