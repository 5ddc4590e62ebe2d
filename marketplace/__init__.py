import logging

from flask import Flask, jsonify
from .extensions import db, migrate, jwt
from .config import Config
from marketplace.utils.error_handlers import register_error_handlers
from marketplace.routes import register_blueprints


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)
    logging.getLogger("marketplace").setLevel(level)
    logging.getLogger("kafka").setLevel(logging.WARNING)


def create_app(config_class=Config):

    app = Flask(__name__)
    app.config.from_object(config_class)
    _configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # Tables must be known to the metadata before create_all / migrations
    from marketplace import models  # noqa: F401

    register_blueprints(app)
    register_error_handlers(app)

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"error": "Token has expired"}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({"error": "Invalid token"}), 422

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({"error": "Missing authorization header"}), 401

    @app.route("/health")
    def health():
        return {"status": "healthy"}, 200

    app.logger.info(f"Marketplace API started (kafka events {'on' if app.config['KAFKA_ENABLED'] else 'off'})")
    return app
