"""
API gateway: builds the Flask app with the auth and events blueprints.
This is the local entrypoint for development.

Usage:
    python -m backend.gateway.server
"""

import logging
import sys
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from backend.auth_service.guard import AuthGuard
from backend.auth_service.passwords import PasswordHasher
from backend.auth_service.routes import auth_bp
from backend.auth_service.service import AuthService
from backend.auth_service.store import UserStore
from backend.auth_service.tokens import TokenService
from backend.config import AppConfig, ConfigError, load_config
from backend.database.db_connection import connection_factory
from backend.errors import register_error_handlers
from backend.events_service.routes import events_bp
from backend.events_service.service import EventService
from backend.events_service.store import EventStore

LOG_FORMAT = "[%(levelname)s] %(asctime)s - %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Basic console logging for the process; returns the app's root logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger("backend")


def create_app(
    config: AppConfig,
    user_store: Optional[UserStore] = None,
    event_store: Optional[EventStore] = None,
    logger: Optional[logging.Logger] = None,
) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        config (AppConfig): Validated configuration, shared read-only by all
            components.
        user_store (UserStore, optional): Credential store. Defaults to the
            PostgreSQL store for `config.database_url`.
        event_store (EventStore, optional): Event store, same default.
        logger (logging.Logger, optional): Parent logger for components.

    Returns:
        Flask: The configured Flask app.
    """
    log = logger or logging.getLogger("backend")

    app = Flask(__name__)
    app.config["TESTING"] = config.app_env == "test"

    # Credentials (the token cookie) are only shared with explicitly listed
    # origins. A wildcard is answered with a literal "*", never an echo.
    wildcard = "*" in config.cors_origins
    CORS(app, resources={
        r"/*": {
            "origins": list(config.cors_origins),
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "supports_credentials": not wildcard,
            "send_wildcard": wildcard,
        }
    })

    @app.after_request
    def set_security_headers(response):
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if config.is_production:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response

    connect = connection_factory(config.database_url)
    user_store = user_store or UserStore(connect, log.getChild("users"))
    event_store = event_store or EventStore(connect, log.getChild("events"))

    tokens = TokenService(config)
    hasher = PasswordHasher(cost=config.password_hash_cost)

    app.extensions["config"] = config
    app.extensions["auth_guard"] = AuthGuard(tokens, log.getChild("guard"))
    app.extensions["auth_service"] = AuthService(user_store, hasher, tokens, log.getChild("auth"))
    app.extensions["event_service"] = EventService(event_store, log.getChild("events"))

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(events_bp, url_prefix="/events")
    register_error_handlers(app, log.getChild("errors"))
    log.info("Blueprints registered (%s)", config.app_env)

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"status": "gateway_ok"}), 200

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    return app


def main() -> int:
    logger = configure_logging()
    try:
        config = load_config()
    except ConfigError as e:
        # Refuse to serve traffic with a broken auth configuration.
        logger.error("%s", e)
        return 1

    logger.setLevel(config.log_level)
    app = create_app(config, logger=logger)
    app.run(host="0.0.0.0", port=config.port, debug=not config.is_production)
    return 0


if __name__ == "__main__":
    sys.exit(main())
