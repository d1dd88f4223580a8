from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
import logging

from .config import get_config, ProductionConfig, DEV_JWT_SECRET
from .errors import register_error_handlers
from identity.refresh import RefreshTokenStore
from identity.session import SessionCoordinator
from identity.timing import FailureDelay
from identity.tokens import TokenEncoder
from models import storage  # DBStorage singleton (scoped_session)

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Identity Session API",
        "version": "1.0.0",
        "description": "Login, registration and refresh-token rotation for short-lived JWT access tokens.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def build_session_coordinator(config, repository, clock=None) -> SessionCoordinator:
    """Assemble the identity core from a Flask config mapping."""
    encoder = TokenEncoder(
        secret=config["JWT_SECRET"],
        issuer=config["JWT_ISSUER"],
        audience=config.get("JWT_AUDIENCE"),
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
    )
    refresh_store = RefreshTokenStore(
        repository,
        lifetime=config["REFRESH_TOKEN_EXPIRES"],
        grace=config["REFRESH_TOKEN_GRACE"],
    )
    delay = FailureDelay(config["LOGIN_FAILURE_DELAY_MIN_MS"], config["LOGIN_FAILURE_DELAY_MAX_MS"])
    kwargs = {"clock": clock} if clock is not None else {}
    return SessionCoordinator(
        repository,
        encoder,
        refresh_store,
        access_lifetime=config["ACCESS_TOKEN_EXPIRES"],
        failure_delay=delay,
        default_roles=config.get("DEFAULT_ROLES", ["user"]),
        **kwargs,
    )


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (tests use it
    to swap the database URL or delay bounds).
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    if app.config["JWT_SECRET"] == DEV_JWT_SECRET and get_config(config_name) is ProductionConfig:
        raise RuntimeError("JWT_SECRET must be set in production")

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    storage.reload(app.config["DATABASE_URL"])
    app.extensions["identity"] = build_session_coordinator(app.config, storage)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/identity/account")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Identity Session API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    logger.info("identity api started (env=%s)", app.config.get("APP_ENV"))
    return app
