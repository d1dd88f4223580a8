"""
Environment-aware configuration.
Signing secret, token lifetimes, rotation grace window and the failed-login
delay bounds are read once at startup and never changed at runtime.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_JWT_SECRET = "dev-secret-change-me"


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///identity.db")
    # jwt configurations
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "identity-session-api")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", JWT_ISSUER)
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.getenv("ACCESS_TOKEN_EXPIRES_MINUTES", "15")))
    REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.getenv("REFRESH_TOKEN_EXPIRES_DAYS", "7")))
    REFRESH_TOKEN_GRACE = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_GRACE_SECONDS", "60")))
    # randomized delay before answering a failed login / duplicate registration
    LOGIN_FAILURE_DELAY_MIN_MS = int(os.getenv("LOGIN_FAILURE_DELAY_MIN_MS", "100"))
    LOGIN_FAILURE_DELAY_MAX_MS = int(os.getenv("LOGIN_FAILURE_DELAY_MAX_MS", "1000"))
    DEFAULT_ROLES = os.getenv("DEFAULT_ROLES", "user").split(",")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    JWT_SECRET = "testing-secret-with-enough-bytes-for-hs256"
    LOGIN_FAILURE_DELAY_MIN_MS = 0
    LOGIN_FAILURE_DELAY_MAX_MS = 0


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/testing).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
