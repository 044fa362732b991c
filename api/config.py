"""
Environment-aware configuration.
Secrets, token lifetimes, database URL, logging and CORS all come from the
environment (with .env support). The auth core never reads these directly;
create_app() turns them into an AuthConfig.
"""
import os
from dotenv import load_dotenv

load_dotenv()  # Read .env if present

DEV_ACCESS_SECRET = "dev-access-secret-change-me-0123456789"
DEV_REFRESH_SECRET = "dev-refresh-secret-change-me-9876543210"


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///user-accounts.db")
    SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")
    # Access and refresh tokens are signed with different secrets
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", DEV_ACCESS_SECRET)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", DEV_REFRESH_SECRET)
    JWT_ACCESS_EXPIRES_MINUTES = int(os.getenv("JWT_ACCESS_EXPIRES_MINUTES", "15"))
    JWT_REFRESH_EXPIRES_DAYS = int(os.getenv("JWT_REFRESH_EXPIRES_DAYS", "7"))
    # argon2 cost; 0 keeps the argon2-cffi defaults
    PASSWORD_HASH_TIME_COST = int(os.getenv("PASSWORD_HASH_TIME_COST", "0"))
    PASSWORD_HASH_MEMORY_COST = int(os.getenv("PASSWORD_HASH_MEMORY_COST", "0"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
    LOG_FILE = os.getenv("LOG_FILE", "")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    LOG_FILE = ""
    JWT_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-fedcba9876543210"
    PASSWORD_HASH_TIME_COST = 1
    PASSWORD_HASH_MEMORY_COST = 8192


class ProductionConfig(BaseConfig):
    DEBUG = False
    ENFORCE_SECRETS = True
    LOG_FILE = os.getenv("LOG_FILE", "logs/app.log")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def validate_config(config) -> None:
    """Refuse to run production with the development signing secrets."""
    if not config.get("ENFORCE_SECRETS"):
        return
    if config["JWT_ACCESS_SECRET"] == DEV_ACCESS_SECRET or config["JWT_REFRESH_SECRET"] == DEV_REFRESH_SECRET:
        raise ValueError(
            "JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set to secure values in production. "
            'Generate them with: python -c "import secrets; print(secrets.token_urlsafe(32))"'
        )
