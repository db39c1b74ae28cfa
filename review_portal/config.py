"""
Student Review Portal
Configuration classes for the app factory.

    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name]())

Gate and workflow settings live on the base class so every environment
scores titles the same way; only storage and safety settings differ.
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _database_url(default=None):
    # SQLAlchemy 2.0 only accepts the postgresql:// scheme
    url = os.getenv("DATABASE_URL", "")
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url or default


class Config:
    """Settings shared by every environment."""

    SECRET_KEY = os.getenv("SECRET_KEY") or secrets.token_hex(32)
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True, "pool_recycle": 300}

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    MAX_CONTENT_LENGTH = 1024 * 1024

    # Flask-Limiter reads RATELIMIT_STORAGE_URI itself
    RATELIMIT_STORAGE_URI = os.getenv("REDIS_URL", "memory://")
    RATELIMIT_SEARCH = os.getenv("RATELIMIT_SEARCH", "60/minute")

    # Submission gate
    SIMILARITY_THRESHOLD = int(os.getenv("SIMILARITY_THRESHOLD", "60"))
    SIMILARITY_REFERENCE_FLOOR = 50
    TITLE_MIN_TOKEN_LENGTH = 3

    # Title search
    SEARCH_RESULT_LIMIT = 20
    SUGGESTION_LIMIT = 8
    SUGGESTION_MIN_QUERY_LENGTH = 2

    # Projects: due offsets in days for stages 0..3
    DEFAULT_DEPARTMENT = os.getenv("DEFAULT_DEPARTMENT", "Computer Science")
    STAGE_DUE_DAYS = (7, 21, 35, 49)
    UNREAD_NOTIFICATION_PREVIEW = 5


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(
        f"sqlite:///{os.path.join(basedir, 'instance', 'review_portal_dev.db')}"
    )


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False
    SIMILARITY_THRESHOLD = 60


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        "pool_timeout": 20,
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
