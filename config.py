"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Error tracking (production only)
    SENTRY_DSN = os.getenv('SENTRY_DSN')

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'sales')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'sales')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'sales')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'
    SQLALCHEMY_POOL_SIZE = int(os.getenv('SQLALCHEMY_POOL_SIZE', '10'))
    SQLALCHEMY_MAX_OVERFLOW = int(os.getenv('SQLALCHEMY_MAX_OVERFLOW', '20'))

    # Domain events (Redis pub/sub)
    # Events are always logged; Redis delivery is best effort
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    EVENTS_ENABLED = os.getenv('EVENTS_ENABLED', 'true').lower() == 'true'
    EVENTS_TOPIC_PREFIX = os.getenv('EVENTS_TOPIC_PREFIX', 'sales')

    # Sales listing
    SALES_DEFAULT_PAGE_SIZE = int(os.getenv('SALES_DEFAULT_PAGE_SIZE', '10'))
    SALES_MAX_PAGE_SIZE = int(os.getenv('SALES_MAX_PAGE_SIZE', '100'))


class TestingConfig(Config):
    """Configuration for the test suite: in-memory SQLite, no Redis."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ECHO = False
    EVENTS_ENABLED = False
    SENTRY_DSN = None
