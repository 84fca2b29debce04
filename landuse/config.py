"""
Change of Land Use Portal
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name]())
"""

import os
import secrets

# Generate a random key for development; production MUST use a stable env var
_DEV_SECRET = secrets.token_hex(32)

_DEFAULT_BACKEND_URL = "https://conversionapi.globizsapp.com/api"


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    # Remote CLU backend (owns all application + workflow state)
    BACKEND_BASE_URL = os.getenv("BACKEND_BASE_URL", _DEFAULT_BACKEND_URL)
    BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "30"))
    BACKEND_UPLOAD_TIMEOUT = float(os.getenv("BACKEND_UPLOAD_TIMEOUT", "60"))

    # Legacy batch-forward path: one worker per in-flight single transition
    BATCH_MAX_WORKERS = int(os.getenv("BATCH_MAX_WORKERS", "8"))

    # verification_status_id the backend uses for a plain "Forward"
    FORWARD_VERIFICATION_STATUS_ID = int(os.getenv("FORWARD_VERIFICATION_STATUS_ID", "6"))

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Rate limiting of mutating routes (duplicate-submission guard)
    RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Multipart attachments are proxied to the backend upload endpoint
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(20 * 1024 * 1024)))


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    BACKEND_BASE_URL = "https://backend.test/api"
    BACKEND_TIMEOUT = 5.0
    BACKEND_UPLOAD_TIMEOUT = 5.0
    BATCH_MAX_WORKERS = 4
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    BACKEND_BASE_URL = os.getenv("BACKEND_BASE_URL")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production

    def __init__(self):
        if not self.BACKEND_BASE_URL:
            raise RuntimeError("BACKEND_BASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
