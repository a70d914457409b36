"""
Configuration management for the rent receipt service
Handles environment-based settings for storage, landlord seeding and mail

Lazy validation pattern: only production validates its settings, so
development and tests run without any environment configured.
"""
import os
import secrets
from decouple import config
from typing import Optional


class Config:
    """Base configuration class"""
    # Flask settings
    SECRET_KEY = config('SECRET_KEY', default=secrets.token_hex(32))
    SQLALCHEMY_DATABASE_URI = config('DATABASE_URL', default='sqlite:///instance/quittances.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Storage locations (relative paths are resolved against the project root)
    RECEIPTS_DIR = config('RECEIPTS_DIR', default='receipts')
    UPLOAD_DIR = config('UPLOAD_DIR', default='uploads/templates')
    MAX_CONTENT_LENGTH = config('MAX_CONTENT_LENGTH', default=10 * 1024 * 1024, cast=int)  # 10MB uploads

    # Landlord record seeded on first start
    LANDLORD_NAME = config('LANDLORD_NAME', default='NGUYEN Van Luong')
    LANDLORD_ADDRESS1 = config('LANDLORD_ADDRESS1', default='12 rue de la Paix')
    LANDLORD_ADDRESS2 = config('LANDLORD_ADDRESS2', default='78000 Versailles')
    LANDLORD_SIGNATURE = config('LANDLORD_SIGNATURE', default='NGUYEN Van Luong')
    LANDLORD_CITY = config('LANDLORD_CITY', default='')

    # Outgoing mail (receipts sent to tenants)
    MAIL_HOST = config('MAIL_HOST', default='')
    MAIL_PORT = config('MAIL_PORT', default=587, cast=int)
    MAIL_USERNAME = config('MAIL_USERNAME', default='')
    MAIL_PASSWORD = config('MAIL_PASSWORD', default='')
    MAIL_SENDER = config('MAIL_SENDER', default='')
    MAIL_SENDER_NAME = config('MAIL_SENDER_NAME', default='ImmoFacile')
    MAIL_USE_TLS = config('MAIL_USE_TLS', default=True, cast=bool)

    # Logging settings
    LOG_LEVEL = config('LOG_LEVEL', default='INFO')
    LOG_FILE = config('LOG_FILE', default='logs/quittances.log')

    # Rate limiting
    RATELIMIT_ENABLED = config('RATELIMIT_ENABLED', default=True, cast=bool)
    RATELIMIT_DEFAULT = config('RATELIMIT_DEFAULT', default='200 per hour')

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration - can be called explicitly or on-demand

        Raises:
            ValueError: If required configuration is missing
        """
        pass  # Base config has no required validation


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    RATELIMIT_ENABLED = False
    MAIL_HOST = ''
    LOG_FILE = 'logs/quittances-test.log'


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SECRET_KEY = config('SECRET_KEY', default='change-this-to-a-random-secret-key-in-production')

    # Database Connection Pool (for production databases)
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': config('DB_POOL_SIZE', default=10, cast=int),
        'pool_recycle': config('DB_POOL_RECYCLE', default=3600, cast=int),
        'pool_pre_ping': True,
    }

    LOG_LEVEL = config('LOG_LEVEL', default='WARNING')

    @classmethod
    def validate(cls) -> None:
        """
        Production mode: validate all required settings

        Raises:
            ValueError: If any required configuration is missing
        """
        try:
            secret_key = config('SECRET_KEY')
        except Exception:
            raise ValueError(
                "SECRET_KEY environment variable must be set in production. "
                "Generate a secure key with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )

        if len(secret_key) < 32:
            raise ValueError(
                f"SECRET_KEY must be at least 32 characters in production (current: {len(secret_key)})."
            )

        receipts_dir = cls.RECEIPTS_DIR
        if os.path.isabs(receipts_dir) and not os.access(os.path.dirname(receipts_dir) or '/', os.W_OK):
            raise ValueError(f"RECEIPTS_DIR is not writable: {receipts_dir}")


# Configuration mapping
config_mapping = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: Optional[str] = None, validate: bool = False) -> type:
    """
    Get configuration class based on environment.

    Args:
        config_name: Environment name ('development', 'testing', 'production')
        validate: Whether to validate configuration immediately (default: False)

    Returns:
        Config class for the specified environment

    Raises:
        ValueError: If validation is enabled and required variables are missing
    """
    if config_name is None:
        config_name = config('FLASK_ENV', default='development')

    config_class = config_mapping.get(config_name, DevelopmentConfig)

    if validate:
        config_class.validate()

    return config_class
