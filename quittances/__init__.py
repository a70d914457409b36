"""
Flask application factory.

This module implements the application factory pattern for creating
Flask application instances with different configurations.
"""
import logging
import os

from flask import Flask

from .extensions import db, migrate, limiter
from .config import get_config

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = 'Template par défaut'
DEFAULT_TEMPLATE_DESCRIPTION = 'Template de quittance de loyer français standard'


def create_app(config_name=None):
    """
    Application factory function.

    Args:
        config_name: Configuration name (development, testing, production)
                    If None, determined from environment

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    # Apply ProxyFix for correct IP and scheme handling behind reverse proxies
    from werkzeug.middleware.proxy_fix import ProxyFix
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # Load configuration
    config_class = get_config(config_name, validate=config_name == 'production')
    app.config.from_object(config_class)

    # Ensure instance directory exists
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    os.makedirs(os.path.join(basedir, "instance"), exist_ok=True)

    # Update database URI to use absolute path
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///instance/'):
        app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{os.path.join(basedir, "instance", "quittances.db")}'

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Enable foreign key constraints for SQLite
    from sqlalchemy import event
    from sqlalchemy.engine import Engine

    @event.listens_for(Engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign key constraints for SQLite connections"""
        if 'sqlite' in str(type(dbapi_conn)).lower():
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    # Configure logging and error handling
    from quittances.error_handlers import setup_logging, register_error_handlers
    setup_logging(app)
    register_error_handlers(app)

    # Initialize database models
    from quittances.models import init_models, model_registry
    models = init_models(db)

    model_registry.init_app(app)
    model_registry.register(models)

    register_blueprints(app)

    return app


def register_blueprints(app):
    """Register all Flask blueprints."""
    from quittances.routes import (
        api_templates_bp,
        api_receipts_bp,
        api_tenants_bp,
        api_apartments_bp,
        api_owner_bp,
        health_bp,
    )

    app.register_blueprint(api_templates_bp)
    app.register_blueprint(api_receipts_bp)
    app.register_blueprint(api_tenants_bp)
    app.register_blueprint(api_apartments_bp)
    app.register_blueprint(api_owner_bp)
    app.register_blueprint(health_bp)

    # Probes are polled continuously and must never be throttled
    limiter.exempt(health_bp)


def seed_defaults(app):
    """
    Insert the landlord and the default template when absent.

    Must run inside an application context.
    """
    from quittances.models import get_models
    from quittances.receipts.layout import default_configuration
    from quittances.services.template_store import TemplateStore

    models = get_models()
    Owner = models['Owner']
    ReceiptTemplate = models['ReceiptTemplate']

    if Owner.get_owner() is None:
        owner = Owner(
            name=app.config['LANDLORD_NAME'],
            address1=app.config['LANDLORD_ADDRESS1'],
            address2=app.config['LANDLORD_ADDRESS2'] or None,
            signature=app.config['LANDLORD_SIGNATURE'] or None,
            city=app.config['LANDLORD_CITY'] or None,
        )
        db.session.add(owner)
        db.session.commit()
        logger.info(f"Created default owner record: {owner.name}")

    if ReceiptTemplate.query.count() == 0:
        TemplateStore(db, models).create(
            name=DEFAULT_TEMPLATE_NAME,
            description=DEFAULT_TEMPLATE_DESCRIPTION,
            template_type='default',
            is_default=True,
            configuration=default_configuration(),
        )
        logger.info("Created default receipt template")


def init_db(app):
    """Initialize the database and seed the default records."""
    with app.app_context():
        db.create_all()
        seed_defaults(app)
