"""
Unified Error Handling System

Provides centralized, consistent error handling across the application.

Usage:
    from quittances.error_handlers import handle_errors
    from quittances.error_handlers.exceptions import ValidationException

    @receipts_bp.route('/generate', methods=['POST'])
    @handle_errors
    def generate_receipt():
        if not valid:
            raise ValidationException('Invalid data')
        return jsonify({'success': True})
"""
from .exceptions import (
    AppException,
    ValidationException,
    ResourceNotFoundException,
    DuplicatePeriodException,
    CannotDeleteDefaultException,
    UnsupportedTemplateTypeException,
    MissingRequiredFactException,
    RenderFailureException,
    EmailDeliveryException,
    ConfigurationException
)
from .decorators import handle_errors, with_db_transaction


__all__ = [
    # Exceptions
    'AppException',
    'ValidationException',
    'ResourceNotFoundException',
    'DuplicatePeriodException',
    'CannotDeleteDefaultException',
    'UnsupportedTemplateTypeException',
    'MissingRequiredFactException',
    'RenderFailureException',
    'EmailDeliveryException',
    'ConfigurationException',
    # Decorators
    'handle_errors',
    'with_db_transaction',
]


def setup_logging(app):
    """Configure application logging"""
    from quittances.error_handlers import logging as eh_logging
    return eh_logging.setup_logging(app)


def register_error_handlers(app):
    """Register global error handlers for the Flask app"""
    from quittances.error_handlers import logging as eh_logging
    eh_logging.register_error_handlers(app)
