"""
Custom exception hierarchy for type-safe error handling

Every failure raised by the receipt engine, the template store and the
receipt service maps to an HTTP status code and a short machine-readable
error type, so endpoints can return consistent JSON error bodies.

Usage:
    from quittances.error_handlers.exceptions import ValidationException

    def generate(data):
        if not data.get('tenantId'):
            raise ValidationException('tenantId is required')

Exception Hierarchy:
    AppException (base)
    ├── ValidationException (400)
    ├── ResourceNotFoundException (404)
    ├── DuplicatePeriodException (409)
    ├── CannotDeleteDefaultException (409)
    ├── UnsupportedTemplateTypeException (415)
    ├── MissingRequiredFactException (422)
    ├── RenderFailureException (500)
    ├── EmailDeliveryException (502)
    └── ConfigurationException (500)
"""
from typing import Dict, Any, Optional


class AppException(Exception):
    """
    Base exception for all application errors

    Attributes:
        status_code: HTTP status code for the error
        error_type: String identifier for the error type
        message: Human-readable error message
        details: Additional context about the error
    """
    status_code = 500
    error_type = 'ApplicationError'

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception

        Args:
            message: Human-readable error message
            status_code: Optional HTTP status code override
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to JSON-serializable dictionary

        Returns:
            Dictionary suitable for JSON response
        """
        result = {
            'error': self.error_type,
            'message': self.message,
            'status_code': self.status_code
        }

        if self.details:
            result.update(self.details)

        return result

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}('{self.message}', status_code={self.status_code})>"


class ValidationException(AppException):
    """
    Validation errors (HTTP 400)

    Raised when required business fields (tenant id, amount, period) are
    missing or malformed. Never retried automatically.
    """
    status_code = 400
    error_type = 'ValidationError'


class ResourceNotFoundException(AppException):
    """
    Resource not found (HTTP 404)

    Example:
        >>> tenant = Tenant.query.get(tenant_id)
        >>> if not tenant:
        ...     raise ResourceNotFoundException(f'Tenant {tenant_id} not found')
    """
    status_code = 404
    error_type = 'NotFound'


class DuplicatePeriodException(AppException):
    """
    Receipt already generated for this tenant and period (HTTP 409)
    """
    status_code = 409
    error_type = 'DuplicatePeriod'


class CannotDeleteDefaultException(AppException):
    """
    The default template cannot be deleted (HTTP 409)
    """
    status_code = 409
    error_type = 'CannotDeleteDefault'


class UnsupportedTemplateTypeException(AppException):
    """
    Uploaded template file is neither an image nor a PDF (HTTP 415)

    Template creation catches this and falls back to a synthesized layout,
    so it only reaches clients from direct analyzer use.
    """
    status_code = 415
    error_type = 'UnsupportedTemplateType'


class MissingRequiredFactException(AppException):
    """
    Renderer invoked without landlord, tenant or payment facts (HTTP 422)
    """
    status_code = 422
    error_type = 'MissingRequiredFact'


class RenderFailureException(AppException):
    """
    I/O failure while rendering or writing a receipt (HTTP 500)

    The underlying exception is kept on ``cause`` for logging.
    """
    status_code = 500
    error_type = 'RenderFailure'

    def __init__(self, message: str, cause: Optional[BaseException] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.cause = cause


class EmailDeliveryException(AppException):
    """
    Mail server refused or failed to deliver a receipt (HTTP 502)
    """
    status_code = 502
    error_type = 'EmailDeliveryError'


class ConfigurationException(AppException):
    """
    Configuration errors (HTTP 500)

    Example:
        >>> if not config.MAIL_HOST:
        ...     raise ConfigurationException('MAIL_HOST not configured')
    """
    status_code = 500
    error_type = 'ConfigurationError'
