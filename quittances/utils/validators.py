"""
Validation utilities for the rent receipt API
Reusable helpers shared by the blueprints and services
"""
import re
from typing import Any, Dict, List

from flask import request

from quittances.error_handlers.exceptions import ValidationException

SENSITIVE_FIELDS = ('password', 'token', 'api_key', 'secret', 'credential')


def get_json_body() -> Dict[str, Any]:
    """
    JSON object sent with the current request.

    Raises:
        ValidationException: If the body is missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationException('Request body must be a JSON object')
    return data


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[str]:
    """Flatten pydantic error entries into "field: message" strings"""
    formatted = []
    for error in errors:
        location = '.'.join(str(part) for part in error.get('loc', ()))
        formatted.append(f"{location}: {error.get('msg')}" if location else error.get('msg'))
    return formatted


def sanitize_request_data(data: str) -> str:
    """
    Remove sensitive data from request strings for safe logging.

    Examples:
        >>> sanitize_request_data('{"password": "secret123"}')
        '{"password": "[REDACTED]"}'
    """
    for field_name in SENSITIVE_FIELDS:
        data = re.sub(rf'("{field_name}"\s*:\s*")[^"]*(")', r'\1[REDACTED]\2', data, flags=re.IGNORECASE)
    return data
