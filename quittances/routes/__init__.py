"""
Routes package for the rent receipt service
Centralizes all route blueprints
"""
from .api_templates import api_templates_bp
from .api_receipts import api_receipts_bp
from .api_tenants import api_tenants_bp
from .api_apartments import api_apartments_bp
from .api_owner import api_owner_bp
from .health import health_bp

__all__ = [
    'api_templates_bp',
    'api_receipts_bp',
    'api_tenants_bp',
    'api_apartments_bp',
    'api_owner_bp',
    'health_bp',
]
