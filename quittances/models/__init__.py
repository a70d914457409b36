"""
Database models for the rent receipt service
Centralizes all SQLAlchemy model imports using factory pattern
"""
from .apartment import create_apartment_model
from .tenant import create_tenant_model
from .owner import create_owner_model
from .receipt_template import create_receipt_template_model
from .receipt import create_receipt_model

# Tables live on the shared db metadata, so the classes are built once per
# process and handed to every app created afterwards
_models = {}


def init_models(db):
    """
    Initialize all models with the database instance

    Args:
        db: SQLAlchemy database instance

    Returns:
        dict: Dictionary containing all model classes
    """
    if _models:
        return dict(_models)

    Apartment = create_apartment_model(db)
    Tenant = create_tenant_model(db)
    Owner = create_owner_model(db)
    ReceiptTemplate = create_receipt_template_model(db)
    Receipt = create_receipt_model(db)

    _models.update({
        'Apartment': Apartment,
        'Tenant': Tenant,
        'Owner': Owner,
        'ReceiptTemplate': ReceiptTemplate,
        'Receipt': Receipt,
    })
    return dict(_models)


__all__ = [
    'init_models',
    'create_apartment_model',
    'create_tenant_model',
    'create_owner_model',
    'create_receipt_template_model',
    'create_receipt_model',
    # Model registry exports
    'model_registry',
    'get_models',
]

# Import registry for convenience
from .registry import model_registry, get_models
