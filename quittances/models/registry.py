"""
Model Registry - Centralized model access using Flask extension pattern

Models are built by factory functions bound to the shared ``db`` instance,
then registered here so services and blueprints can look them up without
importing the factories.

Usage:
    from quittances.models.registry import get_models

    def my_view():
        models = get_models()
        tenant = models['Tenant'].query.first()
"""
from flask import current_app
from typing import Dict, Any, Optional


class ModelRegistry:
    """
    Flask extension for centralized model management
    """

    def __init__(self, app=None):
        """
        Initialize the model registry

        Args:
            app: Optional Flask app instance for immediate initialization
        """
        self.models: Dict[str, Any] = {}
        if app:
            self.init_app(app)

    def init_app(self, app):
        """
        Initialize extension with Flask app

        Args:
            app: Flask application instance
        """
        app.extensions['models'] = self

    def register(self, models_dict: Dict[str, Any]):
        """
        Register all models with the registry

        Args:
            models_dict: Dictionary mapping model names to model classes
        """
        self.models = models_dict

    def get(self, model_name: str) -> Optional[Any]:
        """Get model class by name, or None if not registered"""
        return self.models.get(model_name)

    def __getitem__(self, model_name: str) -> Any:
        return self.models[model_name]

    def all(self) -> Dict[str, Any]:
        """Copy of every registered model"""
        return self.models.copy()


# Global instance
model_registry = ModelRegistry()

def get_models() -> Dict[str, Any]:
    """
    Get all registered models from the current app context

    Returns:
        Dictionary containing all registered models

    Raises:
        RuntimeError: If called outside application context
    """
    if 'models' not in current_app.extensions:
        raise RuntimeError(
            "ModelRegistry not initialized. "
            "Ensure model_registry.init_app(app) is called during app setup."
        )

    return current_app.extensions['models'].models

