"""
Template Store

Persistence of receipt templates, including the single-default rule.

Every change to the default flag runs under one process-wide lock and is
committed in a single transaction: all flags are cleared, then the target is
flagged. Readers therefore never observe zero or two defaults.
"""
import logging
import os
import threading
from typing import Any, Dict, List, Optional, Union

from quittances.error_handlers.exceptions import (
    CannotDeleteDefaultException,
    ResourceNotFoundException,
    ValidationException,
)
from quittances.models.receipt_template import TEMPLATE_TYPES
from quittances.receipts.layout import (
    BackgroundMode,
    TemplateConfiguration,
    complete,
    default_configuration,
    validate,
)

logger = logging.getLogger(__name__)

_default_lock = threading.Lock()

EDITABLE_FIELDS = ('name', 'description', 'template_type', 'is_active',
                   'background_asset_path', 'source_file_path')


class TemplateStore:
    """
    Service for storing and selecting receipt templates.
    """

    def __init__(self, db, models: Dict):
        """
        Initialize with database and models.

        Args:
            db: SQLAlchemy database instance
            models: Dictionary of model classes
        """
        self.db = db
        self.ReceiptTemplate = models['ReceiptTemplate']

    # =====================
    # Queries
    # =====================

    def find_all(self, active_only: bool = False) -> List[Any]:
        """Templates, default first, then most recently created"""
        query = self.ReceiptTemplate.query
        if active_only:
            query = query.filter(self.ReceiptTemplate.is_active.is_(True))
        return query.order_by(
            self.ReceiptTemplate.is_default.desc(),
            self.ReceiptTemplate.created_at.desc(),
            self.ReceiptTemplate.id.desc()
        ).all()

    def find_by_id(self, template_id: int):
        """Template with this id, or None"""
        return self.db.session.get(self.ReceiptTemplate, template_id)

    def get(self, template_id: int):
        """
        Template with this id.

        Raises:
            ResourceNotFoundException: when no template has this id
        """
        template = self.find_by_id(template_id)
        if template is None:
            raise ResourceNotFoundException(
                f'Template {template_id} not found',
                details={'template_id': template_id}
            )
        return template

    def find_default(self):
        """
        The default template.

        Raises:
            ResourceNotFoundException: when no template is flagged default
        """
        template = self.ReceiptTemplate.query.filter_by(is_default=True).first()
        if template is None:
            raise ResourceNotFoundException('No default template found')
        return template

    # =====================
    # Mutations
    # =====================

    def create(self, data: Optional[Dict[str, Any]] = None, **fields):
        """
        Store a new template.

        The first template ever stored becomes the default. Missing sections
        are filled from the standard layout before validation.

        Raises:
            ValidationException: on a missing name or invalid configuration
        """
        values = dict(data or {}, **fields)
        name = (values.get('name') or '').strip()
        if not name:
            raise ValidationException('Template name is required', details={'field': 'name'})

        template_type = values.get('template_type') or 'custom'
        self._check_type(template_type)

        configuration = self._normalize(values.get('configuration'))

        with _default_lock:
            make_default = bool(values.get('is_default')) or \
                self.ReceiptTemplate.query.filter_by(is_default=True).count() == 0

            template = self.ReceiptTemplate(
                name=name,
                description=values.get('description'),
                template_type=template_type,
                is_active=values.get('is_active', True),
                is_default=False,
                configuration=configuration.to_dict(),
                background_asset_path=values.get('background_asset_path'),
                source_file_path=values.get('source_file_path'),
            )
            try:
                if make_default:
                    self._clear_default_flags()
                    template.is_default = True
                self.db.session.add(template)
                self.db.session.commit()
            except Exception:
                self.db.session.rollback()
                raise

            logger.info(f"Created template {template.id} '{template.name}'"
                        f"{' (default)' if template.is_default else ''}")
        return template

    def update(self, template_id: int, data: Dict[str, Any]):
        """
        Replace a template's fields.

        A configuration in ``data`` replaces the stored one as a whole.

        Raises:
            ResourceNotFoundException: when no template has this id
            ValidationException: on invalid values
        """
        template = self.get(template_id)

        if 'name' in data and not (data.get('name') or '').strip():
            raise ValidationException('Template name is required', details={'field': 'name'})
        if 'template_type' in data:
            self._check_type(data['template_type'])
        if data.get('is_default') is False and template.is_default:
            raise ValidationException(
                'The default template cannot be unset; set another template as default instead',
                details={'field': 'is_default'}
            )

        configuration = None
        if 'configuration' in data:
            configuration = self._normalize(data['configuration'])

        with _default_lock:
            try:
                for field_name in EDITABLE_FIELDS:
                    if field_name in data:
                        value = data[field_name]
                        setattr(template, field_name, value.strip() if field_name == 'name' else value)
                if configuration is not None:
                    template.configuration = configuration.to_dict()
                if data.get('is_default') and not template.is_default:
                    self._clear_default_flags()
                    template.is_default = True
                self.db.session.commit()
            except Exception:
                self.db.session.rollback()
                raise

            logger.info(f"Updated template {template.id} '{template.name}'")
        return template

    def delete(self, template_id: int) -> None:
        """
        Delete a template and, best effort, its stored files.

        Raises:
            ResourceNotFoundException: when no template has this id
            CannotDeleteDefaultException: when the template is the default
        """
        with _default_lock:
            template = self.get(template_id)
            if template.is_default:
                raise CannotDeleteDefaultException(
                    'The default template cannot be deleted',
                    details={'template_id': template_id}
                )

            assets = [path for path in (template.background_asset_path, template.source_file_path) if path]
            try:
                self.db.session.delete(template)
                self.db.session.commit()
            except Exception:
                self.db.session.rollback()
                raise

        logger.info(f"Deleted template {template_id}")
        for path in dict.fromkeys(assets):
            self._remove_asset(path)

    def set_default(self, template_id: int):
        """
        Make a template the default, clearing the flag everywhere else.

        Raises:
            ResourceNotFoundException: when no template has this id
        """
        with _default_lock:
            template = self.get(template_id)
            try:
                self._clear_default_flags()
                template.is_default = True
                self.db.session.commit()
            except Exception:
                self.db.session.rollback()
                raise

        logger.info(f"Template {template_id} is now the default")
        return template

    def attach_background(self, template_id: int, asset_path: str):
        """
        Paint ``asset_path`` behind receipts rendered with this template.

        Raises:
            ResourceNotFoundException: when no template has this id
        """
        template = self.get(template_id)
        mode = BackgroundMode.PDF if asset_path.lower().endswith('.pdf') else BackgroundMode.IMAGE
        previous = template.background_asset_path

        config = template.template_configuration().with_background(mode, asset_path)
        try:
            template.background_asset_path = asset_path
            template.configuration = config.to_dict()
            self.db.session.commit()
        except Exception:
            self.db.session.rollback()
            raise

        if previous and previous != asset_path and previous != template.source_file_path:
            self._remove_asset(previous)
        logger.info(f"Attached background {os.path.basename(asset_path)} to template {template_id}")
        return template

    # =====================
    # Helpers
    # =====================

    def _clear_default_flags(self):
        self.ReceiptTemplate.query.filter(self.ReceiptTemplate.is_default.is_(True)).update(
            {'is_default': False}, synchronize_session='fetch'
        )

    @staticmethod
    def _check_type(template_type):
        if template_type not in TEMPLATE_TYPES:
            raise ValidationException(
                f"Invalid template type '{template_type}'. Allowed values: {', '.join(TEMPLATE_TYPES)}",
                details={'field': 'template_type'}
            )

    @staticmethod
    def _normalize(configuration: Union[None, Dict[str, Any], TemplateConfiguration]) -> TemplateConfiguration:
        if configuration is None:
            config = default_configuration()
        elif isinstance(configuration, TemplateConfiguration):
            config = configuration
        else:
            config = TemplateConfiguration.from_dict(configuration)

        config = complete(config)
        errors = validate(config)
        if errors:
            raise ValidationException('Invalid template configuration', details={'errors': errors})
        return config

    @staticmethod
    def _remove_asset(path: str):
        try:
            if os.path.exists(path):
                os.remove(path)
                logger.info(f"Removed template asset {path}")
        except OSError as e:
            logger.warning(f"Could not remove template asset {path}: {e}")
