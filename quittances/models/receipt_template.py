"""
Receipt Template Model
======================

Stores the page description used to paint receipts. The configuration is a
JSON document in the camelCase form handled by
``quittances.receipts.layout.TemplateConfiguration``.

Exactly one row carries ``is_default``; the template store keeps that true.
"""
from datetime import datetime

from quittances.receipts.layout import BackgroundMode, TemplateConfiguration

TEMPLATE_TYPES = ('default', 'custom', 'uploaded')


def create_receipt_template_model(db):
    """
    Factory function to create the ReceiptTemplate model with the given db instance.

    Args:
        db: SQLAlchemy instance

    Returns:
        ReceiptTemplate model class
    """

    class ReceiptTemplate(db.Model):
        __tablename__ = 'receipt_templates'

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        name = db.Column(db.String(200), nullable=False)
        description = db.Column(db.String(500), nullable=True)
        template_type = db.Column(db.String(20), nullable=False, default='custom')
        is_active = db.Column(db.Boolean, nullable=False, default=True)
        is_default = db.Column(db.Boolean, nullable=False, default=False)
        configuration = db.Column(db.JSON, nullable=True)
        background_asset_path = db.Column(db.String(500), nullable=True)
        source_file_path = db.Column(db.String(500), nullable=True)  # Original upload analyzed at creation
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
        updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

        __table_args__ = (
            db.CheckConstraint("template_type IN ('default', 'custom', 'uploaded')", name='ck_receipt_templates_type'),
            db.Index('idx_receipt_templates_default', 'is_default'),
        )

        def template_configuration(self):
            """Parsed configuration as stored"""
            return TemplateConfiguration.from_dict(self.configuration or {})

        def resolved_configuration(self):
            """
            Configuration used for rendering.

            A background attached to the template is painted when the stored
            layout names none of its own.
            """
            config = self.template_configuration()
            if self.background_asset_path and not config.layout.background_asset_ref:
                mode = BackgroundMode.PDF if self.background_asset_path.lower().endswith('.pdf') \
                    else BackgroundMode.IMAGE
                config = config.with_background(mode, self.background_asset_path)
            return config

        def to_dict(self):
            """Convert to dictionary for JSON serialization"""
            return {
                'id': self.id,
                'name': self.name,
                'description': self.description,
                'templateType': self.template_type,
                'isActive': self.is_active,
                'isDefault': self.is_default,
                'configuration': self.configuration,
                'backgroundAssetPath': self.background_asset_path,
                'sourceFilePath': self.source_file_path,
                'createdAt': self.created_at.isoformat() if self.created_at else None,
                'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
            }

        def __repr__(self):
            return f'<ReceiptTemplate {self.id}: {self.name}{" (default)" if self.is_default else ""}>'

    return ReceiptTemplate
