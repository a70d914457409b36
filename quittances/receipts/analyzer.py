"""
Template Analyzer
=================

Derives a starting TemplateConfiguration for an uploaded template file.

No content analysis is performed: the file family (image or PDF) selects a
preset tuned for that kind of backdrop, and style keywords in the template
name adjust it. ``synthesize`` builds named presets with no upload at all.
"""
import logging
import os
from datetime import datetime
from enum import Enum
from typing import Optional

from quittances.error_handlers.exceptions import UnsupportedTemplateTypeException, ValidationException
from .layout import (
    DEFAULT_TITLE, Align, BackgroundMode, FontStyle, Layout, PageSize, Position,
    SectionKey, SectionStyle, TemplateConfiguration, default_configuration,
)

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.bmp')
PDF_EXTENSIONS = ('.pdf',)

MUTED = '#666666'
WHITE = '#FFFFFF'


class TemplateFamily(str, Enum):
    IMAGE = 'image'
    PDF = 'pdf'


class StyleTag(str, Enum):
    MODERN = 'modern'
    CLASSIC = 'classic'
    COMPACT = 'compact'


# Checked in order; the first matching keyword wins
STYLE_KEYWORDS = (
    ('modern', StyleTag.MODERN),
    ('minimal', StyleTag.MODERN),
    ('classic', StyleTag.CLASSIC),
    ('traditional', StyleTag.CLASSIC),
    ('compact', StyleTag.COMPACT),
)

SYNTHESIZED_STYLES = ('standard', 'modern', 'classic', 'minimal')


def detect_family(asset_path: str, content_type: Optional[str] = None) -> TemplateFamily:
    """
    Classify an uploaded file as image or PDF.

    The caller's content type wins over the file extension.

    Raises:
        UnsupportedTemplateTypeException: for any other kind of file
    """
    if content_type:
        mime = content_type.split(';')[0].strip().lower()
        if mime.startswith('image/'):
            return TemplateFamily.IMAGE
        if mime == 'application/pdf':
            return TemplateFamily.PDF
        raise UnsupportedTemplateTypeException(
            f"Unsupported template file type: {mime}",
            details={'contentType': mime}
        )

    extension = os.path.splitext(asset_path or '')[1].lower()
    if extension in IMAGE_EXTENSIONS:
        return TemplateFamily.IMAGE
    if extension in PDF_EXTENSIONS:
        return TemplateFamily.PDF
    raise UnsupportedTemplateTypeException(
        f"Unsupported template file type: {extension or 'no extension'}",
        details={'extension': extension}
    )


def style_tag_for(name: Optional[str]) -> Optional[StyleTag]:
    if not name:
        return None
    lowered = name.lower()
    for keyword, tag in STYLE_KEYWORDS:
        if keyword in lowered:
            return tag
    return None


def _section(x, y, size, style=FontStyle.NORMAL, color=None, backing=None):
    return SectionStyle(
        position=Position(x, y),
        font_size=size,
        font_style=style,
        color=color,
        backing_color=WHITE if backing is not None else None,
        backing_opacity=backing,
    )


def _image_preset(asset_path: str) -> TemplateConfiguration:
    sections = {
        SectionKey.HEADER: SectionStyle(
            position=Position(50, 80), font_size=16, font_style=FontStyle.BOLD,
            align=Align.CENTER, title=DEFAULT_TITLE),
        SectionKey.LANDLORD_INFO: _section(70, 130, 10),
        SectionKey.TENANT_INFO: _section(350, 175, 10),
        SectionKey.PROPERTY_ADDRESS: _section(70, 240, 11, FontStyle.BOLD),
        SectionKey.MAIN_TEXT: _section(70, 280, 11),
        SectionKey.PAYMENT_DETAILS: _section(70, 380, 11),
        SectionKey.SIGNATURE: _section(70, 500, 11),
        SectionKey.FOOTER: _section(70, 580, 9, color=MUTED),
    }
    layout = Layout(margin=50, page_size=PageSize.A4,
                    background_mode=BackgroundMode.IMAGE, background_asset_ref=asset_path)
    return TemplateConfiguration(layout=layout, sections=sections)


def _pdf_preset(asset_path: str) -> TemplateConfiguration:
    sections = {
        SectionKey.HEADER: SectionStyle(
            position=Position(50, 100), font_size=14, font_style=FontStyle.BOLD,
            align=Align.CENTER, title=DEFAULT_TITLE,
            backing_color=WHITE, backing_opacity=0.8),
        SectionKey.LANDLORD_INFO: _section(80, 150, 9, backing=0.8),
        SectionKey.TENANT_INFO: _section(320, 190, 9, backing=0.8),
        SectionKey.PROPERTY_ADDRESS: _section(80, 260, 10, FontStyle.BOLD, backing=0.8),
        SectionKey.MAIN_TEXT: _section(80, 300, 10, backing=0.8),
        SectionKey.PAYMENT_DETAILS: _section(80, 400, 10, backing=0.9),
        SectionKey.SIGNATURE: _section(80, 520, 10, backing=0.8),
        SectionKey.FOOTER: _section(80, 600, 8, color=MUTED, backing=0.7),
    }
    layout = Layout(margin=40, page_size=PageSize.A4,
                    background_mode=BackgroundMode.PDF, background_asset_ref=asset_path)
    return TemplateConfiguration(layout=layout, sections=sections)


def apply_style_tag(config: TemplateConfiguration, tag: Optional[StyleTag]) -> TemplateConfiguration:
    """Adjust a preset in place for a style keyword found in the template name"""
    if tag is None:
        return config

    header = config.sections[SectionKey.HEADER]
    if tag == StyleTag.MODERN:
        header.font_size = 18
        config.layout.margin = 60
    elif tag == StyleTag.CLASSIC:
        header.font_size = 16
        config.layout.margin = 40
    elif tag == StyleTag.COMPACT:
        for style in config.sections.values():
            style.position.y = max(0, style.position.y - 20)
            style.font_size = max(8, style.font_size - 1)
    return config


def analyze(asset_path: str, name: Optional[str] = None, template_type: Optional[str] = None,
            content_type: Optional[str] = None) -> TemplateConfiguration:
    """
    Build a configuration for an uploaded template file.

    Args:
        asset_path: Stored path of the upload, referenced as the background
        name: Template display name, scanned for style keywords
        template_type: Recorded in the metadata (defaults to 'uploaded')
        content_type: MIME type reported by the client, if any

    Returns:
        TemplateConfiguration with every section set

    Raises:
        UnsupportedTemplateTypeException: when the file is neither image nor PDF
    """
    family = detect_family(asset_path, content_type)
    if family == TemplateFamily.IMAGE:
        config = _image_preset(asset_path)
    else:
        config = _pdf_preset(asset_path)

    tag = style_tag_for(name)
    apply_style_tag(config, tag)

    config.metadata = {
        'generatedFrom': 'uploaded_template',
        'analysisDate': datetime.utcnow().isoformat(),
        'templateType': template_type or 'uploaded',
        'originalFile': os.path.basename(asset_path or ''),
    }
    logger.info(f"Analyzed {family.value} template {os.path.basename(asset_path or '')} "
                f"(style: {tag.value if tag else 'none'})")
    return config


def synthesize(style: str = 'standard', background_path: Optional[str] = None) -> TemplateConfiguration:
    """
    Named preset built from the standard layout.

    Args:
        style: One of 'standard', 'modern', 'classic', 'minimal'
        background_path: Optional image painted behind the receipt

    Raises:
        ValidationException: for an unknown style name
    """
    if style not in SYNTHESIZED_STYLES:
        raise ValidationException(
            f"Unknown template style '{style}'. Allowed values: {', '.join(SYNTHESIZED_STYLES)}",
            details={'field': 'style'}
        )

    config = default_configuration()
    header = config.sections[SectionKey.HEADER]

    if style == 'modern':
        header.font_size = 20
        header.color = '#2563eb'
        config.layout.margin = 60
    elif style == 'classic':
        header.font_size = 18
        header.font_style = FontStyle.BOLD
        config.layout.margin = 40
    elif style == 'minimal':
        header.font_size = 14
        header.font_style = FontStyle.NORMAL
        config.layout.margin = 70

    if background_path:
        config.layout.background_mode = BackgroundMode.IMAGE
        config.layout.background_asset_ref = background_path
    return config


def configuration_for_upload(asset_path: str, name: Optional[str] = None,
                             template_type: Optional[str] = None,
                             content_type: Optional[str] = None) -> TemplateConfiguration:
    """
    Analyze an upload, falling back to the standard preset for unsupported files.

    Template creation never fails on the file type; the upload is simply not
    used as a background when it cannot be classified.
    """
    try:
        return analyze(asset_path, name=name, template_type=template_type, content_type=content_type)
    except UnsupportedTemplateTypeException as e:
        logger.warning(f"Falling back to the standard layout for {asset_path}: {e.message}")
        return synthesize('standard')
