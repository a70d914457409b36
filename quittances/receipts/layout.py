"""
Receipt Layout Model
====================

Declarative description of a receipt page: page settings plus one style per
section. Positions use page units with the origin at the top-left corner,
the way templates are authored in the editor; the renderer converts them to
PDF coordinates.

The serialized form keeps the camelCase keys used by stored templates and
the editor, e.g.::

    {
        "layout": {"margin": 50, "pageSize": "A4", "backgroundMode": "none"},
        "sections": {
            "header": {"position": {"x": 50, "y": 70}, "fontSize": 18,
                       "fontStyle": "bold", "align": "center",
                       "title": "Quittance de loyer"},
            ...
        }
    }

Older documents that list the section keys at the top level, next to
``layout``, are read as well.
"""
import copy
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from reportlab.lib.pagesizes import A3, A4, LETTER

from quittances.error_handlers.exceptions import ValidationException


class SectionKey(str, Enum):
    """Content regions of a receipt, in painting order"""
    HEADER = 'header'
    LANDLORD_INFO = 'landlordInfo'
    TENANT_INFO = 'tenantInfo'
    PROPERTY_ADDRESS = 'propertyAddress'
    MAIN_TEXT = 'mainText'
    PAYMENT_DETAILS = 'paymentDetails'
    SIGNATURE = 'signature'
    FOOTER = 'footer'


class FontStyle(str, Enum):
    NORMAL = 'normal'
    BOLD = 'bold'
    ITALIC = 'italic'


class Align(str, Enum):
    LEFT = 'left'
    CENTER = 'center'
    RIGHT = 'right'


class PageSize(str, Enum):
    A4 = 'A4'
    A3 = 'A3'
    LETTER = 'Letter'


class BackgroundMode(str, Enum):
    NONE = 'none'
    IMAGE = 'image'
    PDF = 'pdf'


PAGE_DIMENSIONS = {
    PageSize.A4: A4,
    PageSize.A3: A3,
    PageSize.LETTER: LETTER,
}

HEX_COLOR = re.compile(r'^#[0-9a-fA-F]{6}$')
RGBA_COLOR = re.compile(
    r'^rgba\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*([0-9.]+)\s*\)$'
)


def _enum_value(enum_cls, value, field_name):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise ValidationException(
            f"Invalid {field_name} '{value}'. Allowed values: {allowed}",
            details={'field': field_name}
        )


def _number(value, field_name):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationException(f"{field_name} must be a number", details={'field': field_name})
    return value


@dataclass
class Position:
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], field_name: str = 'position') -> 'Position':
        if not isinstance(data, Mapping) or 'x' not in data or 'y' not in data:
            raise ValidationException(f"{field_name} requires x and y", details={'field': field_name})
        return cls(x=_number(data['x'], f'{field_name}.x'), y=_number(data['y'], f'{field_name}.y'))


@dataclass
class SectionStyle:
    """Position and typography of one receipt section"""
    position: Position
    font_size: float = 11
    font_style: FontStyle = FontStyle.NORMAL
    align: Align = Align.LEFT
    title: Optional[str] = None
    color: Optional[str] = None
    backing_color: Optional[str] = None
    backing_opacity: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'position': self.position.to_dict(),
            'fontSize': self.font_size,
            'fontStyle': self.font_style.value,
            'align': self.align.value,
        }
        if self.title is not None:
            data['title'] = self.title
        if self.color is not None:
            data['color'] = self.color
        if self.backing_color is not None:
            data['backingColor'] = self.backing_color
            data['backingOpacity'] = self.backing_opacity if self.backing_opacity is not None else 1.0
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], key: str = 'section',
                  fallback: Optional['SectionStyle'] = None) -> 'SectionStyle':
        """
        Build a style from its serialized form.

        Attributes missing from ``data`` come from ``fallback`` when given
        (used for stored documents written before every attribute existed).
        """
        if not isinstance(data, Mapping):
            raise ValidationException(f"Style for {key} must be an object", details={'field': key})

        base = fallback or SectionStyle(position=Position(0, 0))

        position = base.position
        if 'position' in data:
            position = Position.from_dict(data['position'], f'{key}.position')

        backing_color = data.get('backingColor', base.backing_color)
        backing_opacity = data.get('backingOpacity', base.backing_opacity)
        legacy_backing = data.get('backgroundColor')
        if legacy_backing and 'backingColor' not in data:
            backing_color, backing_opacity = _parse_rgba(legacy_backing)

        return cls(
            position=position,
            font_size=_number(data.get('fontSize', base.font_size), f'{key}.fontSize'),
            font_style=_enum_value(FontStyle, data.get('fontStyle', base.font_style), f'{key}.fontStyle'),
            align=_enum_value(Align, data.get('align', base.align), f'{key}.align'),
            title=data.get('title', base.title),
            color=data.get('color', base.color),
            backing_color=backing_color,
            backing_opacity=backing_opacity,
        )


def _parse_rgba(value: str):
    """'rgba(255, 255, 255, 0.8)' -> ('#FFFFFF', 0.8); hex strings pass through opaque"""
    if HEX_COLOR.match(value or ''):
        return value, 1.0
    match = RGBA_COLOR.match(value or '')
    if not match:
        return None, None
    r, g, b = (min(int(part), 255) for part in match.groups()[:3])
    return f'#{r:02X}{g:02X}{b:02X}', float(match.group(4))


@dataclass
class Layout:
    """Page-level settings"""
    margin: float = 50
    page_size: PageSize = PageSize.A4
    background_mode: BackgroundMode = BackgroundMode.NONE
    background_asset_ref: Optional[str] = None

    @property
    def page_dimensions(self):
        """(width, height) in points"""
        return PAGE_DIMENSIONS[self.page_size]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'margin': self.margin,
            'pageSize': self.page_size.value,
            'backgroundMode': self.background_mode.value,
            'backgroundAssetRef': self.background_asset_ref,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'Layout':
        data = data or {}
        if not isinstance(data, Mapping):
            raise ValidationException("layout must be an object", details={'field': 'layout'})

        mode = data.get('backgroundMode')
        asset = data.get('backgroundAssetRef')
        # Documents from the original editor flag the backdrop with booleans
        if mode is None:
            if data.get('useBackgroundImage') and data.get('backgroundImagePath'):
                mode, asset = BackgroundMode.IMAGE, data['backgroundImagePath']
            elif data.get('usePdfBackground') and data.get('backgroundPdfPath'):
                mode, asset = BackgroundMode.PDF, data['backgroundPdfPath']
            else:
                mode = BackgroundMode.NONE

        return cls(
            margin=_number(data.get('margin', 50), 'layout.margin'),
            page_size=_enum_value(PageSize, data.get('pageSize', PageSize.A4), 'layout.pageSize'),
            background_mode=_enum_value(BackgroundMode, mode, 'layout.backgroundMode'),
            background_asset_ref=asset,
        )


DEFAULT_TITLE = 'Quittance de loyer'

DEFAULT_LAYOUT = Layout(margin=50, page_size=PageSize.A4)

DEFAULT_SECTION_STYLES: Dict[SectionKey, SectionStyle] = {
    SectionKey.HEADER: SectionStyle(
        position=Position(50, 70), font_size=18, font_style=FontStyle.BOLD,
        align=Align.CENTER, title=DEFAULT_TITLE),
    SectionKey.LANDLORD_INFO: SectionStyle(position=Position(70, 130), font_size=10),
    SectionKey.TENANT_INFO: SectionStyle(position=Position(350, 175), font_size=10),
    SectionKey.PROPERTY_ADDRESS: SectionStyle(
        position=Position(70, 240), font_size=11, font_style=FontStyle.BOLD),
    SectionKey.MAIN_TEXT: SectionStyle(position=Position(70, 270), font_size=11),
    SectionKey.PAYMENT_DETAILS: SectionStyle(position=Position(70, 350), font_size=11),
    SectionKey.SIGNATURE: SectionStyle(position=Position(70, 480), font_size=11),
    SectionKey.FOOTER: SectionStyle(position=Position(70, 580), font_size=9),
}


@dataclass
class TemplateConfiguration:
    """Complete page description of a receipt template"""
    layout: Layout = field(default_factory=lambda: replace(DEFAULT_LAYOUT))
    sections: Dict[SectionKey, SectionStyle] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def style_for(self, key: SectionKey) -> SectionStyle:
        """Explicit style for ``key``, or its hard default"""
        key = SectionKey(key)
        style = self.sections.get(key)
        if style is None:
            return copy.deepcopy(DEFAULT_SECTION_STYLES[key])
        return style

    def missing_sections(self) -> List[SectionKey]:
        return [key for key in SectionKey if key not in self.sections]

    def with_background(self, mode: BackgroundMode, asset_path: Optional[str]) -> 'TemplateConfiguration':
        """Copy of this configuration painting ``asset_path`` behind the receipt"""
        clone = self.copy()
        clone.layout.background_mode = BackgroundMode(mode)
        clone.layout.background_asset_ref = asset_path
        return clone

    def copy(self) -> 'TemplateConfiguration':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'layout': self.layout.to_dict(),
            'sections': {key.value: style.to_dict() for key, style in self.sections.items()},
        }
        if self.metadata:
            data['metadata'] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'TemplateConfiguration':
        """
        Parse a serialized configuration.

        Raises:
            ValidationException: on unknown section keys or malformed values
        """
        data = data or {}
        if not isinstance(data, Mapping):
            raise ValidationException("configuration must be an object")

        if 'sections' in data:
            raw_sections = data.get('sections') or {}
            if not isinstance(raw_sections, Mapping):
                raise ValidationException("sections must be an object", details={'field': 'sections'})
            unknown = [name for name in raw_sections if name not in SectionKey._value2member_map_]
            if unknown:
                raise ValidationException(
                    f"Unknown section(s): {', '.join(sorted(unknown))}",
                    details={'field': 'sections'}
                )
        else:
            raw_sections = {name: value for name, value in data.items()
                            if name in SectionKey._value2member_map_}

        sections = {}
        for name, raw in raw_sections.items():
            key = SectionKey(name)
            sections[key] = SectionStyle.from_dict(raw, name, fallback=DEFAULT_SECTION_STYLES[key])

        return cls(
            layout=Layout.from_dict(data.get('layout')),
            sections=sections,
            metadata=dict(data.get('metadata') or {}),
        )


def default_configuration() -> TemplateConfiguration:
    """Standard French receipt layout with every section explicit"""
    return TemplateConfiguration(
        layout=replace(DEFAULT_LAYOUT),
        sections=copy.deepcopy(DEFAULT_SECTION_STYLES),
    )


def validate(config: TemplateConfiguration) -> List[str]:
    """
    Check a configuration before it is stored.

    Returns:
        List of problems; empty when the configuration is valid
    """
    errors = []
    width, height = config.layout.page_dimensions

    if config.layout.margin < 0:
        errors.append('layout.margin must be non-negative')
    if config.layout.background_mode != BackgroundMode.NONE and not config.layout.background_asset_ref:
        errors.append('layout.backgroundAssetRef is required when backgroundMode is set')

    for key in config.missing_sections():
        errors.append(f'{key.value}: style is missing')

    for key, style in config.sections.items():
        x, y = style.position.x, style.position.y
        if x < 0 or y < 0:
            errors.append(f'{key.value}.position must be non-negative')
        elif x > width or y > height:
            errors.append(f'{key.value}.position is outside the {config.layout.page_size.value} page')
        if style.font_size <= 0:
            errors.append(f'{key.value}.fontSize must be greater than 0')
        if style.color is not None and not HEX_COLOR.match(style.color):
            errors.append(f'{key.value}.color must be a #RRGGBB value')
        if style.backing_color is not None and not HEX_COLOR.match(style.backing_color):
            errors.append(f'{key.value}.backingColor must be a #RRGGBB value')
        if style.backing_opacity is not None and not 0 <= style.backing_opacity <= 1:
            errors.append(f'{key.value}.backingOpacity must be between 0 and 1')
        if style.title is not None and key != SectionKey.HEADER:
            errors.append(f'{key.value}.title is only allowed on the header')

    return errors


def merge(base: TemplateConfiguration,
          override: Union[TemplateConfiguration, Mapping[str, Any]]) -> TemplateConfiguration:
    """
    Apply ``override`` on top of ``base``.

    Each section present in the override replaces the base style as a whole;
    attributes are never combined across the two. A layout present in the
    override replaces the base layout the same way.

    Args:
        base: Configuration to start from (left untouched)
        override: Configuration, or a partial serialized document with
                  optional ``layout`` and ``sections`` keys

    Returns:
        New merged configuration
    """
    result = base.copy()

    if isinstance(override, TemplateConfiguration):
        result.layout = copy.deepcopy(override.layout)
        result.sections.update(copy.deepcopy(override.sections))
        result.metadata.update(override.metadata)
        return result

    if 'layout' in override:
        result.layout = Layout.from_dict(override['layout'])
    for name, raw in (override.get('sections') or {}).items():
        key = _enum_value(SectionKey, name, 'sections')
        result.sections[key] = SectionStyle.from_dict(raw, name)
    result.metadata.update(override.get('metadata') or {})
    return result


def complete(config: TemplateConfiguration) -> TemplateConfiguration:
    """Configuration with every missing section filled from the hard defaults"""
    return merge(
        TemplateConfiguration(layout=copy.deepcopy(config.layout),
                              sections=copy.deepcopy(DEFAULT_SECTION_STYLES)),
        config,
    )
