"""
Unit tests for template analysis and style presets.
"""
import pytest

from quittances.error_handlers.exceptions import UnsupportedTemplateTypeException, ValidationException
from quittances.receipts.analyzer import (
    StyleTag, TemplateFamily, analyze, configuration_for_upload, detect_family,
    style_tag_for, synthesize,
)
from quittances.receipts.layout import BackgroundMode, FontStyle, SectionKey, validate


class TestDetectFamily:

    @pytest.mark.unit
    @pytest.mark.parametrize('path', ['fond.png', 'FOND.JPG', 'scan.jpeg', 'a.gif', 'b.bmp'])
    def test_images_by_extension(self, path):
        assert detect_family(path) == TemplateFamily.IMAGE

    @pytest.mark.unit
    def test_pdf_by_extension(self):
        assert detect_family('modele.PDF') == TemplateFamily.PDF

    @pytest.mark.unit
    def test_content_type_wins_over_extension(self):
        assert detect_family('upload.bin', 'image/png') == TemplateFamily.IMAGE
        assert detect_family('upload.png', 'application/pdf') == TemplateFamily.PDF

    @pytest.mark.unit
    def test_unsupported(self):
        with pytest.raises(UnsupportedTemplateTypeException):
            detect_family('contrat.docx')
        with pytest.raises(UnsupportedTemplateTypeException):
            detect_family('modele.pdf', 'text/plain')


class TestStyleTags:

    @pytest.mark.unit
    @pytest.mark.parametrize('name, tag', [
        ('Modern receipt', StyleTag.MODERN),
        ('minimal', StyleTag.MODERN),
        ('Quittance CLASSIC', StyleTag.CLASSIC),
        ('traditional', StyleTag.CLASSIC),
        ('compact A4', StyleTag.COMPACT),
        ('Maison', None),
        (None, None),
    ])
    def test_style_tag_for(self, name, tag):
        assert style_tag_for(name) == tag

    @pytest.mark.unit
    def test_first_keyword_wins(self):
        assert style_tag_for('compact modern') == StyleTag.MODERN


class TestAnalyze:

    @pytest.mark.unit
    def test_image_preset(self):
        config = analyze('/uploads/fond.png', name='Maison')
        header = config.sections[SectionKey.HEADER]

        assert config.layout.background_mode == BackgroundMode.IMAGE
        assert config.layout.background_asset_ref == '/uploads/fond.png'
        assert config.layout.margin == 50
        assert (header.position.x, header.position.y) == (50, 80)
        assert header.font_size == 16
        assert header.font_style == FontStyle.BOLD
        assert config.missing_sections() == []
        assert validate(config) == []

    @pytest.mark.unit
    def test_pdf_preset_has_white_backings(self):
        config = analyze('/uploads/modele.pdf')

        assert config.layout.background_mode == BackgroundMode.PDF
        assert config.layout.margin == 40
        assert config.sections[SectionKey.HEADER].font_size == 14
        for style in config.sections.values():
            assert style.backing_color == '#FFFFFF'
            assert 0 < style.backing_opacity <= 1
        assert validate(config) == []

    @pytest.mark.unit
    def test_modern_name(self):
        config = analyze('/uploads/fond.png', name='Modern receipt')
        assert config.sections[SectionKey.HEADER].font_size == 18
        assert config.layout.margin == 60

    @pytest.mark.unit
    def test_classic_name(self):
        config = analyze('/uploads/modele.pdf', name='Classic')
        assert config.sections[SectionKey.HEADER].font_size == 16
        assert config.layout.margin == 40

    @pytest.mark.unit
    def test_compact_name(self):
        config = analyze('/uploads/fond.png', name='Compact')
        assert config.sections[SectionKey.HEADER].position.y == 60
        assert config.sections[SectionKey.HEADER].font_size == 15
        assert config.sections[SectionKey.FOOTER].font_size == 8

    @pytest.mark.unit
    def test_metadata(self):
        config = analyze('/uploads/fond.png', template_type='uploaded')
        assert config.metadata['generatedFrom'] == 'uploaded_template'
        assert config.metadata['templateType'] == 'uploaded'
        assert config.metadata['originalFile'] == 'fond.png'
        assert 'analysisDate' in config.metadata

    @pytest.mark.unit
    def test_unsupported_file(self):
        with pytest.raises(UnsupportedTemplateTypeException):
            analyze('/uploads/notes.txt')

    @pytest.mark.unit
    def test_upload_falls_back_to_standard(self):
        config = configuration_for_upload('/uploads/notes.txt', name='Modern')
        assert config.layout.background_mode == BackgroundMode.NONE
        assert config.sections[SectionKey.HEADER].font_size == 18
        assert config.metadata == {}


class TestSynthesize:

    @pytest.mark.unit
    def test_standard_is_default_layout(self):
        config = synthesize()
        assert config.sections[SectionKey.HEADER].font_size == 18
        assert config.layout.margin == 50

    @pytest.mark.unit
    def test_modern(self):
        config = synthesize('modern')
        assert config.sections[SectionKey.HEADER].font_size == 20
        assert config.sections[SectionKey.HEADER].color == '#2563eb'
        assert config.layout.margin == 60
        assert validate(config) == []

    @pytest.mark.unit
    def test_minimal(self):
        header = synthesize('minimal').sections[SectionKey.HEADER]
        assert header.font_size == 14
        assert header.font_style == FontStyle.NORMAL

    @pytest.mark.unit
    def test_background_path(self):
        config = synthesize('classic', background_path='/uploads/fond.jpg')
        assert config.layout.background_mode == BackgroundMode.IMAGE
        assert config.layout.background_asset_ref == '/uploads/fond.jpg'

    @pytest.mark.unit
    def test_unknown_style(self):
        with pytest.raises(ValidationException):
            synthesize('baroque')
