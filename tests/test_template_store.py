"""
Tests for the template store: default-flag handling, validation and asset cleanup.
"""
import os
import threading

import pytest

from quittances.error_handlers.exceptions import (
    CannotDeleteDefaultException,
    ResourceNotFoundException,
    ValidationException,
)
from quittances.receipts.layout import BackgroundMode, SectionKey, TemplateConfiguration
from quittances.services.template_store import TemplateStore


@pytest.fixture
def store(db, models):
    return TemplateStore(db, models)


def _default_ids(models):
    ReceiptTemplate = models['ReceiptTemplate']
    return [template.id for template in ReceiptTemplate.query.filter_by(is_default=True).all()]


class TestCreate:

    @pytest.mark.unit
    def test_first_template_becomes_default(self, store):
        template = store.create({'name': 'Standard'})
        assert template.is_default is True
        assert template.template_type == 'custom'
        assert template.is_active is True

    @pytest.mark.unit
    def test_later_templates_are_not_default(self, store, template_factory):
        template_factory(name='Standard')
        second = store.create({'name': 'Second'})
        assert second.is_default is False

    @pytest.mark.unit
    def test_create_as_default_moves_the_flag(self, store, models, template_factory):
        first = template_factory(name='Standard')
        second = store.create({'name': 'Moderne', 'is_default': True})

        assert _default_ids(models) == [second.id]
        assert first.is_default is False

    @pytest.mark.unit
    def test_configuration_is_completed(self, store):
        template = store.create(name='Partiel', configuration={
            'sections': {'header': {'position': {'x': 40, 'y': 40}, 'fontSize': 22}}
        })
        config = template.template_configuration()
        assert config.missing_sections() == []
        assert config.sections[SectionKey.HEADER].font_size == 22

    @pytest.mark.unit
    def test_name_required(self, store):
        with pytest.raises(ValidationException):
            store.create({'name': '   '})

    @pytest.mark.unit
    def test_invalid_template_type(self, store):
        with pytest.raises(ValidationException):
            store.create({'name': 'X', 'template_type': 'scanned'})

    @pytest.mark.unit
    def test_invalid_configuration(self, store, models):
        with pytest.raises(ValidationException) as exc_info:
            store.create(name='Hors page', configuration={
                'sections': {'footer': {'position': {'x': 70, 'y': 5000}}}
            })
        assert 'footer.position is outside the A4 page' in exc_info.value.details['errors']
        assert models['ReceiptTemplate'].query.count() == 0


class TestQueries:

    @pytest.mark.unit
    def test_find_all_lists_default_first(self, store, template_factory):
        template_factory(name='Standard')
        later = template_factory(name='Moderne')
        store.set_default(later.id)

        names = [template.name for template in store.find_all()]
        assert names[0] == 'Moderne'

    @pytest.mark.unit
    def test_find_all_active_only(self, store, template_factory):
        template_factory(name='Standard')
        template_factory(name='Archive', is_active=False)

        assert [t.name for t in store.find_all(active_only=True)] == ['Standard']
        assert len(store.find_all()) == 2

    @pytest.mark.unit
    def test_find_by_id_and_get(self, store, template_factory):
        template = template_factory()
        assert store.find_by_id(template.id).id == template.id
        assert store.find_by_id(9999) is None
        with pytest.raises(ResourceNotFoundException):
            store.get(9999)

    @pytest.mark.unit
    def test_find_default_without_templates(self, store):
        with pytest.raises(ResourceNotFoundException):
            store.find_default()


class TestUpdate:

    @pytest.mark.unit
    def test_configuration_replaced_as_a_whole(self, store, template_factory):
        template = template_factory(configuration={
            'sections': {'footer': {'position': {'x': 70, 'y': 600}, 'fontSize': 7}}
        })

        updated = store.update(template.id, {'configuration': {
            'sections': {'header': {'position': {'x': 10, 'y': 10}, 'fontSize': 12}}
        }})
        config = updated.template_configuration()
        assert config.sections[SectionKey.HEADER].font_size == 12
        # the footer tweak is gone, back to the standard layout
        assert config.sections[SectionKey.FOOTER].font_size == 9

    @pytest.mark.unit
    def test_update_fields(self, store, template_factory):
        template = template_factory(name='Ancien nom')
        updated = store.update(template.id, {'name': '  Nouveau nom ', 'description': 'Texte', 'is_active': False})
        assert updated.name == 'Nouveau nom'
        assert updated.description == 'Texte'
        assert updated.is_active is False

    @pytest.mark.unit
    def test_update_to_default(self, store, models, template_factory):
        template_factory(name='Standard')
        other = template_factory(name='Autre')
        store.update(other.id, {'is_default': True})
        assert _default_ids(models) == [other.id]

    @pytest.mark.unit
    def test_cannot_unset_default(self, store, template_factory):
        template = template_factory(name='Standard')
        with pytest.raises(ValidationException):
            store.update(template.id, {'is_default': False})

    @pytest.mark.unit
    def test_update_unknown(self, store):
        with pytest.raises(ResourceNotFoundException):
            store.update(9999, {'name': 'X'})


class TestDelete:

    @pytest.mark.unit
    def test_cannot_delete_default(self, store, template_factory):
        template = template_factory(name='Standard')
        with pytest.raises(CannotDeleteDefaultException) as exc_info:
            store.delete(template.id)
        assert exc_info.value.status_code == 409
        assert store.find_by_id(template.id) is not None

    @pytest.mark.unit
    def test_delete_unknown(self, store):
        with pytest.raises(ResourceNotFoundException):
            store.delete(9999)

    @pytest.mark.unit
    def test_delete_removes_assets(self, store, template_factory, png_file):
        template_factory(name='Standard')
        background = png_file('fond.png')
        template = template_factory(name='Avec fond', background_asset_path=background,
                                    source_file_path=background)

        store.delete(template.id)
        assert store.find_by_id(template.id) is None
        assert not os.path.exists(background)

    @pytest.mark.unit
    def test_asset_cleanup_failure_is_only_logged(self, store, template_factory, png_file,
                                                  monkeypatch, caplog):
        template_factory(name='Standard')
        background = png_file('fond.png')
        template = template_factory(name='Avec fond', background_asset_path=background)

        def failing_remove(path):
            raise OSError('permission denied')

        monkeypatch.setattr(os, 'remove', failing_remove)
        store.delete(template.id)

        assert store.find_by_id(template.id) is None
        assert 'Could not remove template asset' in caplog.text


class TestDefaultFlag:

    @pytest.mark.unit
    def test_set_default(self, store, models, template_factory):
        first = template_factory(name='Standard')
        second = template_factory(name='Moderne')

        store.set_default(second.id)
        assert _default_ids(models) == [second.id]
        assert store.find_default().id == second.id
        assert first.is_default is False

    @pytest.mark.unit
    def test_set_default_unknown(self, store):
        with pytest.raises(ResourceNotFoundException):
            store.set_default(9999)

    @pytest.mark.unit
    def test_concurrent_set_default_leaves_one_default(self, app, db, models, template_factory):
        ids = [template_factory(name=f'Template {index}').id for index in range(6)]
        db.session.commit()
        errors = []

        def worker(template_id):
            with app.app_context():
                try:
                    TemplateStore(db, models).set_default(template_id)
                except Exception as e:
                    errors.append(e)

        threads = [threading.Thread(target=worker, args=(template_id,)) for template_id in ids * 3]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        db.session.expire_all()
        defaults = _default_ids(models)
        assert len(defaults) == 1
        assert defaults[0] in ids


class TestAttachBackground:

    @pytest.mark.unit
    def test_attach_image(self, store, template_factory, png_file):
        template = template_factory()
        path = png_file('fond.png')

        updated = store.attach_background(template.id, path)
        config = updated.template_configuration()
        assert updated.background_asset_path == path
        assert config.layout.background_mode == BackgroundMode.IMAGE
        assert config.layout.background_asset_ref == path

    @pytest.mark.unit
    def test_attach_pdf_replaces_previous_asset(self, store, template_factory, png_file, tmp_path):
        template = template_factory()
        old = png_file('ancien.png')
        store.attach_background(template.id, old)

        new = tmp_path / 'fond.pdf'
        new.write_bytes(b'%PDF-1.4')
        updated = store.attach_background(template.id, str(new))

        assert TemplateConfiguration.from_dict(updated.configuration).layout.background_mode == BackgroundMode.PDF
        assert not os.path.exists(old)
