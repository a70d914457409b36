"""
Tests for receipt generation, listing, mailing and deletion.
"""
import os
from datetime import date

import pytest

from quittances.error_handlers.exceptions import (
    ConfigurationException,
    DuplicatePeriodException,
    EmailDeliveryException,
    ResourceNotFoundException,
    ValidationException,
)
from quittances.receipts.renderer import ReceiptRenderer
from quittances.services.email_service import EmailService, build_receipt_summary
from quittances.services.receipt_service import ReceiptService


class FakeMailer:
    """Records sends instead of talking to an SMTP server"""

    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send_receipt(self, tenant, payment, file_path):
        if self.error:
            raise self.error
        self.sent.append((tenant, payment, file_path))
        return {'success': True, 'recipient': tenant.email}


@pytest.fixture
def renderer():
    return ReceiptRenderer(today=lambda: date(2024, 8, 31))


@pytest.fixture
def service_factory(app, db, models, renderer):
    def _create(mailer=None):
        return ReceiptService(db, models, app.config, renderer=renderer, mailer=mailer)

    return _create


@pytest.fixture
def service(service_factory):
    return service_factory()


def _request(tenant, **overrides):
    payload = {
        'tenantId': tenant.id,
        'month': 8,
        'year': 2024,
        'amount': 500,
        'charges': 50,
        'paymentDate': '2024-08-05',
    }
    payload.update(overrides)
    return payload


class TestGenerate:

    @pytest.mark.unit
    def test_generates_receipt_end_to_end(self, service, seeded, tenant_factory, pdf_text):
        tenant = tenant_factory(first_name='Jean', last_name='Dupont')

        receipt, email_result = service.generate(_request(tenant))

        assert email_result is None
        assert receipt.id is not None
        assert receipt.template_id == seeded['template'].id
        assert receipt.file_name == '2024_08_quittance_de_loyer_DUPONT_Jean.pdf'
        assert float(receipt.total) == 550
        assert receipt.payment_date == date(2024, 8, 5)
        assert os.path.exists(receipt.file_path)

        text = pdf_text(receipt.file_path)
        assert 'Quittance de loyer du mois de 08/2024' in text
        assert '550 euros (cinq cent cinquante)' in text
        assert 'du 31/07/2024 au 30/08/2024' in text
        assert 'Monsieur Jean DUPONT' in text

    @pytest.mark.unit
    def test_duplicate_period_rejected_before_rendering(self, service, seeded, tenant_factory, monkeypatch):
        tenant = tenant_factory()
        service.generate(_request(tenant))

        def unexpected_render(*args, **kwargs):
            raise AssertionError('renderer should not run for a duplicate period')

        monkeypatch.setattr(service.renderer, 'render_to_file', unexpected_render)

        with pytest.raises(DuplicatePeriodException) as exc_info:
            service.generate(_request(tenant, amount=600))
        assert exc_info.value.status_code == 409
        assert len(service.list_for_tenant(tenant.id)) == 1

    @pytest.mark.unit
    def test_losing_a_concurrent_insert_keeps_the_winner_file(self, service, seeded, tenant_factory,
                                                              models, monkeypatch):
        tenant = tenant_factory()
        winner, _ = service.generate(_request(tenant))
        winner_path = winner.file_path
        with open(winner_path, 'rb') as handle:
            winner_content = handle.read()
        stored_before = set(os.listdir(os.path.dirname(winner_path)))

        # Both requests pass the lookup; the unique constraint settles it
        monkeypatch.setattr(service, 'exists', lambda *args: False)

        with pytest.raises(DuplicatePeriodException):
            service.generate(_request(tenant, amount=999))

        assert models['Receipt'].query.filter_by(tenant_id=tenant.id, month=8, year=2024).count() == 1
        assert service.list_for_tenant(tenant.id)[0].file_path == winner_path
        with open(winner_path, 'rb') as handle:
            assert handle.read() == winner_content
        assert set(os.listdir(os.path.dirname(winner_path))) == stored_before

    @pytest.mark.unit
    def test_tenants_with_the_same_name_keep_their_own_files(self, service, seeded, tenant_factory, pdf_text):
        first = tenant_factory(first_name='Jean', last_name='Dupont')
        second = tenant_factory(first_name='Jean', last_name='Dupont')

        receipt_a, _ = service.generate(_request(first))
        receipt_b, _ = service.generate(_request(second, amount=900))

        assert receipt_a.file_name == receipt_b.file_name == '2024_08_quittance_de_loyer_DUPONT_Jean.pdf'
        assert receipt_a.file_path != receipt_b.file_path
        assert '550 euros (cinq cent cinquante)' in pdf_text(receipt_a.file_path)
        assert '950 euros' in pdf_text(receipt_b.file_path)
        assert service.file_path_for_download(receipt_b.id)[1] == receipt_b.file_name

    @pytest.mark.unit
    def test_same_period_for_another_tenant(self, service, seeded, tenant_factory):
        first = tenant_factory(last_name='Dupont')
        second = tenant_factory(last_name='Martin')

        service.generate(_request(first))
        receipt, _ = service.generate(_request(second))
        assert receipt.file_name == '2024_08_quittance_de_loyer_MARTIN_Jean.pdf'

    @pytest.mark.unit
    def test_explicit_template(self, service, seeded, tenant_factory, template_factory):
        tenant = tenant_factory()
        modern = template_factory(name='Moderne', configuration={
            'sections': {'header': {'position': {'x': 50, 'y': 70}, 'fontSize': 20, 'title': 'Reçu de loyer'}}
        })

        receipt, _ = service.generate(_request(tenant, templateId=modern.id))
        assert receipt.template_id == modern.id

    @pytest.mark.unit
    def test_unknown_template(self, service, seeded, tenant_factory):
        tenant = tenant_factory()
        with pytest.raises(ResourceNotFoundException):
            service.generate(_request(tenant, templateId=9999))

    @pytest.mark.unit
    def test_unknown_tenant(self, service, seeded):
        with pytest.raises(ResourceNotFoundException):
            service.generate({'tenantId': 9999, 'month': 8, 'year': 2024, 'amount': 500})

    @pytest.mark.unit
    @pytest.mark.parametrize('overrides', [
        {'month': 13},
        {'month': 0},
        {'amount': 0},
        {'amount': None},
        {'paymentDate': 'hier'},
    ])
    def test_invalid_request(self, service, seeded, tenant_factory, overrides):
        tenant = tenant_factory()
        with pytest.raises(ValidationException):
            service.generate(_request(tenant, **overrides))

    @pytest.mark.unit
    def test_payment_date_defaults_to_today(self, service, seeded, tenant_factory):
        tenant = tenant_factory()
        payload = _request(tenant)
        del payload['paymentDate']

        receipt, _ = service.generate(payload)
        assert receipt.payment_date == date.today()

    @pytest.mark.unit
    def test_landlord_from_settings_without_owner(self, app, service, db, tenant_factory, template_factory):
        template_factory(name='Standard')
        landlord = service.landlord()
        assert landlord.name == app.config['LANDLORD_NAME']


class TestEmail:

    @pytest.mark.unit
    def test_generate_and_send(self, service_factory, seeded, tenant_factory):
        mailer = FakeMailer()
        service = service_factory(mailer=mailer)
        tenant = tenant_factory(email='jean.dupont@example.com')

        receipt, email_result = service.generate(_request(tenant, sendEmail=True))

        assert email_result == {'success': True, 'recipient': 'jean.dupont@example.com'}
        assert receipt.email_sent is True
        assert receipt.email_sent_at is not None
        assert mailer.sent[0][2] == receipt.file_path

    @pytest.mark.unit
    def test_send_failure_keeps_the_receipt(self, service_factory, seeded, tenant_factory):
        service = service_factory(mailer=FakeMailer(error=EmailDeliveryException('SMTP down')))
        tenant = tenant_factory()

        receipt, email_result = service.generate(_request(tenant, sendEmail=True))

        assert email_result['success'] is False
        assert 'SMTP down' in email_result['error']
        assert receipt.email_sent is False
        assert service.exists(tenant.id, 8, 2024)

    @pytest.mark.unit
    def test_send_requested_without_mail_settings(self, service, seeded, tenant_factory):
        tenant = tenant_factory()
        receipt, email_result = service.generate(_request(tenant, sendEmail=True))
        assert email_result == {'success': False, 'error': 'Email service not configured'}

    @pytest.mark.unit
    def test_send_existing_receipt(self, service_factory, seeded, tenant_factory):
        mailer = FakeMailer()
        service = service_factory(mailer=mailer)
        receipt, _ = service.generate(_request(tenant_factory()))

        result = service.send_email(receipt.id)
        assert result['success'] is True
        assert service.get(receipt.id).email_sent is True
        assert mailer.sent[0][1].month == 8

    @pytest.mark.unit
    def test_send_existing_without_mail_settings(self, service, seeded, tenant_factory):
        receipt, _ = service.generate(_request(tenant_factory()))
        with pytest.raises(ConfigurationException):
            service.send_email(receipt.id)

    @pytest.mark.unit
    def test_mailer_from_config(self, app):
        assert EmailService.from_config({'MAIL_HOST': ''}) is None
        mailer = EmailService.from_config({'MAIL_HOST': 'smtp.example.com', 'MAIL_PORT': 2525})
        assert mailer.host == 'smtp.example.com'
        assert mailer.port == 2525

    @pytest.mark.unit
    def test_mailer_requires_tenant_email(self, tenant_facts, august_payment, tmp_path):
        mailer = EmailService('smtp.example.com', 587, '', '', 'noreply@example.com')
        tenant_facts.email = None
        with pytest.raises(ValidationException):
            mailer.send_receipt(tenant_facts, august_payment, str(tmp_path / 'absent.pdf'))

    @pytest.mark.unit
    def test_mailer_requires_file(self, tenant_facts, august_payment, tmp_path):
        mailer = EmailService('smtp.example.com', 587, '', '', 'noreply@example.com')
        with pytest.raises(ResourceNotFoundException):
            mailer.send_receipt(tenant_facts, august_payment, str(tmp_path / 'absent.pdf'))


class TestReceiptSummary:

    @pytest.mark.unit
    def test_summary_with_charges(self, tenant_facts, august_payment):
        summary = build_receipt_summary(tenant_facts, august_payment)

        assert summary.subject == 'Quittance de loyer - 8/2024 - Jean Dupont'
        assert 'Bonjour Monsieur Dupont,' in summary.text
        assert '- Montant du loyer : 500.00 €' in summary.text
        assert '- Charges : 50.00 €' in summary.text
        assert '- Total payé : 550.00 €' in summary.text
        assert 'Charges :</strong> 50.00 €' in summary.html

    @pytest.mark.unit
    def test_summary_without_charges(self, tenant_facts, august_payment):
        august_payment.charges = 0
        summary = build_receipt_summary(tenant_facts, august_payment)

        assert 'Charges' not in summary.text
        assert 'Charges' not in summary.html
        assert '- Total payé : 500.00 €' in summary.text


class TestExistingReceipts:

    @pytest.mark.unit
    def test_list_and_get(self, service, seeded, tenant_factory):
        tenant = tenant_factory()
        july, _ = service.generate(_request(tenant, month=7))
        august, _ = service.generate(_request(tenant, month=8))

        assert [r.id for r in service.list_for_tenant(tenant.id)] == [august.id, july.id]
        assert len(service.list_all()) == 2
        assert service.get(july.id).month == 7

    @pytest.mark.unit
    def test_list_for_unknown_tenant(self, service):
        with pytest.raises(ResourceNotFoundException):
            service.list_for_tenant(9999)

    @pytest.mark.unit
    def test_download_path(self, service, seeded, tenant_factory):
        receipt, _ = service.generate(_request(tenant_factory()))
        path, name = service.file_path_for_download(receipt.id)
        assert path == receipt.file_path
        assert name == receipt.file_name

    @pytest.mark.unit
    def test_download_missing_file(self, service, seeded, tenant_factory):
        receipt, _ = service.generate(_request(tenant_factory()))
        os.remove(receipt.file_path)
        with pytest.raises(ResourceNotFoundException):
            service.file_path_for_download(receipt.id)

    @pytest.mark.unit
    def test_delete_removes_file(self, service, seeded, tenant_factory):
        tenant = tenant_factory()
        receipt, _ = service.generate(_request(tenant))
        receipt_id, file_path = receipt.id, receipt.file_path

        service.delete(receipt_id)
        assert not os.path.exists(file_path)
        assert not service.exists(tenant.id, 8, 2024)
        with pytest.raises(ResourceNotFoundException):
            service.get(receipt_id)

    @pytest.mark.unit
    def test_deleting_tenant_deletes_receipts(self, service, db, models, seeded, tenant_factory):
        tenant = tenant_factory()
        service.generate(_request(tenant))

        db.session.delete(tenant)
        db.session.commit()
        assert models['Receipt'].query.count() == 0


class TestPreview:

    @pytest.mark.unit
    def test_preview_with_sample_data(self, service, seeded, pdf_text):
        content = service.preview(seeded['template'])
        text = pdf_text(content)
        assert 'Monsieur Jean Dupont' in text
        assert '900 euros (neuf cents)' in text

    @pytest.mark.unit
    def test_preview_with_tenant(self, service, seeded, tenant_factory, pdf_text):
        tenant = tenant_factory(first_name='Marie', last_name='Curie', gender='F')
        text = pdf_text(service.preview(seeded['template'], tenant_id=tenant.id))
        assert 'Madame Marie Curie' in text
