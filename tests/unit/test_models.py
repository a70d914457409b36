"""
Unit tests for database models.

Tests cover:
- Model creation and default values
- Conversion to receipt facts and JSON dictionaries
- Constraints and relationships between models
"""
import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from quittances.receipts.layout import BackgroundMode, default_configuration


class TestApartmentModel:
    """Tests for the Apartment model."""

    @pytest.mark.unit
    def test_create_apartment(self, apartment_factory):
        apartment = apartment_factory(name='T2 Champs', city='Paris', postal_code='75008')

        assert apartment.id is not None
        assert apartment.is_active is True
        assert apartment.full_address == '15 avenue des Champs, Paris 75008'

    @pytest.mark.unit
    def test_to_dict_uses_camel_case(self, apartment_factory):
        data = apartment_factory().to_dict()
        assert data['postalCode'] == '75008'
        assert data['isActive'] is True
        assert 'createdAt' in data


class TestTenantModel:
    """Tests for the Tenant model."""

    @pytest.mark.unit
    def test_tenant_defaults(self, models, db):
        Tenant = models['Tenant']
        tenant = Tenant(first_name='Paul', last_name='Martin')
        db.session.add(tenant)
        db.session.commit()

        assert tenant.gender == 'M'
        assert tenant.is_active is True
        assert tenant.rent_amount == 0
        assert tenant.apartment is None

    @pytest.mark.unit
    def test_facts_from_apartment(self, tenant_factory):
        facts = tenant_factory(first_name='Jean', last_name='Dupont').to_facts()

        assert facts.full_name == 'Jean Dupont'
        assert facts.honorific == 'Monsieur'
        assert facts.address == '15 avenue des Champs, Paris 75008'

    @pytest.mark.unit
    def test_facts_without_apartment(self, tenant_factory):
        tenant = tenant_factory(apartment=None, gender='F', address='3 rue Haute, 75004 Paris')
        facts = tenant.to_facts()

        assert facts.honorific == 'Madame'
        assert facts.address == '3 rue Haute, 75004 Paris'

    @pytest.mark.unit
    def test_to_dict(self, tenant_factory):
        tenant = tenant_factory(rent_amount=Decimal('720.50'), lease_start_date=date(2024, 1, 1))
        data = tenant.to_dict()

        assert data['rentAmount'] == 720.5
        assert data['leaseStartDate'] == '2024-01-01'
        assert data['apartmentName'] == tenant.apartment.name

    @pytest.mark.unit
    def test_email_is_unique(self, tenant_factory, db):
        tenant_factory(email='meme@example.com')
        with pytest.raises(IntegrityError):
            tenant_factory(email='meme@example.com')
        db.session.rollback()

    @pytest.mark.unit
    def test_gender_constraint(self, tenant_factory, db):
        with pytest.raises(IntegrityError):
            tenant_factory(gender='X')
        db.session.rollback()

    @pytest.mark.unit
    def test_deleting_apartment_keeps_tenant(self, tenant_factory, db, models):
        tenant = tenant_factory()
        tenant_id = tenant.id
        db.session.delete(tenant.apartment)
        db.session.commit()

        assert db.session.get(models['Tenant'], tenant_id).apartment_id is None


class TestOwnerModel:
    """Tests for the Owner model."""

    @pytest.mark.unit
    def test_get_owner_before_seeding(self, models):
        assert models['Owner'].get_owner() is None

    @pytest.mark.unit
    def test_seeded_owner(self, app, seeded):
        owner = seeded['owner']
        assert owner.name == app.config['LANDLORD_NAME']
        assert owner.address1 == app.config['LANDLORD_ADDRESS1']

    @pytest.mark.unit
    def test_to_facts(self, models, db):
        Owner = models['Owner']
        owner = Owner(name='NGUYEN Van Luong', address1='12 rue de la Paix', address2='78000 Versailles',
                      signature='NGUYEN', signature_path='/data/signature.png')
        db.session.add(owner)
        db.session.commit()

        landlord = Owner.get_owner().to_facts()
        assert landlord.place_of_issue == 'Versailles'
        assert landlord.signature == 'NGUYEN'
        assert landlord.signature_image_path == '/data/signature.png'


class TestReceiptTemplateModel:
    """Tests for the ReceiptTemplate model."""

    @pytest.mark.unit
    def test_seeded_default_template(self, seeded):
        template = seeded['template']
        assert template.name == 'Template par défaut'
        assert template.template_type == 'default'
        assert template.is_default is True
        assert template.template_configuration() == default_configuration()

    @pytest.mark.unit
    def test_seeding_twice_adds_nothing(self, app, seeded, models):
        from quittances import seed_defaults
        seed_defaults(app)
        assert models['ReceiptTemplate'].query.count() == 1
        assert models['Owner'].query.count() == 1

    @pytest.mark.unit
    def test_resolved_configuration_uses_attached_asset(self, template_factory):
        template = template_factory(background_asset_path='/uploads/fond.PDF')
        config = template.resolved_configuration()

        assert config.layout.background_mode == BackgroundMode.PDF
        assert config.layout.background_asset_ref == '/uploads/fond.PDF'
        assert template.template_configuration().layout.background_asset_ref is None

    @pytest.mark.unit
    def test_resolved_configuration_keeps_layout_asset(self, template_factory):
        config = default_configuration().with_background(BackgroundMode.IMAGE, '/uploads/a.png')
        template = template_factory(configuration=config, background_asset_path='/uploads/b.png')

        assert template.resolved_configuration().layout.background_asset_ref == '/uploads/a.png'

    @pytest.mark.unit
    def test_to_dict(self, template_factory):
        data = template_factory(name='Moderne').to_dict()
        assert data['name'] == 'Moderne'
        assert data['configuration']['sections']['header']['fontSize'] == 18
        assert data['isDefault'] is True


class TestReceiptModel:
    """Tests for the Receipt model."""

    @pytest.fixture
    def receipt_factory(self, models, db, tenant_factory):
        def _create(**kwargs):
            defaults = {
                'tenant_id': tenant_factory().id,
                'month': 8,
                'year': 2024,
                'amount': Decimal('500'),
                'charges': Decimal('50'),
                'payment_date': date(2024, 8, 5),
                'file_name': '2024_08_quittance_de_loyer_DUPONT_Jean.pdf',
                'file_path': '/tmp/2024_08_quittance_de_loyer_DUPONT_Jean.pdf',
            }
            defaults.update(kwargs)
            receipt = models['Receipt'](**defaults)
            db.session.add(receipt)
            db.session.commit()
            return receipt

        return _create

    @pytest.mark.unit
    def test_total(self, receipt_factory):
        receipt = receipt_factory()
        assert receipt.total == Decimal('550')
        assert receipt.email_sent is False

    @pytest.mark.unit
    def test_mark_email_sent(self, receipt_factory):
        receipt = receipt_factory()
        receipt.mark_email_sent()
        assert receipt.email_sent is True
        assert receipt.email_sent_at is not None

    @pytest.mark.unit
    def test_one_receipt_per_tenant_and_period(self, receipt_factory, db):
        receipt = receipt_factory()
        with pytest.raises(IntegrityError):
            receipt_factory(tenant_id=receipt.tenant_id)
        db.session.rollback()

    @pytest.mark.unit
    def test_to_dict(self, receipt_factory):
        data = receipt_factory().to_dict()
        assert data['tenantName'] == 'Jean Dupont'
        assert data['total'] == 550.0
        assert data['paymentDate'] == '2024-08-05'
        assert data['emailSentAt'] is None
