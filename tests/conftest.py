"""
Pytest configuration and fixtures for the rent receipt service tests.

This module provides shared fixtures for:
- Flask application with test configuration
- Database setup and teardown
- Record factories for owner, apartments, tenants and templates
- PDF inspection helpers
"""
from datetime import date
from io import BytesIO

import pytest
from PIL import Image as PILImage
from PyPDF2 import PdfReader

from quittances import create_app, seed_defaults
from quittances.extensions import db as _db
from quittances.receipts.facts import Landlord, PeriodPayment, TenantFacts


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """
    Create application for the tests.

    Uses TestingConfig with in-memory SQLite database; generated receipts
    and uploads go to temporary directories.
    """
    storage = tmp_path_factory.mktemp('storage')
    app = create_app('testing')
    app.config.update({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'RATELIMIT_ENABLED': False,
        'RECEIPTS_DIR': str(storage / 'receipts'),
        'UPLOAD_DIR': str(storage / 'uploads'),
        'MAIL_HOST': '',
    })

    return app


@pytest.fixture(scope='function')
def db(app):
    """
    Create database for the tests.

    Creates all tables before each test function and drops them after.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app, db):
    """Test client sharing the test's application context"""
    with app.test_client() as client:
        yield client


@pytest.fixture(scope='function')
def models(app, db):
    """Registered model classes"""
    from quittances.models import get_models
    return get_models()


@pytest.fixture
def seeded(app, db, models):
    """Database holding the seeded landlord and default template"""
    seed_defaults(app)
    return {
        'owner': models['Owner'].get_owner(),
        'template': models['ReceiptTemplate'].query.filter_by(is_default=True).one(),
    }


# =============================================================================
# Record Factories
# =============================================================================

@pytest.fixture
def apartment_factory(models, db):
    """
    Factory for creating Apartment instances.

    Usage:
        apartment = apartment_factory(city="Lyon")
    """
    counter = [0]

    def _create_apartment(**kwargs):
        counter[0] += 1
        defaults = {
            'name': f'Appartement {counter[0]}',
            'address': '15 avenue des Champs',
            'city': 'Paris',
            'postal_code': '75008',
        }
        defaults.update(kwargs)
        apartment = models['Apartment'](**defaults)
        db.session.add(apartment)
        db.session.commit()
        return apartment

    return _create_apartment


@pytest.fixture
def tenant_factory(models, db, apartment_factory):
    """
    Factory for creating Tenant instances, with an apartment unless one is given.

    Usage:
        tenant = tenant_factory(first_name="Marie", gender="F")
        tenant = tenant_factory(apartment=None, address="3 rue Haute, 75004 Paris")
    """
    counter = [0]
    unset = object()

    def _create_tenant(apartment=unset, **kwargs):
        counter[0] += 1
        if apartment is unset:
            apartment = apartment_factory()
        defaults = {
            'first_name': 'Jean',
            'last_name': 'Dupont',
            'gender': 'M',
            'email': f'locataire{counter[0]}@example.com',
            'rent_amount': 500,
            'charges': 50,
            'apartment_id': apartment.id if apartment is not None else None,
        }
        defaults.update(kwargs)
        tenant = models['Tenant'](**defaults)
        db.session.add(tenant)
        db.session.commit()
        return tenant

    return _create_tenant


@pytest.fixture
def template_factory(models, db):
    """
    Factory for creating templates through the template store.

    Usage:
        template = template_factory(name="Modern", is_default=True)
    """
    from quittances.services.template_store import TemplateStore

    counter = [0]

    def _create_template(**kwargs):
        counter[0] += 1
        defaults = {'name': f'Template {counter[0]}'}
        defaults.update(kwargs)
        return TemplateStore(db, models).create(defaults)

    return _create_template


# =============================================================================
# Receipt facts and PDF helpers
# =============================================================================

@pytest.fixture
def landlord():
    return Landlord(
        name='NGUYEN Van Luong',
        address_line1='12 rue de la Paix',
        address_line2='78000 Versailles',
        signature_text='NGUYEN Van Luong',
    )


@pytest.fixture
def tenant_facts():
    return TenantFacts(
        first_name='Jean',
        last_name='Dupont',
        gender='M',
        email='jean.dupont@example.com',
        apartment_address='15 avenue des Champs',
        apartment_city='Paris',
        apartment_postal_code='75008',
    )


@pytest.fixture
def august_payment():
    return PeriodPayment(month=8, year=2024, rent_amount=500, charges=50, payment_date=date(2024, 8, 5))


@pytest.fixture
def pdf_text():
    """Extract the text of every page of a PDF given as bytes or a path"""
    def _extract(source):
        if isinstance(source, (bytes, bytearray)):
            source = BytesIO(source)
        reader = PdfReader(source)
        return '\n'.join(page.extract_text() or '' for page in reader.pages)

    return _extract


@pytest.fixture
def pdf_page_count():
    def _count(content):
        return len(PdfReader(BytesIO(content)).pages)

    return _count


@pytest.fixture
def png_file(tmp_path):
    """Write a small PNG and return its path"""
    def _write(name='image.png', size=(300, 80), color=(30, 60, 200)):
        path = tmp_path / name
        PILImage.new('RGB', size, color).save(path, format='PNG')
        return str(path)

    return _write
