"""
Receipt Service

Generates receipts end to end: validates the request, refuses a second
receipt for the same tenant and period, renders the PDF with the selected
template and records it. Optionally mails the PDF to the tenant.
"""
import logging
import os
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from quittances.error_handlers.exceptions import (
    AppException,
    ConfigurationException,
    DuplicatePeriodException,
    ResourceNotFoundException,
)
from quittances.receipts.facts import Landlord, PeriodPayment, TenantFacts
from quittances.receipts.renderer import ReceiptRenderer
from quittances.services.email_service import EmailService
from quittances.services.template_store import TemplateStore
from quittances.utils.files import resolve_storage_path
from quittances.schemas import ReceiptRequest, parse_payload

logger = logging.getLogger(__name__)


def payment_from_receipt(receipt) -> PeriodPayment:
    return PeriodPayment(
        month=receipt.month,
        year=receipt.year,
        rent_amount=receipt.amount,
        charges=receipt.charges or 0,
        payment_date=receipt.payment_date,
    )


SAMPLE_TENANT = TenantFacts(
    first_name='Jean',
    last_name='Dupont',
    gender='M',
    apartment_address='15 avenue des Champs',
    apartment_city='Paris',
    apartment_postal_code='75008',
)


class ReceiptService:
    """
    Service for generating, listing, mailing and deleting receipts.
    """

    def __init__(self, db, models: Dict, config, renderer: Optional[ReceiptRenderer] = None,
                 mailer: Optional[EmailService] = None):
        """
        Initialize with database, models and app configuration.

        Args:
            db: SQLAlchemy database instance
            models: Dictionary of model classes
            config: Flask config mapping (RECEIPTS_DIR, MAIL_*, LANDLORD_*)
            renderer: Optional renderer; one with today's date by default
            mailer: Optional mail sender; built from MAIL_* settings by default
        """
        self.db = db
        self.config = config
        self.Tenant = models['Tenant']
        self.Owner = models['Owner']
        self.Receipt = models['Receipt']
        self.templates = TemplateStore(db, models)
        self.renderer = renderer or ReceiptRenderer()
        self.mailer = mailer if mailer is not None else EmailService.from_config(config)

    # =====================
    # Lookups
    # =====================

    def get_tenant(self, tenant_id: int):
        tenant = self.db.session.get(self.Tenant, tenant_id)
        if tenant is None:
            raise ResourceNotFoundException(f'Tenant {tenant_id} not found', details={'tenant_id': tenant_id})
        return tenant

    def get(self, receipt_id: int):
        receipt = self.db.session.get(self.Receipt, receipt_id)
        if receipt is None:
            raise ResourceNotFoundException(f'Receipt {receipt_id} not found', details={'receipt_id': receipt_id})
        return receipt

    def exists(self, tenant_id: int, month: int, year: int) -> bool:
        return self.Receipt.query.filter_by(tenant_id=tenant_id, month=month, year=year).first() is not None

    def list_all(self) -> List[Any]:
        return self.Receipt.query.order_by(
            self.Receipt.year.desc(), self.Receipt.month.desc(), self.Receipt.created_at.desc()
        ).all()

    def list_for_tenant(self, tenant_id: int) -> List[Any]:
        self.get_tenant(tenant_id)
        return self.Receipt.query.filter_by(tenant_id=tenant_id).order_by(
            self.Receipt.year.desc(), self.Receipt.month.desc()
        ).all()

    def landlord(self) -> Landlord:
        """Landlord facts from the owner row, or from the LANDLORD_* settings"""
        owner = self.Owner.get_owner()
        if owner is not None:
            return owner.to_facts()
        logger.warning("No owner record found, using LANDLORD_* settings")
        return Landlord(
            name=self.config.get('LANDLORD_NAME'),
            address_line1=self.config.get('LANDLORD_ADDRESS1'),
            address_line2=self.config.get('LANDLORD_ADDRESS2'),
            signature_text=self.config.get('LANDLORD_SIGNATURE'),
            city=self.config.get('LANDLORD_CITY') or None,
        )

    def _template(self, template_id: Optional[int]):
        if template_id is not None:
            return self.templates.get(template_id)
        return self.templates.find_default()

    # =====================
    # Generation
    # =====================

    @staticmethod
    def parse_request(payload: Dict[str, Any]) -> ReceiptRequest:
        return parse_payload(ReceiptRequest, payload)

    def generate(self, payload: Dict[str, Any]) -> Tuple[Any, Optional[Dict[str, Any]]]:
        """
        Generate, store and optionally email a receipt.

        Returns:
            (receipt, email_result); email_result is None unless sending was requested

        Raises:
            ValidationException: on an invalid request
            ResourceNotFoundException: unknown tenant or template, or no default template
            DuplicatePeriodException: a receipt already exists for the tenant and period
            RenderFailureException: the PDF could not be produced or written
        """
        request = self.parse_request(payload)
        tenant = self.get_tenant(request.tenant_id)

        if self.exists(tenant.id, request.month, request.year):
            raise self._duplicate(tenant, request.month, request.year)

        template = self._template(request.template_id)
        payment = PeriodPayment(
            month=request.month,
            year=request.year,
            rent_amount=request.amount,
            charges=request.charges,
            payment_date=request.payment_date or date.today(),
        )
        tenant_facts = tenant.to_facts()

        rendered = self.renderer.render_to_file(
            template.resolved_configuration(),
            self.landlord(),
            tenant_facts,
            payment,
            resolve_storage_path(self.config.get('RECEIPTS_DIR', 'receipts')),
        )

        receipt = self.Receipt(
            tenant_id=tenant.id,
            template_id=template.id,
            month=request.month,
            year=request.year,
            amount=request.amount,
            charges=request.charges,
            payment_date=payment.payment_date,
            file_name=rendered.file_name,
            file_path=rendered.file_path,
        )
        try:
            self.db.session.add(receipt)
            self.db.session.commit()
        except IntegrityError:
            # Lost a race for the same period; the file removed is this request's own
            self.db.session.rollback()
            self._remove_file(rendered.file_path)
            raise self._duplicate(tenant, request.month, request.year)

        logger.info(f"Generated receipt {receipt.id} for {tenant.full_name} "
                    f"{request.month:02d}/{request.year} with template {template.id}")

        email_result = None
        if request.send_email:
            email_result = self._try_send(receipt, tenant_facts, payment)
        return receipt, email_result

    def _try_send(self, receipt, tenant_facts: TenantFacts, payment: PeriodPayment) -> Dict[str, Any]:
        """Send without failing the generation"""
        if not tenant_facts.email:
            return {'success': False, 'error': 'No email address found for tenant'}
        if self.mailer is None:
            return {'success': False, 'error': 'Email service not configured'}
        try:
            result = self.mailer.send_receipt(tenant_facts, payment, receipt.file_path)
        except AppException as e:
            logger.warning(f"Receipt {receipt.id} generated but not emailed: {e.message}")
            return {'success': False, 'error': e.message}

        receipt.mark_email_sent()
        self.db.session.commit()
        return result

    @staticmethod
    def _duplicate(tenant, month: int, year: int) -> DuplicatePeriodException:
        return DuplicatePeriodException(
            f'Receipt for {month:02d}/{year} already generated for this tenant',
            details={'tenant_id': tenant.id, 'month': month, 'year': year}
        )

    # =====================
    # Existing receipts
    # =====================

    def send_email(self, receipt_id: int) -> Dict[str, Any]:
        """
        Mail an existing receipt to its tenant.

        Raises:
            ResourceNotFoundException: unknown receipt or missing file
            ValidationException: tenant has no email address
            ConfigurationException: SMTP is not configured
            EmailDeliveryException: delivery failed
        """
        receipt = self.get(receipt_id)
        if self.mailer is None:
            raise ConfigurationException('Email service not configured. Set MAIL_HOST to enable sending.')

        result = self.mailer.send_receipt(receipt.tenant.to_facts(), payment_from_receipt(receipt), receipt.file_path)
        receipt.mark_email_sent()
        self.db.session.commit()
        return result

    def file_path_for_download(self, receipt_id: int) -> Tuple[str, str]:
        """
        (path, download name) of a receipt PDF.

        Raises:
            ResourceNotFoundException: unknown receipt or file no longer on disk
        """
        receipt = self.get(receipt_id)
        if not receipt.file_path or not os.path.exists(receipt.file_path):
            raise ResourceNotFoundException(
                'Receipt file not found',
                details={'receipt_id': receipt_id, 'file': receipt.file_name}
            )
        return receipt.file_path, receipt.file_name

    def delete(self, receipt_id: int) -> None:
        """Delete a receipt record and its PDF"""
        receipt = self.get(receipt_id)
        file_path = receipt.file_path
        try:
            self.db.session.delete(receipt)
            self.db.session.commit()
        except Exception:
            self.db.session.rollback()
            raise
        self._remove_file(file_path)
        logger.info(f"Deleted receipt {receipt_id}")

    # =====================
    # Preview
    # =====================

    def preview(self, template, tenant_id: Optional[int] = None) -> bytes:
        """
        Render a template with sample facts, or with a real tenant's facts.

        Nothing is written to disk or recorded.
        """
        tenant_facts = self.get_tenant(tenant_id).to_facts() if tenant_id else SAMPLE_TENANT
        today = date.today()
        payment = PeriodPayment(month=today.month, year=today.year, rent_amount=Decimal('850'),
                                charges=Decimal('50'), payment_date=today)
        return self.renderer.render(template.resolved_configuration(), self.landlord(), tenant_facts, payment)

    @staticmethod
    def _remove_file(path: Optional[str]):
        if not path:
            return
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            logger.warning(f"Could not remove receipt file {path}: {e}")
