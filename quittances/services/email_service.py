"""
Email Service
Sends receipt PDFs to tenants via SMTP using stdlib modules.
Reads SMTP configuration from the app config (MAIL_* settings).
"""
import logging
import os
import smtplib
from dataclasses import dataclass
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from quittances.error_handlers.exceptions import (
    EmailDeliveryException,
    ResourceNotFoundException,
    ValidationException,
)
from quittances.receipts.facts import PeriodPayment, TenantFacts

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 30
BRAND = 'ImmoFacile'


@dataclass
class ReceiptSummary:
    subject: str
    text: str
    html: str


def _euros(value) -> str:
    return f"{float(value):.2f} €"


def build_receipt_summary(tenant: TenantFacts, payment: PeriodPayment) -> ReceiptSummary:
    """
    Subject and bodies of the email accompanying a receipt.

    Charges are listed only when non-zero.
    """
    period = f"{payment.month}/{payment.year}"
    subject = f"Quittance de loyer - {period} - {tenant.first_name} {tenant.last_name}"
    greeting = f"Bonjour {tenant.honorific} {tenant.last_name},"
    has_charges = float(payment.charges or 0) > 0

    text_lines = [
        f"{BRAND} - Quittance de Loyer",
        "",
        greeting,
        "",
        "Veuillez trouver ci-joint votre quittance de loyer pour la période suivante :",
        "",
        "Détails de la quittance :",
        f"- Période : {period}",
        f"- Locataire : {tenant.first_name} {tenant.last_name}",
        f"- Montant du loyer : {_euros(payment.rent_amount)}",
    ]
    if has_charges:
        text_lines.append(f"- Charges : {_euros(payment.charges)}")
    text_lines += [
        f"- Total payé : {_euros(payment.total)}",
        "",
        "Cette quittance atteste du paiement intégral de votre loyer pour la période mentionnée.",
        "",
        "Cordialement,",
        "Votre gestionnaire immobilier",
        BRAND,
        "",
        "---",
        f"Cet email a été généré automatiquement par {BRAND}.",
        "Merci de conserver cette quittance pour vos dossiers.",
    ]

    charges_item = f'<li style="margin: 8px 0;"><strong>Charges :</strong> {_euros(payment.charges)}</li>' \
        if has_charges else ''
    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #2563eb; border-bottom: 2px solid #2563eb; padding-bottom: 10px;">
          {BRAND} - Quittance de Loyer
        </h2>
        <p>{greeting}</p>
        <p>Veuillez trouver ci-joint votre quittance de loyer pour la période suivante :</p>
        <div style="background-color: #f8fafc; padding: 20px; border-radius: 8px; margin: 20px 0;">
          <h3 style="margin-top: 0; color: #374151;">Détails de la quittance</h3>
          <ul style="list-style: none; padding: 0;">
            <li style="margin: 8px 0;"><strong>Période :</strong> {period}</li>
            <li style="margin: 8px 0;"><strong>Locataire :</strong> {tenant.first_name} {tenant.last_name}</li>
            <li style="margin: 8px 0;"><strong>Montant du loyer :</strong> {_euros(payment.rent_amount)}</li>
            {charges_item}
            <li style="margin: 8px 0; border-top: 1px solid #d1d5db; padding-top: 8px;">
              <strong>Total payé :</strong> {_euros(payment.total)}
            </li>
          </ul>
        </div>
        <p>Cette quittance atteste du paiement intégral de votre loyer pour la période mentionnée.</p>
        <p>Cordialement,<br><strong>Votre gestionnaire immobilier</strong><br>{BRAND}</p>
      </div>
    """

    return ReceiptSummary(subject=subject, text='\n'.join(text_lines), html=html)


class EmailService:
    """Sends receipt emails via configurable SMTP server."""

    def __init__(self, host, port, username, password, sender_email, sender_name=BRAND, use_tls=True):
        self.host = host
        self.port = int(port)
        self.username = username
        self.password = password
        self.sender_email = sender_email or username
        self.sender_name = sender_name
        self.use_tls = use_tls

    @classmethod
    def from_config(cls, config):
        """Build an EmailService from the MAIL_* settings.

        Returns:
            EmailService instance, or None if SMTP is not configured.
        """
        host = config.get('MAIL_HOST')
        if not host:
            return None

        return cls(
            host=host,
            port=config.get('MAIL_PORT', 587),
            username=config.get('MAIL_USERNAME', ''),
            password=config.get('MAIL_PASSWORD', ''),
            sender_email=config.get('MAIL_SENDER', ''),
            sender_name=config.get('MAIL_SENDER_NAME', BRAND),
            use_tls=config.get('MAIL_USE_TLS', True),
        )

    def send_receipt(self, tenant: TenantFacts, payment: PeriodPayment, file_path: str):
        """Send a receipt PDF to the tenant.

        Raises:
            ValidationException: tenant has no email address
            ResourceNotFoundException: receipt file is missing
            EmailDeliveryException: on SMTP failure
        """
        if not tenant.email:
            raise ValidationException('No email address found for tenant', details={'field': 'email'})
        if not os.path.exists(file_path):
            raise ResourceNotFoundException('Receipt file not found', details={'file': os.path.basename(file_path)})

        summary = build_receipt_summary(tenant, payment)

        msg = MIMEMultipart('mixed')
        msg['Subject'] = summary.subject
        msg['From'] = formataddr((self.sender_name, self.sender_email))
        msg['To'] = tenant.email

        body = MIMEMultipart('alternative')
        body.attach(MIMEText(summary.text, 'plain', 'utf-8'))
        body.attach(MIMEText(summary.html, 'html', 'utf-8'))
        msg.attach(body)

        with open(file_path, 'rb') as handle:
            attachment = MIMEApplication(handle.read(), _subtype='pdf')
        attachment.add_header('Content-Disposition', 'attachment', filename=os.path.basename(file_path))
        msg.attach(attachment)

        logger.info(f"Sending receipt to {tenant.email} via {self.host}:{self.port}")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(self.sender_email, [tenant.email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send receipt to {tenant.email}: {e}")
            raise EmailDeliveryException(f'Failed to send email: {e}')

        logger.info("Email sent successfully")
        return {'success': True, 'recipient': tenant.email}
