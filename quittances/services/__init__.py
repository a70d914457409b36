"""
Service layer: template persistence, receipt generation and email delivery
"""
from .template_store import TemplateStore
from .receipt_service import ReceiptService
from .email_service import EmailService, build_receipt_summary

__all__ = [
    'TemplateStore',
    'ReceiptService',
    'EmailService',
    'build_receipt_summary',
]
