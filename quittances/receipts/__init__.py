"""
Receipt engine: layout model, template analysis, French wording and PDF rendering
"""
from .number_words import wordify
from .layout import (
    SectionKey,
    SectionStyle,
    Layout,
    TemplateConfiguration,
    default_configuration,
    validate,
    merge,
)
from .facts import Landlord, TenantFacts, PeriodPayment
from .analyzer import analyze, synthesize, configuration_for_upload
from .renderer import ReceiptRenderer, RenderedReceipt, receipt_filename

__all__ = [
    'wordify',
    'SectionKey',
    'SectionStyle',
    'Layout',
    'TemplateConfiguration',
    'default_configuration',
    'validate',
    'merge',
    'Landlord',
    'TenantFacts',
    'PeriodPayment',
    'analyze',
    'synthesize',
    'configuration_for_upload',
    'ReceiptRenderer',
    'RenderedReceipt',
    'receipt_filename',
]
