"""
Business facts painted on a receipt.

These are plain value objects built from database records by the receipt
service, so the renderer never touches the ORM.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from . import periods
from .number_words import wordify

Number = Union[int, float, Decimal]

POSTAL_CODE_PREFIX = re.compile(r'^\s*\d{4,5}\s+')


def format_amount(value: Number) -> str:
    """Whole euros print without decimals; cents keep only significant digits"""
    value = Decimal(str(value))
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), 'f')


def format_date(value: Union[date, datetime]) -> str:
    return value.strftime('%d/%m/%Y')


@dataclass
class Landlord:
    name: str
    address_line1: str
    address_line2: Optional[str] = None
    signature_text: Optional[str] = None
    signature_image_path: Optional[str] = None
    city: Optional[str] = None

    @property
    def place_of_issue(self) -> str:
        """City printed after "Fait à"; derived from address line 2 when unset"""
        if self.city:
            return self.city
        return POSTAL_CODE_PREFIX.sub('', self.address_line2 or '').strip()

    @property
    def signature(self) -> str:
        return self.signature_text or self.name


@dataclass
class TenantFacts:
    first_name: str
    last_name: str
    gender: str = 'M'
    email: Optional[str] = None
    apartment_address: Optional[str] = None
    apartment_city: Optional[str] = None
    apartment_postal_code: Optional[str] = None
    legacy_address: Optional[str] = None

    @property
    def honorific(self) -> str:
        return 'Madame' if (self.gender or '').upper() == 'F' else 'Monsieur'

    @property
    def address(self) -> str:
        """Apartment address when linked, the tenant's own address otherwise"""
        if self.apartment_address:
            return f"{self.apartment_address}, {self.apartment_city or ''} {self.apartment_postal_code or ''}".strip()
        return self.legacy_address or ''

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class PeriodPayment:
    month: int
    year: int
    rent_amount: Number
    charges: Number = 0
    payment_date: Optional[date] = None

    @property
    def total(self) -> Decimal:
        return Decimal(str(self.rent_amount)) + Decimal(str(self.charges or 0))

    @property
    def amount_in_words(self) -> str:
        return wordify(self.total)

    @property
    def period_start(self) -> str:
        return f"{periods.last_day_of_previous_month(self.month, self.year)}/" \
               f"{periods.previous_month_formatted(self.month, self.year)}"

    @property
    def period_end(self) -> str:
        return f"{periods.day_before_last_day_of_month(self.month, self.year)}/{self.month:02d}/{self.year}"

    @property
    def period_label(self) -> str:
        """"MM/YYYY" as printed in the header"""
        return f"{self.month:02d}/{self.year}"
