"""
Request payload schemas

Pydantic models validating the JSON bodies accepted by the API. Field
aliases match the camelCase keys used by the web client.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quittances.error_handlers.exceptions import ValidationException
from quittances.utils.validators import format_validation_errors

PayloadT = TypeVar('PayloadT', bound=BaseModel)


class Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class ReceiptRequest(Payload):
    """Receipt generation request"""
    tenant_id: int = Field(..., alias='tenantId', gt=0)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)
    amount: Decimal = Field(..., gt=0, description="Rent paid for the period")
    charges: Decimal = Field(Decimal('0'), ge=0)
    payment_date: Optional[date] = Field(None, alias='paymentDate')
    template_id: Optional[int] = Field(None, alias='templateId')
    send_email: bool = Field(False, alias='sendEmail')


class ApartmentPayload(Payload):
    name: str = Field(..., min_length=1, max_length=120)
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=120)
    postal_code: str = Field(..., alias='postalCode', min_length=1, max_length=10)
    description: Optional[str] = None
    is_active: bool = Field(True, alias='isActive')


class TenantPayload(Payload):
    first_name: str = Field(..., alias='firstName', min_length=1, max_length=100)
    last_name: str = Field(..., alias='lastName', min_length=1, max_length=100)
    gender: str = Field('M', pattern=r'^[MF]$')
    email: Optional[str] = Field(None, max_length=120, pattern=r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    apartment_id: Optional[int] = Field(None, alias='apartmentId')
    rent_amount: Decimal = Field(Decimal('0'), alias='rentAmount', ge=0)
    charges: Decimal = Field(Decimal('0'), ge=0)
    deposit_amount: Decimal = Field(Decimal('0'), alias='depositAmount', ge=0)
    lease_start_date: Optional[date] = Field(None, alias='leaseStartDate')
    lease_end_date: Optional[date] = Field(None, alias='leaseEndDate')
    is_active: bool = Field(True, alias='isActive')


class OwnerPayload(Payload):
    name: str = Field(..., min_length=1, max_length=150)
    address1: str = Field(..., min_length=1, max_length=255)
    address2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=120)
    signature: Optional[str] = Field(None, max_length=150)
    signature_path: Optional[str] = Field(None, alias='signaturePath', max_length=500)


class TemplatePayload(Payload):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    template_type: str = Field('custom', alias='templateType')
    is_active: bool = Field(True, alias='isActive')
    is_default: bool = Field(False, alias='isDefault')
    configuration: Optional[Dict[str, Any]] = None
    style: Optional[str] = None


def parse_payload(model: Type[PayloadT], data: Optional[Dict[str, Any]]) -> PayloadT:
    """
    Validate a request body against ``model``.

    Raises:
        ValidationException: listing every invalid field
    """
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        raise ValidationException(
            'Invalid request data',
            details={'errors': format_validation_errors(e.errors())}
        )
