"""
API Routes for Tenants
Record keeping for the people receipts are issued to
"""
from flask import Blueprint, jsonify, request

from quittances.error_handlers import handle_errors, with_db_transaction
from quittances.error_handlers.exceptions import ResourceNotFoundException, ValidationException
from quittances.extensions import db
from quittances.models import get_models
from quittances.schemas import TenantPayload, parse_payload

api_tenants_bp = Blueprint('api_tenants', __name__, url_prefix='/api/tenants')


def _get_tenant(tenant_id):
    tenant = db.session.get(get_models()['Tenant'], tenant_id)
    if tenant is None:
        raise ResourceNotFoundException(f'Tenant {tenant_id} not found')
    return tenant


def _check_references(payload: TenantPayload, tenant_id=None):
    models = get_models()
    if payload.apartment_id is not None and db.session.get(models['Apartment'], payload.apartment_id) is None:
        raise ValidationException(f'Apartment {payload.apartment_id} not found', details={'field': 'apartmentId'})

    if payload.email:
        Tenant = models['Tenant']
        existing = Tenant.query.filter(Tenant.email == payload.email).first()
        if existing is not None and existing.id != tenant_id:
            raise ValidationException('A tenant with this email already exists', details={'field': 'email'})


@api_tenants_bp.route('', methods=['GET'])
@handle_errors
def list_tenants():
    """
    List tenants

    Query Parameters:
        includeInactive: "true" to include deleted tenants
    """
    Tenant = get_models()['Tenant']
    query = Tenant.query
    if request.args.get('includeInactive', 'false').lower() != 'true':
        query = query.filter(Tenant.is_active.is_(True))
    tenants = query.order_by(Tenant.last_name, Tenant.first_name).all()
    return jsonify({
        'success': True,
        'data': [tenant.to_dict() for tenant in tenants],
        'count': len(tenants)
    })


@api_tenants_bp.route('/<int:tenant_id>', methods=['GET'])
@handle_errors
def get_tenant(tenant_id):
    return jsonify({'success': True, 'data': _get_tenant(tenant_id).to_dict()})


@api_tenants_bp.route('', methods=['POST'])
@handle_errors
@with_db_transaction
def create_tenant():
    """
    Create a tenant

    Request Body:
        {"firstName", "lastName", "gender": "M"|"F", "email", "apartmentId", "rentAmount", "charges", ...}
    """
    payload = parse_payload(TenantPayload, request.get_json(silent=True))
    _check_references(payload)
    tenant = get_models()['Tenant'](**payload.model_dump())
    db.session.add(tenant)
    db.session.flush()
    return jsonify({'success': True, 'data': tenant.to_dict()}), 201


@api_tenants_bp.route('/<int:tenant_id>', methods=['PUT'])
@handle_errors
@with_db_transaction
def update_tenant(tenant_id):
    tenant = _get_tenant(tenant_id)
    merged = dict(tenant.to_dict(), **(request.get_json(silent=True) or {}))
    payload = parse_payload(TenantPayload, merged)
    _check_references(payload, tenant_id=tenant.id)
    for field_name, value in payload.model_dump().items():
        setattr(tenant, field_name, value)
    return jsonify({'success': True, 'data': tenant.to_dict()})


@api_tenants_bp.route('/<int:tenant_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_tenant(tenant_id):
    """Soft delete; receipts already issued are kept"""
    tenant = _get_tenant(tenant_id)
    tenant.is_active = False
    return jsonify({'success': True, 'message': 'Tenant deleted successfully'})
