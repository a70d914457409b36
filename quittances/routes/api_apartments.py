"""
API Routes for Apartments
Record keeping for the properties whose address is printed on receipts
"""
from flask import Blueprint, jsonify, request

from quittances.error_handlers import handle_errors, with_db_transaction
from quittances.error_handlers.exceptions import ResourceNotFoundException
from quittances.extensions import db
from quittances.models import get_models
from quittances.schemas import ApartmentPayload, parse_payload

api_apartments_bp = Blueprint('api_apartments', __name__, url_prefix='/api/apartments')


def _get_apartment(apartment_id):
    apartment = db.session.get(get_models()['Apartment'], apartment_id)
    if apartment is None:
        raise ResourceNotFoundException(f'Apartment {apartment_id} not found')
    return apartment


@api_apartments_bp.route('', methods=['GET'])
@handle_errors
def list_apartments():
    """
    List apartments

    Query Parameters:
        includeInactive: "true" to include deleted apartments
    """
    Apartment = get_models()['Apartment']
    query = Apartment.query
    if request.args.get('includeInactive', 'false').lower() != 'true':
        query = query.filter(Apartment.is_active.is_(True))
    apartments = query.order_by(Apartment.name).all()
    return jsonify({
        'success': True,
        'data': [apartment.to_dict() for apartment in apartments],
        'count': len(apartments)
    })


@api_apartments_bp.route('/<int:apartment_id>', methods=['GET'])
@handle_errors
def get_apartment(apartment_id):
    return jsonify({'success': True, 'data': _get_apartment(apartment_id).to_dict()})


@api_apartments_bp.route('', methods=['POST'])
@handle_errors
@with_db_transaction
def create_apartment():
    payload = parse_payload(ApartmentPayload, request.get_json(silent=True))
    apartment = get_models()['Apartment'](**payload.model_dump())
    db.session.add(apartment)
    db.session.flush()
    return jsonify({'success': True, 'data': apartment.to_dict()}), 201


@api_apartments_bp.route('/<int:apartment_id>', methods=['PUT'])
@handle_errors
@with_db_transaction
def update_apartment(apartment_id):
    apartment = _get_apartment(apartment_id)
    merged = dict(apartment.to_dict(), **(request.get_json(silent=True) or {}))
    payload = parse_payload(ApartmentPayload, merged)
    for field_name, value in payload.model_dump().items():
        setattr(apartment, field_name, value)
    return jsonify({'success': True, 'data': apartment.to_dict()})


@api_apartments_bp.route('/<int:apartment_id>', methods=['DELETE'])
@handle_errors
@with_db_transaction
def delete_apartment(apartment_id):
    """Soft delete; tenants keep their link so past receipts stay consistent"""
    apartment = _get_apartment(apartment_id)
    apartment.is_active = False
    return jsonify({'success': True, 'message': 'Apartment deleted successfully'})
