"""
API Routes for the Landlord
Single owner record whose details head every receipt
"""
from flask import Blueprint, jsonify, request

from quittances.error_handlers import handle_errors, with_db_transaction
from quittances.error_handlers.exceptions import ResourceNotFoundException
from quittances.extensions import db
from quittances.models import get_models
from quittances.schemas import OwnerPayload, parse_payload

api_owner_bp = Blueprint('api_owner', __name__, url_prefix='/api/owner')


@api_owner_bp.route('', methods=['GET'])
@handle_errors
def get_owner():
    owner = get_models()['Owner'].get_owner()
    if owner is None:
        raise ResourceNotFoundException('Owner not configured')
    return jsonify({'success': True, 'data': owner.to_dict()})


@api_owner_bp.route('', methods=['PUT'])
@handle_errors
@with_db_transaction
def update_owner():
    """
    Create or replace the owner record

    Request Body:
        {"name", "address1", "address2", "city", "signature", "signaturePath"}
    """
    payload = parse_payload(OwnerPayload, request.get_json(silent=True))
    Owner = get_models()['Owner']
    owner = Owner.get_owner()
    if owner is None:
        owner = Owner()
        db.session.add(owner)
    for field_name, value in payload.model_dump().items():
        setattr(owner, field_name, value)
    db.session.flush()
    return jsonify({'success': True, 'message': 'Owner updated successfully', 'data': owner.to_dict()})
