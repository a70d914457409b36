"""
API Routes for Rent Receipts
============================

- Generate a receipt (optionally emailing it to the tenant)
- List receipts, overall or per tenant
- Download the PDF
- Email an existing receipt
- Delete a receipt and its file
"""
from flask import Blueprint, current_app, jsonify, request, send_file

from quittances.error_handlers import handle_errors
from quittances.extensions import db, limiter
from quittances.models import get_models
from quittances.services.receipt_service import ReceiptService

api_receipts_bp = Blueprint('api_receipts', __name__, url_prefix='/api/receipts')


def _service():
    return ReceiptService(db, get_models(), current_app.config)


@api_receipts_bp.route('/generate', methods=['POST'])
@limiter.limit("30 per minute")
@handle_errors
def generate_receipt():
    """
    Generate a receipt PDF

    Request Body:
        {
            "tenantId": 1,
            "month": 8,
            "year": 2024,
            "amount": 500,
            "charges": 50,
            "paymentDate": "2024-08-05",   # optional, today by default
            "templateId": 2,               # optional, default template otherwise
            "sendEmail": false
        }

    Returns:
        201 with the receipt record; 409 when the period already has a receipt
    """
    receipt, email_result = _service().generate(request.get_json(silent=True))

    message = 'Receipt generated successfully'
    if email_result is not None:
        message = 'Receipt generated and sent via email successfully' if email_result.get('success') \
            else f"Receipt generated successfully, but email sending failed: {email_result.get('error')}"

    return jsonify({
        'success': True,
        'message': message,
        'data': receipt.to_dict(),
        'emailSent': email_result
    }), 201


@api_receipts_bp.route('', methods=['GET'])
@handle_errors
def list_receipts():
    receipts = _service().list_all()
    return jsonify({
        'success': True,
        'data': [receipt.to_dict() for receipt in receipts],
        'count': len(receipts)
    })


@api_receipts_bp.route('/tenant/<int:tenant_id>', methods=['GET'])
@handle_errors
def list_tenant_receipts(tenant_id):
    receipts = _service().list_for_tenant(tenant_id)
    return jsonify({
        'success': True,
        'data': [receipt.to_dict() for receipt in receipts],
        'count': len(receipts)
    })


@api_receipts_bp.route('/<int:receipt_id>', methods=['GET'])
@handle_errors
def get_receipt(receipt_id):
    return jsonify({'success': True, 'data': _service().get(receipt_id).to_dict()})


@api_receipts_bp.route('/<int:receipt_id>/download', methods=['GET'])
@handle_errors
def download_receipt(receipt_id):
    file_path, file_name = _service().file_path_for_download(receipt_id)
    return send_file(file_path, mimetype='application/pdf', as_attachment=True, download_name=file_name)


@api_receipts_bp.route('/<int:receipt_id>/send-email', methods=['POST'])
@handle_errors
def send_receipt_email(receipt_id):
    result = _service().send_email(receipt_id)
    return jsonify({
        'success': True,
        'message': 'Receipt sent via email successfully',
        'emailSent': result
    })


@api_receipts_bp.route('/<int:receipt_id>', methods=['DELETE'])
@handle_errors
def delete_receipt(receipt_id):
    _service().delete(receipt_id)
    return jsonify({'success': True, 'message': 'Receipt deleted successfully'})
