"""
API Routes for Receipt Template Management
==========================================

Handles template operations including:
- List templates (default first) and fetch the default one
- Create from JSON, from a named style, or from an uploaded image/PDF
- Update, delete (never the default) and set the default
- Upload a background for an existing template
- Preview a template as a PDF with sample data
"""
from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from quittances.error_handlers import handle_errors
from quittances.error_handlers.exceptions import ValidationException
from quittances.extensions import db
from quittances.models import get_models
from quittances.receipts.analyzer import configuration_for_upload, synthesize
from quittances.schemas import TemplatePayload, parse_payload
from quittances.services.receipt_service import ReceiptService
from quittances.services.template_store import TemplateStore
from quittances.utils.files import discard_uploads, save_upload
from quittances.utils.validators import get_json_body

api_templates_bp = Blueprint('api_templates', __name__, url_prefix='/api/templates')

FIELD_NAMES = {
    'name': 'name',
    'description': 'description',
    'templateType': 'template_type',
    'isActive': 'is_active',
    'isDefault': 'is_default',
    'configuration': 'configuration',
}


def _store():
    return TemplateStore(db, get_models())


def _upload_content_type(file_storage):
    """Client MIME type, ignoring the generic binary type browsers send for unknown files"""
    mimetype = file_storage.mimetype
    if not mimetype or mimetype == 'application/octet-stream':
        return None
    return mimetype


def _form_bool(value):
    return str(value).lower() in ('1', 'true', 'yes', 'on')


def _fields_from_upload(saved):
    """
    Template fields for a multipart request carrying templateFile or background.

    Stored upload paths are appended to ``saved`` as soon as they exist.
    """
    form = request.form
    name = (form.get('name') or '').strip()
    if not name:
        raise ValidationException('Template name is required', details={'field': 'name'})

    fields = {
        'name': name,
        'description': form.get('description'),
        'is_default': _form_bool(form.get('isDefault', 'false')),
    }
    upload_dir = current_app.config['UPLOAD_DIR']

    template_file = request.files.get('templateFile')
    if template_file and template_file.filename:
        path = save_upload(template_file, upload_dir)
        saved.append(path)
        config = configuration_for_upload(
            path, name=name, template_type='uploaded',
            content_type=_upload_content_type(template_file)
        )
        fields.update({
            'template_type': 'uploaded',
            'configuration': config,
            'source_file_path': path,
            'background_asset_path': config.layout.background_asset_ref,
        })
        return fields

    background = request.files.get('background')
    if background and background.filename:
        path = save_upload(background, upload_dir, prefix='background')
        saved.append(path)
        fields.update({
            'template_type': form.get('templateType') or 'custom',
            'configuration': synthesize(form.get('style') or 'standard', background_path=path),
            'background_asset_path': path,
        })
        return fields

    raise ValidationException('Upload a templateFile or a background image')


@api_templates_bp.route('', methods=['GET'])
@handle_errors
def list_templates():
    """
    Get all templates, default first then most recent

    Query Parameters:
        active: "true" to list active templates only
    """
    active_only = request.args.get('active', 'false').lower() == 'true'
    templates = _store().find_all(active_only=active_only)
    return jsonify({
        'success': True,
        'data': [template.to_dict() for template in templates],
        'count': len(templates)
    })


@api_templates_bp.route('/default', methods=['GET'])
@handle_errors
def get_default_template():
    """Get the template used when a receipt names none"""
    return jsonify({'success': True, 'data': _store().find_default().to_dict()})


@api_templates_bp.route('/<int:template_id>', methods=['GET'])
@handle_errors
def get_template(template_id):
    return jsonify({'success': True, 'data': _store().get(template_id).to_dict()})


@api_templates_bp.route('', methods=['POST'])
@handle_errors
def create_template():
    """
    Create a new template

    JSON Body:
        {
            "name": "Modern",
            "description": "Optional description",
            "templateType": "custom",
            "isDefault": false,
            "configuration": {...},   # optional, standard layout when absent
            "style": "modern"         # optional preset used when no configuration
        }

    Multipart Form:
        name, description, isDefault, plus either
        templateFile: image or PDF analyzed into a layout, or
        background: image painted behind a synthesized layout

    Returns:
        201 with the created template
    """
    saved = []
    try:
        if request.files:
            fields = _fields_from_upload(saved)
        else:
            payload = parse_payload(TemplatePayload, request.get_json(silent=True))
            fields = payload.model_dump(exclude={'style'})
            if payload.configuration is None:
                fields['configuration'] = synthesize(payload.style or 'standard')

        template = _store().create(fields)
    except Exception:
        discard_uploads(saved)
        raise
    current_app.logger.info(f"Template created via API: {template.id} '{template.name}'")
    return jsonify({
        'success': True,
        'message': 'Template created successfully',
        'data': template.to_dict()
    }), 201


@api_templates_bp.route('/<int:template_id>', methods=['PUT'])
@handle_errors
def update_template(template_id):
    """
    Update a template; a configuration replaces the stored one as a whole

    JSON Body (all optional):
        {"name", "description", "templateType", "isActive", "isDefault", "configuration"}
    """
    data = get_json_body()
    fields = {FIELD_NAMES[key]: value for key, value in data.items() if key in FIELD_NAMES}
    template = _store().update(template_id, fields)
    return jsonify({
        'success': True,
        'message': 'Template updated successfully',
        'data': template.to_dict()
    })


@api_templates_bp.route('/<int:template_id>', methods=['DELETE'])
@handle_errors
def delete_template(template_id):
    _store().delete(template_id)
    return jsonify({'success': True, 'message': 'Template deleted successfully'})


@api_templates_bp.route('/<int:template_id>/set-default', methods=['POST'])
@handle_errors
def set_default_template(template_id):
    template = _store().set_default(template_id)
    return jsonify({
        'success': True,
        'message': 'Default template updated',
        'data': template.to_dict()
    })


@api_templates_bp.route('/<int:template_id>/background', methods=['POST'])
@handle_errors
def upload_background(template_id):
    """
    Attach a background image or PDF to a template

    Multipart Form:
        background: the file to paint behind receipts
    """
    store = _store()
    store.get(template_id)
    path = save_upload(request.files.get('background'), current_app.config['UPLOAD_DIR'], prefix='background')
    try:
        template = store.attach_background(template_id, path)
    except Exception:
        discard_uploads([path])
        raise
    return jsonify({
        'success': True,
        'message': 'Background uploaded successfully',
        'data': template.to_dict()
    })


@api_templates_bp.route('/<int:template_id>/preview', methods=['GET'])
@handle_errors
def preview_template(template_id):
    """
    Render a template with sample data

    Query Parameters:
        tenantId: render with this tenant's details instead of sample data
    """
    template = _store().get(template_id)
    tenant_id = request.args.get('tenantId', type=int)
    service = ReceiptService(db, get_models(), current_app.config)
    content = service.preview(template, tenant_id=tenant_id)
    return send_file(
        BytesIO(content),
        mimetype='application/pdf',
        as_attachment=False,
        download_name=f'apercu_template_{template_id}.pdf'
    )
