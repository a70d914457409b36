"""
Storage helpers for generated receipts and uploaded template files
"""
import logging
import os
import uuid

from werkzeug.utils import secure_filename

from quittances.error_handlers.exceptions import ValidationException

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))


def resolve_storage_path(path: str) -> str:
    """Absolute directory for a configured storage path, created on demand"""
    if not os.path.isabs(path):
        path = os.path.join(PROJECT_ROOT, path)
    os.makedirs(path, exist_ok=True)
    return path


def save_upload(file_storage, directory: str, prefix: str = 'template') -> str:
    """
    Store an uploaded file under a unique name.

    Returns:
        Absolute path of the stored file

    Raises:
        ValidationException: If no file was sent
    """
    if file_storage is None or not file_storage.filename:
        raise ValidationException('No file uploaded')

    original = secure_filename(file_storage.filename) or 'upload'
    _, extension = os.path.splitext(original)
    stored_name = f"{prefix}-{uuid.uuid4().hex}{extension.lower()}"
    path = os.path.join(resolve_storage_path(directory), stored_name)
    file_storage.save(path)
    return path


def discard_uploads(paths):
    """Remove stored uploads of a rejected request; failures are only logged"""
    for path in paths:
        try:
            if os.path.exists(path):
                os.remove(path)
                logger.info(f"Discarded upload {path}")
        except OSError as e:
            logger.warning(f"Could not discard upload {path}: {e}")
