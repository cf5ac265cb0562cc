import logging

from flask import Blueprint, Response, jsonify, request, stream_with_context
from werkzeug.utils import secure_filename

from services import admin_required, upload_file, open_file, StorageError, StorageFileNotFound
from utils import t, BadRequest, NotFound, ServerError

logger = logging.getLogger(__name__)

storage_bp = Blueprint('storage', __name__, url_prefix='/api/storage')

@storage_bp.route('/upload', methods=['POST'])
@admin_required
def upload():
    """Upload an image to cloud storage and return its public links"""
    image = request.files.get('image')
    if not image or not image.filename:
        raise BadRequest('file_missing')

    file_name = secure_filename(image.filename)
    if not file_name:
        raise BadRequest('file_missing')

    try:
        stored = upload_file(file_name, image.stream)
    except StorageError as e:
        raise ServerError('storage_unavailable', detail=str(e)) from e

    return jsonify({'message': t('file_uploaded'), **stored})

@storage_bp.route('/files/<path:file_name>')
def download(file_name):
    """Read-through proxy for files in the upload folder"""
    try:
        content_type, chunks = open_file(file_name)
    except StorageFileNotFound:
        raise NotFound('file_not_found')
    except StorageError as e:
        raise ServerError('storage_unavailable', detail=str(e)) from e

    return Response(stream_with_context(chunks), content_type=content_type)
