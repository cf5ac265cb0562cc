import logging
import secrets

from flask import Blueprint, jsonify, request
from werkzeug.utils import secure_filename

from services import reviews, upload_file, StorageError
from utils import t, BadRequest, InvalidLink, NotFound, ServerError
from utils.helpers import request_data

logger = logging.getLogger(__name__)

reviews_bp = Blueprint('reviews', __name__, url_prefix='/api/reviews')

@reviews_bp.route('/check-token')
def check_token():
    """Pre-flight for the review form; does not reserve the link"""
    status = reviews.check_token(request.args.get('token'))
    if status.valid:
        return jsonify({'valid': True, 'message': t('link_valid')})

    message_key = 'link_expired' if status.reason == reviews.TOKEN_EXPIRED else 'link_used'
    return jsonify({'valid': False, 'reason': status.reason, 'message': t(message_key)})

def _upload_review_image(image, token):
    """Store an image attached to a submission and return its URL"""
    # Don't push files to storage for links that cannot be used anyway
    try:
        status = reviews.check_token(token)
    except NotFound:
        raise InvalidLink('link_invalid')
    if not status.valid:
        raise InvalidLink('link_expired' if status.reason == reviews.TOKEN_EXPIRED else 'link_used')

    file_name = secure_filename(image.filename)
    if not file_name:
        raise BadRequest('file_missing')

    try:
        stored = upload_file(f"review-{secrets.token_hex(8)}-{file_name}", image.stream)
    except StorageError as e:
        raise ServerError('storage_unavailable', detail=str(e)) from e
    return stored['directUrl'] or stored['publicUrl']

@reviews_bp.route('/submit-review', methods=['POST'])
def submit_review():
    """Guest review submission against an invitation token"""
    fields = reviews.parse_submission(request_data())

    image = request.files.get('image')
    if image and image.filename:
        fields['image_url'] = _upload_review_image(image, fields['token'])

    review = reviews.submit_review(**fields)
    return jsonify({'message': t('review_submitted'), 'review': review.to_dict()}), 201

@reviews_bp.route('/')
def latest():
    """Homepage teaser: the newest approved reviews"""
    return jsonify([review.to_dict() for review in reviews.latest_approved()])

@reviews_bp.route('/all')
@reviews_bp.route('/approved')
def all_approved():
    """Testimonials page: every approved review"""
    return jsonify([review.to_dict() for review in reviews.all_approved()])
