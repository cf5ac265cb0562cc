import logging
from datetime import timedelta

from flask import Blueprint, jsonify
from sqlalchemy import or_
from werkzeug.security import check_password_hash, generate_password_hash

from models import db, Admin
from services import admin_required, issue_admin_token, MailDeliveryError
from services import reviews
from services.mail import send_reset_code, RESET_CODE_TTL_MINUTES
from utils import t, BadRequest, NotFound, ServerError, Unauthorized, generate_reset_code
from utils.helpers import clean_text, request_data, require_fields, utcnow

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


# Account

@admin_bp.route('/login', methods=['POST'])
def login():
    """Exchange a username or email plus password for a bearer credential"""
    data = request_data()
    username = clean_text(data.get('username'))
    email = clean_text(data.get('email')).lower()
    password = data.get('password') or ''

    if not password or not (username or email):
        raise BadRequest('error_all_fields_required')

    conditions = []
    if username:
        conditions.append(Admin.username == username)
    if email:
        conditions.append(Admin.email == email)
    admin = Admin.query.filter(or_(*conditions)).first()

    if not admin:
        raise NotFound('admin_not_found')
    if not check_password_hash(admin.password_hash, password):
        logger.warning("[Auth] Wrong password for admin %s", admin.username)
        raise Unauthorized('invalid_password')

    logger.info("[Auth] Admin %s logged in", admin.username)
    return jsonify({
        'success': True,
        'token': issue_admin_token(admin),
        'admin': admin.to_dict(),
    })

@admin_bp.route('/request-reset', methods=['POST'])
def request_reset():
    """Mail a 6-digit reset code; a new request replaces any earlier code"""
    email = clean_text(request_data().get('email')).lower()
    if not email:
        raise BadRequest('email_required')

    admin = Admin.query.filter_by(email=email).first()
    if not admin:
        raise NotFound('admin_not_found')

    code = generate_reset_code()
    admin.reset_code = code
    admin.reset_code_expires = utcnow() + timedelta(minutes=RESET_CODE_TTL_MINUTES)
    db.session.commit()

    try:
        send_reset_code(admin.email, code)
    except MailDeliveryError as e:
        raise ServerError(detail=str(e)) from e

    return jsonify({'success': True, 'message': t('reset_code_sent')})

@admin_bp.route('/reset-password', methods=['POST'])
def reset_password():
    code, new_password = require_fields(request_data(), 'code', 'newPassword')

    admin = Admin.query.filter(
        Admin.reset_code == code,
        Admin.reset_code_expires > utcnow(),
    ).first()
    if not admin:
        raise BadRequest('reset_code_invalid')

    admin.password_hash = generate_password_hash(new_password)
    admin.reset_code = None
    admin.reset_code_expires = None
    db.session.commit()

    logger.info("[Auth] Password reset for admin %s", admin.username)
    return jsonify({'success': True, 'message': t('password_changed')})

@admin_bp.route('/change-password', methods=['POST'])
def change_password():
    email, old_password, new_password = require_fields(
        request_data(), 'email', 'oldPassword', 'newPassword')

    admin = Admin.query.filter_by(email=email.lower()).first()
    if not admin:
        raise NotFound('admin_not_found')
    if not check_password_hash(admin.password_hash, old_password):
        raise Unauthorized('invalid_old_password')

    admin.password_hash = generate_password_hash(new_password)
    db.session.commit()

    logger.info("[Auth] Password changed for admin %s", admin.username)
    return jsonify({'success': True, 'message': t('password_changed')})


# Review links

@admin_bp.route('/review-links', methods=['POST'])
@admin_required
def create_review_link():
    data = request_data()
    link = reviews.create_invitation(data.get('expiresAt'), guest_name=data.get('guestName'))
    return jsonify(link.to_dict()), 201

@admin_bp.route('/review-links', methods=['GET'])
@admin_required
def list_review_links():
    return jsonify({'links': [link.to_dict() for link in reviews.list_invitations()]})

@admin_bp.route('/review-links/<int:link_id>', methods=['DELETE'])
# Keep old route for backward compatibility
@admin_bp.route('/reviews-link/<int:link_id>', methods=['DELETE'])
@admin_required
def delete_review_link(link_id):
    reviews.delete_invitation(link_id)
    return jsonify({'success': True, 'message': t('link_deleted')})


# Moderation

@admin_bp.route('/reviews', methods=['GET'])
@admin_required
def list_reviews():
    """All reviews, approved or not, newest first"""
    return jsonify([review.to_dict() for review in reviews.all_reviews()])

@admin_bp.route('/reviews/<int:review_id>/approve', methods=['PATCH'])
@admin_required
def approve_review(review_id):
    review = reviews.approve(review_id)
    return jsonify({'message': t('review_approved'), 'review': review.to_dict()})

@admin_bp.route('/reviews/<int:review_id>/unapprove', methods=['PATCH'])
@admin_required
def unapprove_review(review_id):
    review = reviews.unapprove(review_id)
    return jsonify({'message': t('review_unapproved'), 'review': review.to_dict()})

@admin_bp.route('/reviews/<int:review_id>', methods=['DELETE'])
@admin_required
def delete_review(review_id):
    reviews.delete_review(review_id)
    return jsonify({'message': t('review_deleted')})
