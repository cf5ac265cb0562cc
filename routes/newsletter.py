import logging

from flask import Blueprint, jsonify
from sqlalchemy.exc import IntegrityError

from models import db, NewsletterSubscriber
from services import admin_required, MailDeliveryError
from services.mail import send_welcome, send_new_subscriber_notice
from utils import t, BadRequest, Conflict, NotFound, ServerError, normalize_email
from utils.helpers import clean_text, request_data

logger = logging.getLogger(__name__)

newsletter_bp = Blueprint('newsletter', __name__, url_prefix='/api/newsletter')

@newsletter_bp.route('/', methods=['POST'])
def subscribe():
    """Add an email to the newsletter and send the confirmation mails"""
    raw_email = clean_text(request_data().get('email'))
    if not raw_email:
        raise BadRequest('email_required')
    email = normalize_email(raw_email)

    if NewsletterSubscriber.query.filter_by(email=email).first():
        raise Conflict('subscriber_exists')

    subscriber = NewsletterSubscriber(email=email)
    db.session.add(subscriber)
    try:
        db.session.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent subscription for the same address
        db.session.rollback()
        raise Conflict('subscriber_exists') from e

    logger.info("[Newsletter] New subscriber %s", email)

    try:
        send_welcome(email)
        send_new_subscriber_notice(email)
    except MailDeliveryError as e:
        raise ServerError(detail=str(e)) from e

    return jsonify({'message': t('subscribed'), 'subscriber': subscriber.to_dict()}), 201

@newsletter_bp.route('/admin', methods=['GET'])
@admin_required
def list_subscribers():
    subscribers = NewsletterSubscriber.query.order_by(
        NewsletterSubscriber.created_at.desc(), NewsletterSubscriber.id.desc()).all()
    return jsonify({'success': True, 'subscribers': [s.to_dict() for s in subscribers]})

@newsletter_bp.route('/admin/<int:subscriber_id>', methods=['DELETE'])
@admin_required
def delete_subscriber(subscriber_id):
    subscriber = db.session.get(NewsletterSubscriber, subscriber_id)
    if not subscriber:
        raise NotFound('subscriber_not_found')

    db.session.delete(subscriber)
    db.session.commit()
    logger.info("[Newsletter] Removed subscriber %s", subscriber_id)
    return jsonify({'success': True, 'message': t('subscriber_deleted')})
