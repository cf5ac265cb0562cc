from flask import Blueprint, jsonify

from services import MailDeliveryError
from services.mail import send_order_notice
from utils import t, ServerError
from utils.helpers import request_data, require_fields

forms_bp = Blueprint('forms', __name__, url_prefix='/api/forms')

@forms_bp.route('/order', methods=['POST'])
def order():
    """Relay the website order form to the agency mailbox"""
    data = request_data()
    name, phone, message, contact_method = require_fields(
        data, 'name', 'phone', 'message', 'contactMethod')
    agree = str(data.get('agree', '')).lower() in ('true', '1', 'on', 'yes')

    try:
        send_order_notice(name, phone, contact_method, message, agree)
    except MailDeliveryError as e:
        raise ServerError(detail=str(e)) from e

    return jsonify({'message': t('order_sent')}), 201
