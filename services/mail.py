"""
Email relay for admin codes, newsletter confirmations and site forms
"""
import logging
import smtplib
from datetime import datetime

from flask import current_app
from flask_mail import Mail, Message
from markupsafe import escape

logger = logging.getLogger(__name__)

mail = Mail()

RESET_CODE_TTL_MINUTES = 10


class MailDeliveryError(Exception):
    """Raised when the mail server rejects or cannot take a message."""


def send_mail(to, subject, html):
    """
    Send a single HTML email.

    Args:
        to: Recipient address
        subject: Subject line
        html: HTML body

    Returns:
        bool: True once the message has been handed to the mail server
            (or logged, in simulation mode)

    Raises:
        MailDeliveryError: if there is no recipient or delivery fails
    """
    if not to:
        raise MailDeliveryError(f"No recipient for '{subject}'")

    # Check if mail is configured
    if not current_app.config.get('MAIL_SERVER'):
        logger.info("[Mail SIMULATION] To: %s", to)
        logger.info("[Mail SIMULATION] Subject: %s", subject)
        logger.debug("[Mail SIMULATION] Body: %s", html)
        return True

    msg = Message(
        subject=subject,
        recipients=[to],
        html=html,
        sender=current_app.config.get('MAIL_DEFAULT_SENDER'),
    )

    try:
        mail.send(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("[Mail] Failed to send '%s' to %s: %s", subject, to, e)
        raise MailDeliveryError(str(e)) from e

    logger.info("[Mail] Sent '%s' to %s", subject, to)
    return True


def _timestamp():
    return datetime.now().strftime('%d.%m.%Y, %H:%M:%S')


def send_reset_code(email, code):
    """Mail a password reset code to an admin."""
    return send_mail(
        email,
        "Сброс пароля для админа",
        f"<p>Ваш код для сброса пароля: <strong>{escape(code)}</strong></p>"
        f"<p>Он действителен {RESET_CODE_TTL_MINUTES} минут.</p>",
    )


def send_welcome(email):
    """Confirm a newsletter subscription to the subscriber."""
    return send_mail(email, "Добро пожаловать в TA Travel!", f"""
<div style="font-family: Arial, sans-serif; background-color: #f6f8fa; padding: 30px;">
    <div style="max-width: 600px; margin: 0 auto; background: #fff; border-radius: 10px; overflow: hidden;">
        <div style="background-color: #004AAD; padding: 20px; text-align: center;">
            <img src="https://www.ta-travel.ru/logo.png" alt="TA Travel" style="width: 140px; height: auto;" />
        </div>
        <div style="padding: 30px;">
            <h2 style="color: #004AAD; margin-bottom: 10px;">Спасибо, что с нами!</h2>
            <p style="font-size: 16px; color: #333;">
                Адрес <strong>{escape(email)}</strong> успешно подписан на новости TA Travel.
            </p>
        </div>
    </div>
</div>
""")


def send_new_subscriber_notice(email):
    """Tell the agency mailbox about a new subscriber."""
    return send_mail(
        current_app.config.get('ADMIN_EMAIL'),
        "Новый подписчик на рассылку TA Travel",
        f"<p>Новый подписчик: <strong>{escape(email)}</strong></p>"
        f"<p>Дата: {_timestamp()}</p>",
    )


def send_order_notice(name, phone, contact_method, message, agree):
    """Relay an order/contact form submission to the agency mailbox."""
    return send_mail(current_app.config.get('ADMIN_EMAIL'), "Новый заказ с сайта TA-Travel", f"""
<div style="font-family: Arial, sans-serif; background-color: #f4f6f8; padding: 20px;">
    <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 10px; overflow: hidden;">
        <div style="background-color: #23c5e0; padding: 20px; text-align: center; color: #fff; font-size: 20px;">
            Новый заказ с сайта TA-Travel
        </div>
        <div style="padding: 20px; color: #333; font-size: 16px; line-height: 1.5;">
            <p><strong>Имя:</strong> {escape(name)}</p>
            <p><strong>Телефон:</strong> {escape(phone)}</p>
            <p><strong>Предпочтительный способ связи:</strong> {escape(contact_method)}</p>
            <p><strong>Сообщение:</strong> {escape(message)}</p>
            <p><strong>Согласие на обработку данных:</strong> {'Да' if agree else 'Нет'}</p>
            <p style="margin-top: 15px; font-size: 14px; color: #555;">Дата заявки: {_timestamp()}</p>
        </div>
    </div>
</div>
""")
