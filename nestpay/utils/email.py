import logging

from flask import current_app
from flask_mail import Message

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str, html: str = None):
    """
    Send email using Flask-Mail configuration.
    Falls back to logging if mail is not configured.
    """
    mail = current_app.extensions.get("mail")
    if mail is None:
        logger.info("[EMAIL - NOT CONFIGURED] To: %s | Subject: %s | Body: %s", to_email, subject, body[:120])
        return False

    msg = Message(
        subject=subject,
        recipients=[to_email],
        body=body,
        html=html,
        sender=current_app.config.get("MAIL_DEFAULT_SENDER"),
    )
    mail.send(msg)
    logger.info("[EMAIL - SENT] To: %s | Subject: %s", to_email, subject)
    return True
