import logging
import secrets
from datetime import timedelta

from flask import current_app
from flask_mail import Message

from coachhub.extensions import db, mail
from coachhub.models import Ucode
from coachhub.utils.dates import utcnow

logger = logging.getLogger(__name__)

SUBJECTS = {
    'otp': "Your password reset code",
    'verification': "Verify your email address",
    'email_change': "Confirm your new email address",
}


def generate_code():
    return str(secrets.randbelow(900000) + 100000)


def issue_code(user, code_type, email=None):
    """Replace any previous code of this type and store a fresh one (not committed)."""
    Ucode.query.filter_by(user_id=user.id, type=code_type).delete()
    minutes = current_app.config.get('OTP_EXPIRES_MINUTES', 15)
    ucode = Ucode(
        user_id=user.id,
        token=generate_code(),
        email=email or user.email,
        type=code_type,
        expired_at=utcnow() + timedelta(minutes=minutes),
    )
    db.session.add(ucode)
    return ucode


def find_valid_code(email, token, code_type):
    ucode = Ucode.query.filter_by(email=email, token=str(token), type=code_type).first()
    if not ucode or ucode.is_expired:
        return None
    return ucode


def send_code(ucode, name=None):
    """Email a one-time code. Failures are logged, never raised."""
    minutes = current_app.config.get('OTP_EXPIRES_MINUTES', 15)
    try:
        msg = Message(SUBJECTS.get(ucode.type, "Your code"), recipients=[ucode.email])
        msg.body = (
            f"Hi {name or ''},\n\n"
            f"Your code is {ucode.token}. It expires in {minutes} minutes.\n\n"
            "If you did not request this, you can safely ignore this email.\n"
        )
        mail.send(msg)
        logger.info(f"Sent {ucode.type} code to {ucode.email}")
        return True
    except Exception as e:
        logger.error(f"Failed to send {ucode.type} email to {ucode.email}: {e}")
        return False
