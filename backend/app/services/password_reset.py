"""
Password reset tokens.

A token is 32 random bytes, hex encoded, mailed to the admin's recovery
address. Only its bcrypt hash is stored. A token is valid while
``used = false`` and ``expires_at > now``; consuming it flips ``used``
permanently. Issuing a new token leaves earlier unexpired tokens valid.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from sqlalchemy.orm import Session

from app.core.auth import validate_new_password
from app.core.config import settings
from app.core.errors import InvalidOrExpiredToken
from app.core.tasks import fire_and_forget
from app.models.password_reset import PasswordResetToken
from app.services import credentials
from app.services.email import send_password_reset_email

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32

GENERIC_RESET_MESSAGE = "If the username exists, a password reset email will be sent."


def _hash_token(raw_token: str) -> str:
    return bcrypt.hashpw(raw_token.encode("utf-8"), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def _token_matches(raw_token: str, token_hash: str) -> bool:
    try:
        return bcrypt.checkpw(raw_token.encode("utf-8"), token_hash.encode("utf-8"))
    except ValueError:
        return False


def reset_link(raw_token: str) -> str:
    return f"{settings.FRONTEND_URL}/admin/reset-password?token={raw_token}"


def issue_reset_token(db: Session, username: str) -> Optional[str]:
    """
    Create a reset token for ``username`` and mail it.

    Returns the raw token, or None when the user is unknown or has no
    recovery email. Callers must not expose either outcome.
    """
    admin = credentials.get_admin(db, username)
    if admin is None or not admin.email:
        # Same bcrypt cost as a real issue so response time doesn't reveal the username
        _hash_token(secrets.token_hex(TOKEN_BYTES))
        logger.info("Password reset requested for unknown or unreachable user")
        return None

    raw_token = secrets.token_hex(TOKEN_BYTES)
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_TTL_MINUTES)
    db.add(PasswordResetToken(
        username=admin.username,
        token_hash=_hash_token(raw_token),
        expires_at=expires_at,
        used=False,
    ))
    db.commit()

    # Delivery failures are logged inside the task and never reach the caller
    fire_and_forget(send_password_reset_email, admin.email, admin.username, reset_link(raw_token))
    logger.info("Password reset token issued for %s", admin.username)
    return raw_token


def consume_reset_token(db: Session, raw_token: str, new_password: str) -> str:
    """
    Set a new password using a reset token. Returns the username.

    Raises ValidationError for a weak password and InvalidOrExpiredToken when
    no outstanding token matches.
    """
    validate_new_password(new_password)

    now = datetime.now(timezone.utc)
    candidates = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.used.is_(False), PasswordResetToken.expires_at > now)
        .all()
    )

    # Linear scan: bcrypt hashes are salted so they can't be looked up directly
    record = next((c for c in candidates if _token_matches(raw_token, c.token_hash)), None)
    if record is None:
        raise InvalidOrExpiredToken()

    admin = credentials.get_admin(db, record.username)
    if admin is None:
        raise InvalidOrExpiredToken()

    credentials.set_password(db, admin, new_password)
    record.used = True
    db.commit()

    logger.info("Password reset completed for %s", admin.username)
    return admin.username
