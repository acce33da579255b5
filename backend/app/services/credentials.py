"""Admin credential store: lookup, verification and password updates."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import hash_password, verify_password, validate_new_password
from app.core.errors import IncorrectCurrentPassword, ValidationError
from app.models.admin_user import AdminUser

logger = logging.getLogger(__name__)


def get_admin(db: Session, username: str) -> Optional[AdminUser]:
    return db.query(AdminUser).filter(AdminUser.username == username).first()


def verify_credentials(db: Session, username: str, password: str) -> bool:
    """True only for a known username with a matching password. Fails closed."""
    try:
        admin = get_admin(db, username)
    except SQLAlchemyError as e:
        logger.error("Credential lookup failed for %s: %s", username, e)
        return False
    if admin is None:
        return False
    return verify_password(password, admin.password_hash)


def set_password(db: Session, admin: AdminUser, new_password: str) -> None:
    """Hash and stage a new password. Caller commits."""
    admin.password_hash = hash_password(new_password)


def change_password(db: Session, username: str, current_password: str, new_password: str) -> None:
    if not verify_credentials(db, username, current_password):
        logger.info("Password change rejected for %s: current password mismatch", username)
        raise IncorrectCurrentPassword()
    validate_new_password(new_password)

    admin = get_admin(db, username)
    if admin is None:
        raise ValidationError("Unknown admin user")
    set_password(db, admin, new_password)
    db.commit()
    logger.info("Password changed for admin %s", username)


def ensure_admin(db: Session, username: str, password: str, email: str = "") -> bool:
    """Create the admin if no admin users exist yet. Returns True if one was created."""
    if db.query(AdminUser).count() > 0:
        return False
    db.add(AdminUser(username=username, password_hash=hash_password(password), email=email))
    db.commit()
    return True
