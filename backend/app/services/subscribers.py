"""Newsletter subscriber registry."""

import logging
from datetime import datetime, timezone
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AlreadySubscribed, ValidationError
from app.core.tasks import fire_and_forget
from app.models.subscriber import (
    NewsletterSubscriber,
    STATUS_ACTIVE,
    STATUS_BOUNCED,
    STATUS_UNSUBSCRIBED,
)
from app.services.email import send_welcome_email

logger = logging.getLogger(__name__)

SUBSCRIBED = "subscribed"
RESUBSCRIBED = "resubscribed"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _get(db: Session, email: str):
    return db.query(NewsletterSubscriber).filter(NewsletterSubscriber.email == email).first()


def subscribe(db: Session, email: str) -> str:
    """
    Subscribe ``email``. Returns SUBSCRIBED or RESUBSCRIBED.

    Reactivates unsubscribed or bounced records; only brand-new subscribers
    get the welcome email.
    """
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Please enter a valid email address")
    email = normalize_email(email)

    existing = _get(db, email)
    if existing is not None:
        if existing.status == STATUS_ACTIVE:
            raise AlreadySubscribed()
        previous = existing.status
        existing.status = STATUS_ACTIVE
        existing.subscribed_at = datetime.now(timezone.utc)
        db.commit()
        logger.info("Subscriber %s reactivated (was %s)", email, previous)
        return RESUBSCRIBED

    db.add(NewsletterSubscriber(email=email, status=STATUS_ACTIVE))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same address first
        db.rollback()
        raise AlreadySubscribed()
    logger.info("New newsletter subscriber %s", email)

    fire_and_forget(send_welcome_email, email)
    return SUBSCRIBED


def unsubscribe(db: Session, email: str) -> None:
    """Idempotent: unknown addresses and repeat calls are no-ops."""
    _set_status(db, normalize_email(email), STATUS_UNSUBSCRIBED)


def mark_bounced(db: Session, email: str) -> None:
    """Only active subscribers bounce; an unsubscribe during a send wins."""
    _set_status(db, normalize_email(email), STATUS_BOUNCED, only_from=STATUS_ACTIVE)


def _set_status(db: Session, email: str, status: str, only_from: Optional[str] = None) -> None:
    query = db.query(NewsletterSubscriber).filter(NewsletterSubscriber.email == email)
    if only_from is not None:
        query = query.filter(NewsletterSubscriber.status == only_from)
    updated = query.update({NewsletterSubscriber.status: status}, synchronize_session=False)
    db.commit()
    if updated:
        logger.info("Subscriber %s marked %s", email, status)


def list_active_emails(db: Session) -> list[str]:
    rows = (
        db.query(NewsletterSubscriber.email)
        .filter(NewsletterSubscriber.status == STATUS_ACTIVE)
        .order_by(NewsletterSubscriber.id)
        .all()
    )
    return [r.email for r in rows]


def list_subscribers(db: Session) -> list[NewsletterSubscriber]:
    return (
        db.query(NewsletterSubscriber)
        .order_by(NewsletterSubscriber.subscribed_at.desc(), NewsletterSubscriber.id.desc())
        .all()
    )
