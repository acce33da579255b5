"""
Newsletter API: public subscribe/unsubscribe and the admin bulk send.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, require_admin
from app.core.database import SessionLocal, get_db
from app.schemas.newsletter import (
    SubscribeRequest,
    UnsubscribeRequest,
    SubscriberResponse,
    NewsletterSendRequest,
    NewsletterSendResponse,
)
from app.services import subscribers
from app.services.newsletter import NewsletterMessage, send_newsletter

router = APIRouter(prefix="/api", tags=["newsletter"])
log = logging.getLogger(__name__)


@router.post("/newsletter/subscribe")
def subscribe(payload: SubscribeRequest, db: Session = Depends(get_db)):
    outcome = subscribers.subscribe(db, str(payload.email))
    if outcome == subscribers.RESUBSCRIBED:
        return {"message": "Successfully resubscribed!"}
    return {"message": "Successfully subscribed!"}


@router.post("/newsletter/unsubscribe")
def unsubscribe(payload: UnsubscribeRequest, db: Session = Depends(get_db)):
    subscribers.unsubscribe(db, payload.email)
    return {"message": "Successfully unsubscribed"}


# ── Admin ──────────────────────────────────────────────

@router.get("/admin/subscribers", response_model=list[SubscriberResponse])
def list_subscribers(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    return subscribers.list_subscribers(db)


@router.post("/admin/newsletter/send", response_model=NewsletterSendResponse)
async def send(
    payload: NewsletterSendRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    """Send the newsletter to every active subscriber. Partial failures still return 200."""
    recipients = await asyncio.to_thread(subscribers.list_active_emails, db)
    log.info("Admin %s sending newsletter '%s' to %d subscribers", ctx.username, payload.subject, len(recipients))

    async def on_bounce(email: str, reason: str) -> None:
        await asyncio.to_thread(_record_bounce, email)

    result = await send_newsletter(
        recipients,
        NewsletterMessage(subject=payload.subject, body=payload.content),
        on_bounce,
    )
    return result.to_dict()


def _record_bounce(email: str) -> None:
    # Bounces in one batch are recorded concurrently, each on its own session
    with SessionLocal() as session:
        subscribers.mark_bounced(session, email)
