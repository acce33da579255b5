from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime

from app.core.database import Base

STATUS_ACTIVE = "active"
STATUS_UNSUBSCRIBED = "unsubscribed"
STATUS_BOUNCED = "bounced"


class NewsletterSubscriber(Base):
    __tablename__ = "newsletter_subscribers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)  # active, unsubscribed, bounced
    subscribed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
