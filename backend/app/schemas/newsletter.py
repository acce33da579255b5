from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class SubscribeRequest(BaseModel):
    email: EmailStr


class UnsubscribeRequest(BaseModel):
    # Unsubscribe links may carry stale or odd addresses; never reject them
    email: str = Field(min_length=1)


class SubscriberResponse(BaseModel):
    id: int
    email: str
    status: str
    subscribed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NewsletterSendRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1)


class NewsletterSendResponse(BaseModel):
    success: bool
    sent: int
    failed: int
    errors: list[str] = []
    bounced: list[str] = []
