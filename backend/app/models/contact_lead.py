from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Text

from app.core.database import Base


class ContactLead(Base):
    __tablename__ = "contact_leads"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    company = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    message = Column(Text, nullable=False)
    service_interest = Column(String(200), nullable=True)
    status = Column(String(20), nullable=False, default="new")
    submitted_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
