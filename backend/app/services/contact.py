import logging

from sqlalchemy.orm import Session

from app.models.contact_lead import ContactLead
from app.schemas.contact import ContactSubmit

logger = logging.getLogger(__name__)


def submit_lead(db: Session, data: ContactSubmit) -> ContactLead:
    lead = ContactLead(
        name=data.name.strip(),
        email=str(data.email).lower(),
        company=data.company,
        phone=data.phone,
        message=data.message,
        service_interest=data.service_interest,
        status="new",
    )
    db.add(lead)
    db.commit()
    db.refresh(lead)
    logger.info("Contact lead %d received (interest=%s)", lead.id, lead.service_interest or "-")
    return lead


def list_leads(db: Session) -> list[ContactLead]:
    return db.query(ContactLead).order_by(ContactLead.submitted_at.desc(), ContactLead.id.desc()).all()
