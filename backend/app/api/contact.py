from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, require_admin
from app.core.database import get_db
from app.schemas.contact import ContactSubmit, ContactLeadResponse
from app.services import contact

router = APIRouter(prefix="/api", tags=["contact"])


@router.post("/contact/submit")
def submit(payload: ContactSubmit, db: Session = Depends(get_db)):
    contact.submit_lead(db, payload)
    return {"message": "Message sent successfully!"}


@router.get("/admin/leads", response_model=list[ContactLeadResponse])
def list_leads(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    return contact.list_leads(db)
