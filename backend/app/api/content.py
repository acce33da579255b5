from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import NotFound
from app.models.content import Testimonial, CaseStudy
from app.schemas.content import TestimonialResponse, CaseStudyResponse

router = APIRouter(prefix="/api", tags=["content"])


@router.get("/testimonials", response_model=list[TestimonialResponse])
def list_testimonials(db: Session = Depends(get_db)):
    return (
        db.query(Testimonial)
        .order_by(Testimonial.featured.desc(), Testimonial.created_at.desc())
        .all()
    )


@router.get("/case-studies", response_model=list[CaseStudyResponse])
def list_case_studies(db: Session = Depends(get_db)):
    return (
        db.query(CaseStudy)
        .filter(CaseStudy.status == "published")
        .order_by(CaseStudy.published_date.desc(), CaseStudy.id.desc())
        .all()
    )


@router.get("/case-studies/{slug}", response_model=CaseStudyResponse)
def get_case_study(slug: str, db: Session = Depends(get_db)):
    study = db.query(CaseStudy).filter(CaseStudy.slug == slug, CaseStudy.status == "published").first()
    if not study:
        raise NotFound("Case study not found")
    return study
