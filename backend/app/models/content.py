from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean

from app.core.database import Base


class Testimonial(Base):
    __tablename__ = "testimonials"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    title = Column(String(200), nullable=False)
    company = Column(String(200), nullable=False)
    quote = Column(Text, nullable=False)
    avatar_url = Column(String(500), nullable=True)
    company_logo_url = Column(String(500), nullable=True)
    featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class CaseStudy(Base):
    __tablename__ = "case_studies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(300), nullable=False)
    slug = Column(String(300), unique=True, nullable=False, index=True)
    company = Column(String(200), nullable=False)
    industry = Column(String(100), nullable=False)
    solution_type = Column(String(100), nullable=False)
    problem = Column(Text, nullable=False)
    solution = Column(Text, nullable=False)
    results = Column(Text, nullable=False)
    time_to_implementation = Column(String(100), nullable=True)
    cost_savings_percent = Column(String(20), nullable=True)
    efficiency_gain_percent = Column(String(20), nullable=True)
    revenue_impact_percent = Column(String(20), nullable=True)
    featured_image_url = Column(String(500), nullable=True)
    published_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default="draft")  # draft, published
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
