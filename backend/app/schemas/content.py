from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class TestimonialResponse(BaseModel):
    id: int
    name: str
    title: str
    company: str
    quote: str
    avatar_url: Optional[str] = None
    company_logo_url: Optional[str] = None
    featured: bool = False

    class Config:
        from_attributes = True


class CaseStudyResponse(BaseModel):
    id: int
    title: str
    slug: str
    company: str
    industry: str
    solution_type: str
    problem: str
    solution: str
    results: str
    time_to_implementation: Optional[str] = None
    cost_savings_percent: Optional[str] = None
    efficiency_gain_percent: Optional[str] = None
    revenue_impact_percent: Optional[str] = None
    featured_image_url: Optional[str] = None
    published_date: Optional[datetime] = None
    status: str

    class Config:
        from_attributes = True
