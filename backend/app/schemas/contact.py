from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


class ContactSubmit(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    email: EmailStr
    company: Optional[str] = None
    phone: Optional[str] = None
    message: str = Field(min_length=10)
    service_interest: Optional[str] = Field(default=None, alias="serviceInterest")

    model_config = {"populate_by_name": True}

    @field_validator("company", "phone", "service_interest")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ContactLeadResponse(BaseModel):
    id: int
    name: str
    email: str
    company: Optional[str] = None
    phone: Optional[str] = None
    message: str
    service_interest: Optional[str] = None
    status: str
    submitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True
