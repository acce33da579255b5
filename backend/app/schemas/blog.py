"""Pydantic schemas for blog posts."""

import re
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

SLUG_PATTERN = r"^[a-z0-9-]+$"
_URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def _image_url(v: Optional[str]) -> Optional[str]:
    if not v:
        return None
    if not _URL_RE.match(v):
        raise ValueError("must be a valid http(s) URL")
    return v


class BlogPostCreate(BaseModel):
    title: str = Field(min_length=5, max_length=300)
    slug: str = Field(min_length=3, max_length=300, pattern=SLUG_PATTERN)
    content: str = Field(min_length=50)
    excerpt: Optional[str] = None
    author: str = "von AI Team"
    featured_image_url: Optional[str] = None
    status: Literal["draft", "published"] = "draft"

    @field_validator("featured_image_url")
    @classmethod
    def check_image_url(cls, v):
        return _image_url(v)


class BlogPostUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=5, max_length=300)
    slug: Optional[str] = Field(default=None, min_length=3, max_length=300, pattern=SLUG_PATTERN)
    content: Optional[str] = Field(default=None, min_length=50)
    excerpt: Optional[str] = None
    author: Optional[str] = None
    featured_image_url: Optional[str] = None
    status: Optional[Literal["draft", "published"]] = None

    @field_validator("featured_image_url")
    @classmethod
    def check_image_url(cls, v):
        return _image_url(v)


class BlogPostResponse(BaseModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    author: str
    featured_image_url: Optional[str] = None
    status: str
    published_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
