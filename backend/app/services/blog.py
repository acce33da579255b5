import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.models.blog import BlogPost
from app.schemas.blog import BlogPostCreate, BlogPostUpdate

logger = logging.getLogger(__name__)


def list_published(db: Session) -> list[BlogPost]:
    return (
        db.query(BlogPost)
        .filter(BlogPost.status == "published")
        .order_by(BlogPost.published_date.desc(), BlogPost.id.desc())
        .all()
    )


def get_published(db: Session, slug: str) -> BlogPost:
    post = db.query(BlogPost).filter(BlogPost.slug == slug, BlogPost.status == "published").first()
    if not post:
        raise NotFound("Blog post not found")
    return post


def list_all(db: Session) -> list[BlogPost]:
    return db.query(BlogPost).order_by(BlogPost.created_at.desc(), BlogPost.id.desc()).all()


def get_post(db: Session, post_id: int) -> BlogPost:
    post = db.query(BlogPost).filter(BlogPost.id == post_id).first()
    if not post:
        raise NotFound("Blog post not found")
    return post


def _check_slug_free(db: Session, slug: str, exclude_id: int | None = None) -> None:
    q = db.query(BlogPost).filter(BlogPost.slug == slug)
    if exclude_id is not None:
        q = q.filter(BlogPost.id != exclude_id)
    if q.first():
        raise ValidationError("A post with this slug already exists")


def _stamp_published(post: BlogPost) -> None:
    # published_date is set once, the first time a post goes live
    if post.status == "published" and post.published_date is None:
        post.published_date = datetime.now(timezone.utc)


def create_post(db: Session, data: BlogPostCreate) -> BlogPost:
    _check_slug_free(db, data.slug)
    post = BlogPost(**data.model_dump())
    _stamp_published(post)
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("Blog post %d created (%s)", post.id, post.status)
    return post


def update_post(db: Session, post_id: int, data: BlogPostUpdate) -> BlogPost:
    post = get_post(db, post_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("slug") and changes["slug"] != post.slug:
        _check_slug_free(db, changes["slug"], exclude_id=post.id)
    for key, value in changes.items():
        if value is None and key not in ("excerpt", "featured_image_url"):
            continue
        setattr(post, key, value)
    _stamp_published(post)
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post_id: int) -> None:
    post = get_post(db, post_id)
    db.delete(post)
    db.commit()
    logger.info("Blog post %d deleted", post_id)
