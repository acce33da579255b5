"""
Blog API: public reads of published posts, admin CRUD.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, require_admin
from app.core.database import get_db
from app.schemas.blog import BlogPostCreate, BlogPostUpdate, BlogPostResponse
from app.services import blog

router = APIRouter(prefix="/api", tags=["blog"])


# ── Public ─────────────────────────────────────────────

@router.get("/blog/posts", response_model=list[BlogPostResponse])
def list_posts(db: Session = Depends(get_db)):
    return blog.list_published(db)


@router.get("/blog/posts/{slug}", response_model=BlogPostResponse)
def get_post_by_slug(slug: str, db: Session = Depends(get_db)):
    return blog.get_published(db, slug)


# ── Admin ──────────────────────────────────────────────

@router.get("/admin/posts", response_model=list[BlogPostResponse])
def admin_list_posts(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    return blog.list_all(db)


@router.get("/admin/posts/{post_id}", response_model=BlogPostResponse)
def admin_get_post(
    post_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    return blog.get_post(db, post_id)


@router.post("/admin/posts", response_model=BlogPostResponse)
def admin_create_post(
    payload: BlogPostCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    return blog.create_post(db, payload)


@router.put("/admin/posts/{post_id}", response_model=BlogPostResponse)
def admin_update_post(
    post_id: int,
    payload: BlogPostUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    return blog.update_post(db, post_id, payload)


@router.delete("/admin/posts/{post_id}")
def admin_delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_admin),
):
    blog.delete_post(db, post_id)
    return {"message": "Post deleted"}
