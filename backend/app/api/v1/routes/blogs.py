"""Module: blogs."""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.api.v1.routes.deps import get_current_identity, get_db, parse_uuid
from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.db.models.blog import Blog, BlogComment, BlogLike
from app.services import uploads
from app.services.auth import Identity
from app.services.read_models import (
    blog_comments,
    blog_like_ids,
    serialize_blogs,
    serialize_comments,
)
from app.services.validation import normalize_optional, parse_tags

router = APIRouter()

WORDS_PER_MINUTE = 200


class CommentPayload(BaseModel):
    content: str | None = None


def _read_time(content: str) -> int:
    words = len(content.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE)) if words else 0


def _get_blog(db: Session, blog_id: str) -> Blog:
    blog = db.get(Blog, parse_uuid(blog_id, "blog_id"))
    if not blog:
        raise NotFoundError("Blog not found")
    return blog


def _require_author(blog: Blog, identity: Identity, action: str) -> None:
    if blog.author_id != identity.user_id:
        raise AuthorizationError(f"Not authorized to {action} this blog")


@router.get("", summary="List blogs (newest first)")
def list_blogs(db: Session = Depends(get_db)):
    blogs = db.execute(select(Blog).order_by(Blog.created_at.desc())).scalars().all()
    return serialize_blogs(db, list(blogs))


@router.get("/user/me", summary="Blogs written by the current user")
def my_blogs(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    blogs = db.execute(
        select(Blog).where(Blog.author_id == identity.user_id).order_by(Blog.created_at.desc())
    ).scalars().all()
    return serialize_blogs(db, list(blogs))


@router.get("/{blog_id}", summary="Get blog")
def get_blog(blog_id: str, db: Session = Depends(get_db)):
    return serialize_blogs(db, [_get_blog(db, blog_id)])[0]


@router.post("", status_code=201, summary="Create blog")
async def create_blog(
    title: str | None = Form(default=None),
    content: str | None = Form(default=None),
    subtitle: str | None = Form(default=None),
    tags: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    missing = [f for f, v in (("title", title), ("content", content)) if not normalize_optional(v)]
    if missing:
        raise ValidationError("Missing required fields", {"fields": missing})

    featured = await uploads.save_image(image, uploads.BLOGS, "blog")
    blog = Blog(
        title=title.strip(),
        subtitle=normalize_optional(subtitle),
        content=content,
        featured_image=featured,
        author_id=identity.user_id,
        tags=parse_tags(tags),
        read_time=_read_time(content),
    )
    db.add(blog)
    db.commit()
    db.refresh(blog)
    return serialize_blogs(db, [blog])[0]


@router.put("/{blog_id}", summary="Update blog (author only)")
async def update_blog(
    blog_id: str,
    title: str | None = Form(default=None),
    content: str | None = Form(default=None),
    subtitle: str | None = Form(default=None),
    tags: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    blog = _get_blog(db, blog_id)
    _require_author(blog, identity, "update")

    if normalize_optional(title):
        blog.title = title.strip()
    if normalize_optional(content):
        blog.content = content
        blog.read_time = _read_time(content)
    if subtitle is not None:
        blog.subtitle = normalize_optional(subtitle)
    if tags is not None:
        blog.tags = parse_tags(tags)

    featured = await uploads.save_image(image, uploads.BLOGS, "blog")
    if featured:
        uploads.delete_image(blog.featured_image, uploads.BLOGS)
        blog.featured_image = featured

    db.commit()
    db.refresh(blog)
    return serialize_blogs(db, [blog])[0]


@router.delete("/{blog_id}", summary="Delete blog (author only)")
def delete_blog(
    blog_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    blog = _get_blog(db, blog_id)
    _require_author(blog, identity, "delete")

    image = blog.featured_image
    db.execute(delete(BlogLike).where(BlogLike.blog_id == blog.blog_id))
    db.execute(delete(BlogComment).where(BlogComment.blog_id == blog.blog_id))
    db.delete(blog)
    db.commit()
    uploads.delete_image(image, uploads.BLOGS)
    return {"message": "Blog deleted successfully"}


@router.post("/{blog_id}/like", summary="Toggle like; returns liker ids")
def toggle_like(
    blog_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    blog = _get_blog(db, blog_id)
    like = db.get(BlogLike, (blog.blog_id, identity.user_id))
    if like:
        db.delete(like)
    else:
        db.add(BlogLike(blog_id=blog.blog_id, user_id=identity.user_id))
    db.commit()
    return blog_like_ids(db, blog.blog_id)


@router.post("/{blog_id}/comments", summary="Add comment; returns comments newest first")
def add_comment(
    blog_id: str,
    payload: CommentPayload,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    blog = _get_blog(db, blog_id)
    if not normalize_optional(payload.content):
        raise ValidationError("Comment content is required", {"fields": ["content"]})

    db.add(BlogComment(blog_id=blog.blog_id, author_id=identity.user_id, content=payload.content.strip()))
    db.commit()
    return serialize_comments(db, blog_comments(db, blog.blog_id))
