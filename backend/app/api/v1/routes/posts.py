"""Module: posts."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.api.v1.routes.deps import get_current_identity, get_db, parse_uuid
from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.db.models.post import Post, PostComment, PostLike
from app.services import uploads
from app.services.auth import Identity
from app.services.read_models import serialize_posts
from app.services.validation import normalize_optional, parse_tags

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_POST_IMAGES = 5


class CommentPayload(BaseModel):
    content: str | None = None


def _get_post(db: Session, post_id: str) -> Post:
    post = db.get(Post, parse_uuid(post_id, "post_id"))
    if not post:
        raise NotFoundError("Post not found")
    return post


@router.get("", summary="Community feed (newest first)")
def list_posts(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    posts = db.execute(select(Post).order_by(Post.created_at.desc())).scalars().all()
    return serialize_posts(db, list(posts))


@router.post("", status_code=201, summary="Create post (up to 5 images)")
async def create_post(
    title: str | None = Form(default=None),
    content: str | None = Form(default=None),
    tags: str | None = Form(default=None),
    images: list[UploadFile] | None = File(default=None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    missing = [f for f, v in (("title", title), ("content", content)) if not normalize_optional(v)]
    if missing:
        raise ValidationError("Missing required fields", {"fields": missing})
    if images and len(images) > MAX_POST_IMAGES:
        raise ValidationError("Validation Error", {"fields": ["images"], "reason": f"At most {MAX_POST_IMAGES} images"})
    parsed_tags = parse_tags(tags)

    stored = await uploads.save_images(images, uploads.POSTS, "post")
    post = Post(
        title=title.strip(),
        content=content.strip(),
        tags=parsed_tags,
        images=stored,
        author_id=identity.user_id,
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    logger.info("Post %s created by %s with %d images", post.post_id, identity.user_id, len(stored))
    return serialize_posts(db, [post])[0]


@router.post("/{post_id}/like", summary="Toggle like; returns the post")
def toggle_like(
    post_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    post = _get_post(db, post_id)
    like = db.get(PostLike, (post.post_id, identity.user_id))
    if like:
        db.delete(like)
    else:
        db.add(PostLike(post_id=post.post_id, user_id=identity.user_id))
    db.commit()
    return serialize_posts(db, [post])[0]


@router.post("/{post_id}/comments", summary="Add comment; returns the post")
def add_comment(
    post_id: str,
    payload: CommentPayload,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    post = _get_post(db, post_id)
    if not normalize_optional(payload.content):
        raise ValidationError("Comment content is required", {"fields": ["content"]})

    db.add(PostComment(post_id=post.post_id, author_id=identity.user_id, content=payload.content.strip()))
    db.commit()
    return serialize_posts(db, [post])[0]


@router.delete("/{post_id}", summary="Delete post (author only)")
def delete_post(
    post_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    post = _get_post(db, post_id)
    if post.author_id != identity.user_id:
        raise AuthorizationError("Not authorized to delete this post")

    images = list(post.images or [])
    db.execute(delete(PostLike).where(PostLike.post_id == post.post_id))
    db.execute(delete(PostComment).where(PostComment.post_id == post.post_id))
    db.delete(post)
    db.commit()
    uploads.delete_images(images, uploads.POSTS)
    return {"message": "Post deleted"}
