"""Module: users."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.v1.routes.deps import get_current_identity, get_db, parse_uuid
from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.db.models.user import ROLE_BUSINESS, ROLE_REGULAR, User
from app.db.models.user_rating import UserRating
from app.services.auth import Identity
from app.services.read_models import serialize_public_user
from app.services.validation import normalize_optional, validate_rating

logger = logging.getLogger(__name__)

router = APIRouter()


class RatingPayload(BaseModel):
    rating: float | None = None
    review: str | None = None


def _get_user(db: Session, user_id: str) -> User:
    user = db.get(User, parse_uuid(user_id, "user_id"))
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("/{user_id}", summary="Public profile")
def get_user(user_id: str, db: Session = Depends(get_db)):
    return serialize_public_user(db, _get_user(db, user_id))


@router.post("/{user_id}/ratings", summary="Rate a business (one rating per rater)")
def rate_user(
    user_id: str,
    payload: RatingPayload,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    target = _get_user(db, user_id)
    if identity.role != ROLE_REGULAR:
        raise AuthorizationError("Only regular users can rate businesses")
    if target.user_id == identity.user_id or target.role != ROLE_BUSINESS:
        raise ValidationError("Validation Error", {"fields": ["userId"], "reason": "Only business users can be rated"})
    rating = validate_rating(payload.rating)

    existing = db.execute(
        select(UserRating).where(
            UserRating.user_id == target.user_id,
            UserRating.rater_id == identity.user_id,
        )
    ).scalar_one_or_none()
    if existing:
        existing.rating = rating
        existing.review = normalize_optional(payload.review)
    else:
        db.add(
            UserRating(
                user_id=target.user_id,
                rater_id=identity.user_id,
                rating=rating,
                review=normalize_optional(payload.review),
            )
        )
    db.flush()

    average = db.execute(
        select(func.avg(UserRating.rating)).where(UserRating.user_id == target.user_id)
    ).scalar_one()
    target.average_rating = float(average or 0)
    db.commit()
    db.refresh(target)

    logger.info("User %s rated %s (%s)", identity.user_id, target.user_id, rating)
    return serialize_public_user(db, target)
