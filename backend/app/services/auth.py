"""Module: auth.

Registration, login and the access/refresh token lifecycle.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import AuthenticationError, ConflictError, ValidationError
from app.core.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    TokenExpired,
    TokenInvalid,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.db.models.user import ROLE_REGULAR, User
from app.services.validation import normalize_email, normalize_optional, validate_registration

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class Identity:
    user_id: uuid.UUID
    role: str


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(
        select(User).where(func.lower(User.email) == normalize_email(email))
    ).scalar_one_or_none()


def issue_tokens(user: User) -> dict[str, str]:
    return {
        "token": create_access_token(user.user_id, user.role),
        "refreshToken": create_refresh_token(user.user_id, user.role),
    }


def _parse_date(value: Any, field: str) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError("Validation Error", {"fields": [field], "reason": "Invalid date"})


def validate_new_account(db: Session, profile: Mapping[str, Any]) -> None:
    validate_registration(profile)
    if find_user_by_email(db, profile["email"]):
        raise ConflictError("Registration failed", "A user with this email already exists")


def register(
    db: Session, profile: Mapping[str, Any], profile_picture: str | None = None
) -> tuple[User, dict[str, str]]:
    validate_new_account(db, profile)

    email = normalize_email(profile["email"])

    role = profile["userType"].strip()
    user = User(
        email=email,
        password=hash_password(profile["password"]),
        role=role,
        phone_number=profile["phoneNumber"].strip(),
        profile_picture=profile_picture,
    )

    if role == ROLE_REGULAR:
        user.first_name = profile["firstName"].strip()
        user.last_name = profile["lastName"].strip()
        user.name = f"{user.first_name} {user.last_name}"
    else:
        user.business_name = profile["businessName"].strip()
        user.business_type = profile["businessType"]
        user.name = user.business_name
        user.address = profile["address"].strip()
        user.city = normalize_optional(profile.get("city"))
        user.state = normalize_optional(profile.get("state"))
        user.zip_code = normalize_optional(profile.get("zipCode"))
        user.license_number = normalize_optional(profile.get("licenseNumber"))
        user.license_expiry = _parse_date(profile.get("licenseExpiry"), "licenseExpiry")
        user.tax_id = normalize_optional(profile.get("taxId"))

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Registered %s user %s", user.role, user.user_id)
    return user, issue_tokens(user)


def login(db: Session, email: str, password: str) -> tuple[User, dict[str, str]]:
    user = find_user_by_email(db, email or "")
    # Same error for unknown email and wrong password.
    if not user or not verify_password(password or "", user.password):
        raise AuthenticationError("Authentication failed", INVALID_CREDENTIALS)
    return user, issue_tokens(user)


def _verify(db: Session, token: str, token_type: str) -> User:
    try:
        claims = decode_token(token, token_type)
    except TokenExpired:
        raise AuthenticationError("Authentication failed", "Token has expired")
    except TokenInvalid:
        raise AuthenticationError("Authentication failed", "Invalid token")

    user = db.get(User, uuid.UUID(claims["sub"]))
    if not user:
        raise AuthenticationError("Authentication failed", "User no longer exists")
    return user


def refresh(db: Session, refresh_token: str | None) -> dict[str, str]:
    if not refresh_token:
        raise AuthenticationError("Authentication failed", "Refresh token is required")
    user = _verify(db, refresh_token, REFRESH_TOKEN)
    return issue_tokens(user)


def authenticate(db: Session, token: str | None) -> Identity:
    if not token:
        raise AuthenticationError("Authentication failed", "No token provided")
    user = _verify(db, token, ACCESS_TOKEN)
    return Identity(user_id=user.user_id, role=user.role)
