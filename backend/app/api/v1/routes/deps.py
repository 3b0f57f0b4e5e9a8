"""Module: deps."""

import uuid
from typing import Generator

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.errors import AuthenticationError, AuthorizationError, ValidationError
from app.db.models.user import ROLE_BUSINESS
from app.db.session import SessionLocal
from app.services import auth as auth_service
from app.services.auth import Identity

# Dependency provider: one DB session per request lifecycle.
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_token_value(authorization: str | None) -> str:
    if not authorization:
        raise AuthenticationError("Authentication failed", "No token provided")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthenticationError("Authentication failed", "Invalid Authorization header")

    return parts[1].strip()


# Guard for every protected endpoint: Authorization: Bearer <access token>.
def get_current_identity(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> Identity:
    return auth_service.authenticate(db, get_token_value(authorization))


def require_business(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.role != ROLE_BUSINESS:
        raise AuthorizationError("Only business users can perform this action")
    return identity


# Validate and coerce UUID inputs from query/path payloads.
def parse_uuid(value: str | None, field_name: str = "id") -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field_name}", {"fields": [field_name]})
