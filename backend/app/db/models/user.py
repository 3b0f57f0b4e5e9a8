"""Module: user."""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

ROLE_REGULAR = "regular"
ROLE_BUSINESS = "business"
VALID_ROLES = {ROLE_REGULAR, ROLE_BUSINESS}
BUSINESS_TYPES = {"shelter", "shop"}
VERIFICATION_STATUSES = {"pending", "approved", "rejected"}


# Marketplace account. Role-specific columns are nullable; presence for the
# declared role is enforced by app.services.validation at registration.
class User(Base):
    __tablename__ = "users"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )

    email: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    phone_number: Mapped[str] = mapped_column(String, nullable=False)
    profile_picture: Mapped[str | None] = mapped_column(String, nullable=True)

    # Regular user fields
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)

    # Business user fields
    business_name: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    business_type: Mapped[str | None] = mapped_column(String, nullable=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String, nullable=True)
    license_number: Mapped[str | None] = mapped_column(String, nullable=True)
    license_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    tax_id: Mapped[str | None] = mapped_column(String, nullable=True)

    # Business verification
    verification_status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )
