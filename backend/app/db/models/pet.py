"""Module: pet."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

STATUS_AVAILABLE = "available"
STATUS_PENDING = "pending"
STATUS_ADOPTED = "adopted"
STATUS_SOLD = "sold"
PET_STATUSES = (STATUS_AVAILABLE, STATUS_PENDING, STATUS_ADOPTED, STATUS_SOLD)
PET_GENDERS = {"male", "female"}


# Listing created by a business seller; status/adopter are driven by the
# adoption negotiation and only move forward.
class Pet(Base):
    __tablename__ = "pets"

    # Primary Key
    pet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )

    # Basic Info
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    breed: Mapped[str] = mapped_column(String, nullable=False)
    age: Mapped[str] = mapped_column(String, nullable=False)
    gender: Mapped[str] = mapped_column(String, nullable=False)
    price: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    health_info: Mapped[str] = mapped_column(Text, nullable=False)
    requirements: Mapped[str] = mapped_column(Text, nullable=False)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Lifecycle
    status: Mapped[str] = mapped_column(String, nullable=False, default=STATUS_AVAILABLE, index=True)
    seller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    adopter_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", ondelete="SET NULL"),
        nullable=True
    )

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )
