"""Module: validation.

Explicit input checks that raise a structured ValidationError. The ORM models
carry no field rules of their own.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Iterable, Mapping

from app.core.errors import ValidationError
from app.db.models.adoption_request import REQUEST_REJECTED
from app.db.models.pet import PET_GENDERS, STATUS_AVAILABLE, STATUS_SOLD
from app.db.models.user import BUSINESS_TYPES, ROLE_BUSINESS, ROLE_REGULAR, VALID_ROLES

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

PET_REQUIRED_FIELDS = (
    "name",
    "type",
    "breed",
    "age",
    "gender",
    "price",
    "description",
    "healthInfo",
    "requirements",
)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_fields(data: Mapping[str, Any], fields: Iterable[str]) -> list[str]:
    return [f for f in fields if _blank(data.get(f))]


def normalize_email(value: str) -> str:
    return value.strip().lower()


def normalize_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned if cleaned else None


def validate_email(value: str | None) -> str:
    if _blank(value) or not EMAIL_RE.match(value.strip()):
        raise ValidationError("Validation Error", {"fields": ["email"], "reason": "Invalid email format"})
    return normalize_email(value)


def validate_registration(data: Mapping[str, Any]) -> None:
    """Check a registration payload (camelCase keys) for the declared role."""
    missing = missing_fields(data, ("email", "password", "phoneNumber", "userType"))
    if missing:
        raise ValidationError(
            "Validation Error",
            {"fields": missing, "reason": "Email, password, phone number, and user type are required"},
        )

    role = data["userType"].strip()
    if role not in VALID_ROLES:
        raise ValidationError(
            "Validation Error",
            {"fields": ["userType"], "reason": 'User type must be either "regular" or "business"'},
        )

    validate_email(data["email"])

    if len(data["password"]) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            "Validation Error",
            {
                "fields": ["password"],
                "reason": f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            },
        )

    if role == ROLE_REGULAR:
        missing = missing_fields(data, ("firstName", "lastName"))
        if missing:
            raise ValidationError(
                "Validation Error",
                {"fields": missing, "reason": "First name and last name are required for regular users"},
            )
    elif role == ROLE_BUSINESS:
        missing = missing_fields(data, ("businessName", "businessType", "address"))
        if missing:
            raise ValidationError(
                "Validation Error",
                {
                    "fields": missing,
                    "reason": "Business name, business type, and address are required for business users",
                },
            )
        if data["businessType"] not in BUSINESS_TYPES:
            raise ValidationError(
                "Validation Error",
                {"fields": ["businessType"], "reason": 'Business type must be either "shelter" or "shop"'},
            )


def validate_pet_fields(data: Mapping[str, Any], partial: bool = False) -> dict[str, Any]:
    """
    Validate listing fields and coerce price. With ``partial`` only the keys
    that are present are checked (updates).
    """
    if not partial:
        missing = missing_fields(data, PET_REQUIRED_FIELDS)
        if missing:
            raise ValidationError("Missing required fields", {"fields": missing})

    cleaned: dict[str, Any] = {}
    for key in PET_REQUIRED_FIELDS:
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValidationError("Missing required fields", {"fields": [key]})
        cleaned[key] = value

    if "gender" in cleaned:
        cleaned["gender"] = cleaned["gender"].lower()
        if cleaned["gender"] not in PET_GENDERS:
            raise ValidationError("Validation Error", {"fields": ["gender"], "reason": "Gender must be male or female"})

    if "price" in cleaned:
        try:
            price = float(cleaned["price"])
        except (TypeError, ValueError):
            raise ValidationError("Validation Error", {"fields": ["price"], "reason": "Price must be a number"})
        if not math.isfinite(price):
            raise ValidationError("Validation Error", {"fields": ["price"], "reason": "Price must be a number"})
        if price < 0:
            raise ValidationError("Validation Error", {"fields": ["price"], "reason": "Price must not be negative"})
        cleaned["price"] = price

    return cleaned


def validate_seller_status_change(current: str, requested: str) -> None:
    # Sellers may only close an open listing as sold; pending/adopted belong
    # to the negotiation workflow.
    if requested == current:
        return
    if current == STATUS_AVAILABLE and requested == STATUS_SOLD:
        return
    raise ValidationError(
        "Validation Error",
        {"fields": ["status"], "reason": f"Cannot change pet status from {current} to {requested}"},
    )


def validate_request_status_change(requested: str | None) -> None:
    if requested != REQUEST_REJECTED:
        raise ValidationError(
            "Validation Error",
            {"fields": ["status"], "reason": "Adoption requests can only be rejected directly"},
        )


def validate_rating(value: Any) -> int:
    try:
        rating = int(value)
    except (TypeError, ValueError):
        rating = 0
    if rating < 1 or rating > 5 or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError("Validation Error", {"fields": ["rating"], "reason": "Rating must be between 1 and 5"})
    return rating


def parse_tags(tags: str | None) -> list[str]:
    # Accepts a JSON array or a comma separated string.
    if not tags or not tags.strip():
        return []
    raw = tags.strip()
    if raw.startswith("["):
        try:
            values = json.loads(raw)
        except ValueError:
            raise ValidationError("Validation Error", {"fields": ["tags"]})
        if not isinstance(values, list):
            raise ValidationError("Validation Error", {"fields": ["tags"]})
    else:
        values = raw.split(",")
    return [str(t).strip() for t in values if str(t).strip()]
