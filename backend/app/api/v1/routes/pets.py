"""Module: pets."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.v1.routes.deps import get_current_identity, get_db, parse_uuid, require_business
from app.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.db.models.adoption_request import REQUEST_REJECTED, AdoptionRequest
from app.db.models.chat import Chat
from app.db.models.pet import PET_STATUSES, STATUS_ADOPTED, STATUS_AVAILABLE, Pet
from app.services import uploads
from app.services.auth import Identity
from app.services.read_models import serialize_pet, serialize_pets
from app.services.validation import validate_pet_fields, validate_seller_status_change

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_PET_IMAGES = 5

# Form field name -> model attribute.
PET_COLUMNS = {
    "name": "name",
    "type": "type",
    "breed": "breed",
    "age": "age",
    "gender": "gender",
    "price": "price",
    "description": "description",
    "healthInfo": "health_info",
    "requirements": "requirements",
}


# -------------------------
# Helpers
# -------------------------
def _get_pet(db: Session, pet_id: str) -> Pet:
    pet = db.get(Pet, parse_uuid(pet_id, "pet_id"))
    if not pet:
        raise NotFoundError("Pet not found")
    return pet


def _require_seller(pet: Pet, identity: Identity, action: str) -> None:
    if pet.seller_id != identity.user_id:
        raise AuthorizationError(f"Not authorized to {action} this pet")


def _check_image_count(images: list[UploadFile] | None) -> None:
    if images and len([f for f in images if f.filename]) > MAX_PET_IMAGES:
        raise ValidationError("Validation Error", f"At most {MAX_PET_IMAGES} images are allowed")


# -------------------------
# Endpoints
# -------------------------

@router.get("", summary="List pets (with seller info)")
def list_pets(
    status: str | None = Query(default=None),
    type: str | None = Query(default=None),
    limit: int = 200,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    stmt = select(Pet)
    if status:
        if status not in PET_STATUSES:
            raise ValidationError("Invalid status", {"fields": ["status"]})
        stmt = stmt.where(Pet.status == status)
    if type:
        stmt = stmt.where(Pet.type == type)
    stmt = stmt.order_by(Pet.created_at.desc()).offset(offset).limit(limit)

    pets = list(db.execute(stmt).scalars().all())
    return serialize_pets(db, pets)


@router.get("/adopted", summary="Pets adopted by the current user")
def adopted_pets(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    pets = db.execute(
        select(Pet)
        .where(Pet.adopter_id == identity.user_id, Pet.status == STATUS_ADOPTED)
        .order_by(Pet.updated_at.desc())
    ).scalars().all()
    return serialize_pets(db, list(pets))


@router.get("/seller", summary="Pets listed by the current business user")
def seller_pets(
    identity: Identity = Depends(require_business),
    db: Session = Depends(get_db),
):
    pets = db.execute(
        select(Pet)
        .where(Pet.seller_id == identity.user_id)
        .order_by(Pet.created_at.desc())
    ).scalars().all()
    return serialize_pets(db, list(pets))


@router.get("/{pet_id}", summary="Get pet detail")
def get_pet(pet_id: str, db: Session = Depends(get_db)):
    return serialize_pet(db, _get_pet(db, pet_id))


@router.post("", status_code=201, summary="Create pet listing (business only)")
async def create_pet(
    name: str | None = Form(default=None),
    type: str | None = Form(default=None),
    breed: str | None = Form(default=None),
    age: str | None = Form(default=None),
    gender: str | None = Form(default=None),
    price: str | None = Form(default=None),
    description: str | None = Form(default=None),
    healthInfo: str | None = Form(default=None),
    requirements: str | None = Form(default=None),
    images: list[UploadFile] | None = File(default=None),
    identity: Identity = Depends(require_business),
    db: Session = Depends(get_db),
):
    fields = validate_pet_fields(
        {
            "name": name,
            "type": type,
            "breed": breed,
            "age": age,
            "gender": gender,
            "price": price,
            "description": description,
            "healthInfo": healthInfo,
            "requirements": requirements,
        }
    )
    _check_image_count(images)

    stored = await uploads.save_images(images, uploads.PETS, "pet")
    pet = Pet(
        **{PET_COLUMNS[key]: value for key, value in fields.items()},
        images=stored,
        status=STATUS_AVAILABLE,
        seller_id=identity.user_id,
    )
    db.add(pet)
    try:
        db.commit()
    except Exception:
        db.rollback()
        uploads.delete_images(stored, uploads.PETS)
        raise
    db.refresh(pet)

    logger.info("Pet %s listed by %s with %d images", pet.pet_id, identity.user_id, len(stored))
    return serialize_pet(db, pet)


@router.put("/{pet_id}", summary="Update pet details (seller only)")
async def update_pet(
    pet_id: str,
    name: str | None = Form(default=None),
    type: str | None = Form(default=None),
    breed: str | None = Form(default=None),
    age: str | None = Form(default=None),
    gender: str | None = Form(default=None),
    price: str | None = Form(default=None),
    description: str | None = Form(default=None),
    healthInfo: str | None = Form(default=None),
    requirements: str | None = Form(default=None),
    status: str | None = Form(default=None),
    images: list[UploadFile] | None = File(default=None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    pet = _get_pet(db, pet_id)
    _require_seller(pet, identity, "update")

    fields = validate_pet_fields(
        {
            "name": name,
            "type": type,
            "breed": breed,
            "age": age,
            "gender": gender,
            "price": price,
            "description": description,
            "healthInfo": healthInfo,
            "requirements": requirements,
        },
        partial=True,
    )
    if status is not None:
        validate_seller_status_change(pet.status, status.strip())
    _check_image_count(images)

    for key, value in fields.items():
        setattr(pet, PET_COLUMNS[key], value)
    if status is not None:
        pet.status = status.strip()

    # New uploads replace the existing set; otherwise images are kept.
    stored = await uploads.save_images(images, uploads.PETS, "pet")
    old_images = list(pet.images or [])
    if stored:
        pet.images = stored

    db.commit()
    if stored:
        uploads.delete_images(old_images, uploads.PETS)
    db.refresh(pet)
    return serialize_pet(db, pet)


@router.delete("/{pet_id}", summary="Delete pet listing (seller only)")
def delete_pet(
    pet_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    pet = _get_pet(db, pet_id)
    _require_seller(pet, identity, "delete")

    # Negotiations outlive the listing; only rejected, chat-less requests go with it.
    blocking = db.execute(
        select(AdoptionRequest.request_id)
        .outerjoin(Chat, Chat.adoption_request_id == AdoptionRequest.request_id)
        .where(
            AdoptionRequest.pet_id == pet.pet_id,
            or_(AdoptionRequest.status != REQUEST_REJECTED, Chat.chat_id.is_not(None)),
        )
        .limit(1)
    ).first()
    if blocking:
        raise ConflictError("Pet has adoption requests and cannot be deleted")

    images = list(pet.images or [])
    db.delete(pet)
    db.commit()
    uploads.delete_images(images, uploads.PETS)

    logger.info("Pet %s deleted by %s", pet.pet_id, identity.user_id)
    return {"message": "Pet deleted successfully"}
