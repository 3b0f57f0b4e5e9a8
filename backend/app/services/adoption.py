"""Module: adoption.

Adoption negotiation workflow.

    NoRequest -> Pending -> Approved | Rejected

While a request is Pending its chat carries two independent acceptance flags.
The moment both are set, the request is approved and the pet is marked
adopted by the buyer in the same transaction. The chat row is locked while a
flag is written so two parties accepting at once serialize, and the request
update is guarded on ``status = 'pending'`` so the compound transition fires
exactly once.

Pets are reserved at dual-acceptance, not at request time: several pending
requests may exist for one pet, and the commit re-checks the pet so a second
negotiation cannot overwrite a finished adoption.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.db.models.adoption_request import (
    REQUEST_APPROVED,
    REQUEST_PENDING,
    REQUEST_REJECTED,
    AdoptionRequest,
)
from app.db.models.chat import Chat, ChatMessage
from app.db.models.pet import STATUS_ADOPTED, STATUS_AVAILABLE, STATUS_PENDING, Pet
from app.db.models.user import ROLE_REGULAR
from app.services.auth import Identity
from app.services.validation import validate_request_status_change

logger = logging.getLogger(__name__)


def _get_request(db: Session, request_id: uuid.UUID) -> AdoptionRequest:
    req = db.get(AdoptionRequest, request_id)
    if not req:
        raise NotFoundError("Adoption request not found")
    return req


def _require_party(identity: Identity, buyer_id: uuid.UUID, seller_id: uuid.UUID, action: str) -> None:
    if identity.user_id not in (buyer_id, seller_id):
        raise AuthorizationError(f"Not authorized to {action}")


# -------------------------
# Adoption requests
# -------------------------
def create_request(db: Session, identity: Identity, pet_id: uuid.UUID, seller_id: uuid.UUID) -> AdoptionRequest:
    if identity.role != ROLE_REGULAR:
        raise AuthorizationError("Only regular users can request adoptions")

    pet = db.get(Pet, pet_id)
    if not pet:
        raise NotFoundError("Pet not found")
    if pet.seller_id != seller_id:
        raise ValidationError("Validation Error", {"fields": ["sellerId"], "reason": "Seller does not own this pet"})
    if pet.status != STATUS_AVAILABLE:
        raise ConflictError("This pet is not available for adoption")

    existing = db.execute(
        select(AdoptionRequest.request_id).where(
            AdoptionRequest.pet_id == pet_id,
            AdoptionRequest.user_id == identity.user_id,
            AdoptionRequest.status == REQUEST_PENDING,
        )
    ).first()
    if existing:
        raise ConflictError("Adoption request already exists")

    req = AdoptionRequest(
        pet_id=pet_id,
        user_id=identity.user_id,
        seller_id=seller_id,
        status=REQUEST_PENDING,
    )
    db.add(req)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against an identical submission.
        db.rollback()
        raise ConflictError("Adoption request already exists")
    db.refresh(req)

    logger.info("Adoption request %s created for pet %s by %s", req.request_id, pet_id, identity.user_id)
    return req


def list_for_seller(db: Session, identity: Identity, seller_id: uuid.UUID) -> list[AdoptionRequest]:
    if identity.user_id != seller_id:
        raise AuthorizationError("Not authorized to view these adoption requests")
    return list(
        db.execute(
            select(AdoptionRequest)
            .where(AdoptionRequest.seller_id == seller_id)
            .order_by(AdoptionRequest.created_at.desc())
        ).scalars().all()
    )


def list_for_user(db: Session, identity: Identity) -> list[AdoptionRequest]:
    return list(
        db.execute(
            select(AdoptionRequest)
            .where(AdoptionRequest.user_id == identity.user_id)
            .order_by(AdoptionRequest.created_at.desc())
        ).scalars().all()
    )


def update_request_status(
    db: Session, identity: Identity, request_id: uuid.UUID, status: str | None
) -> AdoptionRequest:
    req = _get_request(db, request_id)
    if req.seller_id != identity.user_id:
        raise AuthorizationError("Only the seller can update this adoption request")
    validate_request_status_change(status)

    if req.status == REQUEST_REJECTED:
        return req

    result = db.execute(
        update(AdoptionRequest)
        .where(
            AdoptionRequest.request_id == request_id,
            AdoptionRequest.status == REQUEST_PENDING,
        )
        .values(status=REQUEST_REJECTED)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConflictError("Adoption request is no longer pending")
    db.commit()
    db.refresh(req)

    logger.info("Adoption request %s rejected by seller %s", request_id, identity.user_id)
    return req


# -------------------------
# Negotiation chat
# -------------------------
def get_chat_for_request(db: Session, identity: Identity, request_id: uuid.UUID) -> Chat:
    req = _get_request(db, request_id)
    _require_party(identity, req.user_id, req.seller_id, "view this chat")

    chat = db.execute(select(Chat).where(Chat.adoption_request_id == request_id)).scalar_one_or_none()
    if not chat:
        raise NotFoundError("Chat not found")
    return chat


def create_chat(db: Session, identity: Identity, request_id: uuid.UUID) -> Chat:
    req = _get_request(db, request_id)
    _require_party(identity, req.user_id, req.seller_id, "create this chat")

    existing = db.execute(select(Chat.chat_id).where(Chat.adoption_request_id == request_id)).first()
    if existing:
        raise ConflictError("Chat already exists for this adoption request")
    if req.status != REQUEST_PENDING:
        raise ConflictError("Adoption request is no longer pending")

    chat = Chat(
        adoption_request_id=req.request_id,
        buyer_id=req.user_id,
        seller_id=req.seller_id,
    )
    db.add(chat)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Chat already exists for this adoption request")
    db.refresh(chat)

    logger.info("Chat %s opened for adoption request %s", chat.chat_id, request_id)
    return chat


def _get_chat(db: Session, chat_id: uuid.UUID, lock: bool = False) -> Chat:
    stmt = select(Chat).where(Chat.chat_id == chat_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    chat = db.execute(stmt).scalar_one_or_none()
    if not chat:
        raise NotFoundError("Chat not found")
    return chat


def post_message(db: Session, identity: Identity, chat_id: uuid.UUID, content: str | None) -> Chat:
    if not content or not content.strip():
        raise ValidationError("Message content is required", {"fields": ["content"]})

    chat = _get_chat(db, chat_id)
    _require_party(identity, chat.buyer_id, chat.seller_id, "send messages in this chat")

    db.add(ChatMessage(chat_id=chat.chat_id, sender_id=identity.user_id, content=content))
    db.commit()
    return chat


def accept_terms(db: Session, identity: Identity, chat_id: uuid.UUID) -> Chat:
    chat = _get_chat(db, chat_id, lock=True)
    is_buyer = chat.buyer_id == identity.user_id
    is_seller = chat.seller_id == identity.user_id
    if not is_buyer and not is_seller:
        db.rollback()
        raise AuthorizationError("Not authorized to accept terms for this chat")

    req = _get_request(db, chat.adoption_request_id)
    if req.status == REQUEST_APPROVED:
        db.rollback()
        return chat
    if req.status == REQUEST_REJECTED:
        db.rollback()
        raise ConflictError("Adoption request has been rejected")

    if is_buyer:
        chat.buyer_accepted = True
    else:
        chat.seller_accepted = True
    db.flush()

    if chat.buyer_accepted and chat.seller_accepted:
        _finalize(db, chat, req)

    db.commit()
    return chat


def _finalize(db: Session, chat: Chat, req: AdoptionRequest) -> None:
    approved = db.execute(
        update(AdoptionRequest)
        .where(
            AdoptionRequest.request_id == req.request_id,
            AdoptionRequest.status == REQUEST_PENDING,
        )
        .values(status=REQUEST_APPROVED)
        .execution_options(synchronize_session=False)
    )
    if approved.rowcount != 1:
        # Another writer moved the request first; see which state won.
        current = db.execute(
            select(AdoptionRequest.status).where(AdoptionRequest.request_id == req.request_id)
        ).scalar_one()
        if current == REQUEST_APPROVED:
            return
        db.rollback()
        raise ConflictError("Adoption request has been rejected")

    adopted = db.execute(
        update(Pet)
        .where(
            Pet.pet_id == req.pet_id,
            Pet.status.in_((STATUS_AVAILABLE, STATUS_PENDING)),
        )
        .values(status=STATUS_ADOPTED, adopter_id=chat.buyer_id, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if adopted.rowcount != 1:
        db.rollback()
        raise ConflictError("This pet is no longer available for adoption")

    logger.info(
        "Adoption request %s approved; pet %s adopted by %s",
        req.request_id,
        req.pet_id,
        chat.buyer_id,
    )
