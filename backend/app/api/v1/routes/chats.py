"""Module: chats."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.v1.routes.deps import get_current_identity, get_db, parse_uuid
from app.services import adoption
from app.services.auth import Identity
from app.services.read_models import serialize_chat

router = APIRouter()


class MessagePayload(BaseModel):
    content: str | None = None


@router.get("/adoption/{adoption_request_id}", summary="Negotiation chat for an adoption request")
def get_adoption_chat(
    adoption_request_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    chat = adoption.get_chat_for_request(db, identity, parse_uuid(adoption_request_id, "adoptionRequestId"))
    return serialize_chat(db, chat)


@router.post("/adoption/{adoption_request_id}", status_code=201, summary="Open the negotiation chat")
def create_adoption_chat(
    adoption_request_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    chat = adoption.create_chat(db, identity, parse_uuid(adoption_request_id, "adoptionRequestId"))
    return serialize_chat(db, chat)


@router.post("/{chat_id}/messages", summary="Send a message")
def send_message(
    chat_id: str,
    payload: MessagePayload,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    chat = adoption.post_message(db, identity, parse_uuid(chat_id, "chatId"), payload.content)
    return serialize_chat(db, chat)


@router.post("/{chat_id}/accept", summary="Accept the negotiated terms")
def accept_terms(
    chat_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    chat = adoption.accept_terms(db, identity, parse_uuid(chat_id, "chatId"))
    return serialize_chat(db, chat)
