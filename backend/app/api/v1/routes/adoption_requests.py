"""Module: adoption_requests."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.v1.routes.deps import get_current_identity, get_db, parse_uuid
from app.services import adoption
from app.services.auth import Identity
from app.services.read_models import serialize_adoption_request, serialize_adoption_requests

router = APIRouter()


class AdoptionRequestCreate(BaseModel):
    petId: str | None = None
    sellerId: str | None = None


class AdoptionRequestUpdate(BaseModel):
    status: str | None = None


@router.post("", status_code=201, summary="Request to adopt a pet")
def create_adoption_request(
    payload: AdoptionRequestCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    req = adoption.create_request(
        db,
        identity,
        parse_uuid(payload.petId, "petId"),
        parse_uuid(payload.sellerId, "sellerId"),
    )
    return serialize_adoption_request(req)


@router.get("", summary="Incoming adoption requests for a seller")
def list_seller_requests(
    sellerId: str | None = Query(default=None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    seller_id = parse_uuid(sellerId, "sellerId") if sellerId else identity.user_id
    requests = adoption.list_for_seller(db, identity, seller_id)
    return serialize_adoption_requests(db, requests)


@router.get("/user", summary="Adoption requests made by the current user")
def list_user_requests(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return serialize_adoption_requests(db, adoption.list_for_user(db, identity))


@router.patch("/{request_id}", summary="Reject an adoption request (seller only)")
def update_adoption_request(
    request_id: str,
    payload: AdoptionRequestUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    req = adoption.update_request_status(db, identity, parse_uuid(request_id, "request_id"), payload.status)
    return serialize_adoption_request(req)
