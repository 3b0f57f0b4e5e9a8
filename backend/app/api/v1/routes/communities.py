"""Module: communities."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.v1.routes.deps import get_current_identity, get_db, parse_uuid
from app.core.errors import AppError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.db.models.community import Community, CommunityMember, CommunityMessage
from app.services import auth as auth_service
from app.services import uploads
from app.services.auth import Identity
from app.services.presence import community_room, registry
from app.services.read_models import serialize_communities, serialize_community_messages
from app.services.validation import normalize_optional

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_community(db: Session, community_id: str) -> Community:
    community = db.get(Community, parse_uuid(community_id, "community_id"))
    if not community:
        raise NotFoundError("Community not found")
    return community


def _membership(db: Session, community: Community, identity: Identity) -> CommunityMember | None:
    return db.get(CommunityMember, (community.community_id, identity.user_id))


@router.post("", status_code=201, summary="Create community (creator joins)")
async def create_community(
    name: str | None = Form(default=None),
    description: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    if not normalize_optional(name):
        raise ValidationError("Missing required fields", {"fields": ["name"]})

    stored = await uploads.save_image(image, uploads.COMMUNITIES, "community")
    community = Community(
        name=name.strip(),
        description=normalize_optional(description),
        image=stored,
        created_by=identity.user_id,
    )
    db.add(community)
    db.flush()
    db.add(CommunityMember(community_id=community.community_id, user_id=identity.user_id))
    db.commit()
    db.refresh(community)

    logger.info("Community %s created by %s", community.community_id, identity.user_id)
    return serialize_communities(db, [community])[0]


@router.get("", summary="List communities (newest first)")
def list_communities(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    communities = db.execute(select(Community).order_by(Community.created_at.desc())).scalars().all()
    return serialize_communities(db, list(communities))


@router.post("/{community_id}/join", summary="Join community")
def join_community(
    community_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    community = _get_community(db, community_id)
    if _membership(db, community, identity):
        raise ConflictError("Already a member of this community")

    db.add(CommunityMember(community_id=community.community_id, user_id=identity.user_id))
    db.commit()
    return serialize_communities(db, [community])[0]


@router.post("/{community_id}/leave", summary="Leave community")
def leave_community(
    community_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    community = _get_community(db, community_id)
    member = _membership(db, community, identity)
    if not member:
        raise ConflictError("Not a member of this community")
    if community.created_by == identity.user_id:
        raise ConflictError("Community creator cannot leave the community")

    db.delete(member)
    db.commit()
    return serialize_communities(db, [community])[0]


@router.get("/{community_id}/messages", summary="Community messages (oldest first)")
def list_messages(
    community_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    community = _get_community(db, community_id)
    messages = db.execute(
        select(CommunityMessage)
        .where(CommunityMessage.community_id == community.community_id)
        .order_by(CommunityMessage.message_id)
    ).scalars().all()
    return serialize_community_messages(db, list(messages))


@router.post("/{community_id}/messages", status_code=201, summary="Send community message (members only)")
async def send_message(
    community_id: str,
    content: str | None = Form(default=None),
    image: UploadFile | None = File(default=None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    community = _get_community(db, community_id)
    if not _membership(db, community, identity):
        raise AuthorizationError("Must be a member to send messages")
    if not normalize_optional(content):
        raise ValidationError("Message content is required", {"fields": ["content"]})

    stored = await uploads.save_image(image, uploads.COMMUNITIES, "message")
    message = CommunityMessage(
        community_id=community.community_id,
        sender_id=identity.user_id,
        content=content.strip(),
        image=stored,
    )
    db.add(message)
    db.commit()
    db.refresh(message)

    body = serialize_community_messages(db, [message])[0]
    await registry.broadcast(
        community_room(community.community_id),
        {"event": "message", "data": jsonable_encoder(body)},
    )
    return body


@router.get("/{community_id}/online", summary="Members currently connected")
def online_members(
    community_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    community = _get_community(db, community_id)
    return [str(uid) for uid in registry.online_user_ids(community_room(community.community_id))]


@router.websocket("/{community_id}/ws")
async def community_socket(
    websocket: WebSocket,
    community_id: str,
    token: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        identity = auth_service.authenticate(db, token)
        community = _get_community(db, community_id)
        if not _membership(db, community, identity):
            raise AuthorizationError("Must be a member to join this room")
    except AppError as exc:
        logger.info("Rejected community socket: %s", exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    # The socket may stay open for hours; don't pin a pooled connection.
    db.close()

    room = community_room(community.community_id)
    await websocket.accept()
    await registry.connect(room, identity.user_id, websocket)
    try:
        await registry.broadcast(
            room,
            {"event": "online", "data": [str(uid) for uid in registry.online_user_ids(room)]},
        )
        # Inbound frames are ignored; messages are posted over REST.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await registry.disconnect(room, identity.user_id, websocket)
        await registry.broadcast(
            room,
            {"event": "online", "data": [str(uid) for uid in registry.online_user_ids(room)]},
        )
