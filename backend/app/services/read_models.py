"""Module: read_models.

Response shaping. Records reference each other by id only; here the ids a
page of records needs are collected, loaded with one ``IN`` query per entity
type and joined in Python.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models.adoption_request import AdoptionRequest
from app.db.models.blog import Blog, BlogComment, BlogLike
from app.db.models.chat import Chat, ChatMessage
from app.db.models.community import Community, CommunityMember, CommunityMessage
from app.db.models.pet import Pet
from app.db.models.post import Post, PostComment, PostLike
from app.db.models.user import User
from app.db.models.user_rating import UserRating


def _sid(value: uuid.UUID | None) -> str | None:
    return str(value) if value is not None else None


def _ids(values: Iterable[uuid.UUID | None]) -> set[uuid.UUID]:
    return {v for v in values if v is not None}


def load_users(db: Session, ids: Iterable[uuid.UUID | None]) -> dict[uuid.UUID, User]:
    wanted = _ids(ids)
    if not wanted:
        return {}
    rows = db.execute(select(User).where(User.user_id.in_(wanted))).scalars().all()
    return {u.user_id: u for u in rows}


def load_pets(db: Session, ids: Iterable[uuid.UUID | None]) -> dict[uuid.UUID, Pet]:
    wanted = _ids(ids)
    if not wanted:
        return {}
    rows = db.execute(select(Pet).where(Pet.pet_id.in_(wanted))).scalars().all()
    return {p.pet_id: p for p in rows}


# -------------------------
# Users
# -------------------------
def user_summary(user: User | None) -> dict | None:
    if user is None:
        return None
    return {
        "id": str(user.user_id),
        "name": user.name,
        "email": user.email,
        "userType": user.role,
        "businessName": user.business_name,
        "profilePicture": user.profile_picture,
    }


def serialize_user(user: User) -> dict:
    """Full profile without the password hash."""
    return {
        "id": str(user.user_id),
        "email": user.email,
        "name": user.name,
        "userType": user.role,
        "phoneNumber": user.phone_number,
        "profilePicture": user.profile_picture,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "businessName": user.business_name,
        "businessType": user.business_type,
        "address": user.address,
        "city": user.city,
        "state": user.state,
        "zipCode": user.zip_code,
        "licenseNumber": user.license_number,
        "licenseExpiry": user.license_expiry,
        "taxId": user.tax_id,
        "verificationStatus": user.verification_status,
        "averageRating": user.average_rating,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def serialize_public_user(db: Session, user: User) -> dict:
    out = serialize_user(user)
    del out["taxId"]
    ratings = db.execute(
        select(UserRating).where(UserRating.user_id == user.user_id).order_by(UserRating.created_at)
    ).scalars().all()
    raters = load_users(db, (r.rater_id for r in ratings))
    out["ratings"] = [
        {
            "user": user_summary(raters.get(r.rater_id)),
            "rating": r.rating,
            "review": r.review,
            "date": r.created_at,
        }
        for r in ratings
    ]
    return out


# -------------------------
# Pets
# -------------------------
def _pet_fields(pet: Pet) -> dict:
    return {
        "id": str(pet.pet_id),
        "name": pet.name,
        "type": pet.type,
        "breed": pet.breed,
        "age": pet.age,
        "gender": pet.gender,
        "price": float(pet.price),
        "description": pet.description,
        "healthInfo": pet.health_info,
        "requirements": pet.requirements,
        "images": list(pet.images or []),
        "status": pet.status,
        "sellerId": str(pet.seller_id),
        "adopterId": _sid(pet.adopter_id),
        "createdAt": pet.created_at,
        "updatedAt": pet.updated_at,
    }


def serialize_pets(db: Session, pets: list[Pet]) -> list[dict]:
    sellers = load_users(db, (p.seller_id for p in pets))
    out = []
    for pet in pets:
        d = _pet_fields(pet)
        seller = sellers.get(pet.seller_id)
        d["seller"] = user_summary(seller)
        if seller is not None:
            d["seller"]["phoneNumber"] = seller.phone_number
            d["seller"]["address"] = seller.address
        out.append(d)
    return out


def serialize_pet(db: Session, pet: Pet) -> dict:
    return serialize_pets(db, [pet])[0]


def pet_summary(pet: Pet | None) -> dict | None:
    if pet is None:
        return None
    return {
        "id": str(pet.pet_id),
        "name": pet.name,
        "type": pet.type,
        "breed": pet.breed,
        "age": pet.age,
        "gender": pet.gender,
        "price": float(pet.price),
        "images": list(pet.images or []),
        "status": pet.status,
    }


# -------------------------
# Adoption requests
# -------------------------
def _request_fields(req: AdoptionRequest) -> dict:
    return {
        "id": str(req.request_id),
        "petId": str(req.pet_id),
        "userId": str(req.user_id),
        "sellerId": str(req.seller_id),
        "status": req.status,
        "createdAt": req.created_at,
    }


def serialize_adoption_request(req: AdoptionRequest) -> dict:
    return _request_fields(req)


def serialize_adoption_requests(db: Session, requests: list[AdoptionRequest]) -> list[dict]:
    users = load_users(db, [r.user_id for r in requests] + [r.seller_id for r in requests])
    pets = load_pets(db, (r.pet_id for r in requests))
    out = []
    for req in requests:
        d = _request_fields(req)
        d["pet"] = pet_summary(pets.get(req.pet_id))
        d["user"] = user_summary(users.get(req.user_id))
        d["seller"] = user_summary(users.get(req.seller_id))
        out.append(d)
    return out


# -------------------------
# Chats
# -------------------------
def serialize_chat(db: Session, chat: Chat) -> dict:
    messages = db.execute(
        select(ChatMessage)
        .where(ChatMessage.chat_id == chat.chat_id)
        .order_by(ChatMessage.message_id)
    ).scalars().all()
    users = load_users(db, [chat.buyer_id, chat.seller_id] + [m.sender_id for m in messages])
    return {
        "id": str(chat.chat_id),
        "adoptionRequest": str(chat.adoption_request_id),
        "buyer": user_summary(users.get(chat.buyer_id)),
        "seller": user_summary(users.get(chat.seller_id)),
        "buyerAccepted": chat.buyer_accepted,
        "sellerAccepted": chat.seller_accepted,
        "messages": [
            {
                "id": m.message_id,
                "sender": user_summary(users.get(m.sender_id)),
                "content": m.content,
                "timestamp": m.timestamp,
            }
            for m in messages
        ],
        "createdAt": chat.created_at,
    }


# -------------------------
# Blogs
# -------------------------
def serialize_comments(db: Session, comments: list[BlogComment]) -> list[dict]:
    authors = load_users(db, (c.author_id for c in comments))
    return [
        {
            "id": c.comment_id,
            "content": c.content,
            "author": user_summary(authors.get(c.author_id)),
            "createdAt": c.created_at,
        }
        for c in comments
    ]


def blog_comments(db: Session, blog_id: uuid.UUID) -> list[BlogComment]:
    # Newest first.
    return list(
        db.execute(
            select(BlogComment)
            .where(BlogComment.blog_id == blog_id)
            .order_by(BlogComment.comment_id.desc())
        ).scalars().all()
    )


def blog_like_ids(db: Session, blog_id: uuid.UUID) -> list[str]:
    rows = db.execute(
        select(BlogLike.user_id).where(BlogLike.blog_id == blog_id).order_by(BlogLike.created_at)
    ).scalars().all()
    return [str(uid) for uid in rows]


def serialize_blogs(db: Session, blogs: list[Blog]) -> list[dict]:
    if not blogs:
        return []
    blog_ids = [b.blog_id for b in blogs]

    likes: dict[uuid.UUID, list[str]] = defaultdict(list)
    for like in db.execute(
        select(BlogLike).where(BlogLike.blog_id.in_(blog_ids)).order_by(BlogLike.created_at)
    ).scalars():
        likes[like.blog_id].append(str(like.user_id))

    comments: dict[uuid.UUID, list[BlogComment]] = defaultdict(list)
    for comment in db.execute(
        select(BlogComment).where(BlogComment.blog_id.in_(blog_ids)).order_by(BlogComment.comment_id.desc())
    ).scalars():
        comments[comment.blog_id].append(comment)

    authors = load_users(
        db,
        [b.author_id for b in blogs] + [c.author_id for cs in comments.values() for c in cs],
    )

    out = []
    for blog in blogs:
        out.append(
            {
                "id": str(blog.blog_id),
                "title": blog.title,
                "subtitle": blog.subtitle,
                "content": blog.content,
                "featuredImage": blog.featured_image,
                "author": user_summary(authors.get(blog.author_id)),
                "tags": list(blog.tags or []),
                "likes": likes.get(blog.blog_id, []),
                "comments": [
                    {
                        "id": c.comment_id,
                        "content": c.content,
                        "author": user_summary(authors.get(c.author_id)),
                        "createdAt": c.created_at,
                    }
                    for c in comments.get(blog.blog_id, [])
                ],
                "readTime": blog.read_time,
                "createdAt": blog.created_at,
                "updatedAt": blog.updated_at,
            }
        )
    return out


# -------------------------
# Communities
# -------------------------
def serialize_communities(db: Session, communities: list[Community]) -> list[dict]:
    if not communities:
        return []
    ids = [c.community_id for c in communities]
    members: dict[uuid.UUID, list[uuid.UUID]] = defaultdict(list)
    for m in db.execute(
        select(CommunityMember)
        .where(CommunityMember.community_id.in_(ids))
        .order_by(CommunityMember.joined_at)
    ).scalars():
        members[m.community_id].append(m.user_id)

    users = load_users(
        db,
        [c.created_by for c in communities] + [uid for uids in members.values() for uid in uids],
    )
    return [
        {
            "id": str(c.community_id),
            "name": c.name,
            "description": c.description,
            "image": c.image,
            "createdBy": user_summary(users.get(c.created_by)),
            "members": [user_summary(users.get(uid)) for uid in members.get(c.community_id, [])],
            "createdAt": c.created_at,
        }
        for c in communities
    ]


def serialize_community_messages(db: Session, messages: list[CommunityMessage]) -> list[dict]:
    senders = load_users(db, (m.sender_id for m in messages))
    return [
        {
            "id": m.message_id,
            "community": str(m.community_id),
            "sender": user_summary(senders.get(m.sender_id)),
            "content": m.content,
            "image": m.image,
            "createdAt": m.created_at,
        }
        for m in messages
    ]


# -------------------------
# Community posts
# -------------------------
def serialize_posts(db: Session, posts: list[Post]) -> list[dict]:
    if not posts:
        return []
    post_ids = [p.post_id for p in posts]

    likes: dict[uuid.UUID, list[str]] = defaultdict(list)
    for like in db.execute(
        select(PostLike).where(PostLike.post_id.in_(post_ids)).order_by(PostLike.created_at)
    ).scalars():
        likes[like.post_id].append(str(like.user_id))

    comments: dict[uuid.UUID, list[PostComment]] = defaultdict(list)
    for comment in db.execute(
        select(PostComment).where(PostComment.post_id.in_(post_ids)).order_by(PostComment.comment_id)
    ).scalars():
        comments[comment.post_id].append(comment)

    authors = load_users(
        db,
        [p.author_id for p in posts] + [c.author_id for cs in comments.values() for c in cs],
    )

    return [
        {
            "id": str(post.post_id),
            "title": post.title,
            "content": post.content,
            "tags": list(post.tags or []),
            "images": list(post.images or []),
            "author": user_summary(authors.get(post.author_id)),
            "likes": likes.get(post.post_id, []),
            "comments": [
                {
                    "id": c.comment_id,
                    "content": c.content,
                    "author": user_summary(authors.get(c.author_id)),
                    "createdAt": c.created_at,
                }
                for c in comments.get(post.post_id, [])
            ],
            "createdAt": post.created_at,
            "updatedAt": post.updated_at,
        }
        for post in posts
    ]
