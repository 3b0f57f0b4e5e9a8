"""Module: api."""

# backend/app/api/v1/api.py
from fastapi import APIRouter

# Core operational routes (health/auth).
from app.api.v1.routes.health import router as health_router
from app.api.v1.routes.auth import router as auth_router
from app.api.v1.routes.users import router as users_router

# Marketplace routes: listings and the adoption negotiation.
from app.api.v1.routes.pets import router as pets_router
from app.api.v1.routes.adoption_requests import router as adoption_requests_router
from app.api.v1.routes.chats import router as chats_router

# Community features.
from app.api.v1.routes.blogs import router as blogs_router
from app.api.v1.routes.communities import router as communities_router
from app.api.v1.routes.posts import router as posts_router


api_router = APIRouter()

# Register operational endpoints first for service-level concerns.
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(users_router, prefix="/users", tags=["users"])

# Register business/domain endpoints consumed by the application UI.
api_router.include_router(pets_router, prefix="/pets", tags=["pets"])
api_router.include_router(adoption_requests_router, prefix="/adoption-requests", tags=["adoption-requests"])
api_router.include_router(chats_router, prefix="/chat", tags=["chat"])
api_router.include_router(blogs_router, prefix="/blogs", tags=["blogs"])
api_router.include_router(communities_router, prefix="/communities", tags=["communities"])
api_router.include_router(posts_router, prefix="/posts", tags=["posts"])
