"""API v1 router configuration."""

from fastapi import APIRouter

from app.api.v1.endpoints import admin, auth, favorites, health, messages, trips, users

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(trips.router, tags=["Roadtrips"])
api_router.include_router(favorites.router, tags=["Favorites"])
api_router.include_router(messages.router, tags=["Messages"])
api_router.include_router(admin.router, tags=["Admin"])
