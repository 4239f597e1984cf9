"""Favorite roadtrip endpoints."""

from uuid import UUID

from fastapi import APIRouter

from app.dependencies import CurrentClaims, DatabaseSession
from app.schemas.favorites import FavoriteListResponse, FavoriteToggleResponse
from app.schemas.trips import TripResponse
from app.services.favorite_service import FavoriteService

router = APIRouter(prefix="/favorites")


@router.post(
    "/toggle/{trip_id}",
    response_model=FavoriteToggleResponse,
    summary="Add or remove a favorite",
)
async def toggle_favorite(
    trip_id: UUID,
    db: DatabaseSession,
    claims: CurrentClaims,
) -> FavoriteToggleResponse:
    """Toggle the trip in the caller's favorites."""
    favorited = await FavoriteService.toggle_favorite(db, claims.user_id, trip_id)
    return FavoriteToggleResponse(
        favorited=favorited,
        message="Added to favorites" if favorited else "Removed from favorites",
    )


@router.get("", response_model=FavoriteListResponse, summary="List own favorites")
async def list_favorites(db: DatabaseSession, claims: CurrentClaims) -> FavoriteListResponse:
    """The caller's favorite trips, most recent first."""
    trips = await FavoriteService.get_user_favorites(db, claims.user_id)
    return FavoriteListResponse(
        favorites=[TripResponse.from_record(t, is_favorite=True) for t in trips],
        count=len(trips),
    )
