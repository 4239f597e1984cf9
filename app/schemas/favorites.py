"""Favorite schemas."""

from pydantic import BaseModel

from app.schemas.trips import TripResponse


class FavoriteToggleResponse(BaseModel):
    """Favorite state after a toggle."""

    favorited: bool
    message: str


class FavoriteListResponse(BaseModel):
    """The caller's favorite trips."""

    favorites: list[TripResponse]
    count: int
