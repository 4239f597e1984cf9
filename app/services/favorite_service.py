"""Favorite trips service."""

from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.models.base import utcnow
from app.models.favorites import favorites
from app.models.trips import trips
from app.services.trip_service import TripService

logger = structlog.get_logger(__name__)


class FavoriteService:
    """Service for favorite operations."""

    @staticmethod
    async def toggle_favorite(db: AsyncSession, user_id: UUID, trip_id: UUID) -> bool:
        """
        Add the trip to the user's favorites, or remove it if already there.

        Returns:
            True if the trip is now a favorite

        Raises:
            NotFoundException: If the trip does not exist
        """
        removed = await db.execute(
            delete(favorites).where(
                favorites.c.user_id == user_id,
                favorites.c.trip_id == trip_id,
            )
        )
        if removed.rowcount > 0:  # type: ignore[attr-defined]
            await db.commit()
            logger.info("favorite_removed", user_id=str(user_id), trip_id=str(trip_id))
            return False

        if not await TripService.get_trip_by_id(db, trip_id):
            raise NotFoundException("Roadtrip not found")

        now = utcnow()
        try:
            await db.execute(
                favorites.insert().values(
                    user_id=user_id,
                    trip_id=trip_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            await db.commit()
        except IntegrityError:
            # A concurrent toggle already added it
            await db.rollback()

        logger.info("favorite_added", user_id=str(user_id), trip_id=str(trip_id))
        return True

    @staticmethod
    async def get_user_favorites(db: AsyncSession, user_id: UUID) -> list[dict]:
        """Favorite trips of a user, most recently favorited first."""
        query = (
            select(trips)
            .join(favorites, favorites.c.trip_id == trips.c.id)
            .where(favorites.c.user_id == user_id)
            .order_by(favorites.c.created_at.desc())
        )
        result = await db.execute(query)
        return [dict(t) for t in result.mappings().all()]
