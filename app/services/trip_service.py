"""Roadtrip service for business logic."""

import re
import time
import unicodedata
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import String, and_, cast, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import LIKE_ESCAPE, contains_pattern, utcnow
from app.models.favorites import favorites
from app.models.trips import trips
from app.schemas.trips import PremiumNotice, TripCreate, TripUpdate
from app.schemas.users import PREMIUM_ROLES, Role

logger = structlog.get_logger(__name__)

ITINERARY_PREVIEW_CHARS = 100
POI_PREVIEW_CHARS = 80
POI_PREVIEW_COUNT = 2


def slugify(title: str) -> str:
    """Lowercase ASCII slug of ``title`` suffixed with a millisecond timestamp."""
    normalized = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode()
    base = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    stamp = int(time.time() * 1000)
    return f"{base}-{stamp}" if base else str(stamp)


def _preview(text: str | None, length: int) -> str:
    return f"{text[:length]}..." if text else ""


def gate_premium_content(trip: dict[str, Any], role: Role | str | None) -> dict[str, Any]:
    """
    Truncate a premium trip for callers without premium access.

    Itinerary steps keep day, title and overnight with a shortened
    description; only the first points of interest are kept, also shortened.
    Non-premium trips and premium callers get the trip unchanged.
    """
    if not trip["is_premium"] or (role is not None and Role(role) in PREMIUM_ROLES):
        return trip

    gated = dict(trip)
    gated["itinerary"] = [
        {
            "day": step.get("day"),
            "title": step.get("title"),
            "description": _preview(step.get("description"), ITINERARY_PREVIEW_CHARS),
            "overnight": step.get("overnight"),
        }
        for step in trip.get("itinerary") or []
    ]
    gated["points_of_interest"] = [
        {**poi, "description": _preview(poi.get("description"), POI_PREVIEW_CHARS)}
        for poi in (trip.get("points_of_interest") or [])[:POI_PREVIEW_COUNT]
    ]
    gated["premium_notice"] = PremiumNotice()
    return gated


class TripService:
    """Service for roadtrip operations."""

    @staticmethod
    def _values(data: TripCreate | TripUpdate, exclude_unset: bool = False) -> dict[str, Any]:
        """Flatten a trip payload into column values."""
        values = data.model_dump(mode="json", exclude_unset=exclude_unset)
        budget = values.pop("budget", None)
        if budget is not None:
            values["budget_amount"] = budget.get("amount")
            values["budget_currency"] = budget.get("currency") or "EUR"
        if values.get("image") is None:
            values.pop("image", None)
        return values

    @staticmethod
    async def create_trip(db: AsyncSession, user_id: UUID, trip_data: TripCreate) -> dict:
        """Create a trip authored by ``user_id``."""
        values = TripService._values(trip_data)
        now = utcnow()
        query = (
            trips.insert()
            .values(
                **values,
                user_id=user_id,
                slug=slugify(trip_data.title),
                created_at=now,
                updated_at=now,
            )
            .returning(trips)
        )

        result = await db.execute(query)
        trip = result.mappings().first()

        if not trip:
            raise ValueError("Failed to create trip")

        await db.commit()
        logger.info("trip_created", trip_id=str(trip["id"]), user_id=str(user_id))
        return dict(trip)

    @staticmethod
    async def get_trip_by_id(db: AsyncSession, trip_id: UUID) -> dict | None:
        """Get trip by ID."""
        result = await db.execute(select(trips).where(trips.c.id == trip_id))
        trip = result.mappings().first()
        return dict(trip) if trip else None

    @staticmethod
    async def list_published(
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        country: str | None = None,
        is_premium: bool | None = None,
    ) -> tuple[list[dict], int]:
        """Published trips, newest first."""
        conditions: list = [trips.c.is_published.is_(True)]

        if country:
            conditions.append(
                trips.c.country.ilike(contains_pattern(country), escape=LIKE_ESCAPE)
            )

        if is_premium is not None:
            conditions.append(trips.c.is_premium == is_premium)

        total = (
            await db.execute(select(func.count()).select_from(trips).where(and_(*conditions)))
        ).scalar_one()

        query = (
            select(trips)
            .where(and_(*conditions))
            .order_by(trips.c.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await db.execute(query)
        return [dict(t) for t in result.mappings().all()], total

    @staticmethod
    async def list_popular(db: AsyncSession, limit: int = 3) -> list[dict]:
        """Most viewed published trips."""
        query = (
            select(trips)
            .where(trips.c.is_published.is_(True))
            .order_by(trips.c.views.desc(), trips.c.created_at.desc())
            .limit(limit)
        )
        result = await db.execute(query)
        return [dict(t) for t in result.mappings().all()]

    @staticmethod
    async def increment_views(db: AsyncSession, trip_id: UUID) -> int | None:
        """Atomically add one view; None if the trip does not exist."""
        query = (
            update(trips)
            .where(trips.c.id == trip_id)
            .values(views=trips.c.views + 1)
            .returning(trips.c.views)
        )
        result = await db.execute(query)
        views = result.scalar_one_or_none()
        await db.commit()
        return views

    @staticmethod
    async def update_trip(db: AsyncSession, trip_id: UUID, trip_data: TripUpdate) -> dict | None:
        """Partial update; a new title gets a new slug."""
        values = TripService._values(trip_data, exclude_unset=True)
        if trip_data.title is not None:
            values["slug"] = slugify(trip_data.title)

        query = (
            update(trips)
            .where(trips.c.id == trip_id)
            .values(**values, updated_at=utcnow())
            .returning(trips)
        )
        result = await db.execute(query)
        trip = result.mappings().first()
        await db.commit()
        return dict(trip) if trip else None

    @staticmethod
    async def set_published(db: AsyncSession, trip_id: UUID, is_published: bool) -> dict | None:
        """Publish or unpublish a trip."""
        query = (
            update(trips)
            .where(trips.c.id == trip_id)
            .values(is_published=is_published, updated_at=utcnow())
            .returning(trips)
        )
        result = await db.execute(query)
        trip = result.mappings().first()
        await db.commit()
        return dict(trip) if trip else None

    @staticmethod
    async def delete_trip(db: AsyncSession, trip_id: UUID) -> bool:
        """Delete a trip and the favorites pointing at it."""
        await db.execute(delete(favorites).where(favorites.c.trip_id == trip_id))
        result = await db.execute(delete(trips).where(trips.c.id == trip_id))
        await db.commit()
        return result.rowcount > 0  # type: ignore[attr-defined]

    @staticmethod
    async def list_all(
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
    ) -> tuple[list[dict], int]:
        """All trips (published or not) with search over title, country and tags."""
        query = select(trips)
        count_query = select(func.count()).select_from(trips)

        if search:
            pattern = contains_pattern(search)
            clause = or_(
                trips.c.title.ilike(pattern, escape=LIKE_ESCAPE),
                trips.c.country.ilike(pattern, escape=LIKE_ESCAPE),
                cast(trips.c.tags, String).ilike(pattern, escape=LIKE_ESCAPE),
            )
            query = query.where(clause)
            count_query = count_query.where(clause)

        total = (await db.execute(count_query)).scalar_one()
        query = query.order_by(trips.c.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await db.execute(query)
        return [dict(t) for t in result.mappings().all()], total

    @staticmethod
    async def recent_trips(db: AsyncSession, limit: int = 5) -> list[dict]:
        """Most recently created trips."""
        result = await db.execute(select(trips).order_by(trips.c.created_at.desc()).limit(limit))
        return [dict(t) for t in result.mappings().all()]

    @staticmethod
    async def count_trips(db: AsyncSession, published: bool | None = None) -> int:
        """Count trips, optionally only published ones."""
        query = select(func.count()).select_from(trips)
        if published is not None:
            query = query.where(trips.c.is_published == published)
        return (await db.execute(query)).scalar_one()
