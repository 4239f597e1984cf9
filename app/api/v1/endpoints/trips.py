"""Public roadtrip endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query

from app.core.exceptions import NotFoundException
from app.dependencies import DatabaseSession, OptionalClaims
from app.schemas.trips import Pagination, TripListResponse, TripResponse, TripViewsResponse
from app.services.trip_service import TripService, gate_premium_content

router = APIRouter(prefix="/roadtrips")


@router.get("", response_model=TripListResponse, summary="List published roadtrips")
async def list_trips(
    db: DatabaseSession,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    country: str | None = Query(None, description="Case-insensitive country filter"),
    is_premium: bool | None = Query(None, description="Only premium / only free trips"),
) -> TripListResponse:
    """List published roadtrips, newest first."""
    trips, total = await TripService.list_published(
        db, page=page, limit=limit, country=country, is_premium=is_premium
    )
    return TripListResponse(
        trips=[TripResponse.from_record(t) for t in trips],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/popular", response_model=list[TripResponse], summary="Most viewed roadtrips")
async def popular_trips(
    db: DatabaseSession,
    limit: int = Query(3, ge=1, le=50),
) -> list[TripResponse]:
    """Published roadtrips ordered by views."""
    trips = await TripService.list_popular(db, limit=limit)
    return [TripResponse.from_record(t) for t in trips]


@router.get("/{trip_id}", response_model=TripResponse, summary="Get a roadtrip")
async def get_trip(trip_id: UUID, db: DatabaseSession, claims: OptionalClaims) -> TripResponse:
    """
    Get one roadtrip.

    Premium content is truncated unless the caller has a premium or admin
    role.

    Raises:
        NotFoundException: If the trip does not exist
    """
    trip = await TripService.get_trip_by_id(db, trip_id)
    if not trip:
        raise NotFoundException("Roadtrip not found")

    trip = gate_premium_content(trip, claims.role if claims else None)
    return TripResponse.from_record(trip)


@router.post("/{trip_id}/views", response_model=TripViewsResponse, summary="Count a view")
async def increment_views(trip_id: UUID, db: DatabaseSession) -> TripViewsResponse:
    """Increment the view counter."""
    views = await TripService.increment_views(db, trip_id)
    if views is None:
        raise NotFoundException("Roadtrip not found")
    return TripViewsResponse(views=views)
