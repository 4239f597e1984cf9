"""Admin-only endpoints for users and roadtrips."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.exceptions import NotFoundException
from app.dependencies import AdminClaims, AuthServiceDep, DatabaseSession
from app.schemas.admin import AdminStatsResponse, AdminTripListResponse, AdminUserListResponse
from app.schemas.auth import MessageResponse
from app.schemas.trips import TripCreate, TripResponse, TripStatusUpdate, TripUpdate
from app.schemas.users import AdminUserUpdate, UserResponse, UserStatusUpdate
from app.services.trip_service import TripService
from app.services.user_service import UserService

router = APIRouter(prefix="/admin")

RECENT_LIMIT = 5


# ============================================================================
# Dashboard
# ============================================================================


@router.get("/stats", response_model=AdminStatsResponse, summary="Dashboard counters")
async def get_stats(db: DatabaseSession, admin: AdminClaims) -> AdminStatsResponse:
    """
    Get user and roadtrip counters.

    Requires admin role.
    """
    return AdminStatsResponse(
        total_users=await UserService.count_users(db),
        active_users=await UserService.count_users(db, verified=True),
        total_roadtrips=await TripService.count_trips(db),
        published_roadtrips=await TripService.count_trips(db, published=True),
    )


@router.get("/users/recent", response_model=list[UserResponse], summary="Latest users")
async def recent_users(db: DatabaseSession, admin: AdminClaims) -> list[UserResponse]:
    """Most recently registered users."""
    return [UserResponse.from_record(u) for u in await UserService.recent_users(db, RECENT_LIMIT)]


@router.get("/roadtrips/recent", response_model=list[TripResponse], summary="Latest roadtrips")
async def recent_trips(db: DatabaseSession, admin: AdminClaims) -> list[TripResponse]:
    """Most recently created roadtrips."""
    return [TripResponse.from_record(t) for t in await TripService.recent_trips(db, RECENT_LIMIT)]


# ============================================================================
# Users
# ============================================================================


@router.get("/users", response_model=AdminUserListResponse, summary="List all users")
async def list_users(
    db: DatabaseSession,
    admin: AdminClaims,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: str | None = Query(None, description="Search by email, first or last name"),
) -> AdminUserListResponse:
    """
    Get paginated list of all users.

    Requires admin role.

    Args:
        db: Database session
        admin: Authenticated admin claims
        page: Page number
        limit: Items per page
        search: Case-insensitive substring over email and names

    Returns:
        Paginated user list with total count
    """
    user_list, total = await UserService.list_users(db, page=page, limit=limit, search=search)
    return AdminUserListResponse(
        users=[UserResponse.from_record(u) for u in user_list],
        total=total,
        page=page,
        limit=limit,
    )


@router.put(
    "/users/status/{user_id}",
    response_model=UserResponse,
    summary="Set the verification flag",
)
async def update_user_status(
    user_id: UUID,
    payload: UserStatusUpdate,
    db: DatabaseSession,
    admin: AdminClaims,
) -> UserResponse:
    """Mark an account verified or unverified."""
    user = await UserService.update_user(db, user_id, {"is_verified": payload.is_verified})
    if not user:
        raise NotFoundException("User not found")
    return UserResponse.from_record(user)


@router.get("/users/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(user_id: UUID, db: DatabaseSession, admin: AdminClaims) -> UserResponse:
    """Get any user by ID."""
    user = await UserService.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundException("User not found")
    return UserResponse.from_record(user)


@router.put("/users/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(
    user_id: UUID,
    payload: AdminUserUpdate,
    admin: AdminClaims,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """
    Update names, phone, role or verification flag of any user.

    Raises:
        ConflictException: Phone number used by another account
    """
    user = await auth_service.update_profile(user_id, payload)
    return UserResponse.from_record(user)


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    summary="Delete a user",
)
async def delete_user(
    user_id: UUID,
    admin: AdminClaims,
    auth_service: AuthServiceDep,
) -> MessageResponse:
    """Delete a user and everything the account owns."""
    await auth_service.delete_user(user_id)
    return MessageResponse(message="User deleted successfully")


# ============================================================================
# Roadtrips
# ============================================================================


@router.get("/roadtrips", response_model=AdminTripListResponse, summary="List all roadtrips")
async def list_trips(
    db: DatabaseSession,
    admin: AdminClaims,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: str | None = Query(None, description="Search by title, country or tag"),
) -> AdminTripListResponse:
    """Published and draft roadtrips, newest first."""
    trip_list, total = await TripService.list_all(db, page=page, limit=limit, search=search)
    return AdminTripListResponse(
        trips=[TripResponse.from_record(t) for t in trip_list],
        total=total,
        page=page,
        limit=limit,
    )


@router.post(
    "/roadtrips",
    response_model=TripResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a roadtrip",
)
async def create_trip(
    payload: TripCreate,
    db: DatabaseSession,
    admin: AdminClaims,
) -> TripResponse:
    """Create a roadtrip authored by the calling admin."""
    trip = await TripService.create_trip(db, admin.user_id, payload)
    return TripResponse.from_record(trip)


@router.put("/roadtrips/{trip_id}", response_model=TripResponse, summary="Update a roadtrip")
async def update_trip(
    trip_id: UUID,
    payload: TripUpdate,
    db: DatabaseSession,
    admin: AdminClaims,
) -> TripResponse:
    """Partially update a roadtrip."""
    trip = await TripService.update_trip(db, trip_id, payload)
    if not trip:
        raise NotFoundException("Roadtrip not found")
    return TripResponse.from_record(trip)


@router.delete(
    "/roadtrips/{trip_id}",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    summary="Delete a roadtrip",
)
async def delete_trip(trip_id: UUID, db: DatabaseSession, admin: AdminClaims) -> MessageResponse:
    """Delete a roadtrip and its favorites."""
    if not await TripService.delete_trip(db, trip_id):
        raise NotFoundException("Roadtrip not found")
    return MessageResponse(message="Roadtrip deleted successfully")


@router.patch(
    "/roadtrips/status/{trip_id}",
    response_model=TripResponse,
    summary="Publish or unpublish a roadtrip",
)
async def update_trip_status(
    trip_id: UUID,
    payload: TripStatusUpdate,
    db: DatabaseSession,
    admin: AdminClaims,
) -> TripResponse:
    """Set the published flag."""
    trip = await TripService.set_published(db, trip_id, payload.is_published)
    if not trip:
        raise NotFoundException("Roadtrip not found")
    return TripResponse.from_record(trip)
