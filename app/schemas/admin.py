"""Admin-specific schemas."""

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.trips import TripResponse
from app.schemas.users import UserResponse


class AdminStatsResponse(BaseModel):
    """Response schema for the admin dashboard counters."""

    total_users: int = Field(..., examples=[1000])
    active_users: int = Field(..., description="Verified accounts", examples=[850])
    total_roadtrips: int = Field(..., examples=[120])
    published_roadtrips: int = Field(..., examples=[95])


class AdminUserListResponse(BaseModel):
    """Response schema for admin user listing."""

    users: list[UserResponse]
    total: int
    page: int
    limit: int

    model_config = ConfigDict(from_attributes=True)


class AdminTripListResponse(BaseModel):
    """Response schema for admin roadtrip listing."""

    trips: list[TripResponse]
    total: int
    page: int
    limit: int

    model_config = ConfigDict(from_attributes=True)
