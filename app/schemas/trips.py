"""Roadtrip schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

# ============================================================================
# Nested content
# ============================================================================


class Currency(str, Enum):
    """Supported budget currencies."""

    EUR = "EUR"
    USD = "USD"
    CAD = "CAD"
    GBP = "GBP"


class Budget(BaseModel):
    """Trip budget."""

    amount: float | None = Field(None, ge=0)
    currency: Currency = Currency.EUR


class PointOfInterest(BaseModel):
    """Place worth a stop along the route."""

    name: str | None = None
    description: str | None = None
    image: str | None = None


class ItineraryStep(BaseModel):
    """One day of the itinerary."""

    day: int | None = None
    title: str | None = None
    description: str | None = None
    overnight: str | None = None


# ============================================================================
# Trip Schemas
# ============================================================================


class TripBase(BaseModel):
    """Base schema for trip."""

    title: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    budget: Budget = Field(default_factory=Budget)
    tags: list[str] = Field(default_factory=list)
    image: str | None = None
    country: str | None = Field(None, max_length=100)
    duration: int = Field(7, ge=1)
    best_season: str | None = Field(None, max_length=50)
    is_premium: bool = False
    is_published: bool = False
    points_of_interest: list[PointOfInterest] = Field(default_factory=list)
    itinerary: list[ItineraryStep] = Field(default_factory=list)


class TripCreate(TripBase):
    """Schema for creating a trip."""


class TripUpdate(BaseModel):
    """Schema for updating a trip."""

    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    budget: Budget | None = None
    tags: list[str] | None = None
    image: str | None = None
    country: str | None = Field(None, max_length=100)
    duration: int | None = Field(None, ge=1)
    best_season: str | None = Field(None, max_length=50)
    is_premium: bool | None = None
    is_published: bool | None = None
    points_of_interest: list[PointOfInterest] | None = None
    itinerary: list[ItineraryStep] | None = None

    @field_validator(
        "title",
        "tags",
        "duration",
        "is_premium",
        "is_published",
        "points_of_interest",
        "itinerary",
    )
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """These columns can be left out of an update but never cleared."""
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class TripStatusUpdate(BaseModel):
    """Publish / unpublish toggle."""

    is_published: bool


class PremiumNotice(BaseModel):
    """Notice attached to a truncated premium trip."""

    message: str = "Some information is reserved for premium users."
    call_to_action: str = (
        "Subscribe to unlock the full itinerary, the interactive map and expert tips."
    )
    missing_features: list[str] = Field(
        default_factory=lambda: [
            "Detailed itinerary",
            "Interactive map",
            "Expert tips",
            "All points of interest",
        ]
    )


class TripResponse(TripBase):
    """Trip response schema."""

    id: UUID
    user_id: UUID
    slug: str
    image: str
    views: int = 0
    created_at: datetime
    updated_at: datetime
    is_favorite: bool | None = None
    premium_notice: PremiumNotice | None = None

    @classmethod
    def from_record(cls, trip: dict[str, Any], **extra: Any) -> "TripResponse":
        """Build the response from a raw ``trips`` row."""
        data = {k: v for k, v in trip.items() if not k.startswith("budget_")}
        data["budget"] = Budget(amount=trip.get("budget_amount"), currency=trip["budget_currency"])
        data.update(extra)
        return cls.model_validate(data)


class Pagination(BaseModel):
    """Pagination block for list responses."""

    current_page: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = (total + limit - 1) // limit if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class TripListResponse(BaseModel):
    """Paginated trip list."""

    trips: list[TripResponse]
    pagination: Pagination


class TripViewsResponse(BaseModel):
    """Views counter after an increment."""

    views: int
