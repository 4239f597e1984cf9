"""Favorite trips model definition."""

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, Table, UniqueConstraint, Uuid

from app.models.base import UTCDateTime, metadata, utcnow

favorites = Table(
    "favorites",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("trip_id", Uuid, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=utcnow),
    UniqueConstraint("user_id", "trip_id", name="unique_user_trip_favorite"),
    Index("idx_favorites_user_id", "user_id"),
)
