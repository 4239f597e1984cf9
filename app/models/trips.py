"""Trip (roadtrip) model definition."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    text,
)

from app.models.base import UTCDateTime, metadata, utcnow

trips = Table(
    "trips",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("title", String(100), nullable=False),
    Column("description", String(1000)),
    Column("slug", String(160), nullable=False, unique=True),
    Column("budget_amount", Float),
    Column("budget_currency", String(3), nullable=False, default="EUR"),
    Column("tags", JSON, nullable=False, default=list),
    Column("image", Text, nullable=False, default="/placeholder.svg?height=600&width=800"),
    Column("country", String(100)),
    Column("duration", Integer, nullable=False, default=7),
    Column("best_season", String(50)),
    Column("is_premium", Boolean, nullable=False, default=False, server_default=text("false")),
    Column("is_published", Boolean, nullable=False, default=False, server_default=text("false")),
    Column("points_of_interest", JSON, nullable=False, default=list),
    Column("itinerary", JSON, nullable=False, default=list),
    Column("views", Integer, nullable=False, default=0, server_default=text("0")),
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=utcnow),
    CheckConstraint("budget_amount IS NULL OR budget_amount >= 0", name="trips_budget_check"),
    CheckConstraint("duration >= 1", name="trips_duration_check"),
    CheckConstraint(
        "budget_currency IN ('EUR', 'USD', 'CAD', 'GBP')",
        name="trips_currency_check",
    ),
    Index("idx_trips_user_id", "user_id"),
    Index("idx_trips_published", "is_published"),
    Index("idx_trips_views", "views"),
    Index("idx_trips_best_season", "best_season"),
)
