"""Create users, trips, favorites, ai_messages and subscriptions tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    ]


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _user_fk(unique: bool = False) -> sa.Column:
    return sa.Column(
        "user_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=unique,
    )


def upgrade() -> None:
    """Create the roadtrip platform schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone_number", sa.String(20), nullable=True, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("verification_token", sa.String(128), nullable=True),
        sa.Column("last_verification_token", sa.String(128), nullable=True),
        sa.Column("reset_code", sa.String(6), nullable=True),
        sa.Column("reset_code_expires", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("oauth_provider", sa.String(50), nullable=True),
        sa.Column("oauth_provider_id", sa.String(255), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("role IN ('user', 'premium', 'admin')", name="users_role_check"),
    )
    op.create_index("idx_users_verification_token", "users", ["verification_token"])
    op.create_index("idx_users_last_verification_token", "users", ["last_verification_token"])
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "trips",
        _id(),
        _user_fk(),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("slug", sa.String(160), nullable=False, unique=True),
        sa.Column("budget_amount", sa.Float(), nullable=True),
        sa.Column("budget_currency", sa.String(3), nullable=False, server_default="EUR"),
        sa.Column("tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column(
            "image",
            sa.Text(),
            nullable=False,
            server_default="/placeholder.svg?height=600&width=800",
        ),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False, server_default=sa.text("7")),
        sa.Column("best_season", sa.String(50), nullable=True),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "points_of_interest", sa.JSON(), nullable=False, server_default=sa.text("'[]'")
        ),
        sa.Column("itinerary", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint(
            "budget_amount IS NULL OR budget_amount >= 0", name="trips_budget_check"
        ),
        sa.CheckConstraint("duration >= 1", name="trips_duration_check"),
        sa.CheckConstraint(
            "budget_currency IN ('EUR', 'USD', 'CAD', 'GBP')",
            name="trips_currency_check",
        ),
    )
    op.create_index("idx_trips_user_id", "trips", ["user_id"])
    op.create_index("idx_trips_published", "trips", ["is_published"])
    op.create_index("idx_trips_views", "trips", ["views"])
    op.create_index("idx_trips_best_season", "trips", ["best_season"])

    op.create_table(
        "favorites",
        _id(),
        _user_fk(),
        sa.Column(
            "trip_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("trips.id", ondelete="CASCADE"),
            nullable=False,
        ),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "trip_id", name="unique_user_trip_favorite"),
    )
    op.create_index("idx_favorites_user_id", "favorites", ["user_id"])

    op.create_table(
        "ai_messages",
        _id(),
        _user_fk(),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("conversation_id", sa.String(100), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("role IN ('user', 'assistant')", name="ai_messages_role_check"),
    )
    op.create_index("idx_ai_messages_user_id", "ai_messages", ["user_id"])
    op.create_index(
        "idx_ai_messages_conversation", "ai_messages", ["conversation_id", "user_id"]
    )

    op.create_table(
        "subscriptions",
        _id(),
        _user_fk(unique=True),
        sa.Column("plan", sa.String(20), nullable=False, server_default="free"),
        sa.Column(
            "start_date",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("end_date", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="stripe"),
        sa.Column("stripe_customer_id", sa.Text(), nullable=True),
        sa.Column("stripe_subscription_id", sa.Text(), nullable=True),
        sa.Column("stripe_price_id", sa.Text(), nullable=True),
        sa.Column("session_id", sa.Text(), nullable=True),
        sa.Column("last_payment_date", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("last_transaction_id", sa.Text(), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=True),
        sa.Column("payment_failure_reason", sa.Text(), nullable=True),
        sa.Column("last_failure_date", postgresql.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "plan IN ('free', 'monthly', 'annual', 'premium')",
            name="subscriptions_plan_check",
        ),
        sa.CheckConstraint(
            "status IN ('active', 'cancelled', 'suspended', 'trialing', 'incomplete')",
            name="subscriptions_status_check",
        ),
        sa.CheckConstraint(
            "payment_method IN ('stripe', 'paypal', 'manual')",
            name="subscriptions_payment_method_check",
        ),
    )

    # Keep updated_at current for writes that bypass the application
    op.execute(
        """
        CREATE OR REPLACE FUNCTION set_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    for table in ("users", "trips", "favorites", "ai_messages", "subscriptions"):
        op.execute(
            f"CREATE TRIGGER {table}_set_updated_at BEFORE UPDATE ON {table} "
            "FOR EACH ROW EXECUTE FUNCTION set_updated_at()"
        )


def downgrade() -> None:
    """Drop the roadtrip platform schema."""
    for table in ("subscriptions", "ai_messages", "favorites", "trips", "users"):
        op.execute(f"DROP TRIGGER IF EXISTS {table}_set_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS set_updated_at()")

    op.drop_table("subscriptions")
    op.drop_index("idx_ai_messages_conversation", table_name="ai_messages")
    op.drop_index("idx_ai_messages_user_id", table_name="ai_messages")
    op.drop_table("ai_messages")
    op.drop_index("idx_favorites_user_id", table_name="favorites")
    op.drop_table("favorites")
    op.drop_index("idx_trips_best_season", table_name="trips")
    op.drop_index("idx_trips_views", table_name="trips")
    op.drop_index("idx_trips_published", table_name="trips")
    op.drop_index("idx_trips_user_id", table_name="trips")
    op.drop_table("trips")
    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_index("idx_users_last_verification_token", table_name="users")
    op.drop_index("idx_users_verification_token", table_name="users")
    op.drop_table("users")
