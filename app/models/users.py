"""User model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    text,
)

from app.models.base import UTCDateTime, metadata, utcnow

users = Table(
    "users",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Identity
    Column("email", String(255), nullable=False, unique=True),
    Column("phone_number", String(20), unique=True),
    # Secrets (password hash is null for OAuth-only accounts)
    Column("password_hash", Text),
    Column("verification_token", String(128)),
    # Token that verified the account, kept so a repeated verification succeeds
    Column("last_verification_token", String(128)),
    Column("reset_code", String(6)),
    Column("reset_code_expires", UTCDateTime),
    # Profile
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    # Account state
    Column("role", String(20), nullable=False, default="user", server_default=text("'user'")),
    Column("is_verified", Boolean, nullable=False, default=False, server_default=text("false")),
    # OAuth descriptor
    Column("oauth_provider", String(50)),
    Column("oauth_provider_id", String(255)),
    # Optimistic concurrency guard for credential writes
    Column("version", Integer, nullable=False, default=1, server_default=text("1")),
    # Audit
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=utcnow),
    CheckConstraint("role IN ('user', 'premium', 'admin')", name="users_role_check"),
    Index("idx_users_verification_token", "verification_token"),
    Index("idx_users_last_verification_token", "last_verification_token"),
    Index("idx_users_created_at", "created_at"),
)
