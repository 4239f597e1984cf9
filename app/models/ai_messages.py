"""AI conversation message log."""

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, String, Table, Text, Uuid

from app.models.base import UTCDateTime, metadata, utcnow

ai_messages = Table(
    "ai_messages",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("role", String(20), nullable=False),
    Column("content", Text, nullable=False),
    Column("conversation_id", String(100), nullable=False),
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=utcnow),
    CheckConstraint("role IN ('user', 'assistant')", name="ai_messages_role_check"),
    Index("idx_ai_messages_user_id", "user_id"),
    Index("idx_ai_messages_conversation", "conversation_id", "user_id"),
)
