"""AI conversation message log service."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.ai_messages import ai_messages
from app.models.base import utcnow
from app.schemas.messages import MessageCreate


class MessageService:
    """Service for AI message operations."""

    @staticmethod
    async def create_message(db: AsyncSession, message_data: MessageCreate) -> dict:
        """Store one message of a conversation."""
        now = utcnow()
        query = (
            ai_messages.insert()
            .values(
                user_id=message_data.user_id,
                role=message_data.role.value,
                content=message_data.content,
                conversation_id=message_data.conversation_id,
                created_at=now,
                updated_at=now,
            )
            .returning(ai_messages)
        )
        result = await db.execute(query)
        message = result.mappings().first()

        if not message:
            raise ValueError("Failed to create message")

        await db.commit()
        return dict(message)

    @staticmethod
    async def get_user_messages(db: AsyncSession, user_id: UUID) -> list[dict]:
        """All messages of a user, oldest first."""
        query = (
            select(ai_messages)
            .where(ai_messages.c.user_id == user_id)
            .order_by(ai_messages.c.created_at.asc())
        )
        result = await db.execute(query)
        return [dict(m) for m in result.mappings().all()]

    @staticmethod
    async def get_conversation(
        db: AsyncSession, user_id: UUID, conversation_id: str
    ) -> list[dict]:
        """Messages of one conversation, oldest first."""
        query = (
            select(ai_messages)
            .where(
                ai_messages.c.user_id == user_id,
                ai_messages.c.conversation_id == conversation_id,
            )
            .order_by(ai_messages.c.created_at.asc())
        )
        result = await db.execute(query)
        return [dict(m) for m in result.mappings().all()]

    @staticmethod
    async def delete_user_messages(db: AsyncSession, user_id: UUID) -> int:
        """Delete every message of a user; returns the number removed."""
        result = await db.execute(delete(ai_messages).where(ai_messages.c.user_id == user_id))
        await db.commit()
        return result.rowcount  # type: ignore[attr-defined]

    @staticmethod
    async def delete_conversation(db: AsyncSession, user_id: UUID, conversation_id: str) -> int:
        """Delete one conversation of a user; returns the number removed."""
        result = await db.execute(
            delete(ai_messages).where(
                ai_messages.c.user_id == user_id,
                ai_messages.c.conversation_id == conversation_id,
            )
        )
        await db.commit()
        return result.rowcount  # type: ignore[attr-defined]
