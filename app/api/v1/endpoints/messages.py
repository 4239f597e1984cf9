"""AI conversation message endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.exceptions import ForbiddenException
from app.dependencies import CurrentClaims, DatabaseSession
from app.schemas.auth import TokenClaims
from app.schemas.messages import DeletedMessagesResponse, MessageCreate, MessageResponse
from app.schemas.users import Role
from app.services.message_service import MessageService

router = APIRouter(prefix="/messages")


def ensure_owner(claims: TokenClaims, user_id: UUID) -> None:
    """Only the owner or an admin may touch a user's messages."""
    if claims.user_id != user_id and claims.role != Role.ADMIN:
        raise ForbiddenException("You can only access your own messages")


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store a message",
)
async def create_message(
    payload: MessageCreate,
    db: DatabaseSession,
    claims: CurrentClaims,
) -> MessageResponse:
    """Store one message of a conversation."""
    ensure_owner(claims, payload.user_id)
    message = await MessageService.create_message(db, payload)
    return MessageResponse.model_validate(message)


@router.get(
    "/user/{user_id}",
    response_model=list[MessageResponse],
    summary="All messages of a user",
)
async def get_user_messages(
    user_id: UUID,
    db: DatabaseSession,
    claims: CurrentClaims,
) -> list[MessageResponse]:
    """Messages of a user, oldest first."""
    ensure_owner(claims, user_id)
    messages = await MessageService.get_user_messages(db, user_id)
    return [MessageResponse.model_validate(m) for m in messages]


@router.get(
    "/conversation/{conversation_id}",
    response_model=list[MessageResponse],
    summary="Messages of one conversation",
)
async def get_conversation(
    conversation_id: str,
    db: DatabaseSession,
    claims: CurrentClaims,
    user_id: UUID = Query(..., description="Owner of the conversation"),
) -> list[MessageResponse]:
    """Messages of one conversation, oldest first."""
    ensure_owner(claims, user_id)
    messages = await MessageService.get_conversation(db, user_id, conversation_id)
    return [MessageResponse.model_validate(m) for m in messages]


@router.delete(
    "/user/{user_id}",
    response_model=DeletedMessagesResponse,
    summary="Delete all messages of a user",
)
async def delete_user_messages(
    user_id: UUID,
    db: DatabaseSession,
    claims: CurrentClaims,
) -> DeletedMessagesResponse:
    """Delete every message of a user."""
    ensure_owner(claims, user_id)
    deleted = await MessageService.delete_user_messages(db, user_id)
    return DeletedMessagesResponse(message="Messages deleted", deleted_count=deleted)


@router.delete(
    "/conversation/{conversation_id}",
    response_model=DeletedMessagesResponse,
    summary="Delete one conversation",
)
async def delete_conversation(
    conversation_id: str,
    db: DatabaseSession,
    claims: CurrentClaims,
    user_id: UUID = Query(..., description="Owner of the conversation"),
) -> DeletedMessagesResponse:
    """Delete one conversation of a user."""
    ensure_owner(claims, user_id)
    deleted = await MessageService.delete_conversation(db, user_id, conversation_id)
    return DeletedMessagesResponse(message="Conversation deleted", deleted_count=deleted)
