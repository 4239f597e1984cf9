"""User endpoints used by other services and the frontend."""

from uuid import UUID

from fastapi import APIRouter, status
from pydantic import EmailStr

from app.core.exceptions import ForbiddenException, NotFoundException
from app.dependencies import (
    AdminClaims,
    AuthServiceDep,
    CurrentClaims,
    DatabaseSession,
    RateLimited,
)
from app.schemas.auth import AuthResponse, RegisterRequest
from app.schemas.users import Role, UserResponse, UserUpdate
from app.services.user_service import UserService

router = APIRouter(prefix="/users")


@router.post(
    "",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[RateLimited],
    summary="Create a user (same as /auth/register)",
)
async def create_user(payload: RegisterRequest, auth_service: AuthServiceDep) -> AuthResponse:
    """Register a local or OAuth account."""
    user, tokens = await auth_service.register(payload)
    return AuthResponse(
        message="User created successfully",
        user=UserResponse.from_record(user),
        tokens=tokens,
    )


@router.get(
    "/email/{email}",
    response_model=UserResponse,
    summary="Look up a user by email (admin only)",
)
async def get_user_by_email(
    email: EmailStr, db: DatabaseSession, admin: AdminClaims
) -> UserResponse:
    """
    Look up a user by email, normalized the same way as at registration.

    Raises:
        NotFoundException: If no account uses the email
    """
    user = await UserService.get_user_by_email(db, email)
    if not user:
        raise NotFoundException("User not found")
    return UserResponse.from_record(user)


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user by ID")
async def get_user(user_id: UUID, db: DatabaseSession, claims: CurrentClaims) -> UserResponse:
    """
    Get a user; callers may read themselves, admins anyone.

    Raises:
        ForbiddenException: If reading someone else without admin role
        NotFoundException: If the user does not exist
    """
    if claims.user_id != user_id and claims.role != Role.ADMIN:
        raise ForbiddenException("You can only access your own account")

    user = await UserService.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundException("User not found")
    return UserResponse.from_record(user)


@router.put("/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    claims: CurrentClaims,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """Update the caller's own profile."""
    if claims.user_id != user_id:
        raise ForbiddenException("You can only update your own account")

    user = await auth_service.update_profile(user_id, payload)
    return UserResponse.from_record(user)
