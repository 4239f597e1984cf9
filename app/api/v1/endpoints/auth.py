"""Authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header, Query, Response, status

from app.config import settings
from app.core.exceptions import BadRequestException
from app.dependencies import AuthServiceDep, CurrentClaims, RateLimited
from app.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    PasswordResetRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SmsPasswordResetRequest,
    Token,
    TokenRefresh,
    VerifyAccountRequest,
    VerifyAccountResponse,
    VerifyTokenRequest,
    VerifyTokenResponse,
)
from app.schemas.users import UserResponse, UserUpdate

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[RateLimited],
    summary="Register a local or OAuth account",
)
async def register(payload: RegisterRequest, auth_service: AuthServiceDep) -> AuthResponse:
    """
    Register a new account and return a token pair.

    Local accounts receive a confirmation email after the response is sent;
    OAuth accounts are verified immediately.

    Raises:
        ConflictException: If the email is already registered
    """
    user, tokens = await auth_service.register(payload)
    message = (
        "OAuth account created successfully"
        if payload.provider
        else "Account created successfully, check your email to verify it"
    )
    return AuthResponse(message=message, user=UserResponse.from_record(user), tokens=tokens)


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[RateLimited],
    summary="Sign in with email and password",
)
async def login(payload: LoginRequest, auth_service: AuthServiceDep) -> AuthResponse:
    """
    Authenticate and return a fresh token pair.

    Raises:
        UnauthorizedException: Unknown email or wrong password
        ForbiddenException: Account not verified yet
    """
    user, tokens = await auth_service.login(payload.email, payload.password)
    return AuthResponse(
        message="Signed in successfully",
        user=UserResponse.from_record(user),
        tokens=tokens,
    )


@router.post("/logout", response_model=MessageResponse, summary="Sign out")
async def logout(response: Response, claims: CurrentClaims) -> MessageResponse:
    """Clear session cookies. Issued tokens stay valid until they expire."""
    response.delete_cookie(settings.access_cookie_name)
    response.delete_cookie(settings.refresh_cookie_name)
    return MessageResponse(message="Signed out successfully")


@router.post(
    "/verify-token",
    response_model=VerifyTokenResponse,
    dependencies=[RateLimited],
    summary="Check an access token",
)
async def verify_token(
    auth_service: AuthServiceDep,
    payload: VerifyTokenRequest | None = None,
    token: Annotated[str | None, Query()] = None,
    x_access_token: Annotated[str | None, Header()] = None,
) -> VerifyTokenResponse:
    """
    Validate an access token taken from the body, ``?token=`` or the
    ``x-access-token`` header.

    Raises:
        BadRequestException: If no token was supplied
        TokenExpiredException / InvalidTokenException: If it does not verify
    """
    candidate = (payload.token if payload else None) or token or x_access_token
    if not candidate:
        raise BadRequestException("Token is required", code="TOKEN_REQUIRED")

    claims = auth_service.verify_access_token(candidate)
    return VerifyTokenResponse(valid=True, user=claims)


@router.post(
    "/refresh-token",
    response_model=Token,
    dependencies=[RateLimited],
    summary="Rotate a refresh token",
)
async def refresh_token(payload: TokenRefresh, auth_service: AuthServiceDep) -> Token:
    """Exchange a valid refresh token for a new access and refresh pair."""
    return await auth_service.refresh_tokens(payload.refresh_token)


@router.post(
    "/verify-account",
    response_model=VerifyAccountResponse,
    dependencies=[RateLimited],
    summary="Verify an account from the confirmation email",
)
async def verify_account(
    payload: VerifyAccountRequest,
    auth_service: AuthServiceDep,
) -> VerifyAccountResponse:
    """Mark the account as verified; repeating the call is harmless."""
    user, already_verified = await auth_service.verify_account(payload.token)
    message = "Account already verified" if already_verified else "Account verified successfully"
    return VerifyAccountResponse(message=message, user=UserResponse.from_record(user))


@router.post(
    "/initiate-password-reset",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    dependencies=[RateLimited],
    summary="Request a reset code by email",
)
async def initiate_password_reset(
    payload: PasswordResetRequest,
    auth_service: AuthServiceDep,
) -> MessageResponse:
    """Always answers with the same message whether or not the email exists."""
    message = await auth_service.initiate_password_reset(payload.email)
    return MessageResponse(message=message)


@router.post(
    "/initiate-password-reset-sms",
    response_model=MessageResponse,
    dependencies=[RateLimited],
    summary="Request a reset code by SMS",
)
async def initiate_password_reset_sms(
    payload: SmsPasswordResetRequest,
    auth_service: AuthServiceDep,
) -> MessageResponse:
    """Always answers with the same message whether or not the number exists."""
    message, info = await auth_service.initiate_password_reset_by_sms(payload.phone_number)
    return MessageResponse(message=message, info=info)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    dependencies=[RateLimited],
    summary="Set a new password with a reset code",
)
async def reset_password(
    payload: ResetPasswordRequest,
    auth_service: AuthServiceDep,
) -> MessageResponse:
    """
    Reset the password.

    Raises:
        InvalidOrExpiredCodeException: Wrong, consumed or expired code
    """
    await auth_service.reset_password(payload.email, payload.reset_code, payload.new_password)
    return MessageResponse(message="Password reset successfully")


@router.put(
    "/change-password",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    summary="Change the password of the signed-in user",
)
async def change_password(
    payload: ChangePasswordRequest,
    claims: CurrentClaims,
    auth_service: AuthServiceDep,
) -> MessageResponse:
    """Change the password; outstanding reset codes stop working."""
    await auth_service.change_password(
        claims.user_id,
        payload.current_password,
        payload.new_password,
    )
    return MessageResponse(message="Password changed successfully")


@router.get("/profile", response_model=UserResponse, summary="Get own profile")
async def get_profile(claims: CurrentClaims, auth_service: AuthServiceDep) -> UserResponse:
    """Return the signed-in user's profile."""
    user = await auth_service.get_profile(claims.user_id)
    return UserResponse.from_record(user)


@router.put("/profile", response_model=UserResponse, summary="Update own profile")
async def update_profile(
    payload: UserUpdate,
    claims: CurrentClaims,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """
    Update names and phone number; an empty phone number removes it.

    Raises:
        ConflictException: Phone number used by another account
    """
    user = await auth_service.update_profile(claims.user_id, payload)
    return UserResponse.from_record(user)


@router.delete(
    "/account",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    summary="Delete own account",
)
async def delete_account(claims: CurrentClaims, auth_service: AuthServiceDep) -> MessageResponse:
    """Delete the account along with its trips, favorites and messages."""
    await auth_service.delete_user(claims.user_id)
    return MessageResponse(message="Account deleted successfully")


@router.post(
    "/refresh-user-data",
    response_model=AuthResponse,
    summary="Re-issue tokens from the stored account",
)
async def refresh_user_data(claims: CurrentClaims, auth_service: AuthServiceDep) -> AuthResponse:
    """Pick up out-of-band changes such as a role upgrade."""
    user, tokens = await auth_service.refresh_user_data(claims.user_id)
    return AuthResponse(
        message="User data refreshed",
        user=UserResponse.from_record(user),
        tokens=tokens,
    )
