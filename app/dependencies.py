"""FastAPI dependencies."""

from functools import lru_cache
from typing import Annotated

import redis
from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.core.exceptions import (
    AppException,
    ForbiddenException,
    RateLimitException,
    UnauthorizedException,
)
from app.core.redis_client import RateLimiter, get_redis_client
from app.core.security import TokenService
from app.database import get_db, get_session_factory
from app.schemas.auth import TokenClaims
from app.schemas.users import Role
from app.services.auth_service import AuthService
from app.services.notification_service import NotificationGateway

# Security (tokens may also come from a cookie or query string)
security = HTTPBearer(auto_error=False)


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service built from settings."""
    return TokenService(settings)


def get_notification_gateway(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> NotificationGateway:
    """Notification gateway bound to the session factory."""
    return NotificationGateway(settings, session_factory)


def get_auth_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    background_tasks: BackgroundTasks,
    tokens: Annotated[TokenService, Depends(get_token_service)],
    notifications: Annotated[NotificationGateway, Depends(get_notification_gateway)],
) -> AuthService:
    """Auth service whose detached sends run after the response."""
    return AuthService(
        db=db,
        tokens=tokens,
        notifications=notifications,
        schedule=background_tasks.add_task,
        config=settings,
    )


def extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """
    Find the access token of a request.

    Precedence: bearer header, then cookie, then ``token`` query parameter.
    """
    if credentials and credentials.credentials:
        return credentials.credentials
    cookie = request.cookies.get(settings.access_cookie_name)
    if cookie:
        return cookie
    return request.query_params.get("token") or None


async def get_current_claims(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> TokenClaims:
    """
    Verify the caller's access token.

    Raises:
        UnauthorizedException: If no token is present
        TokenExpiredException / InvalidTokenException: If it does not verify
    """
    token = extract_token(request, credentials)
    if not token:
        raise UnauthorizedException("Authentication required", code="TOKEN_MISSING")
    return tokens.verify_access(token)


async def get_optional_claims(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> TokenClaims | None:
    """Claims of the caller if a valid token is present, otherwise None."""
    token = extract_token(request, credentials)
    if not token:
        return None
    try:
        return tokens.verify_access(token)
    except AppException:
        return None


async def require_admin(
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
) -> TokenClaims:
    """
    Dependency to ensure the caller has the admin role.

    Raises:
        ForbiddenException: If the caller is not an admin
    """
    if claims.role != Role.ADMIN:
        raise ForbiddenException("Admin access required")
    return claims


def enforce_rate_limit(
    request: Request,
    redis_client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> None:
    """
    Count the request against the per-client, per-route budget.

    Raises:
        RateLimitException: If the budget for the current minute is spent
    """
    client = request.client.host if request.client else "unknown"
    limiter = RateLimiter(redis_client)
    if not limiter.check_rate_limit(
        f"{client}:{request.url.path}",
        limit=settings.rate_limit_per_minute,
        window=60,
    ):
        raise RateLimitException("Too many requests, please try again later")


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentClaims = Annotated[TokenClaims, Depends(get_current_claims)]
OptionalClaims = Annotated[TokenClaims | None, Depends(get_optional_claims)]
AdminClaims = Annotated[TokenClaims, Depends(require_admin)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
RateLimited = Depends(enforce_rate_limit)
