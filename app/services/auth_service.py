"""Authentication service: registration, login, verification and password flows."""

import asyncio
import secrets
from collections.abc import Callable
from datetime import timedelta
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    ExpiredVerificationTokenException,
    ForbiddenException,
    InvalidOrExpiredCodeException,
    InvalidVerificationTokenException,
    NotFoundException,
    SamePasswordException,
    UnauthorizedException,
)
from app.core.security import TokenService, get_password_hash, verify_password_or_dummy
from app.middleware.logging import mask_phone
from app.models.base import utcnow
from app.schemas.auth import RegisterRequest, Token, TokenClaims
from app.schemas.users import UserUpdate
from app.services.notification_service import NotificationGateway
from app.services.user_service import UserService

logger = structlog.get_logger(__name__)

Scheduler = Callable[..., Any]

RESET_EMAIL_MESSAGE = "If this email is associated with an account, instructions have been sent."
RESET_SMS_MESSAGE = "If this number is associated with an account, a code has been sent by SMS."
RESET_SMS_INFO = "Check your phone. The code is valid for 1 hour."


def generate_verification_token() -> str:
    """Random 256-bit hex token for account verification."""
    return secrets.token_hex(32)


def generate_reset_code() -> str:
    """Uniform random 6-digit code in [100000, 999999]."""
    return str(100000 + secrets.randbelow(900000))


class AuthService:
    """Authentication service for local and OAuth accounts.

    Notification sends are handed to ``schedule`` (``BackgroundTasks.add_task``
    in the API) and never awaited by the calling request.
    """

    def __init__(
        self,
        db: AsyncSession,
        tokens: TokenService,
        notifications: NotificationGateway,
        schedule: Scheduler,
        config: Settings,
    ):
        """Initialize auth service with its collaborators."""
        self.db = db
        self.tokens = tokens
        self.notifications = notifications
        self.schedule = schedule
        self.config = config

    # ------------------------------------------------------------------
    # Registration and sessions
    # ------------------------------------------------------------------

    async def register(self, data: RegisterRequest) -> tuple[dict, Token]:
        """
        Register a local or OAuth account and log it in.

        Args:
            data: Registration payload; ``provider`` selects the OAuth path

        Returns:
            Tuple of (user row, token pair)

        Raises:
            ConflictException: If the email is already registered
            BadRequestException: If a local registration has no password
        """
        if await UserService.get_user_by_email(self.db, data.email):
            raise ConflictException("Email already in use", code="EMAIL_TAKEN")

        values: dict[str, Any] = {
            "email": data.email,
            "first_name": data.first_name,
            "last_name": data.last_name,
        }

        if data.provider:
            values.update(
                oauth_provider=data.provider,
                oauth_provider_id=data.provider_id,
                password_hash=None,
                verification_token=None,
                is_verified=True,
            )
        else:
            if not data.password:
                raise BadRequestException(
                    "Password is required for local registration",
                    code="PASSWORD_REQUIRED",
                )
            values.update(
                password_hash=get_password_hash(data.password),
                verification_token=generate_verification_token(),
                is_verified=False,
            )

        user = await UserService.create_user(self.db, values)
        tokens = self.tokens.issue_pair(user)

        logger.info(
            "user_registered",
            user_id=str(user["id"]),
            provider=data.provider or "local",
        )

        if not data.provider:
            self.schedule(self._deliver_confirmation, user["email"], user["verification_token"])

        return user, tokens

    async def login(self, email: str, password: str) -> tuple[dict, Token]:
        """
        Authenticate with email and password.

        Unknown email and wrong password fail the same way and cost the same
        hashing work.

        Raises:
            UnauthorizedException: On bad credentials
            ForbiddenException: If the account is not verified yet
        """
        user = await UserService.get_user_by_email(self.db, email)
        password_hash = user["password_hash"] if user else None

        if not verify_password_or_dummy(password, password_hash) or not user:
            logger.info("login_failed", email=email)
            raise UnauthorizedException("Invalid email or password")

        if not user["is_verified"]:
            raise ForbiddenException(
                "Please verify your email before signing in",
                code="EMAIL_NOT_VERIFIED",
            )

        logger.info("user_logged_in", user_id=str(user["id"]))
        return user, self.tokens.issue_pair(user)

    def verify_access_token(self, token: str) -> TokenClaims:
        """Validate an access token and return its claims."""
        return self.tokens.verify_access(token)

    async def refresh_tokens(self, refresh_token: str) -> Token:
        """
        Rotate a refresh token into a brand-new token pair.

        Raises:
            TokenExpiredException / InvalidTokenException: If the token is bad
            UnauthorizedException: If the user no longer exists
        """
        claims = self.tokens.verify_refresh(refresh_token)
        user = await UserService.get_user_by_id(self.db, claims.user_id)
        if not user:
            raise UnauthorizedException("User not found")

        logger.info("tokens_refreshed", user_id=str(user["id"]))
        return self.tokens.issue_pair(user)

    # ------------------------------------------------------------------
    # Account verification
    # ------------------------------------------------------------------

    async def verify_account(self, token: str) -> tuple[dict, bool]:
        """
        Verify an account with the token from the confirmation email.

        Returns:
            Tuple of (user row, already_verified)

        Raises:
            InvalidVerificationTokenException: If no account holds the token
            ExpiredVerificationTokenException: If the account is older than
                the verification window
        """
        user = await UserService.get_user_by_verification_token(self.db, token)
        if not user:
            raise InvalidVerificationTokenException()

        window = timedelta(hours=self.config.verification_token_ttl_hours)
        if utcnow() > user["created_at"] + window:
            raise ExpiredVerificationTokenException()

        if user["is_verified"]:
            logger.warning("already_verified_attempt", user_id=str(user["id"]))
            return user, True

        self.notifications.cancel_pending(user["email"], reason="account_verified")

        updated = await UserService.update_user(
            self.db,
            user["id"],
            {
                "is_verified": True,
                "verification_token": None,
                "last_verification_token": token,
            },
        )
        if not updated:
            raise InvalidVerificationTokenException()

        logger.info("account_verified", user_id=str(updated["id"]))
        return updated, False

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    def _in_cooldown(self, user: dict) -> bool:
        """Whether the user's current code was issued within the cooldown window."""
        expires = user["reset_code_expires"]
        now = utcnow()
        if not user["reset_code"] or not expires or expires <= now:
            return False
        issued_at = expires - timedelta(minutes=self.config.reset_code_ttl_minutes)
        return issued_at > now - timedelta(minutes=self.config.reset_code_cooldown_minutes)

    def _new_reset_code(self) -> dict[str, Any]:
        return {
            "reset_code": generate_reset_code(),
            "reset_code_expires": utcnow() + timedelta(minutes=self.config.reset_code_ttl_minutes),
        }

    async def initiate_password_reset(self, email: str) -> str:
        """
        Issue a reset code and email it in the background.

        Always returns the same generic message.
        """
        user = await UserService.get_user_by_email(self.db, email)

        if not user:
            logger.warning("reset_email_not_found", email=email)
            return RESET_EMAIL_MESSAGE

        if self._in_cooldown(user):
            logger.warning(
                "reset_code_too_recent",
                user_id=str(user["id"]),
                expires_at=user["reset_code_expires"].isoformat(),
            )
            return RESET_EMAIL_MESSAGE

        values = self._new_reset_code()
        updated = await UserService.update_user(
            self.db, user["id"], values, expected_version=user["version"]
        )
        if not updated:
            logger.warning("reset_code_write_conflict", user_id=str(user["id"]))
            return RESET_EMAIL_MESSAGE

        logger.info(
            "reset_code_generated",
            user_id=str(user["id"]),
            expires_at=values["reset_code_expires"].isoformat(),
        )
        self.schedule(self._deliver_reset_email, email, values["reset_code"])
        return RESET_EMAIL_MESSAGE

    async def initiate_password_reset_by_sms(self, phone_number: str) -> tuple[str, str]:
        """
        Issue a reset code and text it in the background.

        Datastore lookups and writes are time-boxed; timeouts and datastore
        errors are logged and answered with the same generic message.

        Returns:
            Tuple of (message, info)
        """
        phone = mask_phone(phone_number)

        try:
            user = await asyncio.wait_for(
                UserService.get_user_by_phone(self.db, phone_number),
                timeout=self.config.sms_lookup_timeout_seconds,
            )
        except (TimeoutError, SQLAlchemyError) as e:
            logger.error(
                "sms_reset_lookup_failed",
                phone=phone,
                error_type=e.__class__.__name__,
                error=str(e),
            )
            return RESET_SMS_MESSAGE, RESET_SMS_INFO

        if not user:
            logger.info("sms_reset_user_not_found", phone=phone)
            return RESET_SMS_MESSAGE, RESET_SMS_INFO

        if self._in_cooldown(user):
            logger.warning("reset_code_too_recent", user_id=str(user["id"]))
            return RESET_SMS_MESSAGE, RESET_SMS_INFO

        values = self._new_reset_code()
        try:
            updated = await asyncio.wait_for(
                UserService.update_user(
                    self.db, user["id"], values, expected_version=user["version"]
                ),
                timeout=self.config.sms_write_timeout_seconds,
            )
        except (TimeoutError, SQLAlchemyError) as e:
            logger.error(
                "sms_reset_code_save_failed",
                user_id=str(user["id"]),
                error_type=e.__class__.__name__,
                error=str(e),
            )
            return RESET_SMS_MESSAGE, RESET_SMS_INFO

        if not updated:
            logger.warning("reset_code_write_conflict", user_id=str(user["id"]))
            return RESET_SMS_MESSAGE, RESET_SMS_INFO

        logger.info("reset_code_generated", user_id=str(user["id"]), channel="sms", phone=phone)
        self.schedule(self._deliver_reset_sms, phone_number, values["reset_code"])
        return RESET_SMS_MESSAGE, RESET_SMS_INFO

    async def reset_password(self, email: str, reset_code: str, new_password: str) -> None:
        """
        Set a new password using a valid reset code.

        Raises:
            InvalidOrExpiredCodeException: If the code is wrong, consumed or
                expired, or another write won the race
        """
        user = await UserService.get_user_by_reset_code(self.db, email, reset_code)
        if not user:
            raise InvalidOrExpiredCodeException()

        self.notifications.cancel_pending(email, reason="password_reset")

        updated = await UserService.update_user(
            self.db,
            user["id"],
            {
                "password_hash": get_password_hash(new_password),
                "reset_code": None,
                "reset_code_expires": None,
            },
            expected_version=user["version"],
        )
        if not updated:
            logger.warning("password_reset_write_conflict", user_id=str(user["id"]))
            raise InvalidOrExpiredCodeException()

        logger.info("password_reset_success", user_id=str(user["id"]))

    async def change_password(
        self,
        user_id: UUID,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Change the password of an authenticated user.

        Any outstanding reset code is invalidated.

        Raises:
            NotFoundException: If the user does not exist
            UnauthorizedException: If the current password is wrong
            SamePasswordException: If the new password matches the current hash
            ConflictException: If a concurrent credential write won the race
        """
        user = await UserService.get_user_by_id(self.db, user_id)
        if not user:
            raise NotFoundException("User not found")

        if not verify_password_or_dummy(current_password, user["password_hash"]):
            raise UnauthorizedException("Current password is incorrect")

        if verify_password_or_dummy(new_password, user["password_hash"]):
            raise SamePasswordException()

        self.notifications.cancel_pending(user["email"], reason="password_changed")

        updated = await UserService.update_user(
            self.db,
            user_id,
            {
                "password_hash": get_password_hash(new_password),
                "reset_code": None,
                "reset_code_expires": None,
            },
            expected_version=user["version"],
        )
        if not updated:
            raise ConflictException(
                "Account was modified concurrently, please retry",
                code="CONCURRENT_UPDATE",
            )

        logger.info("password_changed", user_id=str(user_id))

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: UUID) -> dict:
        """Get the caller's own record."""
        user = await UserService.get_user_by_id(self.db, user_id)
        if not user:
            raise NotFoundException("User profile not found")
        return user

    async def update_profile(self, user_id: UUID, data: UserUpdate) -> dict:
        """
        Update names and phone number of the caller's own record.

        An empty phone number removes it.

        Raises:
            NotFoundException: If the user does not exist
            ConflictException: If another account already uses the phone number
        """
        if not await UserService.get_user_by_id(self.db, user_id):
            raise NotFoundException("User profile not found")

        values = data.model_dump(mode="json", exclude_unset=True)
        if "phone_number" in values:
            if not values["phone_number"]:
                values["phone_number"] = None
            elif await UserService.phone_taken_by_other(self.db, values["phone_number"], user_id):
                raise ConflictException(
                    "Phone number already used by another account",
                    code="PHONE_NUMBER_TAKEN",
                )

        updated = await UserService.update_user(self.db, user_id, values)
        if not updated:
            raise NotFoundException("User profile not found")

        logger.info("profile_updated", user_id=str(user_id), fields=sorted(values))
        return updated

    async def delete_user(self, user_id: UUID) -> None:
        """Delete the caller's account and everything it owns."""
        if not await UserService.delete_user(self.db, user_id):
            raise NotFoundException("User not found")
        logger.info("account_deleted", user_id=str(user_id))

    async def refresh_user_data(self, user_id: UUID) -> tuple[dict, Token]:
        """Re-issue tokens from the persisted record (e.g. after a role change)."""
        user = await UserService.get_user_by_id(self.db, user_id)
        if not user:
            raise NotFoundException("User not found")

        logger.info("user_data_refreshed", user_id=str(user_id), role=user["role"])
        return user, self.tokens.issue_pair(user)

    # ------------------------------------------------------------------
    # Detached notification sends
    # ------------------------------------------------------------------

    async def _deliver_confirmation(self, email: str, token: str) -> None:
        try:
            await self.notifications.send_confirmation_email(email, token)
        except Exception as e:
            logger.error("confirmation_email_dispatch_failed", email=email, error=str(e))

    async def _deliver_reset_email(self, email: str, code: str) -> None:
        try:
            await self.notifications.send_password_reset_email(email, code)
        except Exception as e:
            logger.error("reset_email_dispatch_failed", email=email, error=str(e))

    async def _deliver_reset_sms(self, phone_number: str, code: str) -> None:
        try:
            await self.notifications.send_password_reset_sms(phone_number, code)
        except Exception as e:
            logger.error(
                "sms_dispatch_failed",
                phone=mask_phone(phone_number),
                error=str(e),
            )
            logger.info("reset_code_still_available", phone=mask_phone(phone_number))
