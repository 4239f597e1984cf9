"""Notification gateway: confirmation and password-reset delivery over HTTP."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings
from app.core.exceptions import NotificationDeliveryError
from app.middleware.logging import mask_phone
from app.services.user_service import UserService

logger = structlog.get_logger(__name__)

EMAIL_PATH = "/api/notifications/email"
SMS_PATH = "/api/notifications/sms"


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one dispatch attempt."""

    delivered: bool
    skipped: bool = False
    detail: str = ""
    status_code: int | None = None


class NotificationGateway:
    """Sends account notifications through the external notification service.

    Every send re-reads the user from a fresh session right before dispatch
    and quietly skips when the token or code it was asked to deliver is no
    longer the one on record.
    """

    def __init__(
        self,
        config: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize gateway with configuration and a session factory."""
        self.config = config
        self.session_factory = session_factory
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.notification_service_url,
            timeout=self.config.notification_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )

    async def _with_session(self, query: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
        async with self.session_factory() as db:
            return await query(db)

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        async with self._client() as client:
            return await client.post(path, json=payload)

    async def send_confirmation_email(self, email: str, token: str) -> DeliveryResult:
        """
        Send the account confirmation email.

        Args:
            email: Recipient address
            token: Verification token expected to still be on record

        Returns:
            Delivery result; ``skipped`` when the account is already verified
            or holds a different token

        Raises:
            NotificationDeliveryError: If the notification service fails
        """
        user = await self._with_session(lambda db: UserService.get_user_by_email(db, email))
        if not user or user["is_verified"] or user["verification_token"] != token:
            logger.info("confirmation_email_skipped", email=email)
            return DeliveryResult(delivered=False, skipped=True, detail="stale")

        try:
            response = await self._post(
                EMAIL_PATH,
                {"type": "confirm", "email": email, "tokenOrCode": token},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("confirmation_email_failed", email=email, error=str(e))
            raise NotificationDeliveryError() from e

        logger.info("confirmation_email_sent", email=email)
        return DeliveryResult(delivered=True, status_code=response.status_code)

    async def _reset_code_current(self, email: str, code: str) -> bool:
        user = await self._with_session(
            lambda db: UserService.get_user_by_reset_code(db, email, code)
        )
        return user is not None

    async def send_password_reset_email(self, email: str, code: str) -> DeliveryResult:
        """
        Send the password reset code by email.

        The code is re-checked before the first attempt and again after a
        failure; a failed send is retried at most ``reset_email_max_retries``
        times while the code is still valid.

        Raises:
            NotificationDeliveryError: If every attempt failed
        """
        attempt = 0
        while True:
            if not await self._reset_code_current(email, code):
                logger.info("reset_email_skipped", email=email, attempt=attempt)
                return DeliveryResult(delivered=False, skipped=True, detail="stale")

            try:
                response = await self._post(
                    EMAIL_PATH,
                    {"type": "reset", "email": email, "tokenOrCode": code},
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.error("reset_email_failed", email=email, attempt=attempt, error=str(e))
                if attempt >= self.config.reset_email_max_retries:
                    raise NotificationDeliveryError() from e
            else:
                logger.info("reset_email_sent", email=email, attempt=attempt)
                return DeliveryResult(delivered=True, status_code=response.status_code)

            attempt += 1
            logger.warning("reset_email_retry", email=email, attempt=attempt)
            await asyncio.sleep(self.config.reset_email_retry_delay_seconds)

    async def send_password_reset_sms(self, phone_number: str, code: str) -> DeliveryResult:
        """
        Send the password reset code by SMS.

        A 5xx answer from the notification service is reported as possibly
        delivered: the SMS gateway is known to answer 500 after accepting
        the message.

        Raises:
            NotificationDeliveryError: If gateway credentials are missing or
                the request fails
        """
        username = self.config.sms_gateway_username
        api_key = self.config.sms_gateway_api_key
        if not username or not api_key:
            logger.error("sms_gateway_not_configured")
            raise NotificationDeliveryError("SMS gateway credentials are not configured")

        user = await self._with_session(
            lambda db: UserService.get_user_by_phone_and_reset_code(db, phone_number, code)
        )
        if not user:
            logger.info("reset_sms_skipped", phone=mask_phone(phone_number))
            return DeliveryResult(delivered=False, skipped=True, detail="stale")

        try:
            response = await self._post(
                SMS_PATH,
                {"username": username, "apiKey": api_key, "code": code, "type": "reset"},
            )
        except httpx.HTTPError as e:
            logger.error("reset_sms_failed", phone=mask_phone(phone_number), error=str(e))
            raise NotificationDeliveryError() from e

        if response.is_server_error:
            logger.warning(
                "reset_sms_possibly_delivered",
                phone=mask_phone(phone_number),
                status_code=response.status_code,
            )
            return DeliveryResult(
                delivered=True,
                detail="possibly delivered",
                status_code=response.status_code,
            )

        if not response.is_success:
            logger.error(
                "reset_sms_rejected",
                phone=mask_phone(phone_number),
                status_code=response.status_code,
            )
            raise NotificationDeliveryError()

        logger.info("reset_sms_sent", phone=mask_phone(phone_number))
        return DeliveryResult(delivered=True, status_code=response.status_code)

    def cancel_pending(self, email: str, reason: str) -> None:
        """Record that pending notifications for ``email`` are obsolete.

        Sends already in flight are not retracted.
        """
        logger.info("pending_notifications_cancelled", email=email, reason=reason)
