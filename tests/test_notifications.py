"""Tests for the notification gateway."""

from datetime import timedelta

import httpx
import pytest

from app.core.exceptions import NotificationDeliveryError
from app.models.base import utcnow
from app.services.notification_service import EMAIL_PATH, SMS_PATH, NotificationGateway
from app.services.user_service import UserService


@pytest.fixture
async def pending_user(make_user) -> dict:
    return await make_user(
        email="pending@example.com",
        is_verified=False,
        verification_token="verify-me",
        phone_number="0612345678",
    )


async def give_reset_code(db_session, user: dict, code: str = "123456", minutes: int = 60) -> None:
    await UserService.update_user(
        db_session,
        user["id"],
        {"reset_code": code, "reset_code_expires": utcnow() + timedelta(minutes=minutes)},
    )


@pytest.mark.asyncio
class TestConfirmationEmail:
    """Tests for the account confirmation email."""

    async def test_sends_confirmation(self, gateway, pending_user, notifications):
        result = await gateway.send_confirmation_email("pending@example.com", "verify-me")

        assert result.delivered is True
        assert notifications.requests[0].method == "POST"
        assert notifications.requests[0].url.path == EMAIL_PATH
        assert notifications.payloads == [
            {"type": "confirm", "email": "pending@example.com", "tokenOrCode": "verify-me"}
        ]

    async def test_skips_unknown_user(self, gateway, notifications):
        result = await gateway.send_confirmation_email("ghost@example.com", "verify-me")

        assert result.skipped is True
        assert notifications.requests == []

    async def test_skips_replaced_token(self, gateway, pending_user, notifications):
        result = await gateway.send_confirmation_email("pending@example.com", "older-token")

        assert result.skipped is True
        assert notifications.requests == []

    async def test_skips_verified_account(self, gateway, test_user, notifications):
        result = await gateway.send_confirmation_email(test_user["email"], "any")

        assert result.skipped is True
        assert notifications.requests == []

    async def test_service_error_raises(self, gateway, pending_user, notifications):
        notifications.default_status = 500

        with pytest.raises(NotificationDeliveryError) as exc_info:
            await gateway.send_confirmation_email("pending@example.com", "verify-me")

        assert exc_info.value.code == "NOTIFICATION_FAILED"

    async def test_connection_error_raises(self, test_settings, session_factory, pending_user):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gateway = NotificationGateway(
            test_settings, session_factory, transport=httpx.MockTransport(refuse)
        )

        with pytest.raises(NotificationDeliveryError):
            await gateway.send_confirmation_email("pending@example.com", "verify-me")


@pytest.mark.asyncio
class TestResetEmail:
    """Tests for the password reset email."""

    async def test_sends_current_code(self, gateway, test_user, db_session, notifications):
        await give_reset_code(db_session, test_user)

        result = await gateway.send_password_reset_email(test_user["email"], "123456")

        assert result.delivered is True
        assert notifications.payloads == [
            {"type": "reset", "email": test_user["email"], "tokenOrCode": "123456"}
        ]

    async def test_skips_replaced_code(self, gateway, test_user, db_session, notifications):
        await give_reset_code(db_session, test_user, code="999999")

        result = await gateway.send_password_reset_email(test_user["email"], "123456")

        assert result.skipped is True
        assert notifications.requests == []

    async def test_skips_expired_code(self, gateway, test_user, db_session, notifications):
        await give_reset_code(db_session, test_user, minutes=-1)

        result = await gateway.send_password_reset_email(test_user["email"], "123456")

        assert result.skipped is True
        assert notifications.requests == []

    async def test_retries_once(self, gateway, test_user, db_session, notifications):
        await give_reset_code(db_session, test_user)
        notifications.respond_with(503)

        result = await gateway.send_password_reset_email(test_user["email"], "123456")

        assert result.delivered is True
        assert len(notifications.requests) == 2

    async def test_gives_up_after_retry(self, gateway, test_user, db_session, notifications):
        await give_reset_code(db_session, test_user)
        notifications.default_status = 503

        with pytest.raises(NotificationDeliveryError):
            await gateway.send_password_reset_email(test_user["email"], "123456")

        assert len(notifications.requests) == 2


@pytest.mark.asyncio
class TestResetSms:
    """Tests for the password reset SMS."""

    async def test_sends_sms(self, gateway, pending_user, db_session, notifications):
        await give_reset_code(db_session, pending_user, code="654321")

        result = await gateway.send_password_reset_sms("0612345678", "654321")

        assert result.delivered is True
        assert notifications.requests[0].url.path == SMS_PATH
        assert notifications.payloads == [
            {"username": "sms-user", "apiKey": "sms-key", "code": "654321", "type": "reset"}
        ]

    async def test_server_error_counts_as_possibly_delivered(
        self, gateway, pending_user, db_session, notifications
    ):
        await give_reset_code(db_session, pending_user, code="654321")
        notifications.default_status = 500

        result = await gateway.send_password_reset_sms("0612345678", "654321")

        assert result.delivered is True
        assert result.detail == "possibly delivered"
        assert result.status_code == 500

    async def test_client_error_raises(self, gateway, pending_user, db_session, notifications):
        await give_reset_code(db_session, pending_user, code="654321")
        notifications.default_status = 403

        with pytest.raises(NotificationDeliveryError):
            await gateway.send_password_reset_sms("0612345678", "654321")

    async def test_missing_credentials_fail_at_dispatch(
        self, test_settings, session_factory, notifications
    ):
        unconfigured = test_settings.model_copy(
            update={"sms_gateway_username": None, "sms_gateway_api_key": None}
        )
        gateway = NotificationGateway(
            unconfigured, session_factory, transport=httpx.MockTransport(notifications.handler)
        )

        with pytest.raises(NotificationDeliveryError):
            await gateway.send_password_reset_sms("0612345678", "654321")

        assert notifications.requests == []

    async def test_skips_stale_code(self, gateway, pending_user, notifications):
        result = await gateway.send_password_reset_sms("0612345678", "654321")

        assert result.skipped is True
        assert notifications.requests == []


async def test_cancel_pending_is_advisory(gateway, notifications):
    gateway.cancel_pending("a@x.com", reason="account_verified")

    assert notifications.requests == []
