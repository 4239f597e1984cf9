"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception.

    ``code`` is an optional machine-readable identifier clients can branch on
    (e.g. ``TOKEN_EXPIRED`` vs ``INVALID_TOKEN``).
    """

    def __init__(self, message: str, status_code: int = 500, code: str | None = None):
        """Initialize exception with message, status code and optional code."""
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized", code: str | None = None):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401, code=code)


class TokenExpiredException(UnauthorizedException):
    """Access or refresh token past its expiry."""

    def __init__(self, message: str = "Session expired, please sign in again"):
        super().__init__(message, code="TOKEN_EXPIRED")


class InvalidTokenException(UnauthorizedException):
    """Token with a bad signature, wrong type or malformed payload."""

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message, code="INVALID_TOKEN")


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden", code: str | None = None):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403, code=code)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request", code: str | None = None):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, code=code)


class InvalidVerificationTokenException(BadRequestException):
    """No account matches the verification token."""

    def __init__(self, message: str = "Invalid verification token"):
        super().__init__(message, code="INVALID_VERIFICATION_TOKEN")


class ExpiredVerificationTokenException(BadRequestException):
    """Verification token older than its validity window."""

    def __init__(self, message: str = "Verification token has expired"):
        super().__init__(message, code="EXPIRED_VERIFICATION_TOKEN")


class InvalidOrExpiredCodeException(BadRequestException):
    """Reset code is wrong, consumed or expired (never says which)."""

    def __init__(self, message: str = "Invalid or expired reset code"):
        super().__init__(message, code="INVALID_OR_EXPIRED_CODE")


class SamePasswordException(BadRequestException):
    """New password matches the current one."""

    def __init__(self, message: str = "New password must differ from the current password"):
        super().__init__(message, code="SAME_PASSWORD")


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict", code: str | None = None):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, code=code)


class RateLimitException(AppException):
    """Rate limit exceeded exception."""

    def __init__(self, message: str = "Rate limit exceeded"):
        """Initialize with 429 status code."""
        super().__init__(message, status_code=429)


class UpstreamUnavailableException(AppException):
    """Datastore or downstream service outage."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        code: str = "UPSTREAM_UNAVAILABLE",
    ):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503, code=code)


class NotificationDeliveryError(UpstreamUnavailableException):
    """The notification service could not be reached or rejected the message."""

    def __init__(self, message: str = "Notification delivery failed"):
        super().__init__(message, code="NOTIFICATION_FAILED")
