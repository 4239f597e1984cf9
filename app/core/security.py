"""Security utilities for JWT and password handling."""

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.config import Settings, settings
from app.core.exceptions import InvalidTokenException, TokenExpiredException
from app.schemas.auth import Token, TokenClaims

# Password hashing (bcrypt generates a random salt per hash)
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


@lru_cache
def _dummy_hash() -> str:
    return pwd_context.hash("dummy-password-for-timing-equalisation")


def verify_password_or_dummy(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verify a password, spending the same hashing work when there is no hash.

    Unknown accounts and OAuth-only accounts are compared against a dummy
    hash so response time does not reveal whether the account exists.

    Args:
        plain_password: Password supplied by the caller
        hashed_password: Stored hash, or None

    Returns:
        True only if a real hash exists and matches
    """
    if hashed_password is None:
        pwd_context.verify(plain_password, _dummy_hash())
        return False
    return pwd_context.verify(plain_password, hashed_password)


class TokenSigner:
    """One named JWT signing context with its own secret and lifetime."""

    def __init__(self, token_type: str, secret: str, algorithm: str, lifetime: timedelta):
        """Initialize the signer."""
        self.token_type = token_type
        self._secret = secret
        self._algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, user: dict[str, Any]) -> str:
        """
        Sign a token for a user record.

        Args:
            user: User row with ``id``, ``email`` and ``role``

        Returns:
            Encoded JWT
        """
        now = datetime.now(UTC)
        role = user.get("role") or "user"
        to_encode = {
            "sub": str(user["id"]),
            "email": user["email"],
            "role": getattr(role, "value", role),
            "type": self.token_type,
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token from this context.

        Args:
            token: Encoded JWT

        Returns:
            Verified claims

        Raises:
            TokenExpiredException: If the signature is valid but the token expired
            InvalidTokenException: For any other signature, type or payload problem
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredException()
        except JWTError:
            raise InvalidTokenException()

        if payload.get("type") != self.token_type:
            raise InvalidTokenException()

        try:
            return TokenClaims(
                user_id=UUID(payload["sub"]),
                email=payload["email"],
                role=payload.get("role") or "user",
            )
        except (KeyError, TypeError, ValueError):
            raise InvalidTokenException()


class TokenService:
    """Issues and validates access and refresh tokens.

    The two contexts never share a secret, so a refresh token cannot be
    replayed as an access token or the other way around.
    """

    def __init__(self, config: Settings):
        """Build both signing contexts from configuration."""
        self.access = TokenSigner(
            "access",
            config.jwt_access_secret,
            config.jwt_algorithm,
            timedelta(minutes=config.access_token_expire_minutes),
        )
        self.refresh = TokenSigner(
            "refresh",
            config.jwt_refresh_secret,
            config.jwt_algorithm,
            timedelta(days=config.refresh_token_expire_days),
        )

    def issue_access(self, user: dict[str, Any]) -> str:
        return self.access.issue(user)

    def issue_refresh(self, user: dict[str, Any]) -> str:
        return self.refresh.issue(user)

    def verify_access(self, token: str) -> TokenClaims:
        return self.access.verify(token)

    def verify_refresh(self, token: str) -> TokenClaims:
        return self.refresh.verify(token)

    def issue_pair(self, user: dict[str, Any]) -> Token:
        """Create a fresh access and refresh token pair for a user."""
        return Token(
            access_token=self.issue_access(user),
            refresh_token=self.issue_refresh(user),
            token_type="bearer",
        )
