"""Authentication schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.users import Role, UserResponse, validate_phone_number


class Token(BaseModel):
    """JWT token pair schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenClaims(BaseModel):
    """Identity carried by a verified access or refresh token."""

    user_id: UUID
    email: str
    role: Role = Role.USER


class TokenRefresh(BaseModel):
    """Token refresh request schema."""

    refresh_token: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Registration request; ``provider`` selects the OAuth path."""

    email: EmailStr
    password: str | None = Field(None, min_length=6, max_length=128)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    provider: str | None = Field(None, max_length=50, description="OAuth provider name")
    provider_id: str | None = Field(None, max_length=255, description="Account id at the provider")


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class VerifyTokenRequest(BaseModel):
    """Access token verification request."""

    token: str | None = None


class VerifyAccountRequest(BaseModel):
    """Account verification request."""

    token: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    """Password reset initiation by email."""

    email: EmailStr


class SmsPasswordResetRequest(BaseModel):
    """Password reset initiation by SMS."""

    phone_number: str = Field(..., min_length=1, max_length=20)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        """Validate phone number format."""
        value = validate_phone_number(v)
        if not value:
            raise ValueError("Phone number is required")
        return value


class ResetPasswordRequest(BaseModel):
    """Password reset with a one-time code."""

    email: EmailStr
    reset_code: str = Field(..., min_length=1, max_length=12)
    new_password: str = Field(..., min_length=6, max_length=128)


class ChangePasswordRequest(BaseModel):
    """Password change for an authenticated user."""

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)


class MessageResponse(BaseModel):
    """Plain message response."""

    message: str
    info: str | None = None


class AuthResponse(BaseModel):
    """Registration / login response with tokens and user info."""

    message: str
    user: UserResponse
    tokens: Token


class VerifyAccountResponse(BaseModel):
    """Account verification response."""

    message: str
    user: UserResponse


class VerifyTokenResponse(BaseModel):
    """Access token verification response."""

    valid: bool
    user: TokenClaims
