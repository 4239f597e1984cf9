"""Application configuration."""

import logging
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Roadtrip Data Service", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=5002, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")

    # Redis (rate limiting)
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_username: str = Field(default="default", alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_decode_responses: bool = Field(default=True, alias="REDIS_DECODE_RESPONSES")

    # JWT - access and refresh tokens are signed with different secrets
    jwt_access_secret: str = Field(..., alias="JWT_SECRET")
    jwt_refresh_secret: str = Field(..., alias="JWT_REFRESH_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    refresh_token_expire_days: int = Field(default=7, alias="REFRESH_TOKEN_EXPIRE_DAYS")

    # Passwords
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, alias="BCRYPT_ROUNDS")

    # Account verification and password reset
    verification_token_ttl_hours: int = Field(default=24, alias="VERIFICATION_TOKEN_TTL_HOURS")
    reset_code_ttl_minutes: int = Field(default=60, alias="RESET_CODE_TTL_MINUTES")
    reset_code_cooldown_minutes: int = Field(default=2, alias="RESET_CODE_COOLDOWN_MINUTES")
    sms_lookup_timeout_seconds: float = Field(default=8.0, alias="SMS_LOOKUP_TIMEOUT_SECONDS")
    sms_write_timeout_seconds: float = Field(default=5.0, alias="SMS_WRITE_TIMEOUT_SECONDS")

    # Notification service
    notification_service_url: str = Field(
        default="http://localhost:5005",
        alias="NOTIFICATION_SERVICE_URL",
    )
    notification_timeout_seconds: float = Field(default=60.0, alias="NOTIFICATION_TIMEOUT_SECONDS")
    reset_email_max_retries: int = Field(default=1, ge=0, alias="RESET_EMAIL_MAX_RETRIES")
    reset_email_retry_delay_seconds: float = Field(
        default=3.0,
        ge=0,
        alias="RESET_EMAIL_RETRY_DELAY_SECONDS",
    )

    # SMS gateway credentials are checked when an SMS is dispatched, not at startup
    sms_gateway_username: str | None = Field(default=None, alias="SMS_GATEWAY_USERNAME")
    sms_gateway_api_key: str | None = Field(default=None, alias="SMS_GATEWAY_API_KEY")

    # Cookies
    access_cookie_name: str = Field(default="token", alias="ACCESS_COOKIE_NAME")
    refresh_cookie_name: str = Field(default="refreshToken", alias="REFRESH_COOKIE_NAME")

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Rate Limiting
    rate_limit_per_minute: int = Field(default=60, alias="RATE_LIMIT_PER_MINUTE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @model_validator(mode="after")
    def validate_startup_settings(self) -> "Settings":
        """Fail fast on configuration that would break the service at runtime."""
        if not self.jwt_access_secret or not self.jwt_refresh_secret:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must both be set")
        if self.jwt_access_secret == self.jwt_refresh_secret:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be different")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown LOG_LEVEL: {self.log_level}")
        if not 1024 <= self.port <= 65535:
            raise ValueError("PORT must be between 1024 and 65535")
        if "://" not in self.database_url:
            raise ValueError("DATABASE_URL must include a scheme")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
