"""Application settings loaded from the environment."""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PUBLIC_PATHS = (
    "/api/v1/auth/login",
    "/api/v1/auth/register",
    "/login",
    "/register",
    "/health",
)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Blog API settings.

    List-valued settings are comma-separated strings so they can be set from
    plain environment variables; use the ``*_list`` properties to read them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(
        default="awesome-blog",
        description="Application name, also used as the token issuer",
        validation_alias=AliasChoices("APPLICATION_NAME", "APP_NAME", "app_name"),
    )
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode and API docs")
    log_level: str = Field(default="INFO", description="Logging level")

    # Auth / JWT
    jwt_secret: str = Field(default="", description="HMAC signing secret (>= 32 bytes)")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_token_expire_minutes: int = Field(default=15, ge=1)
    jwt_revocation_hours: int = Field(
        default=24, ge=1, description="How long a revoked token id stays blacklisted"
    )
    max_token_age_minutes: int = Field(
        default=15, ge=1, description="Maximum accepted age of a presented token"
    )
    allowed_issuers: str = Field(
        default="", description="Comma-separated extra issuers; app_name is always allowed"
    )

    # Request gate
    public_paths: str = Field(default=",".join(DEFAULT_PUBLIC_PATHS))
    trusted_proxy_ips: str = Field(
        default="", description="Proxies allowed to set X-Forwarded-For / X-Real-IP"
    )

    # Rate limiting
    rate_limit_window_seconds: int = Field(default=60, ge=1)
    rate_limit_authed_max_attempts: int = Field(default=100, ge=1)
    rate_limit_unauthed_max_attempts: int = Field(default=20, ge=1)
    rate_limit_cleanup_interval_seconds: int = Field(default=300, ge=1)
    rate_limit_retry_after_seconds: int = Field(default=60, ge=1)

    token_blacklist_cleanup_interval_seconds: int = Field(default=300, ge=1)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def allowed_issuers_list(self) -> list[str]:
        # Tokens this app mints must always validate
        issuers = _split_csv(self.allowed_issuers)
        if self.app_name not in issuers:
            issuers.insert(0, self.app_name)
        return issuers

    @property
    def public_paths_list(self) -> list[str]:
        return _split_csv(self.public_paths)

    @property
    def trusted_proxy_ips_list(self) -> list[str]:
        return _split_csv(self.trusted_proxy_ips)

    def check_security_configuration(self) -> list[str]:
        """Return warnings about insecure but non-fatal settings."""
        warnings = []
        if self.debug:
            warnings.append("DEBUG is enabled - API docs are publicly reachable")
        if self.jwt_secret and len(set(self.jwt_secret)) < 8:
            warnings.append("JWT_SECRET has very low character diversity")
        if self.max_token_age_minutes > self.jwt_access_token_expire_minutes:
            warnings.append(
                "MAX_TOKEN_AGE_MINUTES exceeds token lifetime; tokens expire before the age check"
            )
        if self.jwt_revocation_hours * 60 < self.jwt_access_token_expire_minutes:
            warnings.append(
                "JWT_REVOCATION_HOURS is shorter than the token lifetime; "
                "revocations are extended to cover the full lifetime"
            )
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
