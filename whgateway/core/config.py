"""
Configuration management for the gateway.

Settings come from environment variables (and an optional ``.env`` file)
and are built once per process. Components receive the settings object in
their constructor and never re-read the environment per request.
"""

from typing import Optional, Dict, Any, List
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
import logging

from whgateway.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Values the relay path needs; absence only shows up at first use
REQUIRED_FIELDS = (
    "verify_token",
    "auth_url",
    "client_id",
    "client_secret",
    "external_webhook_url",
)

SECRET_FIELDS = ("verify_token", "client_secret")


class Settings(BaseSettings):
    """
    Gateway configuration.

    Variable names match the environment of the original deployment
    (``PORT``, ``VERIFY_TOKEN``, ``AUTH_URL`` and so on), so no prefix is used.
    """

    # Server
    host: str = Field("0.0.0.0", description="Interface to bind")
    port: int = Field(3000, ge=1, le=65535, description="Listening port")
    log_level: str = Field("INFO", description="Logging level")

    # Subscription verification
    verify_token: Optional[str] = Field(None, description="Secret echoed by hub.verify_token")

    # OAuth2 client credentials
    auth_url: Optional[str] = Field(None, description="Token endpoint URL")
    grant_type: str = Field("client_credentials", description="OAuth2 grant type")
    client_id: Optional[str] = Field(None, description="OAuth2 client ID")
    client_secret: Optional[str] = Field(None, description="OAuth2 client secret")

    # Downstream
    external_webhook_url: Optional[str] = Field(None, description="Forward target URL")
    request_timeout: float = Field(10.0, gt=0, le=300, description="Outbound request timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    def missing_fields(self) -> List[str]:
        """Return the names of required values that are unset or empty."""
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        """
        Convert settings to dictionary.

        Args:
            include_secrets: Whether to show secret values (default: False)

        Returns:
            Settings dictionary with secrets masked unless requested
        """
        data = self.model_dump()

        if not include_secrets:
            for name in SECRET_FIELDS:
                if data.get(name):
                    data[name] = "********"

        return data

    def with_overrides(self, **overrides: Any) -> "Settings":
        """
        Return a copy with some values replaced, validated like the original.

        Args:
            **overrides: Field values to replace

        Returns:
            New Settings instance

        Raises:
            ConfigurationError: If an override fails validation
        """
        try:
            return type(self).model_validate({**self.model_dump(), **overrides})
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration override: {e.errors()[0]['msg']}",
                {"fields": [".".join(map(str, err["loc"])) for err in e.errors()]}
            ) from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the process-wide settings instance (singleton).

    Returns:
        Settings instance
    """
    settings = Settings()

    missing = settings.missing_fields()
    if missing:
        logger.warning(
            "Gateway configuration incomplete: %s", ", ".join(missing)
        )

    return settings


def reset_settings() -> None:
    """Reset cached settings (for testing)."""
    get_settings.cache_clear()
