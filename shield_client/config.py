"""Configuration management using Pydantic Settings."""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://shield.openfort.io"


class DeleteMissingPolicy(StrEnum):
    """How ``delete_secret`` treats a 404 from the server.

    RAISE surfaces it as a ShieldTransportError, IGNORE treats it as success.
    """

    RAISE = "raise"
    IGNORE = "ignore"


class ShieldSettings(BaseSettings):
    """Shield client settings from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SHIELD_",
        extra="ignore",
    )

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Shield API base URL",
    )
    api_key: str = Field(
        default="",
        description="Publishable API key sent as x-api-key",
    )
    timeout: float = Field(
        default=30,
        description="Shield API request timeout in seconds",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per request, including the first one",
    )
    retry_backoff: float = Field(
        default=0.5,
        gt=0,
        description="Delay before the first retry in seconds, doubled on every retry",
    )
    delete_missing_policy: DeleteMissingPolicy = Field(
        default=DeleteMissingPolicy.RAISE,
        description="Whether deleting an absent share raises or succeeds",
    )
