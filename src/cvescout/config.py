"""Configuration management for cvescout using Pydantic Settings.

Configuration is loaded from environment variables and/or .env files.
Environment variables take precedence over .env file values.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CveSearchSettings(BaseSettings):
    """CVE-Search service settings.

    Instances are frozen: a service built from one keeps seeing the same
    values for its whole lifetime.
    """

    model_config = SettingsConfigDict(
        env_prefix="CVE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    base_url: str | None = Field(
        default=None,
        description="CVE-Search base URL (the API lives under /api). Unset disables lookups.",
    )
    skip_tls_verify: bool = Field(
        default=False,
        description="Skip TLS certificate and hostname verification",
    )
    timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="API request timeout in seconds",
    )
    default_limit: int = Field(
        default=50,
        ge=1,
        description="Default number of CVEs requested from limit-aware endpoints",
    )
    max_concurrency: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum concurrent lookups when scanning an inventory",
    )
    strict_cpe_parsing: bool = Field(
        default=False,
        description="Raise on malformed vulnerable configuration CPE strings instead of skipping",
    )
    abort_on_malformed_batch: bool = Field(
        default=True,
        description="Discard a whole result batch when one entry is not a JSON object",
    )

    @field_validator("base_url", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat an empty or whitespace-only URL as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_configured(self) -> bool:
        """Check if a service URL is available."""
        return bool(self.base_url)


class Settings(BaseSettings):
    """Main application settings.

    All settings can be configured via environment variables or .env.
    CVE-Search settings read CVE_SEARCH_BASE_URL and friends; the nested
    form CVE_SEARCH__BASE_URL is also accepted.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    cve_search: CveSearchSettings = Field(default_factory=CveSearchSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings instance, cached for reuse.
    """
    return Settings()
