"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (and .env) with
sensible defaults. Pydantic validates types at startup, so a typo in a
boolean fails fast instead of silently disabling redirects.

Mock mode serves blobs from memory so the app runs without a storage
account. Point AZURE_MOCK_DIRECTORY at a folder laid out as
container/blob/name to give it something to serve.
"""

from functools import lru_cache
from typing import Any, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.blobs import DEFAULT_PREFIX, DEFAULT_PROCESSING_DIRECTIVES


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    For lists (like processing_directives), use comma-separated values.
    """

    # API Configuration
    api_title: str = "Azure Blob Reader"
    api_version: str = "v1"

    # Azure Blob Storage
    azure_connection_string: str = Field(
        default="",
        description=(
            "Connection string, or the name of an environment variable or "
            "named connection string that holds it."
        )
    )
    azure_blob_endpoint: Optional[str] = Field(
        default=None,
        description="Public endpoint for redirects (e.g. a CDN). Defaults to the account's blob endpoint."
    )
    azure_redirect_if_unmodified: bool = Field(
        default=True,
        description="Redirect requests without processing directives straight to blob storage."
    )
    azure_prefix: str = Field(
        default=DEFAULT_PREFIX,
        description="Virtual path prefix the reader serves."
    )
    azure_mock_mode: bool = Field(
        default=False,
        description="Use in-memory blob storage. Enables local dev without a storage account."
    )
    azure_mock_directory: Optional[str] = Field(
        default=None,
        description="Directory loaded into mock storage at startup; first-level folders are containers."
    )
    connection_strings: dict[str, str] = Field(
        default_factory=dict,
        description="Named connection strings as JSON, e.g. {\"images\": \"DefaultEndpointsProtocol=...\"}."
    )

    # Pipeline
    processing_directives: str = Field(
        default=",".join(sorted(DEFAULT_PROCESSING_DIRECTIVES)),
        description="Comma-separated query keys that ask for processed output (these disable the redirect)."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def processing_directives_list(self) -> list[str]:
        """Parse comma-separated directives into a list."""
        return [d.strip() for d in self.processing_directives.split(",") if d.strip()]

    def reader_options(self) -> dict[str, Any]:
        """
        Options for MountConfiguration.from_options(), in the reader's option names.

        Mock storage has no public URL, so in mock mode requests are only
        redirected when AZURE_BLOB_ENDPOINT names somewhere to send them.
        """
        redirect = self.azure_redirect_if_unmodified
        if self.azure_mock_mode and not self.azure_blob_endpoint:
            redirect = False

        return {
            "connectionstring": self.azure_connection_string,
            "blobstorageendpoint": self.azure_blob_endpoint,
            "redirectToBlobIfUnmodified": redirect,
            "prefix": self.azure_prefix,
        }

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        """
        missing = []

        if not self.azure_mock_mode and not self.azure_connection_string:
            missing.append("AZURE_CONNECTION_STRING")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings don't change during runtime, so load them once per process.
    For tests, call get_settings.cache_clear() to reset.
    """
    return Settings()
