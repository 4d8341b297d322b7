"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Missing Azure credentials do not stop the process. Operations that need
the unconfigured service answer with a 500 "not configured" error instead.
Mock modes enable local development without external services.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Field names map to upper-case env vars (STORAGE_ACCOUNT_NAME, ...).
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Video API"
    port: int = Field(
        default=3000,
        description="Port used when running the module directly."
    )

    # Blob Storage Configuration
    storage_account_name: str = Field(
        default="",
        description="Azure storage account name"
    )
    storage_account_key: str = Field(
        default="",
        description="Azure storage account key. Signs SAS tokens and authenticates blob calls."
    )
    storage_container_name: str = Field(
        default="videos",
        description="Blob container holding the uploaded videos"
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory blobs and mock SAS URLs. Enables local dev without a storage account."
    )

    # Cosmos DB Configuration
    cosmos_db_connection: str = Field(
        default="",
        description="Cosmos DB connection string (AccountEndpoint=...;AccountKey=...;)"
    )
    cosmos_database_name: str = Field(
        default="VideoDB",
        description="Cosmos database holding the metadata container"
    )
    cosmos_container_name: str = Field(
        default="Videos",
        description="Cosmos container with one document per video, partitioned by /id"
    )
    cosmos_mock_mode: bool = Field(
        default=False,
        description="Use in-memory metadata store. Enables local dev without Cosmos DB."
    )

    # Application Behavior
    upload_sas_ttl_minutes: int = Field(
        default=10,
        gt=0,
        description="Lifetime of write (create+write) SAS URLs"
    )
    download_sas_ttl_minutes: int = Field(
        default=10,
        ge=5,
        le=10,
        description="Lifetime of read SAS URLs, kept between 5 and 10 minutes"
    )
    verify_blob_on_confirm: bool = Field(
        default=False,
        description="Reject confirm-upload with 404 when the blob is not in storage."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def storage_configured(self) -> bool:
        """True when blob operations can run (real credentials or mock mode)."""
        if self.storage_mock_mode:
            return True
        return bool(self.storage_account_name and self.storage_account_key)

    @property
    def cosmos_configured(self) -> bool:
        """True when metadata operations can run (connection string or mock mode)."""
        if self.cosmos_mock_mode:
            return True
        return bool(self.cosmos_db_connection)

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because a missing
        service only degrades the operations that depend on it.
        """
        missing = []

        if not self.storage_mock_mode:
            if not self.storage_account_name:
                missing.append("STORAGE_ACCOUNT_NAME")
            if not self.storage_account_key:
                missing.append("STORAGE_ACCOUNT_KEY")

        if not self.cosmos_mock_mode and not self.cosmos_db_connection:
            missing.append("COSMOS_DB_CONNECTION")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    This is safe because settings don't change during runtime.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
