"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Names required by the AWS backend (bucket, metadata
table, AppSync API, decommission queue) are validated at load time.
"""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    The in-memory backend needs no configuration and is the default so the
    API and tests run without AWS credentials.
    """

    # App
    app_name: str = "tablefed"
    app_version: str = "0.4.0"
    debug: bool = False

    # Backend: "memory" (in-process, local runs and tests) or "aws"
    backend: str = "memory"
    aws_region: str = "us-east-1"
    aws_endpoint_url: str | None = None  # LocalStack / moto server

    # Blob store (fragments and published documents)
    config_bucket: str | None = None

    # Metadata store and physical per-table storage
    tables_table_name: str | None = None
    physical_table_prefix: str = "tablefed-data-"

    # Managed GraphQL engine (AppSync)
    appsync_api_id: str | None = None
    appsync_service_role_arn: str | None = None

    # Decommission queue
    decommission_queue_url: str | None = None
    dead_letter_queue_url: str | None = None
    queue_wait_seconds: int = 20
    decommission_max_receives: int = 5
    decommission_backoff_base_seconds: int = 30
    decommission_backoff_max_seconds: int = 900

    # Tenant credential header and derived marker length (hex chars of SHA-256)
    api_key_header_name: str = "X-Api-Key"
    tenant_marker_length: int = 16

    # Schema pipeline: "inline" runs synthesize/publish/provision in the
    # request; "notification" relies on the blob-store object notification.
    schema_sync_mode: str | None = None
    schema_poll_interval_seconds: float = 2.0
    schema_poll_max_attempts: int = 30

    # HTTP
    allowed_origins: str = "*"
    request_id_header: str = "X-Request-ID"
    rate_limit_writes: str = "60/minute"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backend(self) -> "Settings":
        """Validate backend choice and the names the AWS backend requires."""
        if self.backend == "aws":
            missing = [
                name
                for name in (
                    "config_bucket",
                    "tables_table_name",
                    "appsync_api_id",
                    "appsync_service_role_arn",
                    "decommission_queue_url",
                )
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(
                    "backend 'aws' requires: "
                    + ", ".join(n.upper() for n in missing)
                    + ". Set in environment or .env file."
                )
        elif self.backend != "memory":
            raise ValueError(
                f"Invalid backend '{self.backend}'. Must be one of: 'memory', 'aws'"
            )
        if self.schema_sync_mode is None:
            self.schema_sync_mode = "inline" if self.backend == "memory" else "notification"
        elif self.schema_sync_mode not in ("inline", "notification"):
            raise ValueError(
                f"schema_sync_mode must be 'inline' or 'notification', got: {self.schema_sync_mode!r}"
            )
        if not 8 <= self.tenant_marker_length <= 64:
            raise ValueError("tenant_marker_length must be between 8 and 64")
        if self.schema_poll_max_attempts < 1:
            raise ValueError("schema_poll_max_attempts must be at least 1")
        return self

    @property
    def inline_schema_sync(self) -> bool:
        """True when the orchestrator runs the schema pipeline itself."""
        return self.schema_sync_mode == "inline"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    In tests, call get_settings.cache_clear() before overriding env vars so
    the next get_settings() uses the new values.
    """
    return Settings()
