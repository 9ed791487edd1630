"""VendSight configuration.

Loads from environment variables and a ``.env`` file via pydantic-settings.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime configuration for the ingestion API and CLI."""

    # ----- Storage (Supabase PostgREST) -----
    supabase_url: str = Field(
        default="",
        description="Supabase project URL. Empty means in-memory storage.",
    )
    supabase_service_key: str = Field(
        default="",
        description="Supabase service role key.",
    )

    # ----- Server -----
    host: str = Field(default="0.0.0.0", description="Bind host.")
    port: int = Field(default=8000, description="Bind port.")
    dev_mode: bool = Field(
        default=False,
        description="Dev mode: CORS wildcard and error detail in 500 responses.",
    )

    # ----- Uploads -----
    max_upload_mb: int = Field(
        default=10,
        description="Largest CSV accepted by POST /api/upload, in megabytes.",
    )

    # ----- Logging -----
    log_level: str = Field(default="INFO", description="Root log level for the CLI.")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "VENDSIGHT_",
        "extra": "ignore",
    }

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
