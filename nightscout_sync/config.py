"""Client configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote store
    nightscout_url: str = ""
    nightscout_api_secret: str = ""  # Empty means unauthenticated mode

    # Transport policy for reads, uploads and deletes
    nightscout_request_timeout_seconds: float = 60.0
    nightscout_retry_count: int = 1  # Immediate retries, no backoff

    # Glucose entries requested per fetch
    nightscout_glucose_fetch_count: int = 1600

    # Provenance markers used by the self-exclusion filters
    nightscout_manual_marker: str = "iAPS"
    nightscout_local_marker: str = "freeaps-x"
    nightscout_remote_marker: str = "remote"

    # Local profile storage
    storage_root: str = "./data"

    # Logging
    log_format: str = "json"  # 'json' or 'text'
    log_level: str = "INFO"
    service_name: str = "nightscout-sync"


settings = Settings()
