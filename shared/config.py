"""Shared configuration for all services."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis Configuration
    redis_url: str = "redis://localhost:6379"
    redis_key_prefix: str = "import"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    # Import Configuration
    import_chunk_size: int = 100
    import_max_payload_bytes: int = 200 * 1024 * 1024
    progress_flush_interval: int = 10
    worker_claim_ttl: int = 300  # seconds a worker claim lives without a refresh

    # Rate Limiting
    api_request_delay: int = 100  # milliseconds between downstream calls

    # Downstream object API
    downstream_base_url: str = "http://localhost:8080"
    downstream_timeout: int = 30

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)


settings = Settings()
