from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "dealwire"
    db_username: str = "dealwire"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_connect_timeout_seconds: int = 5

    extraction_provider: str = "openai"
    extraction_api_key: str = ""
    extraction_base_url: str | None = None
    extraction_model_name: str = "gpt-4o-mini"
    extraction_temperature: float = 0.0
    extraction_timeout_seconds: int = 30
    extraction_max_retries: int = 0

    scheduler_enabled: bool = True
    scheduler_poll_interval_seconds: int = 60
    scheduler_batch_size: int = 5
    retry_interval_seconds: int = 600
    retry_batch_size: int = 3
    max_auto_attempts: int = 3
    stale_processing_seconds: int = 900

    api_host: str = "0.0.0.0"
    api_port: int = 8000
