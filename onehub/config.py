"""
Configuration management for OneHub.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Database (Supabase Postgres DSN in production)
    database_url: str = ""

    # LLM
    groq_api_key: str = ""
    groq_model: str = "llama-3.1-8b-instant"
    llm_timeout: float = 30.0

    # Email server
    email_server_url: str = "http://localhost:3001"
    email_server_api_key: str = ""
    email_server_timeout: float = 60.0
    encryption_master_key: str = "loster-email-server-dev-key-change-in-prod"

    # API
    cors_origins: str = "http://localhost:5173"
    rate_limit_enabled: bool = True
    log_level: str = "INFO"

    # Bulk email
    bulk_batch_size: int = 5
    bulk_batch_delay_ms: int = 100
    bulk_max_recipients: int = 1000
    campaign_poll_interval: float = 2.0
    campaign_poll_timeout: float = 600.0

    # Requirements
    stale_after_days: int = 30
    extraction_confidence_threshold: int = 75

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars


settings = Settings()
