"""Configuration management for the application."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_title: str = "TokenTax Records API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"

    # CORS Configuration
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Logging
    log_level: str = "INFO"

    # CSV handling
    csv_encoding: str = "utf-8-sig"  # tolerates a byte order mark
    max_records_per_upload: int = 100000


settings = Settings()
