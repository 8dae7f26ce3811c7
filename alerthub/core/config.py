"""
AlertHub - Configuration Management
Centralized configuration using pydantic-settings.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    worker_log_level: Optional[str] = None

    # Database
    database_url: Optional[str] = None
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_echo: bool = False

    # Nominatim reverse geocoding
    nominatim_url: str = (
        "https://nominatim.openstreetmap.org/reverse"
        "?format=jsonv2&lat={latitude}&lon={longitude}&accept-language={language}"
    )
    geocoding_timeout_seconds: float = 15.0
    geocoding_user_agents: List[str] = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/110.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:110.0) Gecko/20100101 Firefox/110.0",
    ]

    # Enrichment worker
    enrichment_cultures: List[str] = ["el-GR", "en-US"]
    enrichment_workers: int = 2
    enrichment_poll_interval_seconds: float = 5.0
    enrichment_max_attempts: int = 5
    enrichment_retry_backoff_seconds: float = 30.0

    # Cultures
    default_culture: str = "en-US"
    supported_cultures: List[str] = ["en-US", "el-GR"]

    # Report images
    images_dir: str = "static/UploadDangerReportImages"
    images_mount_path: str = "/UploadDangerReportImages"
    placeholder_image_name: str = "no-image.png"

    # Access
    operator_role: str = "Civil_Protection"
    cors_origins: List[str] = ["*"]

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


# Global settings instance
settings = Settings()
