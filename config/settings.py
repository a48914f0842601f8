"""Application settings."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Question Bank"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/questions.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10
    seed_defaults: bool = True

    # Uploads
    upload_dir: str = "./data/uploads"
    max_upload_mb: int = 10
    allowed_upload_types: List[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/heic",
        "image/heif",
    ]

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 100

    # Gemini
    gemini_default_model: str = "gemini-2.0-flash"
    ai_max_retries: int = 3

    # HTTP
    cors_origins: str = "*"
    upload_rate_limit: str = "30/minute"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
