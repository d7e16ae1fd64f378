"""
Configuration settings for the iCondo Parcel Service.

This module handles application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "iCondo Parcel Service"
    api_version: str = "v1"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # Database Configuration
    database_url: str = "sqlite+aiosqlite:///./icondo.db"
    db_echo: bool = False
    db_pool_size: int = 20
    db_max_overflow: int = 10

    # Security Configuration (JWT)
    secret_key: str = "change-this-secret-key-in-production-min-32-chars"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720
    bcrypt_rounds: int = 12

    # Photo uploads
    upload_dir: str = "uploads"
    uploads_url_prefix: str = "/uploads"
    max_upload_bytes: int = 10 * 1024 * 1024

    # History pagination
    history_default_limit: int = 50
    history_max_limit: int = 200

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
