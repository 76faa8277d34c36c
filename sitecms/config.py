"""
Configuration management for the content API.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Site CMS API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Content management backend for galleries, offerings, team and partners"

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    # Database Configuration
    # Empty value falls back to an in-memory SQLite database
    DATABASE_URL: str = ""
    # Create tables on startup (local development only, Alembic owns the schema otherwise)
    DB_CREATE_TABLES: bool = False

    # Cloudinary Configuration
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_MAX_RETRIES: int = 3

    # Upload Configuration
    UPLOAD_FOLDER: str = "gallery_images"
    GALLERY_UPLOAD_FOLDER_PREFIX: str = "galleries"
    MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024  # 20MB
    CONVERT_UPLOADS_TO_WEBP: bool = True

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
