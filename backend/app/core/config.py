"""Module: config."""

from pydantic_settings import BaseSettings

# Centralized runtime configuration loaded from environment variables.
class Settings(BaseSettings):
    # Primary SQLAlchemy connection string for the backend database.
    database_url: str

    # Signing key and algorithm for access/refresh JWTs.
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60
    refresh_token_expire_days: int = 7

    # Content root for uploaded images, served read-only under /uploads.
    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    log_level: str = "INFO"

    # Configure pydantic-settings to also load values from local .env file.
    class Config:
        env_file = ".env"

# Global settings instance imported by app modules at runtime.
settings = Settings()
