# ============================================================================
# FILE: app/config.py
# ============================================================================
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    """Application configuration using Pydantic BaseSettings"""

    # App settings
    APP_NAME: str = "VideoTube API"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./videotube.db"  # Change to PostgreSQL in production

    # Security
    ACCESS_TOKEN_SECRET: str = "access-secret-change-this-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_SECRET: str = "refresh-secret-change-this-in-production"
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    ALGORITHM: str = "HS256"
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Cloudinary
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # Uploads (sizes in bytes)
    UPLOAD_TEMP_DIR: str = "./public/temp"
    MAX_IMAGE_SIZE: int = 2 * 1024 * 1024
    MAX_VIDEO_SIZE: int = 100 * 1024 * 1024

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cookie_options(self) -> dict:
        """Keyword arguments for Response.set_cookie / delete_cookie"""
        return {
            "httponly": True,
            "secure": self.is_production,
            # Cross-site cookies need SameSite=None when the frontend lives elsewhere
            "samesite": "none" if self.is_production else "strict",
            "path": "/",
        }

settings = Settings()
