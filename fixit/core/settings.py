"""
Core settings and environment variables for FixIt Civic Hub.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "FixIt Civic Hub"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_STORAGE_BUCKET: Optional[str] = None

    # Outbound email
    # - EMAIL_PROVIDER: "brevo" (transactional API) or "log" (no delivery, log only)
    # - BREVO_API_KEY: required for "brevo"; without it the log provider is used
    EMAIL_PROVIDER: str = "log"
    BREVO_API_KEY: Optional[str] = None
    EMAIL_SENDER_ADDRESS: str = "no-reply@fixit.local"
    EMAIL_SENDER_NAME: str = "FixIt Civic Hub"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    # Reputation
    VERIFIED_REPORT_POINTS: int = 10
    RESOLVED_REPORT_POINTS: int = 25

    # Reports
    MAX_REPORT_IMAGES: int = 5
    DEFAULT_REMOVAL_REASON: str = (
        "This report violated our community guidelines and was flagged "
        "by community members."
    )

    # Users counted as "recently active" in admin statistics
    ACTIVE_USER_WINDOW_DAYS: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origin_list(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
