"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        mongodb_uri: MongoDB connection string
        mongodb_db: Database holding the patient collection
        patients_collection: Name of the patient document collection
        store_backend: "mongo" for MongoDB, "memory" for a process-local store
        secret_key: Secret key for JWT token encoding (required, no default)
        algorithm: Algorithm used for JWT encoding (typically HS256)
        access_token_expire_minutes: Access token expiration time in minutes

        # Face login settings
        mistral_api_key: API key for the hosted face verification model
        face_model: Vision model used to compare two face images
        face_confidence_threshold: Minimum confidence for a face match to count
        face_login_case_insensitive: Whether face login resolves IDs ignoring case
        face_oracle_timeout_ms: Timeout for a single face verification call

        # Record settings
        normalize_replace_legacy_bills: Replace old-format bill lists with samples on read
        max_image_bytes: Largest accepted face/signature upload

        # Frontend settings
        frontend_url: URL of the frontend application
    """
    # Database settings
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "medicloud"
    patients_collection: str = "patients"
    store_backend: str = "mongo"

    # JWT settings
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Face login settings
    mistral_api_key: Optional[str] = None
    face_model: str = "pixtral-large-latest"
    face_confidence_threshold: float = 0.6
    face_login_case_insensitive: bool = False
    face_oracle_timeout_ms: int = 30000

    # Record settings
    normalize_replace_legacy_bills: bool = False
    max_image_bytes: int = 5 * 1024 * 1024

    # Frontend settings
    frontend_url: str = "http://localhost:3000"

    log_level: str = "INFO"

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

# Create settings instance
settings = Settings()
