"""
Application settings and configuration management.
"""
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""
    # Campaign API
    VAPI_BASE_URL: str = "https://api.vapi.ai"
    API_TIMEOUT_SECONDS: float = 30.0
    API_MAX_RETRIES: int = 2
    API_RETRY_BACKOFF_SECONDS: float = 1.0

    # Phone normalization
    DEFAULT_COUNTRY: str = "US"

    @field_validator("DEFAULT_COUNTRY", mode="before")
    def normalize_country(cls, v: Optional[str]) -> str:
        """Region codes are upper-case ISO 3166-1 alpha-2."""
        if not v:
            return "US"
        return str(v).strip().upper()

    # Validation chunking
    CHUNK_SIZE: int = 1000
    CHUNK_YIELD_INTERVAL: float = 0.05  # seconds
    LARGE_DATASET_THRESHOLD: int = 10_000
    USE_BACKGROUND_WORKER: bool = True

    # Upload batching
    UPLOAD_BATCH_SIZE: int = 1000
    DELAY_BETWEEN_BATCHES: float = 2.0  # seconds

    # Input limits
    MAX_ROWS: int = 100_000
    MAX_FILE_SIZE: int = 50 * 1024 * 1024  # 50MB

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        """Pydantic config."""
        case_sensitive = True
        env_file = ".env"


# Create singleton settings instance
settings = Settings()
