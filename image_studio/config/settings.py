"""Application configuration."""
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from image_studio.core.pricing import DEFAULT_MODEL
from image_studio.sdk.gemini_client import GEMINI_OPENAI_BASE_URL


class Settings(BaseSettings):
    """Application settings, read from the environment or ``.env``."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application
    app_name: str = "Image Studio API"
    app_version: str = "0.1.0"

    # Generative model
    google_generative_ai_api_key: str = ""
    gemini_base_url: str = GEMINI_OPENAI_BASE_URL
    default_model: str = DEFAULT_MODEL
    generation_timeout_seconds: float = 120.0

    # Usage accounting
    pricing_config_path: Optional[str] = None
    ledger_db_path: Optional[str] = None
    seed_demo_data: bool = False
    usage_endpoint_url: Optional[str] = None
    usage_report_timeout_seconds: float = 5.0

    # File Upload
    max_upload_size_mb: int = 10

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings()
