from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    document_provider: str = "gemini"

    gemini_api_key: str = ""
    gemini_api_url: str = "https://generativelanguage.googleapis.com"
    gemini_model: str = "gemini-2.5-flash-lite"
    gemini_timeout_seconds: float = Field(default=60.0, gt=0)
    gemini_temperature: float = 0.2
    gemini_max_output_tokens: int = 4096

    max_file_size_bytes: int = Field(default=20 * 1024 * 1024, gt=0)
    max_pdf_pages: int = Field(default=50, gt=0)
    min_image_width: int = 800
    min_image_height: int = 600
    min_pdf_width: int = 500
    min_pdf_height: int = 500
    pdf_engine: str = "pymupdf"

    poll_interval_seconds: float = Field(default=2.0, ge=0)
    poll_max_attempts: int = Field(default=10, gt=0)

    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_ms: int = Field(default=1000, ge=0)

    circuit_breaker_threshold: int = Field(default=5, gt=0)
    circuit_breaker_cooldown_seconds: float = Field(default=60.0, ge=0)

    request_timeout_seconds: float = Field(default=120.0, gt=0)
