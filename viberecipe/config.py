"""Application configuration using pydantic-settings."""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys (optional: callers normally send their own key per request)
    gemini_api_key: Optional[str] = None

    # Server
    port: int = 8080
    host: str = "0.0.0.0"

    # Logging
    log_level: str = "INFO"

    # HTTP Settings
    fetch_timeout: float = 15.0  # seconds, content fetcher
    image_check_timeout: float = 2.0  # seconds, HEAD check on candidate images
    tandoor_timeout: float = 30.0  # seconds, recipe-manager calls
    max_image_size: int = 10 * 1024 * 1024  # 10MB
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )

    # Rate Limiting
    rate_limit_per_hour: int = 100

    # CORS
    cors_origins: str = "*"  # Comma-separated origins or "*" for all

    # Gemini Settings
    gemini_model: str = "gemini-2.5-flash-lite"
    gemini_temperature: float = 0.2
    ai_timeout: float = 45.0  # seconds, hard bound on one extraction call

    # Recipe defaults
    default_description: str = "Imported via VibeRecipe"
    image_fallback_base_url: str = "https://pollinations.ai/p"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Get list of CORS origins."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]


# Global settings instance
settings = Settings()
