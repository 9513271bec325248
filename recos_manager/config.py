"""
Configuration settings for the Recos Manager backend.
Loads environment variables and provides application-wide settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Hosted data service (Supabase: PostgREST tables + GoTrue auth)
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""

    # Chat-completion provider (OpenAI-compatible)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_TIMEOUT: int = 60  # seconds

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Import Configuration
    MAX_FILE_SIZE: int = 20 * 1024 * 1024  # 20 MB
    SUPPORTED_IMPORT_TYPES: List[str] = [".pdf", ".pptx", ".ppt"]
    # Extracted text shorter than this is treated as a failed extraction
    IMPORT_MIN_TEXT_LENGTH: int = 10

    # Recommendation form
    SUGGESTION_LIMIT: int = 3

    # Export Configuration
    EXPORT_AUTHOR: str = "Recos Manager"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    def missing_data_service_settings(self) -> List[str]:
        """Names of the data-service credentials that are not configured."""
        return [
            name
            for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY")
            if not getattr(self, name).strip()
        ]


# Global settings instance
settings = Settings()
