"""Configuration management using Pydantic Settings"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SPENDSENSE_",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./spendsense.db"

    # Partner offers (defaults to the catalog bundled with the package)
    partner_offers_path: Optional[str] = None

    # Tone guardrail (defaults to the phrase list bundled with the package)
    prohibited_phrases_path: Optional[str] = None

    # Service
    service_name: str = "spendsense-core"
    log_level: str = "INFO"


settings = Settings()
