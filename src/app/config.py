"""Configuration management using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ArcGIS Converter"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # ArcGIS
    portal_url: str = "https://www.arcgis.com"   # hosts Web Map items
    arcgis_token: Optional[str] = None
    request_timeout: float = 30.0                # seconds, per request
    out_sr: int = 4326                           # query output spatial reference
    user_agent: str = "ArcGIS-Converter/0.1.0"

    # Feature worker (0 = event loop's default executor)
    worker_processes: int = 0

    # Status messages kept per session (oldest dropped first)
    status_history: int = 200


settings = Settings()
