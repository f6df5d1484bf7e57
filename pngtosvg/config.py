"""
Service settings, read from ``PNGTOSVG_*`` environment variables.

List settings such as ``PNGTOSVG_CORS_ORIGINS`` take a JSON array.
"""

from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "https://pngtosvg.com",
    "http://pngtosvg.com",
    "https://api.pngtosvg.com",
    "http://api.pngtosvg.com",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PNGTOSVG_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # API
    API_TITLE: str = "PNG to SVG API"
    API_VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    # plain PORT is honoured for hosting platforms that inject it
    PORT: int = Field(default=3001, validation_alias=AliasChoices("PNGTOSVG_PORT", "PORT"))
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    CORS_METHODS: List[str] = Field(default_factory=lambda: ["GET", "POST"])
    CORS_HEADERS: List[str] = Field(default_factory=lambda: ["Content-Type"])

    # Uploads
    MAX_FILE_SIZE: int = Field(default=10 * 1024 * 1024, description="Max upload size in bytes")
    MAX_BULK_FILES: int = Field(default=20, description="Max files per bulk request")
    TEMP_DIR: str = Field(default="", description="Directory for temporary bitmaps (system default when empty)")


def load_settings() -> Settings:
    return Settings()
