"""Application settings loaded from environment variables."""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """StyleSense settings."""

    # API keys
    gemini_api_key: Optional[str] = None
    gemini_pro_api_key: Optional[str] = None  # Higher-tier key, fewer quota errors

    # Models
    text_model: str = "gemini-flash-latest"
    image_model: str = "gemini-2.5-flash-image"
    tryon_aspect_ratio: str = "3:4"

    # Storage
    database_url: str = "sqlite:///stylesense.db"

    # HTTP
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    api_url: str = "http://localhost:8000"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY"),
            gemini_pro_api_key=os.getenv("GEMINI_PRO_API_KEY"),
            text_model=os.getenv("GEMINI_TEXT_MODEL", "gemini-flash-latest"),
            image_model=os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image"),
            tryon_aspect_ratio=os.getenv("TRYON_ASPECT_RATIO", "3:4"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///stylesense.db"),
            cors_origins=os.getenv("CORS_ORIGINS", "*").split(","),
            api_url=os.getenv("API_URL", "http://localhost:8000"),
        )

    def to_dict(self) -> dict:
        """Export settings as dict (without sensitive keys)."""
        return {
            "text_model": self.text_model,
            "image_model": self.image_model,
            "tryon_aspect_ratio": self.tryon_aspect_ratio,
            "database_url": self.database_url,
            "gemini_configured": bool(self.gemini_api_key),
            "gemini_pro_configured": bool(self.gemini_pro_api_key),
        }


@lru_cache
def get_settings() -> Settings:
    """Get application settings (cached)."""
    settings = Settings.from_env()
    logger.info(f"Settings loaded: {settings.to_dict()}")
    return settings


def resolve_api_key(settings: Settings, override: Optional[str] = None) -> Optional[str]:
    """
    Pick the Gemini key for a request.

    A per-request override wins, then the higher-tier key, then the default key.
    """
    if override and override.strip():
        return override.strip()
    return settings.gemini_pro_api_key or settings.gemini_api_key


def has_elevated_credential(settings: Settings, override: Optional[str] = None) -> bool:
    """Whether the request runs with a higher-tier key."""
    return bool((override and override.strip()) or settings.gemini_pro_api_key)
