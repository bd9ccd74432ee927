"""FastAPI dependencies: settings, store and per-request AI components."""

from typing import Optional

from fastapi import Depends, Header, Request

from stylesense.config import Settings, get_settings
from stylesense.core.classifier import GarmentClassifier
from stylesense.core.stylist import StylistAdvisor
from stylesense.core.tryon import TryOnCompositor
from stylesense.core.vision import GeminiClient, create_gemini_client
from stylesense.db.store import GarmentStore


def get_store(request: Request) -> GarmentStore:
    """The store created at startup."""
    return request.app.state.store


def get_api_key_override(x_api_key: Optional[str] = Header(None)) -> Optional[str]:
    """Higher-tier Gemini key supplied by the client, if any."""
    return x_api_key


def get_gemini_client(
    settings: Settings = Depends(get_settings),
    override_key: Optional[str] = Depends(get_api_key_override),
) -> GeminiClient:
    return create_gemini_client(settings, override_key)


def get_classifier(client: GeminiClient = Depends(get_gemini_client)) -> GarmentClassifier:
    return GarmentClassifier(client)


def get_stylist(client: GeminiClient = Depends(get_gemini_client)) -> StylistAdvisor:
    return StylistAdvisor(client)


def get_compositor(client: GeminiClient = Depends(get_gemini_client)) -> TryOnCompositor:
    return TryOnCompositor(client)
