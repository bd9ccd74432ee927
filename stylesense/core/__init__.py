"""Core modules for StyleSense."""

from .vision import GeminiClient, create_gemini_client
from .classifier import GarmentClassifier, GarmentAnalysis
from .stylist import StylistAdvisor
from .tryon import TryOnCompositor, TryOnSession, TryOnProgress, GarmentLayer

__all__ = [
    "GeminiClient",
    "create_gemini_client",
    "GarmentClassifier",
    "GarmentAnalysis",
    "StylistAdvisor",
    "TryOnCompositor",
    "TryOnSession",
    "TryOnProgress",
    "GarmentLayer",
]
