"""Garment classification from photos using Gemini structured output."""

import logging

import pydantic
from google.genai import types
from pydantic import BaseModel, Field

from .errors import ValidationError
from .vision import GeminiClient

logger = logging.getLogger(__name__)


class GarmentAnalysis(BaseModel):
    """Attributes derived from a single garment photo."""

    category: str = Field(description="Category like top, bottom, shoes, accessory")
    color: str = Field(description="Primary color")
    tags: list[str] = Field(description="Descriptive tags like denim, casual, striped")

    def tags_text(self) -> str:
        """Tags joined the way the wardrobe table stores them."""
        return ", ".join(self.tags)


GARMENT_ANALYSIS_PROMPT = (
    "Analyze this clothing item. Identify the category (e.g., top, bottom, shoes, "
    "accessory), primary color, and descriptive tags (e.g., denim, casual, formal, "
    "striped)."
)

GARMENT_ANALYSIS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "category": types.Schema(type=types.Type.STRING),
        "color": types.Schema(type=types.Type.STRING),
        "tags": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
    },
    required=["category", "color", "tags"],
)


class GarmentClassifier:
    """Classify garment photos into category, color and tags."""

    def __init__(self, client: GeminiClient):
        self.client = client

    def classify(self, image_data: str) -> GarmentAnalysis:
        """
        Classify a garment photo.

        Args:
            image_data: Data URI of the garment photo

        Returns:
            GarmentAnalysis with all three fields present

        Raises:
            ValidationError: The response is empty or does not match the schema
            QuotaExceededError: Gemini reported a quota condition
        """
        raw_response = self.client.generate_json(
            GARMENT_ANALYSIS_PROMPT, image_data, GARMENT_ANALYSIS_SCHEMA
        )
        return self._parse_response(raw_response)

    def _parse_response(self, raw_response: str) -> GarmentAnalysis:
        """Validate the raw JSON against the analysis schema."""
        if not raw_response or not raw_response.strip():
            raise ValidationError("No analysis received from AI")

        try:
            analysis = GarmentAnalysis.model_validate_json(raw_response)
        except pydantic.ValidationError as e:
            logger.warning(f"Rejected garment analysis: {raw_response[:200]}")
            raise ValidationError(f"Invalid analysis result: {e.errors()[0]['msg']}") from e

        logger.info(f"Classified garment: {analysis.category}, {analysis.color}")
        return analysis
