"""Conversational styling advice over the user's wardrobe."""

import logging
from typing import Iterable, Protocol

from .errors import QuotaExceededError, UpstreamError
from .vision import GeminiClient

logger = logging.getLogger(__name__)


QUOTA_ADVICE_MESSAGE = (
    "I'm getting a lot of styling requests right now and hit my usage limit. "
    "Give me a minute and ask again, or connect a higher-tier API key for "
    "uninterrupted advice."
)

STYLIST_PROMPT = """You are StyleSense, an expert AI fashion stylist.
The user's current wardrobe consists of:
{wardrobe}

User Query: "{query}"

Suggest a complete outfit from their wardrobe or recommend what they should buy to "complete the look".
Provide a "Style Score" (1-100) and "Cost-Per-Wear" prediction.
Be encouraging and fashion-forward."""


class WardrobeEntry(Protocol):
    category: str
    color: str
    tags: str


def build_wardrobe_context(wardrobe: Iterable[WardrobeEntry]) -> str:
    """One line per garment; images are never sent."""
    lines = [f"- {item.category} ({item.color}): {item.tags}" for item in wardrobe]
    return "\n".join(lines) if lines else "- (the wardrobe is empty)"


class StylistAdvisor:
    """Answer styling questions with the full wardrobe as context."""

    def __init__(self, client: GeminiClient):
        self.client = client

    def advise(self, query: str, wardrobe: Iterable[WardrobeEntry]) -> str:
        """
        Get outfit advice for a query.

        Quota failures come back as a canned message instead of an error.
        """
        prompt = STYLIST_PROMPT.format(
            wardrobe=build_wardrobe_context(wardrobe),
            query=query,
        )

        try:
            advice = self.client.generate_text(prompt)
        except QuotaExceededError:
            logger.warning("Stylist quota exceeded, returning canned advice")
            return QUOTA_ADVICE_MESSAGE

        if not advice.strip():
            raise UpstreamError("No advice received from AI")
        return advice
