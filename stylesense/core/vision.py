"""Google Gemini integration for classification, advice and try-on compositing."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import httpx
from google import genai
from google.genai import errors, types

from stylesense.config import Settings, resolve_api_key

from .errors import CredentialError, QuotaExceededError, UpstreamError, is_quota_error
from .images import decode_data_uri, to_data_uri

logger = logging.getLogger(__name__)


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise SDK and transport failures as StyleSense errors."""
    try:
        yield
    except errors.APIError as e:
        if is_quota_error(e):
            logger.warning(f"{operation}: quota exceeded ({e})")
            raise QuotaExceededError() from e
        raise UpstreamError(f"{operation} failed: {e}") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"{operation} failed: {e}") from e


def image_part(image_data: str) -> types.Part:
    """Build an inline image part from a data URI, sending only the raw bytes."""
    data, mime_type = decode_data_uri(image_data)
    return types.Part.from_bytes(data=data, mime_type=mime_type)


class GeminiClient:
    """Wrapper for Google Gemini API."""

    def __init__(
        self,
        api_key: str,
        text_model: str = "gemini-flash-latest",
        image_model: str = "gemini-2.5-flash-image",
        aspect_ratio: str = "3:4",
    ):
        if not api_key:
            raise CredentialError("GEMINI_API_KEY is required")

        self.client = genai.Client(api_key=api_key)
        self.text_model = text_model
        self.image_model = image_model
        self.aspect_ratio = aspect_ratio

    def generate_json(self, prompt: str, image_data: str, schema: types.Schema) -> str:
        """
        Analyze an image and return JSON text constrained by a response schema.

        Args:
            prompt: Instruction for the model
            image_data: Data URI (or bare base64) of the image
            schema: Structured-output schema the response must follow

        Returns:
            Raw JSON text from Gemini (may be empty)
        """
        with translate_errors("Garment analysis"):
            response = self.client.models.generate_content(
                model=self.text_model,
                contents=[
                    types.Content(
                        role="user",
                        parts=[
                            types.Part.from_text(text=prompt),
                            image_part(image_data),
                        ],
                    )
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
        return response.text or ""

    def generate_text(self, prompt: str) -> str:
        """Generate free text from a prompt."""
        with translate_errors("Text generation"):
            response = self.client.models.generate_content(
                model=self.text_model,
                contents=[
                    types.Content(role="user", parts=[types.Part.from_text(text=prompt)])
                ],
            )
        return response.text or ""

    async def compose_images(
        self,
        base_image: str,
        garment_image: str,
        instruction: str,
    ) -> Optional[str]:
        """
        Ask the image model to layer a garment onto a photo.

        Args:
            base_image: Current composite (data URI)
            garment_image: Garment photo (data URI)
            instruction: Compositing instruction

        Returns:
            The generated image as a PNG data URI, or None when the response
            carries no image payload
        """
        with translate_errors("Virtual try-on"):
            response = await self.client.aio.models.generate_content(
                model=self.image_model,
                contents=[
                    types.Content(
                        role="user",
                        parts=[
                            image_part(base_image),
                            image_part(garment_image),
                            types.Part.from_text(text=instruction),
                        ],
                    )
                ],
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                    image_config=types.ImageConfig(aspect_ratio=self.aspect_ratio),
                ),
            )
        return extract_image(response)


def extract_image(response: types.GenerateContentResponse) -> Optional[str]:
    """Return the first inline image of a response as a data URI."""
    if not response.candidates:
        return None

    content = response.candidates[0].content
    for part in (content.parts if content and content.parts else []):
        if part.inline_data and part.inline_data.data:
            return to_data_uri(part.inline_data.data, "image/png")
    return None


def create_gemini_client(settings: Settings, override_key: Optional[str] = None) -> GeminiClient:
    """Build a client for one request from settings and an optional override key."""
    api_key = resolve_api_key(settings, override_key)
    if not api_key:
        raise CredentialError(
            "No Gemini API key configured. Set GEMINI_API_KEY or send X-Api-Key."
        )

    return GeminiClient(
        api_key=api_key,
        text_model=settings.text_model,
        image_model=settings.image_model,
        aspect_ratio=settings.tryon_aspect_ratio,
    )
