"""Error types shared by the StyleSense components.

Each error carries a ``kind`` and an HTTP ``status_code`` so the API layer can
turn it into a typed ``{"error", "kind"}`` response without inspecting messages.
"""

from typing import Optional


class StyleSenseError(Exception):
    """Base class for all StyleSense failures."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class ValidationError(StyleSenseError):
    """Malformed input or an AI response that does not match its schema."""

    kind = "validation"
    status_code = 422


class QuotaExceededError(StyleSenseError):
    """The AI service reported a quota or rate-limit condition."""

    kind = "quota_exceeded"
    status_code = 429

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Gemini quota exceeded. Connect a higher-tier API key and try again."
        )


class UpstreamError(StyleSenseError):
    """Any other failure talking to the AI service."""

    kind = "upstream"
    status_code = 502


class StoreError(StyleSenseError):
    """Persistence failure."""

    kind = "store"
    status_code = 500


class GarmentNotFoundError(StyleSenseError):
    kind = "not_found"
    status_code = 404

    def __init__(self, garment_id: int):
        super().__init__(f"Garment {garment_id} not found")
        self.garment_id = garment_id


class CredentialError(StyleSenseError):
    kind = "credential_missing"
    status_code = 503


class ConfirmationRequiredError(StyleSenseError):
    """Multi-layer try-on needs explicit confirmation without a higher-tier key."""

    kind = "confirmation_required"
    status_code = 428


QUOTA_MARKERS = (
    "quota exceeded",
    "exceeded your current quota",
    "resource exhausted",
    "resource_exhausted",
    "rate limit",
)


def is_quota_error(exc: BaseException) -> bool:
    """
    Check whether an exception signals a quota / rate-limit condition.

    Looks at the status code and status attributes exposed by the Gemini SDK
    errors, then falls back to matching the message text.
    """
    if isinstance(exc, QuotaExceededError):
        return True

    if getattr(exc, "code", None) == 429:
        return True

    status = getattr(exc, "status", None)
    if isinstance(status, str) and status.upper() == "RESOURCE_EXHAUSTED":
        return True

    message = str(exc).lower()
    return any(marker in message for marker in QUOTA_MARKERS)
