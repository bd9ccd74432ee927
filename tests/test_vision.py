"""Tests for image helpers, error classification and the Gemini wrapper."""

import base64
import io
from types import SimpleNamespace

import httpx
import pytest
from google.genai import errors, types
from PIL import Image

from stylesense.config import Settings, has_elevated_credential, resolve_api_key
from stylesense.core.errors import (
    CredentialError,
    QuotaExceededError,
    UpstreamError,
    ValidationError,
    is_quota_error,
)
from stylesense.core.images import decode_data_uri, prepare_upload, split_data_uri, to_data_uri
from stylesense.core.tryon import GarmentLayer, TryOnCompositor
from stylesense.core.vision import (
    GeminiClient,
    create_gemini_client,
    extract_image,
    image_part,
    translate_errors,
)


class TestDataUris:
    """Data URI parsing."""

    def test_split_with_prefix(self):
        assert split_data_uri("data:image/png;base64,QUJD") == ("image/png", "QUJD")

    def test_split_bare_base64(self):
        assert split_data_uri("QUJD") == ("image/jpeg", "QUJD")

    def test_decode(self):
        assert decode_data_uri(to_data_uri(b"ABC", "image/webp")) == (b"ABC", "image/webp")


class TestPrepareUpload:
    """Uploaded photos are downscaled to at most 1024px."""

    def _image_bytes(self, size):
        output = io.BytesIO()
        Image.new("RGB", size, color=(10, 20, 30)).save(output, format="PNG")
        return output.getvalue()

    def _decoded_size(self, data_uri):
        mime_type, payload = split_data_uri(data_uri)
        assert mime_type == "image/jpeg"
        return Image.open(io.BytesIO(base64.b64decode(payload))).size

    def test_wide_image(self):
        assert self._decoded_size(prepare_upload(self._image_bytes((2048, 1024)))) == (1024, 512)

    def test_tall_image(self):
        assert self._decoded_size(prepare_upload(self._image_bytes((600, 1200)))) == (512, 1024)

    def test_small_image_not_upscaled(self, png_bytes):
        assert self._decoded_size(prepare_upload(png_bytes)) == (8, 12)

    def test_garbage(self):
        with pytest.raises(ValidationError):
            prepare_upload(b"definitely not an image")


class TestQuotaDetection:
    """Quota conditions are told apart from everything else."""

    class FakeApiError(Exception):
        def __init__(self, code, status, message):
            super().__init__(message)
            self.code = code
            self.status = status

    def test_http_429(self):
        assert is_quota_error(self.FakeApiError(429, None, "Too many requests"))

    def test_resource_exhausted_status(self):
        assert is_quota_error(self.FakeApiError(400, "RESOURCE_EXHAUSTED", "nope"))

    @pytest.mark.parametrize("message", [
        "Quota exceeded for metric generate_content_requests",
        "429 RESOURCE_EXHAUSTED",
        "Resource exhausted (e.g. check quota).",
    ])
    def test_message_matching(self, message):
        assert is_quota_error(Exception(message))

    def test_other_errors(self):
        assert not is_quota_error(self.FakeApiError(500, "INTERNAL", "Internal error"))
        assert not is_quota_error(ValueError("bad input"))

    def test_typed_error(self):
        assert is_quota_error(QuotaExceededError())


class TestCredentials:
    """Explicit credential resolution."""

    def test_override_wins(self):
        settings = Settings(gemini_api_key="free", gemini_pro_api_key="pro")
        assert resolve_api_key(settings, "mine") == "mine"

    def test_pro_before_default(self):
        assert resolve_api_key(Settings(gemini_api_key="free", gemini_pro_api_key="pro")) == "pro"
        assert resolve_api_key(Settings(gemini_api_key="free")) == "free"

    def test_elevated(self):
        assert not has_elevated_credential(Settings(gemini_api_key="free"))
        assert not has_elevated_credential(Settings(gemini_api_key="free"), "   ")
        assert has_elevated_credential(Settings(gemini_api_key="free"), "mine")
        assert has_elevated_credential(Settings(gemini_pro_api_key="pro"))

    def test_missing_key(self):
        with pytest.raises(CredentialError):
            create_gemini_client(Settings())

    def test_client_uses_settings(self):
        client = create_gemini_client(
            Settings(gemini_api_key="test-key", image_model="img-model", tryon_aspect_ratio="1:1")
        )
        assert client.image_model == "img-model"
        assert client.aspect_ratio == "1:1"


class TestSettings:
    """Environment-driven settings."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("API_URL", "http://api.internal:9000")
        monkeypatch.setenv("GEMINI_PRO_API_KEY", "pro")

        settings = Settings.from_env()

        assert settings.api_url == "http://api.internal:9000"
        assert settings.to_dict()["gemini_pro_configured"] is True
        assert "pro" not in settings.to_dict().values()


class TestExtractImage:
    """Pulling the image out of a composition response."""

    def _response(self, parts):
        return types.GenerateContentResponse(
            candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
        )

    def test_first_inline_image(self):
        response = self._response([
            types.Part.from_text(text="Here you go"),
            types.Part.from_bytes(data=b"PNGDATA", mime_type="image/png"),
        ])

        assert extract_image(response) == to_data_uri(b"PNGDATA", "image/png")

    def test_text_only(self):
        assert extract_image(self._response([types.Part.from_text(text="Sorry")])) is None

    def test_no_candidates(self):
        assert extract_image(types.GenerateContentResponse(candidates=[])) is None


def quota_error():
    return errors.ClientError(429, {
        "error": {"code": 429, "message": "Resource has been exhausted", "status": "RESOURCE_EXHAUSTED"}
    })


def server_error():
    return errors.ServerError(500, {
        "error": {"code": 500, "message": "Internal error", "status": "INTERNAL"}
    })


class TestTranslateErrors:
    """SDK and transport failures become typed errors."""

    def test_client_quota_error(self):
        with pytest.raises(QuotaExceededError) as exc_info:
            with translate_errors("Virtual try-on"):
                raise quota_error()

        assert isinstance(exc_info.value.__cause__, errors.ClientError)

    def test_server_error(self):
        with pytest.raises(UpstreamError) as exc_info:
            with translate_errors("Virtual try-on"):
                raise server_error()

        assert "Virtual try-on failed" in exc_info.value.message

    def test_client_error_other_than_quota(self):
        error = errors.ClientError(400, {
            "error": {"code": 400, "message": "Invalid argument", "status": "INVALID_ARGUMENT"}
        })

        with pytest.raises(UpstreamError):
            with translate_errors("Garment analysis"):
                raise error

    def test_transport_error(self):
        with pytest.raises(UpstreamError):
            with translate_errors("Text generation"):
                raise httpx.ConnectError("connection refused")

    def test_other_exceptions_pass_through(self):
        with pytest.raises(KeyError):
            with translate_errors("Text generation"):
                raise KeyError("boom")


class TestImagePart:
    """Images are sent to Gemini as raw bytes."""

    def test_raw_bytes(self):
        part = image_part(to_data_uri(b"garment", "image/webp"))

        assert part.inline_data.data == b"garment"
        assert part.inline_data.mime_type == "image/webp"

    @pytest.mark.parametrize("value", ["data:image/jpeg;base64,USERPHOTO", "data:image/jpeg;base64,"])
    def test_bad_data_is_validation_error(self, value):
        with pytest.raises(ValidationError):
            image_part(value)


class TestGeminiClientErrors:
    """GeminiClient surfaces SDK failures as typed errors."""

    def _client(self, sync_call=None, async_call=None):
        client = GeminiClient(api_key="test-key")
        client.client = SimpleNamespace(
            models=SimpleNamespace(generate_content=sync_call),
            aio=SimpleNamespace(models=SimpleNamespace(generate_content=async_call)),
        )
        return client

    def test_generate_text_quota(self):
        def generate_content(**kwargs):
            raise quota_error()

        with pytest.raises(QuotaExceededError):
            self._client(sync_call=generate_content).generate_text("What goes with denim?")

    def test_generate_json_server_error(self, png_data_uri):
        def generate_content(**kwargs):
            raise server_error()

        with pytest.raises(UpstreamError):
            self._client(sync_call=generate_content).generate_json("Classify", png_data_uri, None)

    @pytest.mark.asyncio
    async def test_compositor_retries_sdk_quota_errors(self, png_data_uri, fake_sleep):
        """A 429 from the SDK drives the compositor's retry loop."""
        calls = []

        async def generate_content(**kwargs):
            calls.append(kwargs["model"])
            raise quota_error()

        compositor = TryOnCompositor(self._client(async_call=generate_content), sleep=fake_sleep)
        layer = GarmentLayer(image=png_data_uri, category="top", color="red")

        with pytest.raises(QuotaExceededError):
            await compositor.run(png_data_uri, [layer])

        assert len(calls) == 3
        assert fake_sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_bad_photo_never_reaches_the_sdk(self, png_data_uri):
        calls = []

        async def generate_content(**kwargs):
            calls.append(kwargs)

        client = self._client(async_call=generate_content)

        with pytest.raises(ValidationError):
            await client.compose_images("data:image/jpeg;base64,USERPHOTO", png_data_uri, "Layer it")

        assert calls == []
