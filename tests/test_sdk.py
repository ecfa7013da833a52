"""
Unit tests for SDK layer.

Tests the Gemini client wrapper and the usage reporters.
"""

import base64
from datetime import date
from types import SimpleNamespace
from unittest.mock import Mock, patch

import httpx
import openai
import pytest

from image_studio.core.accounting import UsageAccountingService
from image_studio.sdk.gemini_client import (
    ApiKeyMissingError,
    GeminiImageClient,
    GenerationError,
    describe_generation_error,
    to_data_url,
)
from image_studio.sdk.usage_reporter import HttpUsageReporter, LocalUsageReporter
from image_studio.storage.ledger import InMemoryUsageLedger

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
GENERATED_B64 = base64.b64encode(b"generated-image").decode("ascii")


def _response(message):
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class TestGeminiImageClient:
    """Test GeminiImageClient wrapper."""

    @patch('image_studio.sdk.gemini_client.OpenAI')
    def test_init_success(self, mock_openai_class):
        """Test successful initialization against the compatibility endpoint."""
        client = GeminiImageClient(api_key="key", base_url="https://example.test/openai/", timeout=30)

        mock_openai_class.assert_called_once_with(
            api_key="key", base_url="https://example.test/openai/", timeout=30
        )
        assert client.client is mock_openai_class.return_value

    def test_init_missing_api_key(self):
        """Test initialization fails without an API key."""
        with pytest.raises(ApiKeyMissingError, match="API key not configured"):
            GeminiImageClient(api_key="")
        with pytest.raises(ApiKeyMissingError):
            GeminiImageClient(api_key="   ")

    @patch('image_studio.sdk.gemini_client.OpenAI')
    def test_generate_image_sends_prompt_and_image(self, mock_openai_class):
        """Test the request carries the prompt and the image as a data URL."""
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response(
            SimpleNamespace(content=f"data:image/png;base64,{GENERATED_B64}")
        )
        mock_openai_class.return_value = mock_client

        client = GeminiImageClient(api_key="key")
        client.generate_image(PNG_BYTES, "image/png", "make it snow", "gemini-1.5-flash")

        _, kwargs = mock_client.chat.completions.create.call_args
        assert kwargs["model"] == "gemini-1.5-flash"
        content = kwargs["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": "make it snow"}
        assert content[1]["image_url"]["url"] == to_data_url(PNG_BYTES, "image/png")

    @patch('image_studio.sdk.gemini_client.OpenAI')
    def test_generate_image_from_images_field(self, mock_openai_class):
        """Test generated images returned as image_url parts."""
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response(SimpleNamespace(
            content="Here you go",
            images=[{"type": "image_url", "image_url": {"url": f"data:image/webp;base64,{GENERATED_B64}"}}],
        ))
        mock_openai_class.return_value = mock_client

        result = GeminiImageClient(api_key="key").generate_image(PNG_BYTES, "image/jpeg", "p", "m")

        # Same payload, labelled with the input image's MIME type
        assert result == f"data:image/jpeg;base64,{GENERATED_B64}"

    @patch('image_studio.sdk.gemini_client.OpenAI')
    def test_generate_image_without_image_in_response(self, mock_openai_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response(
            SimpleNamespace(content="I cannot edit this image.")
        )
        mock_openai_class.return_value = mock_client

        with pytest.raises(GenerationError, match="did not include an image"):
            GeminiImageClient(api_key="key").generate_image(PNG_BYTES, "image/png", "p", "m")

    @patch('image_studio.sdk.gemini_client.OpenAI')
    def test_sdk_errors_wrapped(self, mock_openai_class):
        """Test SDK failures surface as GenerationError with the cause attached."""
        sdk_error = openai.APIConnectionError(request=httpx.Request("POST", "https://example.test"))
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = sdk_error
        mock_openai_class.return_value = mock_client

        with pytest.raises(GenerationError) as exc_info:
            GeminiImageClient(api_key="key").generate_image(PNG_BYTES, "image/png", "p", "m")

        assert exc_info.value.__cause__ is sdk_error
        assert describe_generation_error(exc_info.value) == "Network error - please try again"

    @patch('image_studio.sdk.gemini_client.OpenAI')
    def test_describe_enhancement_returns_text(self, mock_openai_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response(
            SimpleNamespace(content="Brightened the shadows.")
        )
        mock_openai_class.return_value = mock_client

        text = GeminiImageClient(api_key="key").describe_enhancement(PNG_BYTES, "image/png", "p", "m")
        assert text == "Brightened the shadows."

    @patch('image_studio.sdk.gemini_client.OpenAI')
    def test_empty_choices(self, mock_openai_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        mock_openai_class.return_value = mock_client

        with pytest.raises(GenerationError, match="no choices"):
            GeminiImageClient(api_key="key").describe_enhancement(PNG_BYTES, "image/png", "p", "m")


class TestDescribeGenerationError:
    """Test user-facing error classification."""

    @pytest.mark.parametrize("message, expected", [
        ("API key not valid. Please pass a valid API key.", "Invalid API key or API key not set"),
        ("You exceeded your current quota", "API quota exceeded"),
        ("network unreachable", "Network error - please try again"),
        ("something odd", "Error: something odd"),
    ])
    def test_message_classification(self, message, expected):
        assert describe_generation_error(RuntimeError(message)) == expected

    def test_missing_key_error(self):
        assert describe_generation_error(ApiKeyMissingError("x")) == "Invalid API key or API key not set"

    def test_wrapped_generation_error_without_cause(self):
        error = GenerationError("Model response did not include an image")
        assert describe_generation_error(error) == "Error: Model response did not include an image"


class TestUsageReporters:
    """Test fire-and-forget usage reporting."""

    def test_local_reporter_records_usage(self):
        ledger = InMemoryUsageLedger()
        service = UsageAccountingService(ledger, clock=lambda: date(2024, 5, 1))

        assert LocalUsageReporter(service).report("gemini-1.5-flash", 1000, "image-generation") is True

        record = ledger.get("2024-05-01")
        assert record.requests == 1
        assert record.tokens_used == 1000

    def test_local_reporter_swallows_failures(self):
        service = Mock()
        service.record_usage.side_effect = RuntimeError("ledger unavailable")

        assert LocalUsageReporter(service).report("m", 10, "image-generation") is False

    @patch('image_studio.sdk.usage_reporter.httpx.post')
    def test_http_reporter_posts_usage(self, mock_post):
        mock_post.return_value = Mock()

        reporter = HttpUsageReporter("http://localhost:8000/usage", timeout=2.0)
        assert reporter.report("gemini-1.5-pro", 150, "image-generation") is True

        mock_post.assert_called_once_with(
            "http://localhost:8000/usage",
            json={"model": "gemini-1.5-pro", "tokensUsed": 150, "requestType": "image-generation"},
            timeout=2.0,
        )
        mock_post.return_value.raise_for_status.assert_called_once()

    @patch('image_studio.sdk.usage_reporter.httpx.post')
    def test_http_reporter_swallows_failures(self, mock_post):
        mock_post.side_effect = httpx.ConnectError("connection refused")

        assert HttpUsageReporter("http://localhost:8000/usage").report("m", 10, "t") is False

    def test_http_reporter_requires_url(self):
        with pytest.raises(ValueError, match="url is required"):
            HttpUsageReporter("")
