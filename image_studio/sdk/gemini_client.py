"""
Gemini image client.

Talks to Gemini through its OpenAI-compatible endpoint with the OpenAI SDK.
Sends one user message made of a text instruction and the uploaded image.
"""

import base64
import re
from typing import Any, Dict, List, Optional

import openai
import structlog
from openai import OpenAI

logger = structlog.get_logger(__name__)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

_DATA_URL_RE = re.compile(r"data:(?P<mime>image/[\w.+-]+);base64,(?P<data>[A-Za-z0-9+/=]+)")


class GenerationError(Exception):
    """Raised when the model call fails or returns nothing usable."""


class ApiKeyMissingError(GenerationError):
    """Raised when no API key is configured."""


def to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def describe_generation_error(error: Exception) -> str:
    """Turn a model failure into a message that is safe to show the user.

    A GenerationError wrapping an SDK exception is classified by its cause.
    """
    if isinstance(error, GenerationError) and error.__cause__ is not None:
        error = error.__cause__
    message = str(error)
    if isinstance(error, (ApiKeyMissingError, openai.AuthenticationError)) or "API key" in message:
        return "Invalid API key or API key not set"
    if isinstance(error, openai.RateLimitError) or "quota" in message:
        return "API quota exceeded"
    if isinstance(error, openai.APIConnectionError) or "network" in message:
        return "Network error - please try again"
    return f"Error: {message}"


def _image_url_of(item: Any) -> Optional[str]:
    if isinstance(item, dict):
        return (item.get("image_url") or {}).get("url")
    image_url = getattr(item, "image_url", None)
    if isinstance(image_url, dict):
        return image_url.get("url")
    return getattr(image_url, "url", None)


def _extract_image_base64(message: Any) -> Optional[str]:
    """Find the first generated image in a chat completion message.

    Image models return either an ``images`` list of ``image_url`` parts or
    inline data URLs in the text content.
    """
    for item in getattr(message, "images", None) or []:
        url = _image_url_of(item)
        if url:
            match = _DATA_URL_RE.search(url)
            if match:
                return match.group("data")

    content = getattr(message, "content", None)
    if isinstance(content, str):
        match = _DATA_URL_RE.search(content)
        if match:
            return match.group("data")
    return None


class GeminiImageClient:
    """Gemini client wrapper for image generation and enhancement.

    All model failures surface as GenerationError so callers have a single
    exception type to map to an HTTP response.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = GEMINI_OPENAI_BASE_URL,
        timeout: float = 120.0,
    ):
        """Initialize the client.

        Args:
            api_key: Google Generative AI API key (required)
            base_url: OpenAI-compatible endpoint of the Gemini API
            timeout: Request timeout in seconds

        Raises:
            ApiKeyMissingError: If api_key is missing/empty
        """
        if not api_key or not api_key.strip():
            raise ApiKeyMissingError("API key not configured")

        self.base_url = base_url
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    def _build_messages(self, prompt: str, image: bytes, mime_type: str) -> List[Dict[str, Any]]:
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": to_data_url(image, mime_type)}},
                ],
            }
        ]

    def _complete(self, model: str, prompt: str, image: bytes, mime_type: str) -> Any:
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=self._build_messages(prompt, image, mime_type),
            )
        except openai.OpenAIError as e:
            logger.warning("model_call_failed", model=model, error=str(e))
            raise GenerationError(str(e)) from e

        if not response.choices:
            raise GenerationError("Model response contained no choices")
        return response.choices[0].message

    def generate_image(self, image: bytes, mime_type: str, prompt: str, model: str) -> str:
        """Generate a new image from an input image and an instruction.

        Args:
            image: Raw bytes of the uploaded image
            mime_type: MIME type of the uploaded image
            prompt: Instruction for the model
            model: Gemini model identifier

        Returns:
            The generated image as a ``data:`` URL using the input MIME type

        Raises:
            GenerationError: If the call fails or no image comes back
        """
        message = self._complete(model, prompt, image, mime_type)
        payload = _extract_image_base64(message)
        if payload is None:
            raise GenerationError("Model response did not include an image")
        return f"data:{mime_type};base64,{payload}"

    def describe_enhancement(self, image: bytes, mime_type: str, prompt: str, model: str) -> str:
        """Ask the model to apply an enhancement and return its text reply.

        Raises:
            GenerationError: If the call fails
        """
        message = self._complete(model, prompt, image, mime_type)
        return getattr(message, "content", None) or ""
