"""Image generation and enhancement endpoints.

Both endpoints forward the uploaded image and an instruction to the
generative model. Successful calls report estimated usage after the
response is sent.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from image_studio.api.dependencies import (
    get_app_settings,
    get_image_client,
    get_pricing_table,
    get_usage_reporter,
)
from image_studio.config.settings import Settings
from image_studio.core.enhancement import (
    EnhancementType,
    get_enhancement_prompt,
    parse_enhancement_type,
)
from image_studio.core.pricing import PricingTable
from image_studio.core.token_counter import estimate_prompt_tokens
from image_studio.sdk.gemini_client import (
    GeminiImageClient,
    describe_generation_error,
    to_data_url,
)
from image_studio.sdk.usage_reporter import UsageReporter

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["images"])

REQUEST_TYPE_GENERATION = "image-generation"
REQUEST_TYPE_ENHANCEMENT = "image-enhancement"
DEFAULT_MIME_TYPE = "image/png"


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _read_upload(image: UploadFile, settings: Settings) -> Optional[bytes]:
    """Read the upload, or None if it exceeds the size limit."""
    data = image.file.read(settings.max_upload_size_bytes + 1)
    if len(data) > settings.max_upload_size_bytes:
        return None
    return data


@router.post("/generate-image")
def generate_image(
    background_tasks: BackgroundTasks,
    image: Optional[UploadFile] = File(None),
    prompt: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    settings: Settings = Depends(get_app_settings),
    pricing: PricingTable = Depends(get_pricing_table),
    client: Optional[GeminiImageClient] = Depends(get_image_client),
    reporter: UsageReporter = Depends(get_usage_reporter),
):
    """Generate a new image from an uploaded image and a prompt."""
    if client is None:
        logger.error("api_key_missing", setting="GOOGLE_GENERATIVE_AI_API_KEY")
        return _error(500, "API key not configured")

    if image is None or not prompt:
        return _error(400, "Image and prompt are required")

    model = model or settings.default_model
    if not pricing.is_supported(model):
        return _error(400, "Invalid model selected")

    data = _read_upload(image, settings)
    if data is None:
        return _error(400, f"Image exceeds the {settings.max_upload_size_mb} MB upload limit")
    mime_type = image.content_type or DEFAULT_MIME_TYPE

    try:
        generated = client.generate_image(data, mime_type, prompt, model)
    except Exception as e:
        logger.exception("image_generation_failed", model=model)
        return _error(500, describe_generation_error(e), generatedImage=None)

    # Tokens are not reported by image models; estimate from the prompt.
    background_tasks.add_task(
        reporter.report, model, estimate_prompt_tokens(prompt), REQUEST_TYPE_GENERATION
    )
    logger.info("image_generated", model=model, prompt_length=len(prompt))
    return {"generatedImage": generated, "error": None}


@router.post("/enhance-image")
def enhance_image(
    background_tasks: BackgroundTasks,
    image: Optional[UploadFile] = File(None),
    enhancement_type: Optional[str] = Form(None, alias="enhancementType"),
    model: Optional[str] = Form(None),
    settings: Settings = Depends(get_app_settings),
    pricing: PricingTable = Depends(get_pricing_table),
    client: Optional[GeminiImageClient] = Depends(get_image_client),
    reporter: UsageReporter = Depends(get_usage_reporter),
):
    """Apply a one-click enhancement preset to an uploaded image.

    Returns the original image along with the model's description of the
    enhancement.
    """
    if client is None:
        logger.error("api_key_missing", setting="GOOGLE_GENERATIVE_AI_API_KEY")
        return _error(500, "API key not configured")

    if image is None:
        return _error(400, "Image is required")

    try:
        kind = parse_enhancement_type(enhancement_type or EnhancementType.AUTO.value)
    except ValueError:
        return _error(400, "Invalid enhancement type")

    model = model or settings.default_model
    if not pricing.is_supported(model):
        return _error(400, "Invalid model selected")

    data = _read_upload(image, settings)
    if data is None:
        return _error(400, f"Image exceeds the {settings.max_upload_size_mb} MB upload limit")
    mime_type = image.content_type or DEFAULT_MIME_TYPE

    prompt = get_enhancement_prompt(kind)
    try:
        message = client.describe_enhancement(data, mime_type, prompt, model)
    except Exception as e:
        logger.exception("image_enhancement_failed", model=model, enhancement_type=kind.value)
        return _error(500, describe_generation_error(e), enhancedImage=None)

    background_tasks.add_task(
        reporter.report, model, estimate_prompt_tokens(prompt), REQUEST_TYPE_ENHANCEMENT
    )
    return {
        "enhancedImage": to_data_url(data, mime_type),
        "enhancementType": kind.value,
        "model": model,
        "message": message,
        "error": None,
    }
