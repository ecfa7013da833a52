"""FastAPI application factory.

Run with ``uvicorn image_studio.api.app:create_app --factory`` or
``image-studio serve``.
"""
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from image_studio.api import images, usage
from image_studio.api.errors import register_error_handlers
from image_studio.config.loader import load_pricing_config
from image_studio.config.settings import Settings, get_settings
from image_studio.core.accounting import UsageAccountingService
from image_studio.core.pricing import PRICING_TABLE
from image_studio.demo.seed_demo_data import seed_demo_ledger
from image_studio.logging_config import configure_logging
from image_studio.sdk.gemini_client import GeminiImageClient
from image_studio.sdk.usage_reporter import HttpUsageReporter, LocalUsageReporter, UsageReporter
from image_studio.storage.repository import get_ledger

logger = structlog.get_logger(__name__)


def build_accounting_service(settings: Settings) -> UsageAccountingService:
    """Create the accounting service and the ledger it owns."""
    if settings.pricing_config_path:
        pricing = load_pricing_config(settings.pricing_config_path)
    else:
        pricing = PRICING_TABLE

    ledger = get_ledger(settings.ledger_db_path)
    if settings.seed_demo_data:
        seed_demo_ledger(ledger)

    return UsageAccountingService(ledger, pricing, summary_model=pricing.default_model)


def build_usage_reporter(settings: Settings, accounting: UsageAccountingService) -> UsageReporter:
    if settings.usage_endpoint_url:
        return HttpUsageReporter(settings.usage_endpoint_url, timeout=settings.usage_report_timeout_seconds)
    return LocalUsageReporter(accounting)


def create_app(
    settings: Optional[Settings] = None,
    accounting: Optional[UsageAccountingService] = None,
    image_client: Optional[GeminiImageClient] = None,
    usage_reporter: Optional[UsageReporter] = None,
) -> FastAPI:
    """Build the API with its own ledger, model client and reporter.

    Args:
        settings: Application settings (defaults to the environment)
        accounting: Accounting service to use instead of building one
        image_client: Model client; built from the API key when omitted
        usage_reporter: Reporter used by the image endpoints

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    accounting = accounting or build_accounting_service(settings)
    if image_client is None and settings.google_generative_ai_api_key:
        image_client = GeminiImageClient(
            api_key=settings.google_generative_ai_api_key,
            base_url=settings.gemini_base_url,
            timeout=settings.generation_timeout_seconds,
        )
    usage_reporter = usage_reporter or build_usage_reporter(settings, accounting)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        configure_logging(settings.log_level, settings.log_json)
        logger.info(
            "startup",
            ledger=type(accounting.ledger).__name__,
            reporter=type(usage_reporter).__name__,
            model_configured=image_client is not None,
        )
        yield
        logger.info("shutdown")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.accounting = accounting
    app.state.image_client = image_client
    app.state.usage_reporter = usage_reporter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(usage.router)
    app.include_router(images.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
