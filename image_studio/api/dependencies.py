"""FastAPI dependencies resolving the objects owned by the app instance."""
from typing import Optional

from fastapi import Request

from image_studio.config.settings import Settings
from image_studio.core.accounting import UsageAccountingService
from image_studio.core.pricing import PricingTable
from image_studio.sdk.gemini_client import GeminiImageClient
from image_studio.sdk.usage_reporter import UsageReporter


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_accounting_service(request: Request) -> UsageAccountingService:
    return request.app.state.accounting


def get_pricing_table(request: Request) -> PricingTable:
    return request.app.state.accounting.pricing


def get_image_client(request: Request) -> Optional[GeminiImageClient]:
    """The model client, or None when no API key is configured."""
    return request.app.state.image_client


def get_usage_reporter(request: Request) -> UsageReporter:
    return request.app.state.usage_reporter
