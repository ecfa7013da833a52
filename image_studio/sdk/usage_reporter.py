"""
Usage reporting for the image endpoints.

Reporting is fire-and-forget: a failure is logged and never propagates
into the request that produced the usage.
"""

from abc import ABC, abstractmethod

import httpx
import structlog

from image_studio.core.accounting import UsageAccountingService

logger = structlog.get_logger(__name__)


class UsageReporter(ABC):
    """Reports one request's usage somewhere."""

    def report(self, model: str, tokens_used: int, request_type: str) -> bool:
        """Report usage without raising.

        Returns:
            True if the usage was recorded, False if reporting failed
        """
        try:
            self._send(model, tokens_used, request_type)
        except Exception as e:
            logger.warning(
                "usage_report_failed",
                reporter=type(self).__name__,
                model=model,
                tokens_used=tokens_used,
                request_type=request_type,
                error=str(e),
            )
            return False
        return True

    @abstractmethod
    def _send(self, model: str, tokens_used: int, request_type: str) -> None:
        ...


class LocalUsageReporter(UsageReporter):
    """Records usage directly into the in-process accounting service."""

    def __init__(self, accounting: UsageAccountingService):
        self.accounting = accounting

    def _send(self, model: str, tokens_used: int, request_type: str) -> None:
        self.accounting.record_usage(model, tokens_used, request_type)


class HttpUsageReporter(UsageReporter):
    """Posts usage to a ``POST /usage`` endpoint, e.g. a shared accounting instance."""

    def __init__(self, url: str, timeout: float = 5.0):
        if not url:
            raise ValueError("url is required and cannot be empty")
        self.url = url
        self.timeout = timeout

    def _send(self, model: str, tokens_used: int, request_type: str) -> None:
        response = httpx.post(
            self.url,
            json={
                "model": model,
                "tokensUsed": tokens_used,
                "requestType": request_type,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
