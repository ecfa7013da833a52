"""
SDK for Image Studio.

Clients for the generative model and for usage reporting.
"""

from .gemini_client import ApiKeyMissingError, GeminiImageClient, GenerationError
from .usage_reporter import HttpUsageReporter, LocalUsageReporter, UsageReporter

__all__ = [
    "ApiKeyMissingError",
    "GeminiImageClient",
    "GenerationError",
    "HttpUsageReporter",
    "LocalUsageReporter",
    "UsageReporter",
]
