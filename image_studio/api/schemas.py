"""Request schemas for the HTTP API."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from image_studio.core.accounting import DEFAULT_REQUEST_TYPE


class RecordUsageRequest(BaseModel):
    """Body of ``POST /usage``.

    Field values are loosely typed. The accounting service coerces anything
    malformed to its defaults.
    """
    model_config = ConfigDict(populate_by_name=True)

    model: Optional[str] = None
    tokens_used: Any = Field(default=0, alias="tokensUsed")
    request_type: Optional[str] = Field(default=DEFAULT_REQUEST_TYPE, alias="requestType")

    @field_validator("model", "request_type", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Optional[str]:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None
