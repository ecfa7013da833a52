"""
Pricing table and cost calculation.

Holds the free-tier quotas and per-request/per-token rates for the
supported Gemini models.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"


@dataclass(frozen=True)
class PricingEntry:
    """Free-tier quotas and paid rates for a specific model."""
    free_tier_requests_per_day: int
    free_tier_tokens_per_day: int
    cost_per_request: Decimal
    cost_per_token: Decimal

    def __post_init__(self):
        """Validate quotas are positive and rates are not negative."""
        if self.free_tier_requests_per_day <= 0:
            raise ValueError("free_tier_requests_per_day must be > 0")
        if self.free_tier_tokens_per_day <= 0:
            raise ValueError("free_tier_tokens_per_day must be > 0")
        if self.cost_per_request < 0:
            raise ValueError("cost_per_request cannot be negative")
        if self.cost_per_token < 0:
            raise ValueError("cost_per_token cannot be negative")

    def cost_for(self, tokens_used: int) -> Decimal:
        """Cost of a single request consuming ``tokens_used`` tokens."""
        return self.cost_per_request + Decimal(tokens_used) * self.cost_per_token

    def free_tier_dict(self) -> Dict[str, int]:
        return {
            "requestsPerDay": self.free_tier_requests_per_day,
            "tokensPerDay": self.free_tier_tokens_per_day,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "freeTier": self.free_tier_dict(),
            "paid": {
                "costPerRequest": float(self.cost_per_request),
                "costPerToken": float(self.cost_per_token),
            },
        }


@dataclass(frozen=True)
class PricingTable:
    """Fixed pricing table with a designated default model."""
    prices: Dict[str, PricingEntry]
    default_model: str = DEFAULT_MODEL

    def __post_init__(self):
        if self.default_model not in self.prices:
            raise ValueError(f"Default model not in pricing table: {self.default_model}")

    @property
    def models(self):
        return list(self.prices)

    @property
    def default_entry(self) -> PricingEntry:
        return self.prices[self.default_model]

    def is_supported(self, model: str) -> bool:
        return model in self.prices

    def get_pricing(self, model: str) -> PricingEntry:
        """Get pricing for a specific model.

        Unknown or missing model identifiers resolve to the default
        model's entry; this lookup never fails.

        Args:
            model: Model identifier

        Returns:
            PricingEntry for the model, or for the default model
        """
        return self.prices.get(model, self.default_entry)

    def to_dict(self) -> Dict[str, Any]:
        return {model: entry.to_dict() for model, entry in self.prices.items()}


# Gemini rates as published for the free tier and pay-as-you-go plans
PRICING_TABLE = PricingTable({
    "gemini-2.5-flash-image-preview": PricingEntry(
        free_tier_requests_per_day=100,
        free_tier_tokens_per_day=10000,
        cost_per_request=Decimal("0.0005"),
        cost_per_token=Decimal("0.000001"),
    ),
    "gemini-1.5-flash": PricingEntry(
        free_tier_requests_per_day=150,
        free_tier_tokens_per_day=15000,
        cost_per_request=Decimal("0.0003"),
        cost_per_token=Decimal("0.0000008"),
    ),
    "gemini-1.5-pro": PricingEntry(
        free_tier_requests_per_day=50,
        free_tier_tokens_per_day=5000,
        cost_per_request=Decimal("0.001"),
        cost_per_token=Decimal("0.000002"),
    ),
})


def calculate_cost(model: str, tokens_used: int, table: PricingTable = PRICING_TABLE) -> Decimal:
    """Calculate the cost of one request under the model's paid rates.

    Args:
        model: Model identifier (unknown models use the default entry)
        tokens_used: Number of tokens consumed by the request
        table: Pricing table to resolve the model against

    Returns:
        Exact cost as a Decimal (no rounding)
    """
    return table.get_pricing(model).cost_for(tokens_used)
