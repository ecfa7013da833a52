"""
Data models for storage layer.

Defines the per-day usage record and the per-request usage event.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict


@dataclass
class DailyUsageRecord:
    """Accumulated usage for one calendar date (ISO ``YYYY-MM-DD``).

    Created on the first usage event for the date and updated in place by
    every later event. ``estimated_cost`` only ever grows.
    """
    date: str
    requests: int = 0
    tokens_used: int = 0
    estimated_cost: Decimal = Decimal("0")

    def apply(self, tokens_used: int, cost: Decimal) -> None:
        """Add one request's usage to the record."""
        self.requests += 1
        self.tokens_used += tokens_used
        self.estimated_cost += cost

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "requests": self.requests,
            "tokensUsed": self.tokens_used,
            "estimatedCost": float(self.estimated_cost),
        }


@dataclass(frozen=True)
class UsageEvent:
    """Immutable record of one usage report.

    The sum of event costs for a date reproduces that date's
    ``DailyUsageRecord.estimated_cost``.
    """
    timestamp: datetime
    date: str
    model: str
    request_type: str
    tokens_used: int
    cost: Decimal
