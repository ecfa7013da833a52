"""
Usage accounting.

Records per-day request/token counters and derives free-tier quota status
and cost estimates from the ledger and the pricing table.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Optional

import structlog

from .pricing import PRICING_TABLE, PricingEntry, PricingTable
from .token_counter import coerce_token_count
from image_studio.storage.ledger import UsageLedger
from image_studio.storage.models import DailyUsageRecord, UsageEvent

logger = structlog.get_logger(__name__)

DEFAULT_REQUEST_TYPE = "image-generation"
RECENT_USAGE_DAYS = 7
DAYS_PER_MONTH = 30
APPROACHING_LIMIT_PERCENT = Decimal("80")
OVER_LIMIT_PERCENT = Decimal("100")

MESSAGE_OVER_LIMIT = (
    "You have exceeded your free tier limits. Charges will apply to additional usage."
)
MESSAGE_APPROACHING_LIMIT = (
    "You are approaching your free tier limits. Consider monitoring your usage."
)
MESSAGE_WITHIN_LIMITS = "You are within your free tier limits."


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass(frozen=True)
class UsageUpdate:
    """Result of recording one usage event."""
    record: DailyUsageRecord
    cost: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "updatedUsage": self.record.to_dict(),
            "estimatedCost": float(self.cost),
        }


@dataclass(frozen=True)
class UsageStatus:
    """Free-tier status flags for today's usage."""
    is_approaching_limit: bool
    is_over_limit: bool

    @property
    def message(self) -> str:
        if self.is_over_limit:
            return MESSAGE_OVER_LIMIT
        if self.is_approaching_limit:
            return MESSAGE_APPROACHING_LIMIT
        return MESSAGE_WITHIN_LIMITS


@dataclass(frozen=True)
class BillingInfo:
    free_tier_active: bool
    estimated_monthly_cost: Decimal
    next_billing_date: str = "N/A (Free Tier)"
    payment_method: str = "Credit Card on file"


@dataclass(frozen=True)
class UsageSummary:
    """Dashboard view of the ledger."""
    current_usage: DailyUsageRecord
    total_requests: int
    total_tokens: int
    total_cost: Decimal
    free_tier_limits: PricingEntry
    requests_percent: int
    tokens_percent: int
    status: UsageStatus
    billing_info: BillingInfo
    pricing: PricingTable
    recent_usage: List[DailyUsageRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentUsage": self.current_usage.to_dict(),
            "totalUsage": {
                "requests": self.total_requests,
                "tokens": self.total_tokens,
                "cost": float(self.total_cost),
            },
            "freeTierLimits": self.free_tier_limits.free_tier_dict(),
            "usagePercentages": {
                "requests": self.requests_percent,
                "tokens": self.tokens_percent,
            },
            "status": {
                "isApproachingLimit": self.status.is_approaching_limit,
                "isOverLimit": self.status.is_over_limit,
                "message": self.status.message,
            },
            "pricing": self.pricing.to_dict(),
            "recentUsage": [record.to_dict() for record in self.recent_usage],
            "billingInfo": {
                "freeTierActive": self.billing_info.free_tier_active,
                "estimatedMonthlyCost": float(self.billing_info.estimated_monthly_cost),
                "nextBillingDate": self.billing_info.next_billing_date,
                "paymentMethod": self.billing_info.payment_method,
            },
        }


def _percent_of(used: int, limit: int) -> Decimal:
    return Decimal(used) * 100 / Decimal(limit)


def _round_percent(percent: Decimal) -> int:
    """Round half up, the way the dashboard displays percentages."""
    return int(percent.to_integral_value(rounding=ROUND_HALF_UP))


class UsageAccountingService:
    """Records usage into a ledger and summarizes it against free-tier quotas.

    The ledger is owned by the service; nothing else should write to it.
    """

    def __init__(
        self,
        ledger: UsageLedger,
        pricing: PricingTable = PRICING_TABLE,
        clock: Callable[[], date] = utc_today,
        summary_model: Optional[str] = None,
    ):
        """Initialize the service.

        Args:
            ledger: Ledger to record into and summarize
            pricing: Pricing table used for costs and quotas
            clock: Returns today's date (UTC by default)
            summary_model: Model whose free tier the summary reports against;
                defaults to the pricing table's default model
        """
        self.ledger = ledger
        self.pricing = pricing
        self.clock = clock
        self.summary_model = summary_model or pricing.default_model

    def _today_key(self) -> str:
        return self.clock().isoformat()

    def record_usage(
        self,
        model: Optional[str],
        tokens_used: Any,
        request_type: Optional[str] = DEFAULT_REQUEST_TYPE,
    ) -> UsageUpdate:
        """Record one request's usage against today's record.

        Malformed input is coerced: a missing or unknown model is priced
        with the default entry, an invalid or negative token count counts
        as 0 and a missing request type is ``image-generation``.

        Args:
            model: Model identifier the request was made with
            tokens_used: Tokens consumed by the request
            request_type: Kind of request, for the event log

        Returns:
            UsageUpdate with a snapshot of today's record and this event's cost
        """
        model = model if isinstance(model, str) and model else self.pricing.default_model
        request_type = request_type or DEFAULT_REQUEST_TYPE
        tokens = coerce_token_count(tokens_used)

        entry = self.pricing.get_pricing(model)
        cost = entry.cost_for(tokens)

        event = UsageEvent(
            timestamp=datetime.now(timezone.utc),
            date=self._today_key(),
            model=model,
            request_type=request_type,
            tokens_used=tokens,
            cost=cost,
        )
        record = self.ledger.record_event(event)

        logger.info(
            "usage_recorded",
            date=record.date,
            model=model,
            request_type=request_type,
            tokens_used=tokens,
            cost=str(cost),
            priced_as_default=not self.pricing.is_supported(model),
        )
        return UsageUpdate(record=record, cost=cost)

    def get_summary(self) -> UsageSummary:
        """Summarize the ledger for the usage dashboard.

        Read-only. A date with no usage yet is reported as a zeroed record.
        """
        today_key = self._today_key()
        records = self.ledger.records()

        current = next((r for r in records if r.date == today_key), None)
        if current is None:
            current = DailyUsageRecord(date=today_key)

        total_requests = sum(r.requests for r in records)
        total_tokens = sum(r.tokens_used for r in records)
        total_cost = sum((r.estimated_cost for r in records), Decimal("0"))

        limits = self.pricing.get_pricing(self.summary_model)
        requests_percent = _percent_of(current.requests, limits.free_tier_requests_per_day)
        tokens_percent = _percent_of(current.tokens_used, limits.free_tier_tokens_per_day)

        status = UsageStatus(
            is_approaching_limit=(
                requests_percent > APPROACHING_LIMIT_PERCENT
                or tokens_percent > APPROACHING_LIMIT_PERCENT
            ),
            is_over_limit=(
                requests_percent > OVER_LIMIT_PERCENT
                or tokens_percent > OVER_LIMIT_PERCENT
            ),
        )

        return UsageSummary(
            current_usage=current,
            total_requests=total_requests,
            total_tokens=total_tokens,
            total_cost=total_cost,
            free_tier_limits=limits,
            requests_percent=_round_percent(requests_percent),
            tokens_percent=_round_percent(tokens_percent),
            status=status,
            billing_info=BillingInfo(
                free_tier_active=not status.is_over_limit,
                estimated_monthly_cost=total_cost * DAYS_PER_MONTH,
            ),
            pricing=self.pricing,
            recent_usage=self.ledger.recent(RECENT_USAGE_DAYS),
        )
