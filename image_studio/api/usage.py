"""Usage accounting endpoints."""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from image_studio.api.dependencies import get_accounting_service
from image_studio.api.schemas import RecordUsageRequest
from image_studio.core.accounting import UsageAccountingService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/usage", tags=["usage"])


@router.get("")
async def get_usage(accounting: UsageAccountingService = Depends(get_accounting_service)):
    """Usage summary and free-tier status for the dashboard."""
    try:
        return accounting.get_summary().to_dict()
    except Exception:
        logger.exception("usage_fetch_failed")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch usage data"})


@router.post("")
async def record_usage(
    body: RecordUsageRequest,
    accounting: UsageAccountingService = Depends(get_accounting_service),
):
    """Record one request's usage against today's totals."""
    try:
        update = accounting.record_usage(body.model, body.tokens_used, body.request_type)
        return update.to_dict()
    except Exception:
        logger.exception("usage_update_failed", model=body.model)
        return JSONResponse(status_code=500, content={"error": "Failed to update usage data"})
