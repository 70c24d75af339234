"""
Report generation endpoints (daily / monthly / annual).

Each endpoint is one job of the nightly dispatch and delivers its own email.
Delivery failures are reported in the body; the endpoint still answers 200.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Path, Request
import time
from app.api.deps import get_config_resolver, get_current_time, get_resilient_sender, require_cron_secret
from app.models.schemas.dispatch import ReportDeliveryResponse
from app.services.config_resolver import ConfigResolver
from app.services.delivery import ResilientSender
from app.services.report_mailer import deliver_report
from app.utils import get_logger, log_performance

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/{job_name}",
    response_model=ReportDeliveryResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    summary="Generate and email a report",
    dependencies=[Depends(require_cron_secret)],
)
async def run_report(
    request: Request,
    job_name: str = Path(..., pattern="^(daily|monthly|annual)$"),
    resolver: ConfigResolver = Depends(get_config_resolver),
    sender: ResilientSender = Depends(get_resilient_sender),
    now: datetime = Depends(get_current_time),
) -> ReportDeliveryResponse:
    start_time = time.time()
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "unknown")

    logger.info("Report generation requested", job=job_name, request_id=request_id)
    try:
        delivery = await deliver_report(
            job_name, now, resolver, sender, request_id=request_id
        )
    except Exception as e:
        logger.error(
            "Report generation failed",
            job=job_name,
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Failed to generate report")

    log_performance(
        operation=f"report_{job_name}",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"email_sent": delivery.email_sent}
    )
    return ReportDeliveryResponse.model_validate(delivery.to_payload())
