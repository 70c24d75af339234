"""
Scheduler entrypoint: nightly report dispatch.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import time
from app.api.deps import get_current_time, get_report_job_client, require_cron_secret
from app.config import DISPATCH_SETTINGS
from app.models.schemas.dispatch import NightlyDispatchResponse
from app.services.dispatcher import ReportDispatcher, ReportJobClient
from app.utils import get_logger, log_business_event, log_performance

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/nightly",
    response_model=NightlyDispatchResponse,
    responses={207: {"model": NightlyDispatchResponse, "description": "Some report jobs failed"}},
    summary="Dispatch the reports due today"
)
async def nightly_dispatch(
    request: Request,
    cron_secret: Optional[str] = Depends(require_cron_secret),
    job_client: ReportJobClient = Depends(get_report_job_client),
    now: datetime = Depends(get_current_time),
) -> JSONResponse:
    """Trigger daily, monthly (last day of month) and annual (Jan 1) reports.

    Returns 200 when every dispatched job succeeded, 207 when at least one failed.
    """
    start_time = time.time()
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "unknown")

    dispatcher = ReportDispatcher(
        job_client,
        secret=cron_secret,
        deadline_seconds=DISPATCH_SETTINGS["deadline_seconds"],  # type: ignore[arg-type]
    )
    report = await dispatcher.dispatch(now)
    payload = NightlyDispatchResponse.model_validate(report.to_payload())

    log_business_event(
        event_type="nightly_dispatch_completed",
        details={
            "ist_date": report.calendar_date.iso(),
            "triggered": report.triggered,
            "failed": [name for name, o in report.results.items() if not o.ok],
        },
        request_id=request_id
    )
    log_performance(
        operation="nightly_dispatch",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"jobs": len(report.results)}
    )
    return JSONResponse(status_code=report.http_status, content=payload.model_dump(by_alias=True))
