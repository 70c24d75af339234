"""Nightly report job dispatcher.

Given "now", decides which report jobs are due on the regional calendar and
triggers each one as an independent sub-request:

* ``daily``   - every invocation
* ``monthly`` - last day of the regional month
* ``annual``  - January 1st (reports on the previous year)

Jobs run sequentially in that fixed order so the outcome mapping is
deterministic. A failing job (non-2xx, network error, timeout) is recorded as
``ok=False`` and never prevents the following jobs from being dispatched.

Nothing is persisted between invocations. A second trigger on the same
regional day dispatches the daily job again (at-least-once; the scheduler owns
deduplication).
"""
from __future__ import annotations

import asyncio
import hmac
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

import aiohttp

from app.config import DISPATCH_SETTINGS
from app.services.errors import ReportPipelineError
from app.services.regional_calendar import (
    CalendarDate,
    is_first_of_january,
    is_last_day_of_month,
    to_regional_date,
)
from app.utils import get_logger

logger = get_logger(__name__)

# Recorded when a job raised instead of answering (mirrors an internal error).
FAILED_JOB_STATUS = 500
# Recorded for jobs abandoned because the invocation deadline ran out.
ABANDONED_JOB_STATUS = 504


class ReportJobError(ReportPipelineError):
    """A report sub-request could not be completed (network error / timeout)."""


class ReportJobClient(Protocol):
    async def trigger(self, job_name: str, headers: dict[str, str]) -> int:
        """Trigger one report job and return its HTTP status."""
        ...


class HttpReportJobClient:
    """POST ``{base_url}/reports/{job_name}`` with aiohttp."""

    def __init__(self, base_url: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self.base_url = (base_url or str(DISPATCH_SETTINGS["reports_base_url"])).rstrip("/")
        self.timeout_seconds = float(timeout_seconds or DISPATCH_SETTINGS["job_timeout_seconds"])  # type: ignore[arg-type]

    async def trigger(self, job_name: str, headers: dict[str, str]) -> int:
        url = f"{self.base_url}/reports/{job_name}"
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, headers=headers) as response:
                    return response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ReportJobError(f"Report job '{job_name}' failed: {e!r}") from e


@dataclass(frozen=True)
class DueJobSet:
    daily: bool = True
    monthly: bool = False
    annual: bool = False

    def job_names(self) -> list[str]:
        order: tuple[str, ...] = DISPATCH_SETTINGS["job_order"]  # type: ignore[assignment]
        return [name for name in order if getattr(self, name)]


@dataclass(frozen=True)
class JobOutcome:
    job_name: str
    status: int
    ok: bool


@dataclass
class DispatchReport:
    calendar_date: CalendarDate
    due: DueJobSet
    # Insertion order == dispatch order
    results: dict[str, JobOutcome] = field(default_factory=dict)

    @property
    def triggered(self) -> list[str]:
        return list(self.results)

    @property
    def all_ok(self) -> bool:
        return all(outcome.ok for outcome in self.results.values())

    @property
    def http_status(self) -> int:
        return 200 if self.all_ok else 207

    def to_payload(self) -> dict[str, Any]:
        return {
            "triggered": self.triggered,
            "results": {name: {"status": o.status, "ok": o.ok} for name, o in self.results.items()},
            "istDate": self.calendar_date.iso(),
            "isLastDayOfMonth": self.due.monthly,
            "isJanFirst": self.due.annual,
        }


def verify_trigger_secret(expected: Optional[str], authorization: Optional[str]) -> bool:
    """True when no secret is configured or the header is exactly ``Bearer <secret>``."""
    if not expected:
        return True
    return hmac.compare_digest((authorization or "").encode(), f"Bearer {expected}".encode())


def compute_due_jobs(today: CalendarDate) -> DueJobSet:
    return DueJobSet(
        daily=True,
        monthly=is_last_day_of_month(today),
        annual=is_first_of_january(today),
    )


class ReportDispatcher:
    def __init__(
        self,
        job_client: ReportJobClient,
        *,
        secret: Optional[str] = None,
        deadline_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.job_client = job_client
        self.secret = secret
        self.deadline_seconds = deadline_seconds
        self._clock = clock

    def _forward_headers(self) -> dict[str, str]:
        if self.secret:
            return {"Authorization": f"Bearer {self.secret}"}
        return {}

    async def _run_job(self, job_name: str, headers: dict[str, str], remaining: Optional[float]) -> JobOutcome:
        try:
            if remaining is None:
                status = await self.job_client.trigger(job_name, headers)
            else:
                status = await asyncio.wait_for(self.job_client.trigger(job_name, headers), timeout=remaining)
        except Exception as e:
            # Only a configured deadline turns a timeout into an abandonment
            if remaining is not None and isinstance(e, asyncio.TimeoutError):
                logger.warning("Report job abandoned: dispatch deadline reached", job=job_name)
                return JobOutcome(job_name, ABANDONED_JOB_STATUS, False)
            logger.error("Report job failed", job=job_name, error=str(e), error_type=type(e).__name__)
            return JobOutcome(job_name, FAILED_JOB_STATUS, False)

        ok = 200 <= status < 300
        if ok:
            logger.info("Report job dispatched", job=job_name, status=status)
        else:
            logger.warning("Report job returned non-success status", job=job_name, status=status)
        return JobOutcome(job_name, status, ok)

    async def dispatch(self, now: datetime) -> DispatchReport:
        today = to_regional_date(now)
        due = compute_due_jobs(today)
        report = DispatchReport(calendar_date=today, due=due)
        headers = self._forward_headers()

        logger.info(
            "Nightly dispatch started",
            ist_date=today.iso(),
            due_jobs=due.job_names(),
        )

        started = self._clock()
        for job_name in due.job_names():
            remaining: Optional[float] = None
            if self.deadline_seconds is not None:
                remaining = self.deadline_seconds - (self._clock() - started)
                if remaining <= 0:
                    logger.warning("Report job skipped: dispatch deadline reached", job=job_name)
                    report.results[job_name] = JobOutcome(job_name, ABANDONED_JOB_STATUS, False)
                    continue
            report.results[job_name] = await self._run_job(job_name, headers, remaining)

        logger.info(
            "Nightly dispatch finished",
            ist_date=today.iso(),
            triggered=report.triggered,
            all_ok=report.all_ok,
        )
        return report


__all__ = [
    "ReportJobError",
    "ReportJobClient",
    "HttpReportJobClient",
    "DueJobSet",
    "JobOutcome",
    "DispatchReport",
    "verify_trigger_secret",
    "compute_due_jobs",
    "ReportDispatcher",
]
