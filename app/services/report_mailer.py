"""Delivery step shared by the report endpoints.

Each report job works out its reporting period on the regional calendar,
resolves the delivery config fresh, and hands one notification to the
resilient sender.

The email carries only the report title and period label. Sales figures
(revenue, bill counts, top medicines) come from the bill records collaborator
that owns sales aggregation; this service does not compute or embed them.
"""
from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from app.config import EMAIL_SETTINGS
from app.services.config_resolver import ConfigResolver, DeliveryConfig
from app.services.delivery import DeliveryMessage, ResilientSender
from app.services.errors import DeliveryNotConfiguredError
from app.services.regional_calendar import day_bounds, month_bounds, to_regional_date, year_bounds
from app.utils import get_logger, log_business_event

logger = get_logger(__name__)

REPORT_TITLES = {
    "daily": "Daily Sales Summary",
    "monthly": "Monthly Sales Report",
    "annual": "Annual Sales Report",
}

NOT_CONFIGURED_NOTE = "Set RESEND_API_KEY and ADMIN_EMAIL to enable email delivery"


@dataclass(frozen=True)
class ReportPeriod:
    kind: str
    label: str
    start: datetime
    end: datetime

    def to_payload(self) -> dict[str, str]:
        return {"type": self.kind, "label": self.label, "start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class ReportDelivery:
    period: ReportPeriod
    email_sent: bool
    attempts: Optional[int] = None
    error: Optional[str] = None
    note: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": True, "period": self.period.to_payload(), "emailSent": self.email_sent}
        if self.attempts is not None:
            payload["emailAttempts"] = self.attempts
        if self.error:
            payload["emailError"] = self.error
        if self.note:
            payload["note"] = self.note
        return payload


def report_period(job_name: str, now: datetime) -> ReportPeriod:
    """Period covered by ``job_name`` when run at ``now``.

    The annual job runs on January 1st and therefore covers the previous year.
    """
    today = to_regional_date(now)
    if job_name == "daily":
        start, end = day_bounds(today)
        return ReportPeriod("daily", today.iso(), start, end)
    if job_name == "monthly":
        start, end = month_bounds(today.year, today.month)
        return ReportPeriod("monthly", f"{today.year:04d}-{today.month:02d}", start, end)
    if job_name == "annual":
        year = today.year - 1
        start, end = year_bounds(year)
        return ReportPeriod("annual", f"{year:04d}", start, end)
    raise ValueError(f"Unknown report job '{job_name}'")


def _from_header(config: DeliveryConfig) -> str:
    return f"{EMAIL_SETTINGS['pharmacy_name']} <{config.sender_address}>"


def build_report_message(period: ReportPeriod, config: DeliveryConfig) -> DeliveryMessage:
    pharmacy = str(EMAIL_SETTINGS["pharmacy_name"])
    title = REPORT_TITLES[period.kind]
    body = (
        f"<h2>{html.escape(title)}: {html.escape(period.label)}</h2>"
        f"<p>{html.escape(pharmacy)}: automated {period.kind} report.</p>"
    )
    return DeliveryMessage(
        from_address=_from_header(config),
        to=config.recipient or "",
        subject=f"{title} - {period.label}",
        html=body,
    )


def build_test_message(config: DeliveryConfig, now: datetime) -> DeliveryMessage:
    pharmacy = str(EMAIL_SETTINGS["pharmacy_name"])
    return DeliveryMessage(
        from_address=_from_header(config),
        to=config.recipient or "",
        subject=f"Test Email - {pharmacy}",
        html=(
            "<h2>Email Configured Successfully</h2>"
            "<p>Your daily, monthly, and annual reports will be delivered to this address.</p>"
            f"<p>{to_regional_date(now).iso()}</p>"
        ),
    )


async def deliver_report(
    job_name: str,
    now: datetime,
    resolver: ConfigResolver,
    sender: ResilientSender,
    request_id: Optional[str] = None,
) -> ReportDelivery:
    period = report_period(job_name, now)
    config = resolver.resolve()
    message = build_report_message(period, config)
    try:
        outcome = await sender.send(config, message)
    except DeliveryNotConfiguredError as e:
        logger.info("Report email skipped: delivery not configured", job=job_name, missing=e.missing)
        return ReportDelivery(period=period, email_sent=False, note=NOT_CONFIGURED_NOTE)

    log_business_event(
        event_type="report_email_sent" if outcome.sent else "report_email_failed",
        details={"job": job_name, "period": period.label, "attempts": outcome.attempts, "error": outcome.error},
        request_id=request_id,
    )
    return ReportDelivery(period=period, email_sent=outcome.sent, attempts=outcome.attempts, error=outcome.error)


__all__ = [
    "REPORT_TITLES",
    "NOT_CONFIGURED_NOTE",
    "ReportPeriod",
    "ReportDelivery",
    "report_period",
    "build_report_message",
    "build_test_message",
    "deliver_report",
]
