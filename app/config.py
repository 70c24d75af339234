"""Core application configuration & tunable scheduling / delivery rules.

Everything that may need tuning (regional offset, retry ceiling, delays,
report endpoints, delivery defaults) is centralized here so it can be adjusted
without diving into service logic. Values come from environment variables with
safe defaults; tests monkeypatch module attributes or the environment.
"""
from __future__ import annotations

import os

# --------------------------- Regional Calendar ---------------------------- #
# Fixed UTC offset used for every calendar decision. No DST in this region.
REGIONAL_CALENDAR: dict[str, int | str] = {
	"offset_minutes": 330,          # UTC+05:30
	"label": "Asia/Kolkata",
}

# ------------------------------ Delivery Retry ---------------------------- #
# Delay before retry N is base_delay_seconds * N (linear, 2s then 4s).
DELIVERY_RETRY_POLICY: dict[str, int | float] = {
	"max_attempts": int(os.getenv("EMAIL_MAX_ATTEMPTS", "3")),
	"base_delay_seconds": float(os.getenv("EMAIL_RETRY_BASE_DELAY_SECONDS", "2.0")),
}

# ------------------------------ Report Dispatch --------------------------- #
DISPATCH_SETTINGS: dict[str, str | float | None | tuple[str, ...]] = {
	# Where the report-generation endpoints live (this service by default).
	"reports_base_url": os.getenv("REPORTS_BASE_URL", "http://localhost:8000/api/v1"),
	# Timeout for a single report sub-request.
	"job_timeout_seconds": float(os.getenv("REPORT_JOB_TIMEOUT_SECONDS", "120")),
	# Optional overall budget for one nightly invocation (unset = unbounded).
	"deadline_seconds": float(os.environ["DISPATCH_DEADLINE_SECONDS"]) if os.getenv("DISPATCH_DEADLINE_SECONDS") else None,
	"job_order": ("daily", "monthly", "annual"),
}

# ---------------------------------- Email --------------------------------- #
EMAIL_SETTINGS: dict[str, str | float] = {
	"resend_api_url": os.getenv("RESEND_API_URL", "https://api.resend.com/emails"),
	"request_timeout_seconds": float(os.getenv("RESEND_TIMEOUT_SECONDS", "15")),
	"default_from_address": "onboarding@resend.dev",
	"pharmacy_name": os.getenv("PHARMACY_NAME", "Pharmacy Sales Dashboard"),
}

# Keys of the persisted override store (system_config table) and the
# environment variables of the same name used as fallback.
CONFIG_KEY_API_KEY = "RESEND_API_KEY"
CONFIG_KEY_RECIPIENT = "ADMIN_EMAIL"
CONFIG_KEY_SENDER = "RESEND_FROM_EMAIL"
DELIVERY_CONFIG_KEYS: tuple[str, ...] = (CONFIG_KEY_API_KEY, CONFIG_KEY_RECIPIENT, CONFIG_KEY_SENDER)

# -------------------------------- Bill Numbers ---------------------------- #
BILL_NUMBER_SETTINGS: dict[str, int] = {
	"sequence_digits": 4,
	"max_sequence": 9999,
}

# ---------------------------------- Secrets ------------------------------- #
# Shared secret the external scheduler sends as "Authorization: Bearer <secret>".
# Unset disables the check.
CRON_SECRET: str | None = os.getenv("CRON_SECRET") or None

# Key for the admin configuration endpoints (X-Admin-Key header).
ADMIN_API_KEY: str | None = os.getenv("ADMIN_API_KEY") or None

__all__ = [
	"REGIONAL_CALENDAR",
	"DELIVERY_RETRY_POLICY",
	"DISPATCH_SETTINGS",
	"EMAIL_SETTINGS",
	"CONFIG_KEY_API_KEY",
	"CONFIG_KEY_RECIPIENT",
	"CONFIG_KEY_SENDER",
	"DELIVERY_CONFIG_KEYS",
	"BILL_NUMBER_SETTINGS",
	"CRON_SECRET",
	"ADMIN_API_KEY",
]
