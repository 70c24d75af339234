"""Resilient email delivery.

One notification is sent through a bounded retry loop:

1. Attempt delivery; success returns immediately with the attempts consumed.
2. On failure the error is recorded and, only if attempts remain, the sender
   sleeps ``base_delay * attempt`` (linear) before the next attempt.
3. After ``max_attempts`` failures the last error is returned in the outcome.

Transport failures never escape ``send``; every terminal state is a
:class:`DeliveryOutcome`. Missing credentials are a precondition failure
(:class:`DeliveryNotConfiguredError`) raised before the first attempt.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from app.config import DELIVERY_RETRY_POLICY
from app.services.config_resolver import DeliveryConfig
from app.services.email_transport import EmailTransport
from app.services.errors import DeliveryNotConfiguredError
from app.utils import get_logger
from app.utils.backoff import compute_retry_delay_seconds

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeliveryMessage:
    from_address: str
    to: str
    subject: str
    html: str

    def to_payload(self) -> dict[str, Any]:
        return {"from": self.from_address, "to": self.to, "subject": self.subject, "html": self.html}


@dataclass(frozen=True)
class DeliveryOutcome:
    sent: bool
    attempts: int
    error: Optional[str] = None


class ResilientSender:
    def __init__(
        self,
        transport: EmailTransport,
        *,
        max_attempts: Optional[int] = None,
        base_delay_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.transport = transport
        self.max_attempts = int(max_attempts if max_attempts is not None else DELIVERY_RETRY_POLICY["max_attempts"])
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.base_delay_seconds = float(
            base_delay_seconds if base_delay_seconds is not None else DELIVERY_RETRY_POLICY["base_delay_seconds"]
        )
        self._sleep = sleep

    async def send(self, config: DeliveryConfig, message: DeliveryMessage) -> DeliveryOutcome:
        if not config.is_configured:
            raise DeliveryNotConfiguredError(config.missing_fields())

        last_error = ""
        payload = message.to_payload()
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.transport.send(config.api_key, payload)  # type: ignore[arg-type]
                logger.info("Email delivered", to=message.to, subject=message.subject, attempts=attempt)
                return DeliveryOutcome(sent=True, attempts=attempt)
            except Exception as e:
                last_error = str(e)
                logger.warning(
                    f"Email attempt {attempt}/{self.max_attempts} failed",
                    error=last_error,
                    error_type=type(e).__name__,
                )
                if attempt < self.max_attempts:
                    await self._sleep(compute_retry_delay_seconds(attempt, base=self.base_delay_seconds))

        logger.error("Email delivery exhausted retries", to=message.to, attempts=self.max_attempts, error=last_error)
        return DeliveryOutcome(sent=False, attempts=self.max_attempts, error=last_error)


__all__ = ["DeliveryMessage", "DeliveryOutcome", "ResilientSender"]
