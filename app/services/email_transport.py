"""
Resend email transport.
Performs exactly one HTTP call per send; retries belong to the caller.
"""
import asyncio
from typing import Any, Dict, Optional, Protocol

import aiohttp

from app.config import EMAIL_SETTINGS
from app.services.errors import EmailTransportError
from app.utils import get_logger

logger = get_logger(__name__)


class EmailTransport(Protocol):
    async def send(self, api_key: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...


class ResendTransport:
    """POST ``{from, to, subject, html}`` to the Resend emails API."""

    def __init__(self, api_url: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self.api_url = api_url or str(EMAIL_SETTINGS["resend_api_url"])
        self.timeout_seconds = float(timeout_seconds or EMAIL_SETTINGS["request_timeout_seconds"])

    async def send(self, api_key: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.api_url, json=payload, headers=headers) as response:
                    if response.status >= 300:
                        body = await response.text()
                        logger.warning(
                            "Resend API rejected email",
                            status_code=response.status,
                            body=body[:500],
                        )
                        raise EmailTransportError(
                            f"Resend API returned status {response.status}: {body[:200]}",
                            status_code=response.status,
                        )
                    # Any 2xx means the email was accepted; the body is informational only
                    try:
                        data = await response.json(content_type=None)
                    except (ValueError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                        logger.debug(
                            "Resend API response body unreadable",
                            status_code=response.status,
                            error=str(e),
                        )
                        data = None
                    if not isinstance(data, dict):
                        data = {}
                    logger.debug("Resend API accepted email", status_code=response.status, email_id=data.get("id"))
                    return data
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EmailTransportError(f"Resend API unreachable: {e!r}") from e


__all__ = ["EmailTransport", "ResendTransport"]
