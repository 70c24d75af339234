"""Observability helpers (correlation IDs)."""
from __future__ import annotations
import uuid
from typing import Mapping

REQUEST_ID_HEADER = "X-Request-ID"

def ensure_request_id(headers: Mapping[str, str]) -> str:
    """Reuse the caller's request id (e.g. the scheduler's) or mint a new one."""
    incoming = (headers.get(REQUEST_ID_HEADER) or "").strip()
    return incoming or str(uuid.uuid4())

__all__ = ["ensure_request_id", "REQUEST_ID_HEADER"]
