"""Linear retry delay for email delivery.

The delay before retry N is ``base * N``. This is intentionally linear (2s, 4s
with the default policy) even though callers historically called it backoff.
"""
from __future__ import annotations

from typing import Optional

from app.config import DELIVERY_RETRY_POLICY


def compute_retry_delay_seconds(attempt: int, *, base: Optional[float] = None) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
    if attempt < 1:
        attempt = 1
    base = float(base if base is not None else DELIVERY_RETRY_POLICY["base_delay_seconds"])
    return max(base * attempt, 0.0)


__all__ = ["compute_retry_delay_seconds"]
