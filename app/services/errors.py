"""Domain exceptions raised by the dispatch / delivery services."""
from __future__ import annotations


class ReportPipelineError(Exception):
    """Base class for report pipeline errors."""


class DeliveryNotConfiguredError(ReportPipelineError):
    """No API key or recipient resolved. Retrying cannot fix this."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Email delivery not configured (missing: {', '.join(missing)})")


class EmailTransportError(ReportPipelineError):
    """The delivery service rejected or failed a single send attempt."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class BillSequenceOutOfRangeError(ReportPipelineError, ValueError):
    """Sequence number cannot be rendered in the fixed-width bill suffix."""


__all__ = [
    "ReportPipelineError",
    "DeliveryNotConfiguredError",
    "EmailTransportError",
    "BillSequenceOutOfRangeError",
]
