from .base import ResponseBase
from .dispatch import JobResult, NightlyDispatchResponse, ReportPeriodRead, ReportDeliveryResponse
from .system_config import DeliveryConfigUpdate

__all__ = [
    # Base
    "ResponseBase",

    # Dispatch / delivery
    "JobResult",
    "NightlyDispatchResponse",
    "ReportPeriodRead",
    "ReportDeliveryResponse",

    # Admin config
    "DeliveryConfigUpdate",
]
