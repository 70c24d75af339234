"""
Pydantic schemas for the nightly dispatch and report delivery responses.

Field names on the wire are camelCase (``istDate``, ``emailSent``...) because
the external scheduler and dashboards already parse them that way.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

class JobResult(BaseModel):
    """Outcome of one report sub-request."""
    status: int = Field(description="HTTP status returned by the report endpoint (500 on error, 504 if abandoned)")
    ok: bool

class NightlyDispatchResponse(BaseModel):
    """Aggregate result of a nightly trigger. ``results`` preserves dispatch order."""
    triggered: List[str] = Field(description="Job names in dispatch order (daily, monthly, annual)")
    results: Dict[str, JobResult]
    ist_date: str = Field(alias="istDate", description="Regional calendar date, YYYY-MM-DD")
    is_last_day_of_month: bool = Field(alias="isLastDayOfMonth")
    is_jan_first: bool = Field(alias="isJanFirst")

    model_config = ConfigDict(populate_by_name=True)

class ReportPeriodRead(BaseModel):
    type: str
    label: str
    start: str
    end: str

class ReportDeliveryResponse(BaseModel):
    """Response of a report endpoint; delivery failures are reported, not raised."""
    success: bool = True
    period: ReportPeriodRead
    email_sent: bool = Field(alias="emailSent")
    email_attempts: Optional[int] = Field(None, alias="emailAttempts")
    email_error: Optional[str] = Field(None, alias="emailError")
    note: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
