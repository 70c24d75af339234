"""
Bill number preview endpoint.
"""
from typing import Optional
from fastapi import APIRouter, HTTPException, Query, status
from app.models.schemas.base import ResponseBase
from app.services.bill_numbering import format_bill_number
from app.services.errors import BillSequenceOutOfRangeError
from app.services.regional_calendar import parse_date_param, to_regional_date
from app.utils.time import utc_now

router = APIRouter()

@router.get("/number", response_model=ResponseBase, summary="Format a bill number")
async def preview_bill_number(
    sequence: int = Query(..., description="Per-day sequence number (1-9999)"),
    date: Optional[str] = Query(None, description="Regional date YYYY-MM-DD; defaults to today"),
) -> ResponseBase:
    day = parse_date_param(date) if date else to_regional_date(utc_now())
    if day is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="date must be YYYY-MM-DD")
    try:
        bill_number = format_bill_number(day, sequence)
    except BillSequenceOutOfRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ResponseBase(success=True, data={"bill_number": bill_number, "date": day.iso()})
