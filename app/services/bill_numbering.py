"""Bill number formatting: ``YYYYMMDD-NNNN``.

The date part is the regional calendar date; ``NNNN`` is the per-day sequence
zero-padded to four digits. Allocation of sequence numbers is the caller's
job. Sequences outside 1..9999 are rejected with
:class:`BillSequenceOutOfRangeError` rather than widened or wrapped.
"""
from __future__ import annotations

from datetime import datetime
from typing import Union

from app.config import BILL_NUMBER_SETTINGS
from app.services.errors import BillSequenceOutOfRangeError
from app.services.regional_calendar import CalendarDate, to_regional_date


def format_bill_number(when: Union[CalendarDate, datetime], sequence_number: int) -> str:
    max_sequence = BILL_NUMBER_SETTINGS["max_sequence"]
    if sequence_number < 1 or sequence_number > max_sequence:
        raise BillSequenceOutOfRangeError(
            f"Bill sequence {sequence_number} outside 1..{max_sequence}"
        )
    day = when if isinstance(when, CalendarDate) else to_regional_date(when)
    digits = BILL_NUMBER_SETTINGS["sequence_digits"]
    return f"{day.compact()}-{sequence_number:0{digits}d}"


def next_bill_number(when: Union[CalendarDate, datetime], issued_today: int) -> str:
    """Number for the bill after ``issued_today`` bills on the same regional day."""
    return format_bill_number(when, issued_today + 1)


__all__ = ["format_bill_number", "next_bill_number"]
