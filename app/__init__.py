"""Pharmacy report dispatch service.

Nightly report dispatch on the regional calendar, resilient email delivery
and bill numbering.
"""

__all__: list[str] = []
