# ems_api/services/attendance_service.py
from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal

from ems_api.models.attendance import ATTENDANCE_STATUSES

# default shift used when a day is marked present
DEFAULT_CHECK_IN = "09:00:00"
DEFAULT_CHECK_OUT = "18:00:00"


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def working_days(year: int, month: int) -> int:
    """Mon-Fri days in the month."""
    start, end = month_bounds(year, month)
    return sum(1 for d in range(start.day, end.day + 1) if date(year, month, d).weekday() < 5)


def attendance_row(employee_id, on: date, status: str) -> dict:
    present = status == "present"
    return {
        "employee_id": employee_id,
        "date": on.isoformat(),
        "status": status,
        "check_in_time": DEFAULT_CHECK_IN if present else None,
        "check_out_time": DEFAULT_CHECK_OUT if present else None,
    }


def status_counts(records: list[dict]) -> dict:
    counts = {s: 0 for s in ATTENDANCE_STATUSES}
    for r in records:
        if r.get("status") in counts:
            counts[r["status"]] += 1
    return counts


def present_days(counts: dict) -> Decimal:
    """Paid days: present and leave count fully, half days count half."""
    return (Decimal(counts.get("present", 0)) + Decimal(counts.get("leave", 0))
            + Decimal(counts.get("half_day", 0)) / 2)


def status_for(employee_id, records: list[dict], default="absent") -> str:
    for r in records:
        if r.get("employee_id") == employee_id:
            return r.get("status") or default
    return default
