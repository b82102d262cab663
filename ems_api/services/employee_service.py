# ems_api/services/employee_service.py
from __future__ import annotations


def _field(row: dict, *path):
    cur = row
    for key in path:
        if not isinstance(cur, dict):
            return ""
        cur = cur.get(key)
    return cur or ""


def matches_search(row: dict, term: str | None) -> bool:
    """
    Case-insensitive substring match on first name, last name, email and
    employee code. An empty term matches everything.
    """
    if not term:
        return True
    needle = term.strip().lower()
    if not needle:
        return True
    haystack = (
        _field(row, "profiles", "first_name"),
        _field(row, "profiles", "last_name"),
        _field(row, "profiles", "email"),
        _field(row, "employee_code"),
    )
    return any(needle in str(v).lower() for v in haystack)


def filter_employees(rows: list[dict], term: str | None) -> list[dict]:
    return [r for r in rows if matches_search(r, term)]
