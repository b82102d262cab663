# ems_api/common/params.py
from datetime import date, datetime

from flask import request

DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%Y/%m/%d")


def text_q():
    q = request.args.get("q", "")
    return q.strip() or None


def parse_date(val):
    if not val: return None
    if isinstance(val, date): return val
    for fmt in DATE_FORMATS:
        try: return datetime.strptime(str(val), fmt).date()
        except ValueError: pass
    return None


def int_arg(name, default=None, lo=None, hi=None):
    """
    Read ?name as int. Missing -> default. Present but invalid or out of
    [lo, hi] -> ValueError, which views turn into a 422.
    """
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        v = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be integer")
    if (lo is not None and v < lo) or (hi is not None and v > hi):
        raise ValueError(f"{name} must be between {lo} and {hi}")
    return v


def str_field(data, key):
    """Stripped data[key]; a missing or non-string value reads as ""."""
    v = data.get(key)
    return v.strip() if isinstance(v, str) else ""


def json_body() -> dict:
    data = request.get_json(silent=True, force=True)
    return data if isinstance(data, dict) else {}
