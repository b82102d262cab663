# ems_api/blueprints/self_service.py
"""My attendance, my payroll and my leaves: the signed-in employee's own records."""
from datetime import date

from flask import Blueprint, current_app, request

from ems_api.common.auth import session_required
from ems_api.common.errors import backend_failure
from ems_api.common.http import ok, fail
from ems_api.common.params import int_arg, parse_date, str_field, json_body
from ems_api.models.leave import LEAVE_TYPES
from ems_api.query import get_query_client
from ems_api.services.attendance_service import month_bounds, present_days, status_counts

bp = Blueprint("self_service", __name__, url_prefix="/api/v1/my")

NOT_LINKED = "User is not linked to an employee record"


def _my_employee(q, ctx):
    """(employee_row, error_response). employee_row is None when unlinked."""
    res = q.from_("employees").select("id, employee_code").eq("profile_id", ctx.user_id).maybe_single()
    if res.error:
        return None, backend_failure("Failed to load employee record", res.error)
    if res.data is None:
        return None, fail(NOT_LINKED, 404, code="NOT_LINKED")
    return res.data, None


def _month_arg():
    raw = (request.args.get("month") or "").strip()
    if not raw:
        today = date.today()
        return today.year, today.month
    try:
        y, m = raw.split("-", 1)
        y, m = int(y), int(m)
    except ValueError:
        raise ValueError("month must be YYYY-MM")
    if not 1 <= m <= 12:
        raise ValueError("month must be YYYY-MM")
    return y, m


@bp.get("/attendance")
@session_required
def my_attendance(ctx):
    try:
        year, month = _month_arg()
    except ValueError as e:
        return fail(str(e), 422)

    q = get_query_client()
    emp, err = _my_employee(q, ctx)
    if err:
        return err

    start, end = month_bounds(year, month)
    res = (q.from_("attendance").select("*")
           .eq("employee_id", emp["id"])
           .gte("date", start.isoformat()).lte("date", end.isoformat())
           .order("date").execute())
    if res.error:
        return backend_failure("Failed to load attendance", res.error)

    counts = status_counts(res.data)
    return ok({
        "month": f"{year:04d}-{month:02d}",
        "records": res.data,
        "counts": counts,
        "paid_days": float(present_days(counts)),
    })


@bp.get("/payroll")
@session_required
def my_payroll(ctx):
    try:
        year = int_arg("year", default=date.today().year, lo=2000, hi=2100)
    except ValueError as e:
        return fail(str(e), 422)

    q = get_query_client()
    emp, err = _my_employee(q, ctx)
    if err:
        return err

    res = (q.from_("payroll").select("*")
           .eq("employee_id", emp["id"]).eq("year", year)
           .order("month", desc=True).execute())
    if res.error:
        return backend_failure("Failed to load payroll", res.error)

    earned = round(sum(float(p["net_salary"] or 0) for p in res.data if p["status"] == "paid"), 2)
    return ok({
        "year": year,
        "records": res.data,
        "selected": res.data[0] if res.data else None,
        "total_earned": earned,
    })


@bp.get("/leaves")
@session_required
def my_leaves(ctx):
    res = (get_query_client().from_("leave_requests")
           .select("*, employees(employee_code)")
           .eq("employees.profile_id", ctx.user_id)
           .order("created_at", desc=True).execute())
    if res.error:
        return backend_failure("Failed to load leave requests", res.error)
    return ok(res.data, total=len(res.data))


@bp.post("/leaves")
@session_required
def apply_leave(ctx):
    data = json_body()
    errors = {}
    leave_type = str_field(data, "leave_type")
    if leave_type not in LEAVE_TYPES:
        errors["leave_type"] = f"must be one of {', '.join(LEAVE_TYPES)}"
    start = parse_date(data.get("start_date"))
    end = parse_date(data.get("end_date"))
    if start is None:
        errors["start_date"] = "required (YYYY-MM-DD)"
    if end is None:
        errors["end_date"] = "required (YYYY-MM-DD)"
    if start and end and end < start:
        errors["end_date"] = "must be on or after start_date"
    if errors:
        return fail("Validation failed", 422, errors=errors)

    q = get_query_client()
    emp, err = _my_employee(q, ctx)
    if err:
        return err

    res = q.from_("leave_requests").insert({
        "employee_id": emp["id"],
        "leave_type": leave_type,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "reason": str_field(data, "reason") or None,
        "status": "pending",
    }).single()
    if res.error:
        return backend_failure("Failed to submit leave request", res.error)
    current_app.logger.info("leave request %s submitted by %s", res.data["id"], ctx.user_id)
    return ok(res.data, 201)
