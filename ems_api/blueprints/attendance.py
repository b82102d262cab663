# ems_api/blueprints/attendance.py
from datetime import date

from flask import Blueprint, current_app, request

from ems_api.common.auth import requires_roles
from ems_api.common.errors import backend_failure
from ems_api.common.http import ok, fail
from ems_api.common.params import parse_date, str_field, json_body
from ems_api.models.attendance import ATTENDANCE_STATUSES
from ems_api.query import get_query_client
from ems_api.roles import Role
from ems_api.services.attendance_service import attendance_row, status_for

bp = Blueprint("attendance", __name__, url_prefix="/api/v1/attendance")


@bp.get("")
@requires_roles(Role.ADMIN, Role.HR)
def day_sheet(ctx):
    """
    Active employees with their status on ?date= (default today).
    Employees with no record for the day show as absent.
    """
    raw = request.args.get("date")
    on = parse_date(raw) if raw else date.today()
    if on is None:
        return fail("date must be YYYY-MM-DD", 422)

    q = get_query_client()
    emps = (q.from_("employees")
            .select("id, employee_code, profiles(first_name, last_name)")
            .eq("status", "active").order("employee_code").execute())
    if emps.error:
        return backend_failure("Failed to load employees", emps.error)

    att = q.from_("attendance").select("*").eq("date", on.isoformat()).execute()
    if att.error:
        return backend_failure("Failed to load attendance", att.error)

    by_emp = {r["employee_id"]: r for r in att.data}
    items = []
    for e in emps.data:
        rec = by_emp.get(e["id"])
        items.append({
            "employee_id": e["id"],
            "employee_code": e["employee_code"],
            "profiles": e.get("profiles"),
            "status": status_for(e["id"], att.data),
            "check_in_time": rec["check_in_time"] if rec else None,
            "check_out_time": rec["check_out_time"] if rec else None,
            "marked": rec is not None,
        })
    return ok(items, date=on.isoformat(), total=len(items))


@bp.put("")
@requires_roles(Role.ADMIN, Role.HR)
def mark(ctx):
    """
    Body: {"employee_id", "date", "status"}. One record per employee per day;
    marking again overwrites it.
    """
    data = json_body()
    errors = {}
    employee_id = data.get("employee_id")
    if employee_id in (None, ""):
        errors["employee_id"] = "required"
    on = parse_date(data.get("date")) if data.get("date") else date.today()
    if on is None:
        errors["date"] = "invalid date"
    status = str_field(data, "status")
    if status not in ATTENDANCE_STATUSES:
        errors["status"] = f"must be one of {', '.join(ATTENDANCE_STATUSES)}"
    if errors:
        return fail("Validation failed", 422, errors=errors)

    res = (get_query_client().from_("attendance")
           .upsert(attendance_row(employee_id, on, status), on_conflict="employee_id,date")
           .single())
    if res.error:
        return backend_failure("Failed to mark attendance", res.error)
    current_app.logger.info("attendance %s %s -> %s by %s", employee_id, on, status, ctx.user_id)
    return ok(res.data)
