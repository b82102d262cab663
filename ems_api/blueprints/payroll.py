# ems_api/blueprints/payroll.py
from datetime import date

from flask import Blueprint, current_app, request

from ems_api.common.auth import requires_roles
from ems_api.common.errors import backend_failure
from ems_api.common.http import csv_download, ok, fail
from ems_api.common.params import str_field, json_body
from ems_api.models.payroll import PAYROLL_STATUSES
from ems_api.query import get_query_client
from ems_api.roles import Role
from ems_api.services.payroll_service import (
    EXPORT_COLUMNS,
    PAYROLL_EMBED,
    export_rows,
    generate_payroll,
    recompute_net,
)
from ems_api.services.transitions import validate_transition

bp = Blueprint("payroll", __name__, url_prefix="/api/v1/payroll")

AMOUNT_FIELDS = ("allowances", "deductions", "base_salary")


def _period(source):
    """month/year from a mapping, defaulting to the current month."""
    today = date.today()
    try:
        month = int(source.get("month") or today.month)
        year = int(source.get("year") or today.year)
    except (TypeError, ValueError):
        return None, None, "month and year must be integers"
    if not 1 <= month <= 12:
        return None, None, "month must be between 1 and 12"
    if not 2000 <= year <= 2100:
        return None, None, "year must be between 2000 and 2100"
    return month, year, None


def _load(month, year):
    q = get_query_client().from_("payroll").select(PAYROLL_EMBED).eq("month", month).eq("year", year)
    return q.order("employee_id").execute()


@bp.get("")
@requires_roles(Role.ADMIN)
def list_payroll(ctx):
    month, year, err = _period(request.args)
    if err:
        return fail(err, 422)
    res = _load(month, year)
    if res.error:
        return backend_failure("Failed to load payroll", res.error)
    total = round(sum(float(p["net_salary"] or 0) for p in res.data), 2)
    return ok(res.data, month=month, year=year, total=len(res.data), total_net=total)


@bp.post("/generate")
@requires_roles(Role.ADMIN)
def generate(ctx):
    month, year, err = _period(json_body())
    if err:
        return fail(err, 422)
    summary = generate_payroll(get_query_client(), month, year)
    current_app.logger.info("payroll %s/%s generated by %s", month, year, ctx.user_id)
    return ok(summary, 201)


@bp.put("/<int:pid>")
@requires_roles(Role.ADMIN)
def update_amounts(ctx, pid: int):
    """Edit allowances/deductions/base of a draft record; net is recomputed."""
    data = json_body()
    values, errors = {}, {}
    for key in AMOUNT_FIELDS:
        if key not in data:
            continue
        try:
            v = float(data[key])
        except (TypeError, ValueError):
            errors[key] = "must be a number"
            continue
        if v < 0:
            errors[key] = "must be >= 0"
        values[key] = v
    if errors:
        return fail("Validation failed", 422, errors=errors)
    if not values:
        return fail("nothing to update", 422)

    q = get_query_client()
    cur = q.from_("payroll").select("*").eq("id", pid).maybe_single()
    if cur.error:
        return backend_failure("Failed to load payroll record", cur.error)
    if cur.data is None:
        return fail("Payroll record not found", 404)
    if cur.data["status"] != "draft":
        return fail("Only draft payroll can be edited", 409, code="NOT_DRAFT")

    merged = {**cur.data, **values}
    values["net_salary"] = float(recompute_net(merged))
    res = q.from_("payroll").update(values).eq("id", pid).eq("status", "draft").execute()
    if res.error:
        return backend_failure("Failed to update payroll", res.error)
    if not res.data:
        return fail("Only draft payroll can be edited", 409, code="NOT_DRAFT")
    return ok(res.data[0])


@bp.patch("/<int:pid>/status")
@requires_roles(Role.ADMIN)
def set_status(ctx, pid: int):
    data = json_body()
    target = str_field(data, "status")
    if target not in PAYROLL_STATUSES:
        return fail(f"status must be one of {', '.join(PAYROLL_STATUSES)}", 422)

    q = get_query_client()
    cur = q.from_("payroll").select("id, status").eq("id", pid).maybe_single()
    if cur.error:
        return backend_failure("Failed to load payroll record", cur.error)
    if cur.data is None:
        return fail("Payroll record not found", 404)
    validate_transition("payroll", cur.data["status"], target)

    # conditional on the status we validated against
    res = (q.from_("payroll").update({"status": target})
           .eq("id", pid).eq("status", cur.data["status"]).execute())
    if res.error:
        return backend_failure("Failed to update payroll status", res.error)
    if not res.data:
        return fail("Payroll status changed concurrently", 409, code="CONFLICT")
    current_app.logger.info("payroll %s %s -> %s by %s", pid, cur.data["status"], target, ctx.user_id)
    return ok(res.data[0])


@bp.get("/export")
@requires_roles(Role.ADMIN)
def export_csv(ctx):
    month, year, err = _period(request.args)
    if err:
        return fail(err, 422)
    res = _load(month, year)
    if res.error:
        return backend_failure("Failed to load payroll", res.error)

    return csv_download(f"payroll_{year}_{month:02d}.csv", EXPORT_COLUMNS, export_rows(res.data))
