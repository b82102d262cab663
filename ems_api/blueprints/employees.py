# ems_api/blueprints/employees.py
from flask import Blueprint, current_app, request

from ems_api.common.auth import requires_roles
from ems_api.common.errors import backend_failure
from ems_api.common.http import ok, fail
from ems_api.common.params import parse_date, text_q, json_body
from ems_api.models.employee import EMPLOYEE_STATUSES
from ems_api.query import get_query_client
from ems_api.roles import Role
from ems_api.services.employee_service import filter_employees

bp = Blueprint("employees", __name__, url_prefix="/api/v1/employees")

EMPLOYEE_EMBED = "*, profiles(first_name, last_name, email, phone), departments(name)"

WRITABLE = ("profile_id", "department_id", "employee_code", "designation",
            "hire_date", "base_salary", "status")


def _clean(data: dict, creating: bool):
    """Validate a create/update body. Returns (values, errors)."""
    values, errors = {}, {}
    for key in WRITABLE:
        if key in data:
            values[key] = data[key]

    if creating:
        for key in ("profile_id", "employee_code"):
            if values.get(key) in (None, ""):
                errors[key] = "required"

    if "employee_code" in values:
        code = str(values["employee_code"] or "").strip()
        if not code:
            errors["employee_code"] = "cannot be empty"
        values["employee_code"] = code

    if values.get("hire_date") not in (None, ""):
        d = parse_date(values["hire_date"])
        if d is None:
            errors["hire_date"] = "invalid date"
        else:
            values["hire_date"] = d.isoformat()

    if "base_salary" in values:
        try:
            if float(values["base_salary"] or 0) < 0:
                errors["base_salary"] = "must be >= 0"
        except (TypeError, ValueError):
            errors["base_salary"] = "must be a number"

    if "status" in values and values["status"] not in EMPLOYEE_STATUSES:
        errors["status"] = f"must be one of {', '.join(EMPLOYEE_STATUSES)}"

    return values, errors


@bp.get("")
@requires_roles(Role.ADMIN, Role.HR)
def list_employees(ctx):
    """
    All employees with profile and department, newest first. ?q= narrows by
    first name, last name, email or employee code (case-insensitive).
    """
    q = get_query_client()
    query = q.from_("employees").select(EMPLOYEE_EMBED)
    status = (request.args.get("status") or "").strip()
    if status:
        query = query.eq("status", status)
    res = query.order("created_at", desc=True).execute()
    if res.error:
        return backend_failure("Failed to load employees", res.error)

    items = filter_employees(res.data, text_q())
    return ok(items, total=len(items))


@bp.get("/<int:emp_id>")
@requires_roles(Role.ADMIN, Role.HR)
def get_employee(ctx, emp_id: int):
    res = get_query_client().from_("employees").select(EMPLOYEE_EMBED).eq("id", emp_id).maybe_single()
    if res.error:
        return backend_failure("Failed to load employee", res.error)
    if res.data is None:
        return fail("Employee not found", 404)
    return ok(res.data)


@bp.post("")
@requires_roles(Role.ADMIN)
def create_employee(ctx):
    data = json_body()
    values, errors = _clean(data, creating=True)
    if errors:
        return fail("Validation failed", 422, errors=errors)
    values.setdefault("status", "active")

    res = get_query_client().from_("employees").insert(values).single()
    if res.error:
        return backend_failure("Failed to create employee", res.error)
    current_app.logger.info("employee %s created by %s", res.data["id"], ctx.user_id)
    return ok(res.data, 201)


@bp.put("/<int:emp_id>")
@requires_roles(Role.ADMIN)
def update_employee(ctx, emp_id: int):
    data = json_body()
    values, errors = _clean(data, creating=False)
    if errors:
        return fail("Validation failed", 422, errors=errors)
    if not values:
        return fail("nothing to update", 422)

    res = get_query_client().from_("employees").update(values).eq("id", emp_id).execute()
    if res.error:
        return backend_failure("Failed to update employee", res.error)
    if not res.data:
        return fail("Employee not found", 404)
    return ok(res.data[0])
