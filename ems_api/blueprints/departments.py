# ems_api/blueprints/departments.py
from flask import Blueprint

from ems_api.common.auth import requires_roles
from ems_api.common.errors import backend_failure
from ems_api.common.http import ok, fail
from ems_api.common.params import str_field, json_body
from ems_api.query import get_query_client
from ems_api.roles import Role

bp = Blueprint("departments", __name__, url_prefix="/api/v1/departments")


def _payload():
    data = json_body()
    name = str_field(data, "name")
    description = str_field(data, "description") or None
    return data, name, description


@bp.get("")
@requires_roles(Role.ADMIN, Role.HR)
def list_departments(ctx):
    res = get_query_client().from_("departments").select("*").order("name").execute()
    if res.error:
        return backend_failure("Failed to load departments", res.error)
    return ok(res.data, total=len(res.data))


@bp.post("")
@requires_roles(Role.ADMIN)
def create_department(ctx):
    _, name, description = _payload()
    if not name:
        return fail("name is required", 422)
    res = get_query_client().from_("departments").insert({"name": name, "description": description}).single()
    if res.error:
        return backend_failure("Failed to save department", res.error)
    return ok(res.data, 201)


@bp.put("/<int:dep_id>")
@requires_roles(Role.ADMIN)
def update_department(ctx, dep_id: int):
    data, name, description = _payload()
    values = {}
    if "name" in data:
        if not name:
            return fail("name cannot be empty", 422)
        values["name"] = name
    if "description" in data:
        values["description"] = description
    if not values:
        return fail("nothing to update", 422)

    res = get_query_client().from_("departments").update(values).eq("id", dep_id).execute()
    if res.error:
        return backend_failure("Failed to save department", res.error)
    if not res.data:
        return fail("Department not found", 404)
    return ok(res.data[0])


@bp.delete("/<int:dep_id>")
@requires_roles(Role.ADMIN)
def delete_department(ctx, dep_id: int):
    res = get_query_client().from_("departments").delete().eq("id", dep_id).execute()
    if res.error:
        return backend_failure("Failed to delete department", res.error)
    if not res.data:
        return fail("Department not found", 404)
    return ok({"id": dep_id, "deleted": True})
