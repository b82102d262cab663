# ems_api/blueprints/profile.py
from flask import Blueprint, current_app

from ems_api.common.auth import requires_roles, session_required
from ems_api.common.errors import backend_failure
from ems_api.common.http import ok, fail
from ems_api.common.params import str_field, json_body
from ems_api.query import get_query_client
from ems_api.roles import Role

bp = Blueprint("profile", __name__, url_prefix="/api/v1")

EDITABLE = ("first_name", "last_name", "phone")


@bp.get("/profile")
@session_required
def get_profile(ctx):
    q = get_query_client()
    prof = q.from_("profiles").select("*").eq("id", ctx.user_id).maybe_single()
    if prof.error:
        return backend_failure("Failed to load profile", prof.error)
    if prof.data is None:
        return fail("Profile not found", 404)

    emp = q.from_("employees").select("*, departments(name)").eq("profile_id", ctx.user_id).maybe_single()
    if emp.error:
        # the profile is still useful without the employment card
        current_app.logger.error("profile: employee lookup failed: %s", emp.error.message)
    return ok({"profile": prof.data, "employee": emp.data, "role": ctx.role.value})


@bp.put("/profile")
@session_required
def update_profile(ctx):
    data = json_body()
    values = {}
    for key in EDITABLE:
        if key in data:
            values[key] = str_field(data, key) or None
    if not values:
        return fail("nothing to update", 422)
    if "first_name" in values and not values["first_name"]:
        return fail("Validation failed", 422, errors={"first_name": "cannot be empty"})

    res = get_query_client().from_("profiles").update(values).eq("id", ctx.user_id).execute()
    if res.error:
        return backend_failure("Failed to update profile", res.error)
    if not res.data:
        return fail("Profile not found", 404)
    return ok(res.data[0])


@bp.patch("/profiles/<int:profile_id>/role")
@requires_roles(Role.ADMIN)
def set_role(ctx, profile_id: int):
    data = json_body()
    try:
        role = Role(str(data.get("role") or "").strip().lower())
    except ValueError:
        return fail(f"role must be one of {', '.join(r.value for r in Role)}", 422)

    res = get_query_client().from_("profiles").update({"role": role.value}).eq("id", profile_id).execute()
    if res.error:
        return backend_failure("Failed to update role", res.error)
    if not res.data:
        return fail("Profile not found", 404)

    current_app.extensions["ems_auth"].user_updated(profile_id)
    current_app.logger.info("role of %s set to %s by %s", profile_id, role.value, ctx.user_id)
    return ok(res.data[0])
