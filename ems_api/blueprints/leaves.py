# ems_api/blueprints/leaves.py
from datetime import datetime

from flask import Blueprint, current_app, request

from ems_api.common.auth import requires_roles
from ems_api.common.errors import backend_failure
from ems_api.common.http import ok, fail
from ems_api.query import get_query_client
from ems_api.roles import Role
from ems_api.services.transitions import LEAVE_TRANSITIONS, validate_transition

bp = Blueprint("leaves", __name__, url_prefix="/api/v1/leaves")

LEAVE_EMBED = (
    "*, employees(employee_code, profiles(first_name, last_name)), "
    "reviewed_by:profiles!leave_requests_reviewed_by_fkey(first_name, last_name)"
)


@bp.get("")
@requires_roles(Role.ADMIN, Role.HR)
def list_leaves(ctx):
    status = (request.args.get("status") or "").strip().lower()
    if status and status not in LEAVE_TRANSITIONS:
        return fail(f"status must be one of {', '.join(LEAVE_TRANSITIONS)}", 422)

    query = get_query_client().from_("leave_requests").select(LEAVE_EMBED)
    if status:
        query = query.eq("status", status)
    res = query.order("created_at", desc=True).execute()
    if res.error:
        return backend_failure("Failed to load leave requests", res.error)
    return ok(res.data, total=len(res.data))


def _review(ctx, leave_id: int, target: str):
    q = get_query_client()
    cur = q.from_("leave_requests").select("id, status").eq("id", leave_id).maybe_single()
    if cur.error:
        return backend_failure("Failed to load leave request", cur.error)
    if cur.data is None:
        return fail("Leave request not found", 404)
    validate_transition("leave", cur.data["status"], target)

    res = (q.from_("leave_requests")
           .update({"status": target,
                    "reviewed_by": ctx.user_id,
                    "reviewed_at": datetime.utcnow().isoformat()})
           .eq("id", leave_id).eq("status", cur.data["status"])
           .execute())
    if res.error:
        return backend_failure("Failed to update leave request", res.error)
    if not res.data:
        # someone else reviewed it between our read and write
        return fail("Leave request already reviewed", 409, code="INVALID_TRANSITION")

    current_app.logger.info("leave %s %s by %s", leave_id, target, ctx.user_id)
    return ok(res.data[0])


@bp.post("/<int:leave_id>/approve")
@requires_roles(Role.ADMIN, Role.HR)
def approve(ctx, leave_id: int):
    return _review(ctx, leave_id, "approved")


@bp.post("/<int:leave_id>/reject")
@requires_roles(Role.ADMIN, Role.HR)
def reject(ctx, leave_id: int):
    return _review(ctx, leave_id, "rejected")
