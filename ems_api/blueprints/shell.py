# ems_api/blueprints/shell.py
from flask import Blueprint, request

from ems_api.common.auth import session_required
from ems_api.common.http import ok
from ems_api.routes import can_visit, nav_for, resolve_path

bp = Blueprint("shell", __name__, url_prefix="/api/v1")


@bp.get("/health")
def health():
    return ok({"status": "ok"})


@bp.get("/shell/nav")
@session_required
def navigation(ctx):
    return ok({"role": ctx.role.value, "items": nav_for(ctx.role), "user": ctx.to_dict()})


@bp.get("/shell/resolve")
@session_required
def resolve(ctx):
    """Where should the client land for ?path= given the caller's role."""
    match = resolve_path(request.args.get("path"))
    allowed = match.page != "not_found" and can_visit(ctx.role, match.path)
    return ok({
        "page": match.page,
        "path": match.path,
        "redirect": match.redirect,
        "allowed": allowed,
    })
