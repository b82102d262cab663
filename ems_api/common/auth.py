# ems_api/common/auth.py
from __future__ import annotations

from functools import wraps

from flask import current_app, g
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required

from ems_api.common.http import fail
from ems_api.query import get_query_client
from ems_api.roles import Resolved, Role, get_user_role
from ems_api.session import SessionContext


def current_session() -> SessionContext:
    """
    Build the SessionContext for this request once. Must run after
    jwt_required(). A principal whose role cannot be resolved is treated as
    an employee.
    """
    claims = get_jwt() or {}
    ctx = g.get("ems_session")
    if ctx is not None and ctx.jti == claims.get("jti"):
        return ctx
    uid = int(get_jwt_identity())
    cache = current_app.extensions["ems_role_cache"]
    client = get_query_client()
    result = cache.resolve(uid, lambda u: get_user_role(client, u))
    ctx = SessionContext(
        user_id=uid,
        email=claims.get("email"),
        jti=claims.get("jti"),
        role=result.role_or(Role.EMPLOYEE),
        role_resolved=isinstance(result, Resolved),
    )
    g.ems_session = ctx
    return ctx


def session_required(fn):
    """Any signed-in principal; the SessionContext is passed as first arg."""
    @wraps(fn)
    @jwt_required()
    def inner(*args, **kwargs):
        return fn(current_session(), *args, **kwargs)
    return inner


def requires_roles(*roles: Role):
    """
    Require that the current principal has one of the given roles.
    The SessionContext is passed as first arg.
    """
    def outer(fn):
        @wraps(fn)
        @jwt_required()
        def inner(*args, **kwargs):
            ctx = current_session()
            if not ctx.has_role(*roles):
                return fail("Forbidden", status=403, code="FORBIDDEN")
            return fn(ctx, *args, **kwargs)
        return inner
    return outer
