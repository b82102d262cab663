# ems_api/blueprints/auth.py
from flask import Blueprint, current_app
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required

from ems_api.backend import AuthError
from ems_api.common.auth import current_session
from ems_api.common.http import ok, fail
from ems_api.common.params import json_body

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _client():
    return current_app.extensions["ems_auth"]


@bp.post("/sign-up")
def sign_up():
    d = json_body()
    try:
        user = _client().sign_up(d.get("email"), d.get("password"),
                                 d.get("first_name"), d.get("last_name"))
    except AuthError as e:
        return fail(e.message, status=e.status, code=e.code)
    return ok({"user": user}, 201)


@bp.post("/sign-in")
def sign_in():
    d = json_body()
    try:
        session = _client().sign_in_with_password(d.get("email"), d.get("password"))
    except AuthError as e:
        current_app.logger.info("sign-in rejected for %r: %s", d.get("email"), e.message)
        return fail(e.message, status=e.status, code=e.code)
    return ok(session.to_dict())


@bp.post("/refresh")
@jwt_required(refresh=True)
def refresh():
    try:
        session = _client().refresh_session(int(get_jwt_identity()), get_jwt().get("jti"))
    except AuthError as e:
        return fail(e.message, status=e.status, code=e.code, detail={"redirect": "/auth"})
    return ok(session.to_dict())


@bp.post("/sign-out")
@jwt_required()
def sign_out():
    claims = get_jwt()
    _client().sign_out(claims.get("jti"), int(get_jwt_identity()), refresh_jti=claims.get("rjti"))
    return ok({"signed_out": True, "redirect": "/auth"})


@bp.get("/session")
def session():
    active = _client().get_session()
    if active is None:
        return ok(None, redirect="/auth")
    ctx = current_session()
    return ok({"session": {"user_id": active.user_id, "email": active.email,
                           "expires_at": active.expires_at},
               "role": ctx.role.value, "role_resolved": ctx.role_resolved})
