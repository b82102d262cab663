# ems_api/backend/auth.py
"""
Authentication boundary: principals, JWT sessions and auth-state events.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from flask import current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_jwt,
    get_jwt_identity,
    verify_jwt_in_request,
)

from ems_api.extensions import db
from ems_api.models.profile import Profile
from ems_api.models.user import RevokedToken, User

log = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
USER_UPDATED = "USER_UPDATED"
TOKEN_REFRESHED = "TOKEN_REFRESHED"


class AuthError(Exception):
    def __init__(self, message, status=400, code=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str | None
    expires_in: int
    user: dict
    token_type: str = "bearer"

    def to_dict(self):
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
            "token_type": self.token_type,
            "user": self.user,
        }


@dataclass(frozen=True)
class ActiveSession:
    """The session carried by the current request's access token."""
    user_id: int
    email: str | None
    jti: str | None
    expires_at: int | None


@dataclass(frozen=True)
class AuthEvent:
    event: str
    user_id: int | None
    session: AuthSession | None = None


# ---------- auth-state subscriptions ----------

class Subscription:
    def __init__(self, hub: "AuthStateHub", callback: Callable[[AuthEvent], None]):
        self._hub = hub
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._hub._remove(self)
            self.active = False


class AuthStateHub:
    """Fan-out of auth events to subscribers. One per application."""

    def __init__(self):
        self._subs: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[AuthEvent], None]) -> Subscription:
        sub = Subscription(self, callback)
        with self._lock:
            self._subs.append(sub)
        return sub

    def _remove(self, sub: Subscription):
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def emit(self, event: AuthEvent):
        with self._lock:
            subs = list(self._subs)
        for sub in subs:
            try:
                sub.callback(event)
            except Exception:
                log.exception("auth subscriber failed on %s", event.event)

    def close(self):
        with self._lock:
            for sub in self._subs:
                sub.active = False
            self._subs.clear()


# ---------- client ----------

def _user_payload(u: User) -> dict:
    p = u.profile
    return {
        "id": u.id,
        "email": u.email,
        "first_name": p.first_name if p else None,
        "last_name": p.last_name if p else None,
    }


def _expires_in() -> int:
    exp = current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES")
    if isinstance(exp, timedelta):
        return int(exp.total_seconds())
    return int(exp or 0)


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


class AuthClient:
    def __init__(self, hub: AuthStateHub):
        self.hub = hub

    def _issue(self, u: User, refresh_jti: str | None = None) -> AuthSession:
        """
        Access token for ``u``. Without ``refresh_jti`` a new refresh token is
        issued too. The access token carries the refresh token's jti as
        ``rjti`` so sign-out can revoke both.
        """
        refresh_token = None
        if refresh_jti is None:
            refresh_token = create_refresh_token(identity=str(u.id))
            refresh_jti = decode_token(refresh_token)["jti"]
        claims = {"email": u.email, "rjti": refresh_jti}
        access = create_access_token(identity=str(u.id), additional_claims=claims)
        return AuthSession(access, refresh_token, _expires_in(), _user_payload(u))

    def sign_up(self, email: str, password: str, first_name: str, last_name: str | None = None) -> dict:
        email = _text(email).lower()
        if not email or not isinstance(password, str) or not password:
            raise AuthError("email and password are required", 422)
        if len(password) < 6:
            raise AuthError("Password should be at least 6 characters", 422, code="weak_password")
        if User.query.filter_by(email=email).first():
            raise AuthError("User already registered", 409, code="user_already_exists")

        u = User(email=email, status="active")
        u.set_password(password)
        db.session.add(u)
        db.session.flush()
        db.session.add(Profile(id=u.id, email=email, first_name=_text(first_name) or email.split("@")[0],
                               last_name=_text(last_name) or None, role="employee"))
        db.session.commit()
        log.info("principal %s signed up", u.id)
        return _user_payload(u)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        email = _text(email).lower()
        u = User.query.filter_by(email=email).first() if email else None
        if not u or not isinstance(password, str) or not u.check_password(password):
            raise AuthError("Invalid login credentials", 400, code="invalid_credentials")
        if u.status != "active":
            raise AuthError("User is not active", 403, code="user_inactive")
        session = self._issue(u)
        self.hub.emit(AuthEvent(SIGNED_IN, u.id, session))
        return session

    def refresh_session(self, user_id: int, refresh_jti: str) -> AuthSession:
        u = db.session.get(User, user_id)
        if not u or u.status != "active":
            raise AuthError("User not found", 401)
        session = self._issue(u, refresh_jti=refresh_jti)
        self.hub.emit(AuthEvent(TOKEN_REFRESHED, u.id, session))
        return session

    def sign_out(self, jti: str, user_id: int | None, refresh_jti: str | None = None):
        """Revoke the access token and the refresh token it was issued with."""
        for token_id in (jti, refresh_jti):
            if token_id and not RevokedToken.query.filter_by(jti=token_id).first():
                db.session.add(RevokedToken(jti=token_id, user_id=user_id))
        db.session.commit()
        self.hub.emit(AuthEvent(SIGNED_OUT, user_id))

    def get_session(self) -> ActiveSession | None:
        verify_jwt_in_request(optional=True)
        identity = get_jwt_identity()
        if identity is None:
            return None
        claims = get_jwt()
        return ActiveSession(
            user_id=int(identity),
            email=claims.get("email"),
            jti=claims.get("jti"),
            expires_at=claims.get("exp"),
        )

    def user_updated(self, user_id: int):
        self.hub.emit(AuthEvent(USER_UPDATED, user_id))

    def on_auth_state_change(self, callback: Callable[[AuthEvent], None]) -> Subscription:
        return self.hub.subscribe(callback)


def is_token_revoked(jti: str) -> bool:
    return db.session.query(RevokedToken.id).filter_by(jti=jti).first() is not None
