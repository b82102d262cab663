# ems_api/session.py
"""
Per-request session context and the application-wide role cache.

The application root owns one subscription to the auth hub (RoleCache);
views never hold auth state of their own, they receive a SessionContext.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from ems_api.backend import AuthEvent, AuthStateHub, Subscription
from ems_api.common.generation import GenerationGuard
from ems_api.roles import Resolved, Role, RoleLookupResult


@dataclass(frozen=True)
class SessionContext:
    user_id: int
    email: str | None
    jti: str | None
    role: Role
    role_resolved: bool = True

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "email": self.email,
            "role": self.role.value,
            "role_resolved": self.role_resolved,
        }


class RoleCache:
    """
    Caches resolved roles for ``ttl`` seconds. Auth events for a principal
    drop its entry and bump its generation so lookups already in flight are
    not cached.
    """

    def __init__(self, ttl: float = 30.0):
        self.ttl = ttl
        self._roles: dict[int, tuple[Role, float]] = {}
        # one lock for the cache and its guard so check-then-store and
        # bump-then-drop cannot interleave
        self._lock = threading.RLock()
        self._guard = GenerationGuard(lock=self._lock)
        self._sub: Subscription | None = None

    def attach(self, hub: AuthStateHub) -> Subscription:
        self.detach()
        self._sub = hub.subscribe(self._on_auth_event)
        return self._sub

    def detach(self):
        if self._sub is not None:
            self._sub.unsubscribe()
            self._sub = None

    def _on_auth_event(self, evt: AuthEvent):
        if evt.user_id is not None:
            self.invalidate(evt.user_id)

    def invalidate(self, user_id: int):
        with self._lock:
            self._guard.bump(user_id)
            self._roles.pop(user_id, None)

    def cached(self, user_id: int) -> Role | None:
        with self._lock:
            hit = self._roles.get(user_id)
            if hit is None:
                return None
            role, stored_at = hit
            if time.monotonic() - stored_at > self.ttl:
                del self._roles[user_id]
                return None
            return role

    def resolve(self, user_id: int, lookup: Callable[[int], RoleLookupResult]) -> RoleLookupResult:
        role = self.cached(user_id)
        if role is not None:
            return Resolved(role)
        token = self._guard.begin(user_id)
        try:
            result = lookup(user_id)
            with self._lock:
                if isinstance(result, Resolved) and self.ttl > 0 and self._guard.is_current(user_id, token):
                    self._roles[user_id] = (result.role, time.monotonic())
        finally:
            self._guard.end(user_id)
        return result
