# ems_api/roles.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

log = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class Resolved:
    role: Role

    def role_or(self, default: Role) -> Role:
        return self.role


@dataclass(frozen=True)
class Unresolved:
    reason: str | None = None

    def role_or(self, default: Role) -> Role:
        return default


RoleLookupResult = Union[Resolved, Unresolved]


def get_user_role(client, user_id) -> RoleLookupResult:
    """
    Ask the data service for the principal's role.

    Failures are logged and reported as Unresolved; the caller decides what
    role an unresolved principal gets.
    """
    res = client.rpc("get_user_role", {"_user_id": user_id})
    if res.error is not None:
        log.error("role lookup failed for user %s: %s", user_id, res.error.message)
        return Unresolved(res.error.message)
    if not res.data:
        return Unresolved("no role assigned")
    try:
        return Resolved(Role(res.data))
    except ValueError:
        log.warning("user %s has unknown role %r", user_id, res.data)
        return Unresolved(f"unknown role {res.data!r}")
