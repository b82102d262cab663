# ems_api/routes.py
"""Route table of the web client and role-gated navigation."""
from __future__ import annotations

from dataclasses import dataclass

from ems_api.roles import Role

AUTH_PATH = "/auth"

PAGES = {
    "/dashboard": "dashboard",
    "/employees": "employees",
    "/attendance": "attendance",
    "/payroll": "payroll",
    "/departments": "departments",
    "/leaves": "leaves",
    "/my-attendance": "my_attendance",
    "/my-payroll": "my_payroll",
    "/my-leaves": "my_leaves",
    "/profile": "profile",
    AUTH_PATH: "auth",
}

NAV_ITEMS = {
    Role.ADMIN: [
        ("Dashboard", "/dashboard"),
        ("Employees", "/employees"),
        ("Attendance", "/attendance"),
        ("Payroll", "/payroll"),
        ("Departments", "/departments"),
        ("Leave Requests", "/leaves"),
    ],
    Role.HR: [
        ("Dashboard", "/dashboard"),
        ("Employees", "/employees"),
        ("Attendance", "/attendance"),
        ("Leave Requests", "/leaves"),
    ],
    Role.EMPLOYEE: [
        ("Dashboard", "/dashboard"),
        ("My Attendance", "/my-attendance"),
        ("My Payroll", "/my-payroll"),
        ("My Leaves", "/my-leaves"),
    ],
}

# reachable by every signed-in role without a sidebar entry
ALWAYS_ALLOWED = ("/profile", AUTH_PATH)


@dataclass(frozen=True)
class RouteMatch:
    page: str
    path: str
    redirect: str | None = None


def resolve_path(path: str | None) -> RouteMatch:
    p = (path or "/").split("?", 1)[0]
    if len(p) > 1:
        p = p.rstrip("/")
    if p in ("", "/"):
        return RouteMatch(page="auth", path=AUTH_PATH, redirect=AUTH_PATH)
    page = PAGES.get(p)
    if page is None:
        return RouteMatch(page="not_found", path=p)
    return RouteMatch(page=page, path=p)


def nav_for(role: Role) -> list[dict]:
    return [{"label": label, "path": path} for label, path in NAV_ITEMS[role]]


def can_visit(role: Role, path: str) -> bool:
    match = resolve_path(path)
    if match.page == "not_found":
        return False
    if match.path in ALWAYS_ALLOWED:
        return True
    return any(p == match.path for _, p in NAV_ITEMS[role])
