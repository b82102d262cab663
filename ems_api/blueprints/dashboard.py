# ems_api/blueprints/dashboard.py
from datetime import date

from flask import Blueprint, current_app

from ems_api.common.auth import session_required
from ems_api.common.http import ok
from ems_api.query import get_query_client
from ems_api.routes import nav_for

bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")


def _count(res, what):
    if res.error:
        current_app.logger.error("dashboard: %s count failed: %s", what, res.error.message)
        return 0
    return res.count or 0


@bp.get("")
@session_required
def get_dashboard(ctx):
    """
    Headline numbers. Each figure is an independent query; a failing one is
    logged and reported as 0 without failing the page.
    """
    q = get_query_client()
    today = date.today().isoformat()

    employees = q.from_("employees").select("*", count="exact", head=True).eq("status", "active").execute()
    present = (q.from_("attendance").select("*", count="exact", head=True)
               .eq("date", today).eq("status", "present").execute())
    pending = q.from_("leave_requests").select("*", count="exact", head=True).eq("status", "pending").execute()
    payroll = q.from_("payroll").select("net_salary").eq("status", "approved").execute()

    if payroll.error:
        current_app.logger.error("dashboard: payroll total failed: %s", payroll.error.message)
        total_payroll = 0.0
    else:
        total_payroll = round(sum(float(p["net_salary"] or 0) for p in payroll.data), 2)

    return ok({
        "role": ctx.role.value,
        "date": today,
        "stats": {
            "total_employees": _count(employees, "employees"),
            "present_today": _count(present, "attendance"),
            "pending_leaves": _count(pending, "leave"),
            "total_payroll": total_payroll,
        },
        "nav": nav_for(ctx.role),
    })
