# ems_api/services/payroll_service.py
from __future__ import annotations

import logging
from decimal import Decimal

from ems_api.common.errors import APIError
from ems_api.services.attendance_service import (
    month_bounds,
    present_days,
    status_counts,
    working_days,
)
from ems_api.services.calculator import PayrollCalculator, ProratedPayrollCalculator

log = logging.getLogger(__name__)

PAYROLL_EMBED = "*, employees(employee_code, profiles(first_name, last_name))"

EXPORT_COLUMNS = (
    "employee_code", "first_name", "last_name", "month", "year",
    "base_salary", "allowances", "deductions", "net_salary",
    "working_days", "present_days", "status",
)


def _raise(what, res):
    log.error("payroll: %s failed: %s", what, res.error.message)
    raise APIError("BACKEND_ERROR", f"Failed to {what}", status_code=502, payload=res.error.to_dict())


def generate_payroll(client, month: int, year: int, calculator: PayrollCalculator | None = None) -> dict:
    """
    Build draft payroll rows for every active employee from the month's
    attendance. Rows already approved or paid are left alone; existing draft
    rows keep their allowances and deductions.
    """
    calculator = calculator or ProratedPayrollCalculator()
    start, end = month_bounds(year, month)
    wd = working_days(year, month)

    emps = client.from_("employees").select("id, base_salary").eq("status", "active").execute()
    if emps.error:
        _raise("load employees", emps)

    att = (client.from_("attendance").select("employee_id, status")
           .gte("date", start.isoformat()).lte("date", end.isoformat()).execute())
    if att.error:
        _raise("load attendance", att)

    existing = (client.from_("payroll").select("employee_id, status, allowances, deductions")
                .eq("month", month).eq("year", year).execute())
    if existing.error:
        _raise("load existing payroll", existing)

    by_emp: dict[int, list[dict]] = {}
    for r in att.data:
        by_emp.setdefault(r["employee_id"], []).append(r)
    current = {r["employee_id"]: r for r in existing.data}

    rows, skipped = [], []
    for e in emps.data:
        prev = current.get(e["id"])
        if prev and prev["status"] != "draft":
            skipped.append(e["id"])
            continue
        allowances = Decimal(str(prev["allowances"])) if prev else Decimal(0)
        deductions = Decimal(str(prev["deductions"])) if prev else Decimal(0)
        base = Decimal(str(e["base_salary"] or 0))
        present = min(present_days(status_counts(by_emp.get(e["id"], []))), Decimal(wd))
        net = calculator.net_salary(base, allowances, deductions, wd, present)
        rows.append({
            "employee_id": e["id"],
            "month": month,
            "year": year,
            "base_salary": str(base),
            "allowances": str(allowances),
            "deductions": str(deductions),
            "net_salary": str(net),
            "working_days": wd,
            "present_days": str(present),
            "status": "draft",
        })

    if rows:
        res = client.from_("payroll").upsert(rows, on_conflict="employee_id,month,year").execute()
        if res.error:
            _raise("save payroll", res)

    log.info("payroll %04d-%02d: %d generated, %d skipped", year, month, len(rows), len(skipped))
    return {"month": month, "year": year, "working_days": wd,
            "generated": len(rows), "skipped_employee_ids": skipped}


def recompute_net(row: dict, calculator: PayrollCalculator | None = None) -> Decimal:
    calculator = calculator or ProratedPayrollCalculator()
    return calculator.net_salary(
        Decimal(str(row.get("base_salary") or 0)),
        Decimal(str(row.get("allowances") or 0)),
        Decimal(str(row.get("deductions") or 0)),
        int(row.get("working_days") or 0),
        Decimal(str(row.get("present_days") or 0)),
    )


def export_rows(records: list[dict]) -> list[list]:
    out = []
    for p in records:
        emp = p.get("employees") or {}
        prof = emp.get("profiles") or {}
        out.append([
            emp.get("employee_code"), prof.get("first_name"), prof.get("last_name"),
            p["month"], p["year"], p["base_salary"], p["allowances"], p["deductions"],
            p["net_salary"], p["working_days"], p["present_days"], p["status"],
        ])
    return out
