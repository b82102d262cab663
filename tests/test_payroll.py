import csv
import io
from decimal import Decimal

import pytest

from ems_api.models.payroll import Payroll
from ems_api.services.attendance_service import present_days, status_counts, working_days
from ems_api.services.calculator import ProratedPayrollCalculator

from conftest import auth_headers, make_user


def test_working_days():
    assert working_days(2025, 3) == 21   # starts on a Saturday
    assert working_days(2024, 2) == 21   # leap February
    assert working_days(2025, 6) == 21


def test_present_days_counts_half_days_as_half():
    counts = status_counts([{"status": "present"}, {"status": "half_day"},
                            {"status": "leave"}, {"status": "absent"}, {"status": "bogus"}])
    assert present_days(counts) == Decimal("2.5")


@pytest.mark.parametrize("base, allow, ded, wd, present, expected", [
    (2100, 0, 0, 21, 21, "2100.00"),
    (2100, 0, 0, 21, "12.5", "1250.00"),
    (1000, 50, 25, 20, 10, "525.00"),
    (1000, 0, 5000, 20, 20, "0.00"),
    (1000, 0, 0, 20, 25, "1000.00"),
    (1000, 10, 0, 0, 0, "10.00"),
])
def test_prorated_net(base, allow, ded, wd, present, expected):
    calc = ProratedPayrollCalculator()
    net = calc.net_salary(Decimal(base), Decimal(allow), Decimal(ded), wd, Decimal(present))
    assert net == Decimal(expected)


@pytest.fixture
def staff(client, admin):
    """Two active employees with March 2025 attendance for the first."""
    _, headers = admin
    _, worker = make_user("worker@example.com", first_name="Wes", last_name="Worker",
                          employee_code="P-1", base_salary=2100)
    _, idle = make_user("idle@example.com", first_name="Ida", employee_code="P-2", base_salary=3000)
    make_user("ex@example.com", employee_code="P-3", base_salary=9999, status="terminated")

    days = [f"2025-03-{d:02d}" for d in (3, 4, 5, 6, 7, 10, 11, 12, 13, 14)]
    marks = [(d, "present") for d in days] + [("2025-03-17", "half_day"),
                                              ("2025-03-18", "leave"), ("2025-03-19", "leave")]
    for d, status in marks:
        client.put("/api/v1/attendance", headers=headers,
                   json={"employee_id": worker, "date": d, "status": status})
    return headers, worker, idle


def test_generate_builds_drafts(client, staff):
    headers, worker, idle = staff
    r = client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2025}, headers=headers)
    assert r.status_code == 201
    summary = r.get_json()["data"]
    assert summary == {"month": 3, "year": 2025, "working_days": 21,
                       "generated": 2, "skipped_employee_ids": []}

    rows = {p["employee_id"]: p for p in
            client.get("/api/v1/payroll?month=3&year=2025", headers=headers).get_json()["data"]}
    assert set(rows) == {worker, idle}
    assert rows[worker]["present_days"] == 12.5
    assert rows[worker]["net_salary"] == 1250.0
    assert rows[worker]["status"] == "draft"
    assert rows[worker]["employees"]["profiles"]["first_name"] == "Wes"
    assert rows[idle]["net_salary"] == 0.0


def test_regenerate_updates_in_place_and_skips_finalised(client, staff):
    headers, worker, idle = staff
    client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2025}, headers=headers)
    worker_row = Payroll.query.filter_by(employee_id=worker).one()

    r = client.patch(f"/api/v1/payroll/{worker_row.id}/status", json={"status": "approved"}, headers=headers)
    assert r.status_code == 200

    r = client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2025}, headers=headers)
    summary = r.get_json()["data"]
    assert summary["generated"] == 1
    assert summary["skipped_employee_ids"] == [worker]
    assert Payroll.query.count() == 2


def test_draft_amounts_recompute_net(client, staff):
    headers, worker, _ = staff
    client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2025}, headers=headers)
    pid = Payroll.query.filter_by(employee_id=worker).one().id

    r = client.put(f"/api/v1/payroll/{pid}", json={"allowances": 200, "deductions": 50}, headers=headers)
    assert r.status_code == 200, r.get_json()
    assert r.get_json()["data"]["net_salary"] == 1400.0

    # allowances survive a regeneration of the draft
    client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2025}, headers=headers)
    row = client.get("/api/v1/payroll?month=3&year=2025", headers=headers).get_json()["data"]
    mine = next(p for p in row if p["employee_id"] == worker)
    assert (mine["allowances"], mine["net_salary"]) == (200.0, 1400.0)


def test_status_machine_enforced(client, staff):
    headers, worker, _ = staff
    client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2025}, headers=headers)
    pid = Payroll.query.filter_by(employee_id=worker).one().id

    r = client.patch(f"/api/v1/payroll/{pid}/status", json={"status": "paid"}, headers=headers)
    assert r.status_code == 409
    assert r.get_json()["error"]["detail"]["allowed"] == ["approved"]

    for target in ("approved", "paid"):
        assert client.patch(f"/api/v1/payroll/{pid}/status", json={"status": target},
                            headers=headers).status_code == 200

    r = client.put(f"/api/v1/payroll/{pid}", json={"allowances": 1}, headers=headers)
    assert r.status_code == 409
    r = client.patch(f"/api/v1/payroll/{pid}/status", json={"status": "draft"}, headers=headers)
    assert r.status_code == 409


def test_export_csv(client, staff):
    headers, _, _ = staff
    client.post("/api/v1/payroll/generate", json={"month": 3, "year": 2025}, headers=headers)
    r = client.get("/api/v1/payroll/export?month=3&year=2025", headers=headers)
    assert r.status_code == 200
    assert r.mimetype == "text/csv"
    assert "payroll_2025_03.csv" in r.headers["Content-Disposition"]

    rows = list(csv.reader(io.StringIO(r.get_data(as_text=True))))
    assert rows[0][:3] == ["employee_code", "first_name", "last_name"]
    assert sorted(r[0] for r in rows[1:]) == ["P-1", "P-2"]


def test_bad_period(client, admin):
    _, headers = admin
    assert client.get("/api/v1/payroll?month=13", headers=headers).status_code == 422
    assert client.post("/api/v1/payroll/generate", json={"month": "x"}, headers=headers).status_code == 422


def test_payroll_is_admin_only(client, hr):
    _, headers = hr
    assert client.get("/api/v1/payroll", headers=headers).status_code == 403


def test_my_payroll_newest_first(client, staff):
    headers, worker, _ = staff
    for month in (1, 2, 3):
        client.post("/api/v1/payroll/generate", json={"month": month, "year": 2025}, headers=headers)

    me = auth_headers(client, "worker@example.com")
    data = client.get("/api/v1/my/payroll?year=2025", headers=me).get_json()["data"]
    assert [p["month"] for p in data["records"]] == [3, 2, 1]
    assert data["selected"]["month"] == 3
    assert data["total_earned"] == 0.0

    empty = client.get("/api/v1/my/payroll?year=2024", headers=me).get_json()["data"]
    assert empty["records"] == [] and empty["selected"] is None
