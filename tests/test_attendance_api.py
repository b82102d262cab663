from ems_api.models.attendance import Attendance

from conftest import auth_headers, make_user


def test_marking_twice_keeps_one_record_with_latest_status(client, hr):
    _, headers = hr
    _, emp_id = make_user("w@example.com", employee_code="E-100")

    for status in ("present", "absent"):
        r = client.put("/api/v1/attendance", headers=headers,
                       json={"employee_id": emp_id, "date": "2025-03-04", "status": status})
        assert r.status_code == 200, r.get_json()

    rows = Attendance.query.filter_by(employee_id=emp_id).all()
    assert len(rows) == 1
    assert rows[0].status == "absent"
    assert rows[0].check_in_time is None


def test_present_gets_default_shift(client, hr):
    _, headers = hr
    _, emp_id = make_user("s@example.com", employee_code="E-101")
    r = client.put("/api/v1/attendance", headers=headers,
                   json={"employee_id": emp_id, "date": "2025-03-04", "status": "present"})
    data = r.get_json()["data"]
    assert data["check_in_time"] == "09:00:00"
    assert data["check_out_time"] == "18:00:00"


def test_day_sheet_defaults_to_absent(client, admin):
    _, headers = admin
    _, marked = make_user("m@example.com", employee_code="E-1", first_name="Mark")
    _, unmarked = make_user("u@example.com", employee_code="E-2", first_name="Una")
    make_user("gone@example.com", employee_code="E-3", status="terminated")
    client.put("/api/v1/attendance", headers=headers,
               json={"employee_id": marked, "date": "2025-03-04", "status": "half_day"})

    r = client.get("/api/v1/attendance?date=2025-03-04", headers=headers)
    assert r.status_code == 200
    sheet = {row["employee_id"]: row for row in r.get_json()["data"]}
    assert set(sheet) == {marked, unmarked}
    assert sheet[marked]["status"] == "half_day"
    assert sheet[unmarked]["status"] == "absent"
    assert sheet[unmarked]["marked"] is False


def test_invalid_status_rejected(client, hr):
    _, headers = hr
    r = client.put("/api/v1/attendance", headers=headers,
                   json={"employee_id": 1, "date": "2025-03-04", "status": "late"})
    assert r.status_code == 422
    assert "status" in r.get_json()["error"]["errors"]


def test_non_string_status_rejected(client, hr):
    _, headers = hr
    r = client.put("/api/v1/attendance", headers=headers,
                   json={"employee_id": 1, "date": "2025-03-04", "status": 1})
    assert r.status_code == 422
    assert "status" in r.get_json()["error"]["errors"]

    r = client.put("/api/v1/attendance", headers=headers, json=["present"])
    assert r.status_code == 422


def test_employees_cannot_mark(client, app):
    make_user("e@example.com", employee_code="E-5")
    headers = auth_headers(client, "e@example.com")
    r = client.put("/api/v1/attendance", headers=headers,
                   json={"employee_id": 1, "date": "2025-03-04", "status": "present"})
    assert r.status_code == 403


def test_my_attendance_counts(client, hr):
    _, headers = hr
    _, emp_id = make_user("me@example.com", employee_code="E-7")
    for day, status in (("2025-03-03", "present"), ("2025-03-04", "half_day"),
                        ("2025-03-05", "leave"), ("2025-04-01", "present")):
        client.put("/api/v1/attendance", headers=headers,
                   json={"employee_id": emp_id, "date": day, "status": status})

    me = auth_headers(client, "me@example.com")
    r = client.get("/api/v1/my/attendance?month=2025-03", headers=me)
    data = r.get_json()["data"]
    assert [rec["date"] for rec in data["records"]] == ["2025-03-03", "2025-03-04", "2025-03-05"]
    assert data["counts"] == {"present": 1, "absent": 0, "half_day": 1, "leave": 1}
    assert data["paid_days"] == 2.5


def test_my_attendance_requires_employee_record(client, app):
    make_user("nolink@example.com")
    r = client.get("/api/v1/my/attendance", headers=auth_headers(client, "nolink@example.com"))
    assert r.status_code == 404
    assert r.get_json()["error"]["code"] == "NOT_LINKED"
